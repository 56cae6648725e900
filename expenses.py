# expenses.py
"""
Logging an expense: validate, split, persist, reconcile.

All checks run before the transaction opens, so a rejected request never
touches the database. Once writing starts, the expense row, its shares and
every balance adjustment are committed together or not at all.
"""

import logging
import re
from datetime import date as date_type, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

import ledger
import models
import splitter
from config import DEFAULT_CURRENCY
from database import atomic
from errors import MembershipError, NotFoundError, ValidationError
from groups import member_ids

logger = logging.getLogger(__name__)

CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def _check_payload(description, amount, date, payer_id, group_id, currency) -> None:
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Description is required")
    # Raises InvalidAmount for anything that is not a positive number of cents.
    splitter.to_cents(amount)
    if not isinstance(date, date_type):
        raise ValidationError("Date is required")
    if payer_id is None:
        raise ValidationError("Payer is required")
    if group_id is None:
        raise ValidationError("Group is required")
    if not isinstance(currency, str) or not CURRENCY_CODE.match(currency):
        raise ValidationError(f"Currency {currency!r} is not a 3-letter code")


def group_lock_query(db: Session, group_id: int):
    # Serializes expenses within one group; balances are read-modify-write.
    return db.query(models.Group).filter(models.Group.id == group_id).with_for_update()


def resolve_participants(
    group_member_ids: Sequence[int], payer_id: int, participant_ids: Optional[Sequence[int]] = None
) -> List[int]:
    """
    Work out who shares an expense.

    No participants means the whole group. Supplied ids are deduplicated and
    put in membership order, which decides who absorbs the rounding remainder.
    """
    if payer_id not in group_member_ids:
        raise MembershipError(f"Payer {payer_id} is not a member of this group")

    if participant_ids is None:
        chosen = set(group_member_ids)
    else:
        chosen = set(participant_ids)
        outsiders = sorted(chosen.difference(group_member_ids), key=str)
        if outsiders:
            raise MembershipError(
                "Participants not in this group: " + ", ".join(str(o) for o in outsiders)
            )

    resolved = [mid for mid in group_member_ids if mid in chosen]
    if not resolved:
        raise MembershipError("Select at least one participant")
    if payer_id not in chosen:
        raise MembershipError("The payer must be one of the participants")
    return resolved


def log_expense(
    db: Session,
    group_id: int,
    description: str,
    amount,
    date,
    payer_id: int,
    participant_ids: Optional[Sequence[int]] = None,
    currency: Optional[str] = None,
) -> int:
    """Record an expense, its shares and the resulting debts. Returns the new expense id."""
    if currency is None or currency == "":
        currency = DEFAULT_CURRENCY
    if isinstance(currency, str):
        currency = currency.strip().upper()
    if isinstance(date, datetime):
        date = date.date()
    _check_payload(description, amount, date, payer_id, group_id, currency)

    group = db.query(models.Group).filter(models.Group.id == group_id).first()
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    group_member_ids = member_ids(db, group_id)
    if not group_member_ids:
        raise NotFoundError(f"Group {group_id} has no members")

    participants = resolve_participants(group_member_ids, payer_id, participant_ids)
    shares = splitter.split(amount, participants)
    total = splitter.from_cents(splitter.to_cents(amount))

    with atomic(db):
        group_lock_query(db, group_id).first()

        expense = models.Expense(
            description=description.strip(),
            amount=total,
            date=date,
            currency=currency,
            group_id=group_id,
            paid_by_id=payer_id,
        )
        db.add(expense)
        db.flush()  # populate expense.id before creating shares

        for member_id, share in shares:
            db.add(models.ExpenseShare(expense_id=expense.id, member_id=member_id, amount=share))
        db.flush()

        for member_id, share in shares:
            if member_id == payer_id:
                continue
            ledger.apply_debt(db, group_id, creditor_id=payer_id, debtor_id=member_id, delta=share)

        expense_id = expense.id

    logger.info(
        "Logged expense %s in group %s: %s %s paid by %s, split %d ways",
        expense_id, group_id, total, currency, payer_id, len(shares),
    )
    return expense_id


def get_expense(db: Session, expense_id: int) -> models.Expense:
    expense = (
        db.query(models.Expense)
        .options(selectinload(models.Expense.shares))
        .filter(models.Expense.id == expense_id)
        .first()
    )
    if expense is None:
        raise NotFoundError(f"Expense {expense_id} not found")
    return expense


def list_expenses(db: Session, group_id: int) -> List[models.Expense]:
    """Expense history of a group, newest first, shares loaded."""
    return (
        db.query(models.Expense)
        .options(selectinload(models.Expense.shares))
        .filter(models.Expense.group_id == group_id)
        .order_by(models.Expense.date.desc(), models.Expense.id.desc())
        .all()
    )


def _money(value) -> Decimal:
    # SUM() over no rows is NULL; some backends hand floats back.
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(splitter.CENT)


def group_summary(db: Session, group: models.Group) -> dict:
    """
    Spending and ledger figures for a group.

    Per member: what they paid, their total share, the ledger's owes/owed/net
    and ``settled_ratio`` (paid as a percentage of share, capped at 100).
    Group-wide: total spend, expense count, average expense and what is still
    outstanding on the ledger.
    """
    total_spend, expense_count = (
        db.query(func.sum(models.Expense.amount), func.count(models.Expense.id))
        .filter(models.Expense.group_id == group.id)
        .one()
    )
    total_spend = _money(total_spend)
    average_expense = (
        (total_spend / expense_count).quantize(splitter.CENT, rounding=ROUND_HALF_UP)
        if expense_count
        else Decimal("0.00")
    )

    paid_by_member = dict(
        db.query(models.Expense.paid_by_id, func.sum(models.Expense.amount))
        .filter(models.Expense.group_id == group.id)
        .group_by(models.Expense.paid_by_id)
        .all()
    )
    share_by_member = dict(
        db.query(models.ExpenseShare.member_id, func.sum(models.ExpenseShare.amount))
        .join(models.Expense)
        .filter(models.Expense.group_id == group.id)
        .group_by(models.ExpenseShare.member_id)
        .all()
    )

    balances = ledger.list_balances(db, group.id)
    positions = ledger.member_positions(db, group.id)

    members = []
    for member in group.members:
        paid = _money(paid_by_member.get(member.id))
        share = _money(share_by_member.get(member.id))
        settled_ratio = min(float(paid / share) * 100, 100.0) if share else 100.0
        members.append({
            "member_id": member.id,
            "name": member.name,
            "paid": paid,
            "share": share,
            "settled_ratio": round(settled_ratio, 2),
            **positions[member.id],
        })

    return {
        "group_id": group.id,
        "group_name": group.name,
        "total_spend": total_spend,
        "expense_count": expense_count,
        "average_expense": average_expense,
        "outstanding_total": _money(sum(b.amount for b in balances)),
        "balance_count": len(balances),
        "members": members,
    }
