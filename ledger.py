# ledger.py
"""
Net-simplified debt ledger.

A ``Balance`` row means "debtor owes creditor amount". For any pair of members
there is at most one row, in one direction, with a positive amount. New debts
are netted against the opposite direction before anything is added, so the
table is always the collapsed net position and never a transaction history.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

import models
from errors import ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def locked_balance_query(db: Session, group_id: int, creditor_id: int, debtor_id: int):
    # FOR UPDATE keeps the read-modify-write in apply_debt serialized per pair.
    return (
        db.query(models.Balance)
        .filter(
            models.Balance.group_id == group_id,
            models.Balance.creditor_id == creditor_id,
            models.Balance.debtor_id == debtor_id,
        )
        .with_for_update()
    )


def _locked_balance(db: Session, group_id: int, creditor_id: int, debtor_id: int) -> Optional[models.Balance]:
    return locked_balance_query(db, group_id, creditor_id, debtor_id).first()


def apply_debt(db: Session, group_id: int, creditor_id: int, debtor_id: int, delta) -> None:
    """
    Record that ``debtor_id`` now owes ``creditor_id`` an extra ``delta``.

    Must run inside the caller's transaction; nothing is committed here. The
    session is flushed after each change so later calls in the same unit of
    work see it.
    """
    if creditor_id == debtor_id:
        # A member cannot owe themselves.
        return
    delta = delta if isinstance(delta, Decimal) else Decimal(str(delta))
    if not delta.is_finite() or delta <= ZERO:
        raise ValidationError("Debt delta must be positive")

    now = models.utcnow()

    reverse = _locked_balance(db, group_id, creditor_id=debtor_id, debtor_id=creditor_id)
    if reverse is not None:
        if reverse.amount > delta:
            reverse.amount = reverse.amount - delta
            reverse.updated_at = now
            db.flush()
            logger.debug(
                "Group %s: %s owes %s reduced to %s", group_id, creditor_id, debtor_id, reverse.amount
            )
            return
        delta -= reverse.amount
        db.delete(reverse)
        db.flush()
        logger.debug("Group %s: debt of %s to %s cancelled", group_id, creditor_id, debtor_id)

    if delta == ZERO:
        return

    forward = _locked_balance(db, group_id, creditor_id=creditor_id, debtor_id=debtor_id)
    if forward is not None:
        forward.amount = forward.amount + delta
        forward.updated_at = now
    else:
        forward = models.Balance(
            group_id=group_id,
            creditor_id=creditor_id,
            debtor_id=debtor_id,
            amount=delta,
            updated_at=now,
        )
        db.add(forward)
    db.flush()
    logger.debug("Group %s: %s owes %s %s", group_id, debtor_id, creditor_id, forward.amount)


def list_balances(db: Session, group_id: int) -> List[models.Balance]:
    """All current debt edges of a group. Pure read; nothing is computed here."""
    return (
        db.query(models.Balance)
        .filter(models.Balance.group_id == group_id)
        .order_by(models.Balance.id)
        .all()
    )


def member_positions(db: Session, group_id: int) -> Dict[int, Dict[str, Decimal]]:
    """
    Per-member totals read off the ledger.

    ``owes`` is what the member owes others, ``owed`` what others owe them and
    ``net`` is ``owed - owes`` (positive means the member is owed money).
    """
    members = (
        db.query(models.Member)
        .filter(models.Member.group_id == group_id)
        .order_by(models.Member.id)
        .all()
    )
    positions = {m.id: {"owes": ZERO, "owed": ZERO} for m in members}
    for balance in list_balances(db, group_id):
        positions.setdefault(balance.debtor_id, {"owes": ZERO, "owed": ZERO})
        positions.setdefault(balance.creditor_id, {"owes": ZERO, "owed": ZERO})
        positions[balance.debtor_id]["owes"] += balance.amount
        positions[balance.creditor_id]["owed"] += balance.amount

    for position in positions.values():
        position["net"] = position["owed"] - position["owes"]
    return positions
