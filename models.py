# models.py

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

from config import DEFAULT_CURRENCY
from database import Base


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# Money is always NUMERIC(12, 2); never Float.
Money = Numeric(12, 2)


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Members come back in a stable order; the splitter depends on it.
    members: Mapped[List["Member"]] = relationship(
        back_populates="group", order_by="Member.id", cascade="all, delete-orphan"
    )
    expenses: Mapped[List["Expense"]] = relationship(back_populates="group", cascade="all, delete-orphan")
    balances: Mapped[List["Balance"]] = relationship(back_populates="group", cascade="all, delete-orphan")


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (Index("members_group_idx", "group_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    group: Mapped["Group"] = relationship(back_populates="members")


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("expenses_group_idx", "group_id"),
        Index("expenses_paid_by_idx", "paid_by_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    paid_by_id: Mapped[int] = mapped_column(ForeignKey("members.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    group: Mapped["Group"] = relationship(back_populates="expenses")
    shares: Mapped[List["ExpenseShare"]] = relationship(
        back_populates="expense", order_by="ExpenseShare.id", cascade="all, delete-orphan"
    )


class ExpenseShare(Base):
    __tablename__ = "expense_shares"
    __table_args__ = (UniqueConstraint("expense_id", "member_id", name="expense_member_unique"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    expense_id: Mapped[int] = mapped_column(ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    expense: Mapped["Expense"] = relationship(back_populates="shares")


class Balance(Base):
    """Net debt edge: ``debtor`` owes ``creditor`` ``amount``. Written only by ledger.apply_debt."""
    __tablename__ = "balances"
    __table_args__ = (
        UniqueConstraint("group_id", "creditor_id", "debtor_id", name="balances_unique_pair"),
        Index("balances_creditor_idx", "creditor_id"),
        Index("balances_debtor_idx", "debtor_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    creditor_id: Mapped[int] = mapped_column(ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    debtor_id: Mapped[int] = mapped_column(ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    group: Mapped["Group"] = relationship(back_populates="balances")
