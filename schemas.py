# schemas.py

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr


# Member Schemas
class Member(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    class Config:
        from_attributes = True

# Group Schemas
class GroupCreate(BaseModel):
    name: str
    invitees: List[EmailStr]

class Group(BaseModel):
    id: int
    name: str
    members: List[Member] = []
    class Config:
        from_attributes = True


# Expense Schemas
class ExpenseCreate(BaseModel):
    description: str
    amount: Decimal
    date: Date
    paid_by_id: int
    participant_ids: Optional[List[int]] = None
    currency: Optional[str] = None

class ExpenseShareDetail(BaseModel):
    """One participant's portion of an expense."""
    member_id: int
    amount: Decimal

    class Config:
        from_attributes = True

class ExpenseDetail(BaseModel):
    """An expense together with how it was split."""
    id: int
    description: str
    amount: Decimal
    currency: str
    date: Date
    paid_by_id: int
    shares: List[ExpenseShareDetail] = []

    class Config:
        from_attributes = True


# Ledger Schemas
class Balance(BaseModel):
    """debtor_id owes creditor_id amount."""
    id: int
    creditor_id: int
    debtor_id: int
    amount: Decimal
    updated_at: datetime

    class Config:
        from_attributes = True

class MemberPosition(BaseModel):
    """A member's spending and standing in a group."""
    member_id: int
    name: str
    paid: Decimal
    share: Decimal
    settled_ratio: float  # paid as a percentage of share, capped at 100
    owes: Decimal
    owed: Decimal
    net: Decimal  # Positive means the member is owed, negative means they owe

class GroupSummary(BaseModel):
    group_id: int
    group_name: str
    total_spend: Decimal
    expense_count: int
    average_expense: Decimal
    outstanding_total: Decimal
    balance_count: int
    members: List[MemberPosition] = []
