# main.py

import logging
from typing import List

from fastapi import FastAPI, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

# Import models, schemas, the services and the database session dependency
import models, schemas
import errors
import expenses
import groups
import ledger
from config import LOG_LEVEL
from database import engine, get_db

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create all database tables on startup
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="SplitLedger API")


def _http_error(exc: errors.LedgerError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def _parse(schema, payload: dict):
    # Malformed payloads are a 400, same as every other bad-input error.
    try:
        return schema(**payload)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ()))
        detail = f"{field}: {error['msg']}" if field else error["msg"]
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@app.get("/")
def read_root():
    return {"message": "Welcome to the SplitLedger API"}


# --- Group Endpoints ---
@app.post("/groups/", response_model=schemas.Group, status_code=status.HTTP_201_CREATED)
def create_group(group: dict, db: Session = Depends(get_db)):
    validated = _parse(schemas.GroupCreate, group)
    try:
        return groups.create_group(db, validated.name, [str(email) for email in validated.invitees])
    except errors.LedgerError as exc:
        raise _http_error(exc)


@app.get("/groups", response_model=List[schemas.Group])
def get_all_groups(db: Session = Depends(get_db)):
    return groups.list_groups(db)


@app.get("/groups/{group_id}", response_model=schemas.Group)
def get_group(group_id: int, db: Session = Depends(get_db)):
    try:
        return groups.get_group(db, group_id)
    except errors.LedgerError as exc:
        raise _http_error(exc)


# --- Expense Endpoints ---
@app.post("/groups/{group_id}/expenses/", response_model=schemas.ExpenseDetail, status_code=status.HTTP_201_CREATED)
def create_expense(group_id: int, expense: dict, db: Session = Depends(get_db)):
    validated = _parse(schemas.ExpenseCreate, expense)
    try:
        expense_id = expenses.log_expense(
            db,
            group_id=group_id,
            description=validated.description,
            amount=validated.amount,
            date=validated.date,
            payer_id=validated.paid_by_id,
            participant_ids=validated.participant_ids,
            currency=validated.currency,
        )
        return expenses.get_expense(db, expense_id)
    except errors.LedgerError as exc:
        raise _http_error(exc)


@app.get("/groups/{group_id}/expenses/", response_model=List[schemas.ExpenseDetail])
def get_group_expenses(group_id: int, db: Session = Depends(get_db)):
    try:
        groups.get_group(db, group_id)
    except errors.LedgerError as exc:
        raise _http_error(exc)
    return expenses.list_expenses(db, group_id)


# --- Ledger Endpoints ---
@app.get("/groups/{group_id}/balances/", response_model=List[schemas.Balance])
def get_group_balances(group_id: int, db: Session = Depends(get_db)):
    """
    Returns every outstanding debt in the group as stored.
    Each row reads "debtor owes creditor amount"; nothing is recomputed here.
    """
    try:
        groups.get_group(db, group_id)
    except errors.LedgerError as exc:
        raise _http_error(exc)
    return ledger.list_balances(db, group_id)


@app.get("/groups/{group_id}/summary/", response_model=schemas.GroupSummary)
def get_group_summary(group_id: int, db: Session = Depends(get_db)):
    """
    Spending totals for a group and each member's position.
    A positive net means the member is owed money, a negative one that they owe.
    """
    try:
        group = groups.get_group(db, group_id)
    except errors.LedgerError as exc:
        raise _http_error(exc)
    return expenses.group_summary(db, group)
