"""/v1/expenses - Shared expense creation and per-apartment settlement"""

import logging
from typing import Dict, List, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from apargo_ledger.api.dependencies import get_request_id, get_strategy_registry
from apargo_ledger.api.v1.schemas import (
    ExpenseCreateRequest,
    ExpenseSchema,
    ExpenseWriteResponse,
    LedgerDeltaSchema,
    LedgerWriteSchema,
    SettlementRequest,
)
from apargo_ledger.domain.exceptions import RecordNotFoundError
from apargo_ledger.domain.models import Expense, LedgerDelta
from apargo_ledger.domain.strategies import StrategyRegistry, calculate_delta_changes, compute_expense_deltas
from apargo_ledger.infrastructure.database.repositories import BalanceSheetRepository, ExpenseRepository
from apargo_ledger.infrastructure.database.session import get_db
from apargo_ledger.infrastructure.observability.logging import log_ledger_write
from apargo_ledger.infrastructure.observability.metrics import ledger_delta_writes_counter

router = APIRouter()

LedgerWrites = List[Tuple[str, Dict[str, LedgerDelta]]]


def apply_expense_writes(db: Session, writes: LedgerWrites, request_id: str) -> None:
    sheets = BalanceSheetRepository(db)
    for month_year, deltas in writes:
        written = sheets.apply_deltas(deltas, month_year)
        ledger_delta_writes_counter.labels(source="expense").inc(written)
        log_ledger_write(request_id, "expense", month_year, written)


def _write_response(expense: Expense, writes: LedgerWrites) -> ExpenseWriteResponse:
    return ExpenseWriteResponse(
        expense=ExpenseSchema.model_validate(expense),
        writes=[
            LedgerWriteSchema(
                month_year=month_year,
                deltas={apartment_id: LedgerDeltaSchema.model_validate(d) for apartment_id, d in deltas.items()},
            )
            for month_year, deltas in writes
        ],
    )


@router.post("/expenses", response_model=ExpenseWriteResponse, status_code=201)
def create_expense(
    request_body: ExpenseCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    registry: StrategyRegistry = Depends(get_strategy_registry),
):
    """
    Record a shared expense and book its split.

    When per_apartment_share is omitted the amount is split equally across
    owed_by_apartments.
    """
    request_id = get_request_id(request)
    data = request_body.model_dump()
    if data["per_apartment_share"] is None:
        data["per_apartment_share"] = data["amount"] / len(data["owed_by_apartments"])

    try:
        expense = ExpenseRepository(db).create_expense(Expense(id="", **data))
        split = compute_expense_deltas(expense, registry)
        writes = [(split.month_year, split.deltas)] if split.deltas else []
        apply_expense_writes(db, writes, request_id)
        db.commit()
        return _write_response(expense, writes)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating expense: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/expenses/{expense_id}/settlements", response_model=ExpenseWriteResponse)
def settle_expense_share(
    expense_id: str,
    request_body: SettlementRequest,
    request: Request,
    db: Session = Depends(get_db),
    registry: StrategyRegistry = Depends(get_strategy_registry),
):
    """
    Mark an apartment's share of an expense as paid directly.

    The old expense's split is reversed and the new split applied; settling an
    already settled share writes nothing.
    """
    request_id = get_request_id(request)
    repo = ExpenseRepository(db)

    try:
        old_expense = repo.get_expense(expense_id)
        apartment_id = request_body.apartment_id

        if apartment_id not in old_expense.owed_by_apartments:
            raise HTTPException(status_code=422, detail=f"Apartment {apartment_id} does not owe expense {expense_id}")

        if apartment_id in old_expense.paid_by_apartments:
            return _write_response(old_expense, [])

        new_expense = repo.set_paid_by_apartments(expense_id, old_expense.paid_by_apartments + [apartment_id])
        writes = calculate_delta_changes(old_expense, new_expense, registry)
        apply_expense_writes(db, writes, request_id)
        db.commit()
        return _write_response(new_expense, writes)

    except HTTPException:
        db.rollback()
        raise

    except RecordNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
