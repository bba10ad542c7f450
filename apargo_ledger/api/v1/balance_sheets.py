"""GET /v1/balance-sheets - Monthly balance sheets and continuity checks"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from apargo_ledger.api.dependencies import get_request_id
from apargo_ledger.api.v1.schemas import (
    AggregatedSheetSchema,
    BalanceSheetsResponse,
    ContinuitySchema,
    StoredContinuityResponse,
    StoredSheetSchema,
)
from apargo_ledger.config import settings
from apargo_ledger.domain.balance_sheets import (
    aggregate_balance_sheets,
    sheets_from_balance_sheets,
    validate_continuity,
)
from apargo_ledger.infrastructure.database.repositories import BalanceSheetRepository, PaymentRepository
from apargo_ledger.infrastructure.database.session import get_db
from apargo_ledger.infrastructure.observability.metrics import record_continuity

router = APIRouter()


@router.get("/balance-sheets", response_model=BalanceSheetsResponse)
def get_balance_sheets(
    request: Request,
    apartment_id: Optional[str] = Query(None, description="Restrict to one apartment"),
    db: Session = Depends(get_db),
):
    """
    Aggregate settled payments into monthly sheets.

    Months without transactions between the first and last active month are
    included with zero totals.
    """
    payments = PaymentRepository(db).list_payments(apartment_id=apartment_id)
    sheets = aggregate_balance_sheets(payments)
    report = validate_continuity(sheets, tolerance=settings.continuity_tolerance)

    if not report.is_valid:
        record_continuity("aggregated", len(report.errors))
        logging.error(
            "Aggregated balance sheets are not continuous",
            extra={"request_id": get_request_id(request), "errors": report.errors},
        )

    return BalanceSheetsResponse(
        apartment_id=apartment_id,
        sheets=[AggregatedSheetSchema.model_validate(sheet) for sheet in sheets],
        continuity=ContinuitySchema.model_validate(report),
    )


@router.get("/balance-sheets/{apartment_id}/continuity", response_model=StoredContinuityResponse)
def check_stored_continuity(apartment_id: str, request: Request, db: Session = Depends(get_db)):
    """
    Check the stored per-apartment sheets for opening/closing breaks.

    Breaks are reported, never repaired.
    """
    stored = BalanceSheetRepository(db).list_for_apartment(apartment_id)
    report = validate_continuity(sheets_from_balance_sheets(stored), tolerance=settings.continuity_tolerance)

    if not report.is_valid:
        record_continuity("stored", len(report.errors))
        logging.warning(
            "Stored balance sheets are not continuous",
            extra={"request_id": get_request_id(request), "apartment_id": apartment_id, "errors": report.errors},
        )

    return StoredContinuityResponse(
        apartment_id=apartment_id,
        sheets=[StoredSheetSchema.model_validate(sheet) for sheet in stored],
        continuity=ContinuitySchema.model_validate(report),
    )
