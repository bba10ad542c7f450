"""/v1/payments - Payment creation and status transitions with incremental ledger writes"""

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from apargo_ledger.api.dependencies import get_request_id
from apargo_ledger.api.v1.schemas import (
    PaymentCreateRequest,
    PaymentDeltaSchema,
    PaymentSchema,
    PaymentStatusUpdate,
    PaymentWriteResponse,
)
from apargo_ledger.domain.exceptions import RecordNotFoundError
from apargo_ledger.domain.models import Payment, PaymentDelta
from apargo_ledger.domain.payment_deltas import compute_payment_delta, group_deltas_by_month
from apargo_ledger.infrastructure.database.repositories import BalanceSheetRepository, PaymentRepository
from apargo_ledger.infrastructure.database.session import get_db
from apargo_ledger.infrastructure.observability.logging import log_ledger_write
from apargo_ledger.infrastructure.observability.metrics import ledger_delta_writes_counter

router = APIRouter()


def apply_payment_deltas(db: Session, deltas: List[PaymentDelta], request_id: str) -> None:
    """Write payment deltas to the balance sheet cache, one write per cell"""
    sheets = BalanceSheetRepository(db)
    for month_year, by_apartment in group_deltas_by_month(deltas).items():
        written = sheets.apply_deltas(by_apartment, month_year)
        ledger_delta_writes_counter.labels(source="payment").inc(written)
        log_ledger_write(request_id, "payment", month_year, written)


def _write_response(payment: Payment, deltas: List[PaymentDelta]) -> PaymentWriteResponse:
    return PaymentWriteResponse(
        payment=PaymentSchema.model_validate(payment),
        deltas=[PaymentDeltaSchema.model_validate(delta) for delta in deltas],
    )


@router.post("/payments", response_model=PaymentWriteResponse, status_code=201)
def create_payment(request_body: PaymentCreateRequest, request: Request, db: Session = Depends(get_db)):
    """
    Record a payment; an approved payment is booked to the ledger immediately.
    """
    request_id = get_request_id(request)

    try:
        payment = PaymentRepository(db).create_payment(
            Payment(
                id="",
                created_at=datetime.now(timezone.utc),
                **request_body.model_dump(),
            )
        )
        deltas = compute_payment_delta(None, payment)
        apply_payment_deltas(db, deltas, request_id)
        db.commit()
        return _write_response(payment, deltas)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/payments/{payment_id}", response_model=PaymentWriteResponse)
def update_payment_status(
    payment_id: str,
    request_body: PaymentStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Transition a payment's status.

    Flow:
    1. Load the stored payment (the old state)
    2. Persist the new status
    3. Compute the minimal delta set between old and new
    4. Apply it to the balance sheet cache
    """
    request_id = get_request_id(request)
    repo = PaymentRepository(db)

    try:
        old_payment = repo.get_payment(payment_id)
        new_payment = repo.update_status(payment_id, request_body.status)

        deltas = compute_payment_delta(old_payment, new_payment)
        apply_payment_deltas(db, deltas, request_id)
        db.commit()

        logging.info(
            "Payment status changed",
            extra={
                "request_id": request_id,
                "payment_id": payment_id,
                "old_status": old_payment.status,
                "new_status": new_payment.status,
                "delta_count": len(deltas),
            },
        )
        return _write_response(new_payment, deltas)

    except RecordNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/payments/{payment_id}", response_model=PaymentWriteResponse)
def delete_payment(payment_id: str, request: Request, db: Session = Depends(get_db)):
    """Delete a payment, reversing its ledger effect if it was approved"""
    request_id = get_request_id(request)

    try:
        payment = PaymentRepository(db).delete_payment(payment_id)
        deltas = compute_payment_delta(payment, None)
        apply_payment_deltas(db, deltas, request_id)
        db.commit()
        return _write_response(payment, deltas)

    except RecordNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
