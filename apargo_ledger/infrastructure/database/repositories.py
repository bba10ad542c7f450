"""Data access layer for ledger entities"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from apargo_ledger.domain.balance_sheets import apply_delta_to_sheet
from apargo_ledger.domain.exceptions import RecordNotFoundError
from apargo_ledger.domain.models import (
    Apartment,
    BalanceSheet,
    Category,
    Expense,
    LedgerDelta,
    Payment,
    Resident,
)
from apargo_ledger.domain.scheduler import build_payment_event, has_existing_events
from apargo_ledger.infrastructure.database.models import (
    ApartmentRecord,
    BalanceSheetRecord,
    CategoryRecord,
    ExpenseRecord,
    PaymentRecord,
    ResidentRecord,
    new_id,
)
from apargo_ledger.utils.date_utils import shift_month_year


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def to_expense(row: ExpenseRecord) -> Expense:
    return Expense(
        id=row.id,
        amount=row.amount,
        date=row.date,
        category_id=row.category_id,
        paid_by_apartment=row.paid_by_apartment,
        owed_by_apartments=list(row.owed_by_apartments or []),
        per_apartment_share=row.per_apartment_share,
        paid_by_apartments=list(row.paid_by_apartments or []),
        description=row.description,
    )


def to_payment(row: PaymentRecord) -> Payment:
    return Payment(
        id=row.id,
        payer_id=row.payer_id,
        payee_id=row.payee_id,
        apartment_id=row.apartment_id,
        amount=row.amount,
        status=row.status,
        category=row.category,
        month_year=row.month_year,
        reason=row.reason,
        expense_id=row.expense_id,
        created_at=_as_utc(row.created_at),
    )


def to_balance_sheet(row: BalanceSheetRecord) -> BalanceSheet:
    return BalanceSheet(
        apartment_id=row.apartment_id,
        month_year=row.month_year,
        opening_balance=row.opening_balance,
        total_income=row.total_income,
        total_expenses=row.total_expenses,
        closing_balance=row.closing_balance,
    )


class ApartmentRepository:
    """Repository for apartments and their residents"""

    def __init__(self, db: Session):
        self.db = db

    def list_apartments(self) -> List[Apartment]:
        rows = self.db.query(ApartmentRecord).order_by(ApartmentRecord.id).all()
        return [Apartment(id=row.id, name=row.name) for row in rows]

    def first_resident(self, apartment_id: str) -> Optional[Resident]:
        """Earliest registered resident; payment events are booked to them"""
        row = (
            self.db.query(ResidentRecord)
            .filter(ResidentRecord.apartment_id == apartment_id)
            .order_by(ResidentRecord.created_at, ResidentRecord.id)
            .first()
        )
        if row is None:
            return None
        return Resident(id=row.id, name=row.name, apartment_id=row.apartment_id)


class CategoryRepository:
    """Repository for categories"""

    def __init__(self, db: Session):
        self.db = db

    def list_categories(self) -> List[Category]:
        rows = self.db.query(CategoryRecord).order_by(CategoryRecord.name).all()
        return [
            Category(
                id=row.id,
                name=row.name,
                is_payment_event=bool(row.is_payment_event),
                auto_generate=bool(row.auto_generate),
                monthly_amount=row.monthly_amount,
                day_of_month=row.day_of_month,
            )
            for row in rows
        ]


class ExpenseRepository:
    """Repository for shared expenses"""

    def __init__(self, db: Session):
        self.db = db

    def list_expenses(self) -> List[Expense]:
        rows = self.db.query(ExpenseRecord).order_by(ExpenseRecord.date, ExpenseRecord.id).all()
        return [to_expense(row) for row in rows]

    def get_expense(self, expense_id: str) -> Expense:
        row = self.db.get(ExpenseRecord, expense_id)
        if row is None:
            raise RecordNotFoundError(f"Expense not found: {expense_id}")
        return to_expense(row)

    def create_expense(self, expense: Expense) -> Expense:
        row = ExpenseRecord(
            id=expense.id or new_id(),
            amount=expense.amount,
            date=expense.date,
            category_id=expense.category_id,
            description=expense.description,
            paid_by_apartment=expense.paid_by_apartment,
            owed_by_apartments=list(expense.owed_by_apartments),
            per_apartment_share=expense.per_apartment_share,
            paid_by_apartments=list(expense.paid_by_apartments),
        )
        self.db.add(row)
        self.db.flush()
        return to_expense(row)

    def set_paid_by_apartments(self, expense_id: str, paid_by_apartments: List[str]) -> Expense:
        row = self.db.get(ExpenseRecord, expense_id)
        if row is None:
            raise RecordNotFoundError(f"Expense not found: {expense_id}")
        # Reassign so the JSON column is marked dirty
        row.paid_by_apartments = list(paid_by_apartments)
        self.db.flush()
        return to_expense(row)


class PaymentRepository:
    """Repository for payments and payment events"""

    def __init__(self, db: Session):
        self.db = db

    def list_payments(self, apartment_id: Optional[str] = None) -> List[Payment]:
        query = self.db.query(PaymentRecord)
        if apartment_id:
            query = query.filter(PaymentRecord.apartment_id == apartment_id)
        rows = query.order_by(PaymentRecord.month_year, PaymentRecord.created_at).all()
        return [to_payment(row) for row in rows]

    def get_payment(self, payment_id: str) -> Payment:
        row = self.db.get(PaymentRecord, payment_id)
        if row is None:
            raise RecordNotFoundError(f"Payment not found: {payment_id}")
        return to_payment(row)

    def create_payment(self, payment: Payment) -> Payment:
        row = PaymentRecord(
            id=payment.id or new_id(),
            payer_id=payment.payer_id,
            payee_id=payment.payee_id,
            apartment_id=payment.apartment_id,
            amount=payment.amount,
            status=payment.status,
            category=payment.category,
            month_year=payment.month_year,
            reason=payment.reason,
            expense_id=payment.expense_id,
            created_at=payment.created_at,
        )
        self.db.add(row)
        self.db.flush()
        return to_payment(row)

    def update_status(self, payment_id: str, status: str) -> Payment:
        row = self.db.get(PaymentRecord, payment_id)
        if row is None:
            raise RecordNotFoundError(f"Payment not found: {payment_id}")
        row.status = status
        self.db.flush()
        return to_payment(row)

    def delete_payment(self, payment_id: str) -> Payment:
        row = self.db.get(PaymentRecord, payment_id)
        if row is None:
            raise RecordNotFoundError(f"Payment not found: {payment_id}")
        payment = to_payment(row)
        self.db.delete(row)
        self.db.flush()
        return payment

    def find_payment_events(self, month_year: str, apartment_id: Optional[str] = None) -> List[Payment]:
        """Payments in a month that carry a reason (generated events do)"""
        query = self.db.query(PaymentRecord).filter(
            PaymentRecord.month_year == month_year,
            PaymentRecord.reason.isnot(None),
        )
        if apartment_id:
            query = query.filter(PaymentRecord.apartment_id == apartment_id)
        return [to_payment(row) for row in query.all()]


class BalanceSheetRepository:
    """Repository for the per-apartment monthly balance sheet cache"""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, apartment_id: str, month_year: str) -> Optional[BalanceSheetRecord]:
        return (
            self.db.query(BalanceSheetRecord)
            .filter(
                BalanceSheetRecord.apartment_id == apartment_id,
                BalanceSheetRecord.month_year == month_year,
            )
            .first()
        )

    def list_for_apartment(self, apartment_id: str) -> List[BalanceSheet]:
        rows = (
            self.db.query(BalanceSheetRecord)
            .filter(BalanceSheetRecord.apartment_id == apartment_id)
            .order_by(BalanceSheetRecord.month_year)
            .all()
        )
        return [to_balance_sheet(row) for row in rows]

    def apply_deltas(self, deltas: Dict[str, LedgerDelta], month_year: str) -> int:
        """
        Apply per-apartment deltas to one month's sheets.

        Missing sheets are created opening at the previous month's closing balance.
        Later months keep their stored opening balance; a break this leaves is
        reported by validate_continuity.

        Returns:
            Number of sheets written
        """
        written = 0
        for apartment_id, delta in deltas.items():
            if delta.is_zero:
                continue

            row = self._get_row(apartment_id, month_year)
            existing = to_balance_sheet(row) if row is not None else None
            previous = None
            if row is None:
                previous_row = self._get_row(apartment_id, shift_month_year(month_year, -1))
                previous = to_balance_sheet(previous_row) if previous_row is not None else None

            sheet = apply_delta_to_sheet(apartment_id, month_year, delta, existing=existing, previous=previous)

            if row is None:
                row = BalanceSheetRecord(apartment_id=apartment_id, month_year=month_year)
                self.db.add(row)
            row.opening_balance = sheet.opening_balance
            row.total_income = sheet.total_income
            row.total_expenses = sheet.total_expenses
            row.closing_balance = sheet.closing_balance
            written += 1

        self.db.flush()
        return written


class PaymentEventWriter:
    """Creates payment events for a category, one per occupied apartment"""

    def __init__(self, db: Session):
        self.apartments = ApartmentRepository(db)
        self.payments = PaymentRepository(db)

    def generate_payment_events(self, category: Category, month_year: str) -> List[Payment]:
        created: List[Payment] = []
        for apartment in self.apartments.list_apartments():
            resident = self.apartments.first_resident(apartment.id)
            if resident is None:
                logging.warning(
                    "No residents found for apartment, skipping payment event",
                    extra={"apartment_id": apartment.id, "category": category.name},
                )
                continue

            if has_existing_events(category, self.payments.find_payment_events(month_year, apartment.id)):
                logging.info(
                    "Payment event already exists",
                    extra={"apartment_id": apartment.id, "month_year": month_year, "category": category.name},
                )
                continue

            event = build_payment_event(
                category,
                apartment_id=apartment.id,
                resident_id=resident.id,
                month_year=month_year,
                now=datetime.now(timezone.utc),
            )
            created.append(self.payments.create_payment(event))

        return created
