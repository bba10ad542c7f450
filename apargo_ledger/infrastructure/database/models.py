"""SQLAlchemy ORM models for the ledger tables"""

import uuid

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


class ApartmentRecord(Base):
    """Apartment in the property"""

    __tablename__ = "apartment"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)


class ResidentRecord(Base):
    """Resident belonging to an apartment"""

    __tablename__ = "resident"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    apartment_id = Column(String(64), ForeignKey("apartment.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CategoryRecord(Base):
    """Expense/payment category with payment event configuration"""

    __tablename__ = "category"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    is_payment_event = Column(Boolean, nullable=False, default=False)
    auto_generate = Column(Boolean, nullable=False, default=False)
    monthly_amount = Column(Float, nullable=True)
    day_of_month = Column(Integer, nullable=True)


class ExpenseRecord(Base):
    """Shared expense; apartment lists are stored as JSON arrays"""

    __tablename__ = "expense"

    id = Column(String(64), primary_key=True, default=new_id)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False, index=True)
    category_id = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)
    paid_by_apartment = Column(String(64), nullable=False, index=True)
    owed_by_apartments = Column(JSON, nullable=False, default=list)
    per_apartment_share = Column(Float, nullable=False)
    paid_by_apartments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PaymentRecord(Base):
    """Payment between residents"""

    __tablename__ = "payment"

    id = Column(String(64), primary_key=True, default=new_id)
    payer_id = Column(String(64), nullable=False)
    payee_id = Column(String(64), nullable=False)
    apartment_id = Column(String(64), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    category = Column(Text, nullable=True)
    month_year = Column(String(7), nullable=False, index=True)
    reason = Column(Text, nullable=True)
    expense_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class BalanceSheetRecord(Base):
    """Read-side cache of an apartment's running monthly totals"""

    __tablename__ = "balance_sheet"
    __table_args__ = (UniqueConstraint("apartment_id", "month_year", name="uq_balance_sheet_apartment_month"),)

    id = Column(String(64), primary_key=True, default=new_id)
    apartment_id = Column(String(64), nullable=False, index=True)
    month_year = Column(String(7), nullable=False)
    opening_balance = Column(Float, nullable=False, default=0.0)
    total_income = Column(Float, nullable=False, default=0.0)
    total_expenses = Column(Float, nullable=False, default=0.0)
    closing_balance = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
