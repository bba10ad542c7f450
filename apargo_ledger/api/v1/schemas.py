"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from apargo_ledger.domain.exceptions import InvalidMonthYearError
from apargo_ledger.utils.date_utils import parse_month_year

PaymentStatusLiteral = Literal["pending", "approved", "paid", "rejected"]
PaymentCategoryLiteral = Literal["income", "expense"]
MONTH_YEAR_REGEX = r"^\d{4}-\d{2}$"


class RecordSchema(BaseModel):
    """Base for schemas built from domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


class ApartmentBalanceSchema(RecordSchema):
    """Net position of one apartment"""

    name: str
    balance: float
    owes: Dict[str, float]
    is_owed: Dict[str, float]


class BalancesResponse(BaseModel):
    """Response for GET /v1/balances"""

    balances: Dict[str, ApartmentBalanceSchema]
    unpaid_bills_count: int


class AggregatedSheetSchema(RecordSchema):
    """One month of the aggregated balance sheet"""

    month_year: str
    opening: float
    income: float
    expenses: float
    closing: float


class ContinuitySchema(RecordSchema):
    """Continuity check outcome"""

    is_valid: bool
    errors: List[str]


class BalanceSheetsResponse(BaseModel):
    """Response for GET /v1/balance-sheets"""

    apartment_id: Optional[str] = None
    sheets: List[AggregatedSheetSchema]
    continuity: ContinuitySchema


class StoredSheetSchema(RecordSchema):
    """Stored per-apartment monthly sheet"""

    apartment_id: str
    month_year: str
    opening_balance: float
    total_income: float
    total_expenses: float
    closing_balance: float


class StoredContinuityResponse(BaseModel):
    """Response for GET /v1/balance-sheets/{apartment_id}/continuity"""

    apartment_id: str
    sheets: List[StoredSheetSchema]
    continuity: ContinuitySchema


class PaymentCreateRequest(BaseModel):
    """Request body for POST /v1/payments"""

    payer_id: str = Field(..., min_length=1)
    payee_id: str = Field(..., min_length=1)
    apartment_id: Optional[str] = None
    amount: float = Field(..., gt=0, description="Payment amount")
    status: PaymentStatusLiteral = "pending"
    category: Optional[PaymentCategoryLiteral] = None
    month_year: str = Field(..., pattern=MONTH_YEAR_REGEX, description="YYYY-MM")
    reason: Optional[str] = None
    expense_id: Optional[str] = None

    @field_validator("month_year")
    @classmethod
    def check_month(cls, value: str) -> str:
        try:
            parse_month_year(value)
        except InvalidMonthYearError as e:
            raise ValueError(str(e)) from e
        return value


class PaymentStatusUpdate(BaseModel):
    """Request body for PATCH /v1/payments/{payment_id}"""

    status: PaymentStatusLiteral


class PaymentSchema(RecordSchema):
    """Stored payment"""

    id: str
    payer_id: str
    payee_id: str
    apartment_id: Optional[str] = None
    amount: float
    status: str
    category: Optional[str] = None
    month_year: str
    reason: Optional[str] = None
    expense_id: Optional[str] = None
    created_at: datetime


class PaymentDeltaSchema(RecordSchema):
    """Ledger change applied for a payment"""

    apartment_id: str
    month_year: str
    total_income_delta: float
    total_expenses_delta: float


class PaymentWriteResponse(BaseModel):
    """Response for payment create/update/delete"""

    payment: PaymentSchema
    deltas: List[PaymentDeltaSchema]


class ExpenseCreateRequest(BaseModel):
    """Request body for POST /v1/expenses"""

    amount: float = Field(..., gt=0)
    date: date
    category_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    paid_by_apartment: str = Field(..., min_length=1)
    owed_by_apartments: List[str] = Field(..., min_length=1)
    per_apartment_share: Optional[float] = Field(None, ge=0, description="Defaults to an equal split")
    paid_by_apartments: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_paid_subset(self) -> "ExpenseCreateRequest":
        unknown = set(self.paid_by_apartments) - set(self.owed_by_apartments)
        if unknown:
            raise ValueError(f"paid_by_apartments must be a subset of owed_by_apartments: {sorted(unknown)}")
        return self


class SettlementRequest(BaseModel):
    """Request body for POST /v1/expenses/{expense_id}/settlements"""

    apartment_id: str = Field(..., min_length=1)


class ExpenseSchema(RecordSchema):
    """Stored expense"""

    id: str
    amount: float
    date: date
    category_id: str
    description: Optional[str] = None
    paid_by_apartment: str
    owed_by_apartments: List[str]
    per_apartment_share: float
    paid_by_apartments: List[str]


class LedgerDeltaSchema(RecordSchema):
    total_income_delta: float
    total_expenses_delta: float


class LedgerWriteSchema(BaseModel):
    """Deltas written to one month's sheets"""

    month_year: str
    deltas: Dict[str, LedgerDeltaSchema]


class ExpenseWriteResponse(BaseModel):
    """Response for expense create/settle"""

    expense: ExpenseSchema
    writes: List[LedgerWriteSchema]


class SchedulerRequest(BaseModel):
    """Request body for POST /v1/payment-events/scheduler"""

    month_year: Optional[str] = Field(None, description="YYYY-MM; defaults to the current month")
    force: bool = False


class CategoryResultSchema(RecordSchema):
    category_id: str
    category_name: str
    events_created: int
    skipped: bool
    error: Optional[str] = None


class SchedulerResponse(BaseModel):
    """Response for POST /v1/payment-events/scheduler"""

    success: bool
    message: str
    month_year: str
    trigger_day: int
    events_created: int
    processed_categories: int
    results: List[CategoryResultSchema]
    skipped_reason: Optional[str] = None


class ScheduledCategorySchema(RecordSchema):
    category_id: str
    category_name: str
    monthly_amount: float
    day_of_month: int
    next_generation_date: date
    is_scheduled_today: bool


class SchedulerStatusResponse(BaseModel):
    """Response for GET /v1/payment-events/scheduler"""

    current_date: date
    current_day: int
    current_month: str
    total_configured_categories: int
    scheduler_status: Literal["active", "inactive"]
    scheduled_categories: List[ScheduledCategorySchema]
    upcoming_generations: List[ScheduledCategorySchema]
