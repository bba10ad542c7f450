"""Domain models - pure Python dataclasses representing ledger records"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

# Payment status values
PENDING = "pending"
APPROVED = "approved"
PAID = "paid"
REJECTED = "rejected"

SETTLED_STATUSES = frozenset({APPROVED, PAID})

# Payment category values
INCOME = "income"
EXPENSE = "expense"


@dataclass(frozen=True)
class Apartment:
    """A unit in the property"""

    id: str
    name: str


@dataclass(frozen=True)
class Resident:
    """Person living in an apartment"""

    id: str
    name: str
    apartment_id: str


@dataclass(frozen=True)
class Category:
    """Expense/payment category; payment events are generated from it"""

    id: str
    name: str
    is_payment_event: bool = False
    auto_generate: bool = False
    monthly_amount: Optional[float] = None
    day_of_month: Optional[int] = None  # 1-28


@dataclass(frozen=True)
class Expense:
    """Shared expense fronted by one apartment"""

    id: str
    amount: float
    date: date
    category_id: str
    paid_by_apartment: str
    owed_by_apartments: List[str]
    per_apartment_share: float
    paid_by_apartments: List[str] = field(default_factory=list)
    description: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    """Payment between residents, tied to an apartment and a month"""

    id: str
    payer_id: str
    payee_id: str
    amount: float
    status: str  # pending | approved | paid | rejected
    month_year: str  # YYYY-MM
    created_at: datetime
    apartment_id: Optional[str] = None
    category: Optional[str] = None  # income | expense
    reason: Optional[str] = None
    expense_id: Optional[str] = None

    @property
    def resolved_category(self) -> str:
        if self.category:
            return self.category
        return EXPENSE if self.expense_id else INCOME

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES


@dataclass
class ApartmentBalance:
    """Point-in-time net position of one apartment"""

    name: str
    balance: float = 0.0
    owes: Dict[str, float] = field(default_factory=dict)
    is_owed: Dict[str, float] = field(default_factory=dict)


@dataclass
class LedgerDelta:
    """Signed change to one apartment's monthly totals"""

    total_income_delta: float = 0.0
    total_expenses_delta: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.total_income_delta == 0 and self.total_expenses_delta == 0


@dataclass
class ExpenseDeltas:
    """Output of an expense calculation strategy"""

    month_year: str
    deltas: Dict[str, LedgerDelta] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentDelta:
    """Change to apply to a running (apartment, month) ledger total"""

    apartment_id: str
    month_year: str
    total_income_delta: float
    total_expenses_delta: float


@dataclass(frozen=True)
class AggregatedSheet:
    """Monthly roll-up of settled payments"""

    month_year: str
    opening: float
    income: float
    expenses: float
    closing: float


@dataclass(frozen=True)
class BalanceSheet:
    """Stored per-apartment monthly ledger cell"""

    apartment_id: str
    month_year: str
    opening_balance: float
    total_income: float
    total_expenses: float
    closing_balance: float


@dataclass
class ContinuityReport:
    """Result of checking opening/closing continuity across months"""

    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class CategoryGenerationResult:
    """Outcome of generating payment events for one category"""

    category_id: str
    category_name: str
    events_created: int = 0
    skipped: bool = False
    error: Optional[str] = None


@dataclass
class SchedulerRun:
    """Outcome of one scheduler invocation"""

    month_year: str
    trigger_day: int
    force: bool
    events_created: int = 0
    results: List[CategoryGenerationResult] = field(default_factory=list)
    skipped_reason: Optional[str] = None


@dataclass(frozen=True)
class ScheduledCategory:
    """Next generation date for an auto-generated category"""

    category_id: str
    category_name: str
    monthly_amount: float
    day_of_month: int
    next_generation_date: date
    is_scheduled_today: bool
