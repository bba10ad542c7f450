"""Monthly balance sheet aggregation with opening/closing continuity"""

from typing import Dict, Iterable, List, Optional

from apargo_ledger.domain.models import (
    EXPENSE,
    AggregatedSheet,
    BalanceSheet,
    ContinuityReport,
    LedgerDelta,
    Payment,
)
from apargo_ledger.utils.date_utils import generate_month_range

DEFAULT_CONTINUITY_TOLERANCE = 0.01


def aggregate_balance_sheets(payments: Iterable[Payment]) -> List[AggregatedSheet]:
    """
    Roll settled payments up into a gap-free sequence of monthly sheets.

    Requirements:
    - Only approved/paid payments count
    - Every month between the first and last active month appears, gaps zeroed
    - First opening is 0; each opening equals the previous closing
    """
    income: Dict[str, float] = {}
    expenses: Dict[str, float] = {}

    for payment in payments:
        if not payment.is_settled:
            continue
        bucket = expenses if payment.resolved_category == EXPENSE else income
        bucket[payment.month_year] = bucket.get(payment.month_year, 0.0) + float(payment.amount or 0)

    active_months = sorted(set(income) | set(expenses))
    if not active_months:
        return []

    sheets = []
    opening = 0.0
    for month_year in generate_month_range(active_months[0], active_months[-1]):
        month_income = income.get(month_year, 0.0)
        month_expenses = expenses.get(month_year, 0.0)
        closing = opening + month_income - month_expenses
        sheets.append(
            AggregatedSheet(
                month_year=month_year,
                opening=opening,
                income=month_income,
                expenses=month_expenses,
                closing=closing,
            )
        )
        opening = closing

    return sheets


def validate_continuity(
    sheets: Iterable[AggregatedSheet],
    tolerance: float = DEFAULT_CONTINUITY_TOLERANCE,
) -> ContinuityReport:
    """
    Check that each month opens where the previous one closed.

    Sheets are sorted by month first. Every break is reported, not just the first.
    """
    ordered = sorted(sheets, key=lambda s: s.month_year)
    errors = []

    for previous, current in zip(ordered, ordered[1:]):
        if abs(current.opening - previous.closing) > tolerance:
            errors.append(
                f"Continuity error: {current.month_year} opening balance ({current.opening}) "
                f"does not match {previous.month_year} closing balance ({previous.closing})"
            )

    return ContinuityReport(is_valid=not errors, errors=errors)


def sheets_from_balance_sheets(balance_sheets: Iterable[BalanceSheet]) -> List[AggregatedSheet]:
    """View stored per-apartment sheets as aggregated sheets for continuity checks"""
    return [
        AggregatedSheet(
            month_year=sheet.month_year,
            opening=sheet.opening_balance,
            income=sheet.total_income,
            expenses=sheet.total_expenses,
            closing=sheet.closing_balance,
        )
        for sheet in balance_sheets
    ]


def apply_delta_to_sheet(
    apartment_id: str,
    month_year: str,
    delta: LedgerDelta,
    existing: Optional[BalanceSheet] = None,
    previous: Optional[BalanceSheet] = None,
) -> BalanceSheet:
    """
    Apply a delta to an apartment's stored sheet for a month.

    An existing sheet keeps its opening balance and accumulates totals.
    A new sheet opens at the previous month's closing balance, or 0.
    """
    if existing is not None:
        opening = existing.opening_balance
        total_income = existing.total_income + delta.total_income_delta
        total_expenses = existing.total_expenses + delta.total_expenses_delta
    else:
        opening = previous.closing_balance if previous is not None else 0.0
        total_income = delta.total_income_delta
        total_expenses = delta.total_expenses_delta

    return BalanceSheet(
        apartment_id=apartment_id,
        month_year=month_year,
        opening_balance=opening,
        total_income=total_income,
        total_expenses=total_expenses,
        closing_balance=opening + total_income - total_expenses,
    )
