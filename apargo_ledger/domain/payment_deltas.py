"""Payment delta calculator - incremental ledger writes for status transitions"""

from typing import Dict, List, Optional, Tuple

from apargo_ledger.domain.models import APPROVED, EXPENSE, LedgerDelta, Payment, PaymentDelta


def _apartment_of(payment: Payment) -> Optional[str]:
    return payment.apartment_id or payment.payer_id or None


def is_approved_payment(payment: Optional[Payment]) -> bool:
    """Approved status (any casing) with both a month and an apartment to book against"""
    if payment is None or not isinstance(payment.status, str):
        return False
    return payment.status.lower() == APPROVED and bool(payment.month_year) and bool(_apartment_of(payment))


def _is_expense_side(payment: Payment) -> bool:
    """Expense category, or any payment linked to an expense"""
    category = payment.category.lower() if isinstance(payment.category, str) else None
    return category == EXPENSE or bool(payment.expense_id)


def _delta_for(payment: Payment, sign: int) -> PaymentDelta:
    amount = float(payment.amount or 0) * sign
    is_income = not _is_expense_side(payment)
    return PaymentDelta(
        apartment_id=_apartment_of(payment),
        month_year=payment.month_year,
        total_income_delta=amount if is_income else 0.0,
        total_expenses_delta=0.0 if is_income else amount,
    )


def _merge_by_cell(candidates: List[PaymentDelta]) -> List[PaymentDelta]:
    merged: Dict[Tuple[str, str], PaymentDelta] = {}
    for delta in candidates:
        key = (delta.apartment_id, delta.month_year)
        current = merged.get(key)
        if current is None:
            merged[key] = delta
            continue
        merged[key] = PaymentDelta(
            apartment_id=delta.apartment_id,
            month_year=delta.month_year,
            total_income_delta=current.total_income_delta + delta.total_income_delta,
            total_expenses_delta=current.total_expenses_delta + delta.total_expenses_delta,
        )
    return list(merged.values())


def compute_payment_delta(
    old_payment: Optional[Payment] = None,
    new_payment: Optional[Payment] = None,
) -> List[PaymentDelta]:
    """
    Minimal set of ledger writes for a payment transition.

    - old approved: reverse its amount on its (apartment, month) cell
    - new approved: add its amount on its (apartment, month) cell
    - expense payments (or any payment linked to an expense_id) move total
      expenses, everything else total income
    - deltas on the same cell are merged; cells netting to zero are dropped

    Pass old_payment=None for a creation and new_payment=None for a deletion.
    """
    candidates: List[PaymentDelta] = []
    if is_approved_payment(old_payment):
        candidates.append(_delta_for(old_payment, -1))
    if is_approved_payment(new_payment):
        candidates.append(_delta_for(new_payment, 1))

    return [
        delta
        for delta in _merge_by_cell(candidates)
        if delta.total_income_delta != 0 or delta.total_expenses_delta != 0
    ]


def group_deltas_by_month(deltas: List[PaymentDelta]) -> Dict[str, Dict[str, LedgerDelta]]:
    """Regroup payment deltas as {month_year: {apartment_id: LedgerDelta}}"""
    grouped: Dict[str, Dict[str, LedgerDelta]] = {}
    for delta in deltas:
        cell = grouped.setdefault(delta.month_year, {}).setdefault(delta.apartment_id, LedgerDelta())
        cell.total_income_delta += delta.total_income_delta
        cell.total_expenses_delta += delta.total_expenses_delta
    return grouped
