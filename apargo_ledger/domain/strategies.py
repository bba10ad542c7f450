"""Expense split strategies and the registry that selects one per expense"""

from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from apargo_ledger.domain.exceptions import StrategyResolutionError
from apargo_ledger.domain.models import Expense, ExpenseDeltas, LedgerDelta
from apargo_ledger.utils.date_utils import month_year_from_date

MAINTENANCE_MARKER = "[MAINTENANCE]"


class ExpenseCalculationStrategy(Protocol):
    """How an expense turns into per-apartment income/expense deltas"""

    def can_handle(self, expense: Expense) -> bool: ...

    def calculate_deltas(self, expense: Expense) -> ExpenseDeltas: ...


def unpaid_apartments(expense: Expense) -> List[str]:
    """
    Apartments that still owe their share of an expense.

    The payer never owes itself, and apartments already in paid_by_apartments
    have settled directly. Order follows owed_by_apartments.
    """
    settled = set(expense.paid_by_apartments)
    return [
        apartment_id
        for apartment_id in expense.owed_by_apartments
        if apartment_id != expense.paid_by_apartment and apartment_id not in settled
    ]


class StandardExpenseStrategy:
    """
    Default split: the payer fronted the bill and is owed every unpaid share.

    - Each unpaid apartment: total_expenses_delta += per_apartment_share
    - Payer: total_income_delta += per_apartment_share * len(unpaid)
    - Fully settled expenses produce no deltas
    """

    def can_handle(self, expense: Expense) -> bool:
        return True

    def calculate_deltas(self, expense: Expense) -> ExpenseDeltas:
        result = ExpenseDeltas(month_year=month_year_from_date(expense.date))

        unpaid = unpaid_apartments(expense)
        if not unpaid:
            return result

        share = float(expense.per_apartment_share or 0)
        for apartment_id in unpaid:
            delta = result.deltas.setdefault(apartment_id, LedgerDelta())
            delta.total_expenses_delta += share

        payer = result.deltas.setdefault(expense.paid_by_apartment, LedgerDelta())
        payer.total_income_delta += share * len(unpaid)

        return result


class MaintenanceFeeExpenseStrategy:
    """
    Building-wide maintenance fees shared equally by every owed apartment.

    Applies to expenses in one of the configured categories whose description
    carries the [MAINTENANCE] marker. The payer is included in the split and is
    credited the full amount it fronted.
    """

    def __init__(self, category_ids: Iterable[str]):
        self.category_ids = frozenset(category_ids)

    def can_handle(self, expense: Expense) -> bool:
        return expense.category_id in self.category_ids and MAINTENANCE_MARKER in (expense.description or "")

    def calculate_deltas(self, expense: Expense) -> ExpenseDeltas:
        result = ExpenseDeltas(month_year=month_year_from_date(expense.date))

        owed = list(dict.fromkeys(expense.owed_by_apartments))
        if not owed:
            return result

        per_apartment_cost = expense.amount / len(owed)
        for apartment_id in owed:
            delta = result.deltas.setdefault(apartment_id, LedgerDelta())
            delta.total_expenses_delta += per_apartment_cost

        payer = result.deltas.setdefault(expense.paid_by_apartment, LedgerDelta())
        payer.total_income_delta += expense.amount

        return result


class StrategyRegistry:
    """
    Ordered set of expense strategies.

    The standard strategy is always installed first and acts as the fallback.
    Later registrations take precedence; strategies are never removed.
    """

    def __init__(self, strategies: Iterable[ExpenseCalculationStrategy] = ()):
        self._strategies: List[ExpenseCalculationStrategy] = [StandardExpenseStrategy()]
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: ExpenseCalculationStrategy) -> None:
        self._strategies.append(strategy)

    def resolve(self, expense: Expense) -> ExpenseCalculationStrategy:
        for strategy in reversed(self._strategies):
            if strategy.can_handle(expense):
                return strategy
        raise StrategyResolutionError(f"No calculation strategy found for expense: {expense.id}")

    @property
    def strategies(self) -> List[ExpenseCalculationStrategy]:
        return list(self._strategies)


def compute_expense_deltas(expense: Expense, registry: Optional[StrategyRegistry] = None) -> ExpenseDeltas:
    """Split an expense with the strategy the registry selects for it"""
    registry = registry or StrategyRegistry()
    return registry.resolve(expense).calculate_deltas(expense)


def negate_deltas(deltas: Dict[str, LedgerDelta]) -> Dict[str, LedgerDelta]:
    return {
        apartment_id: LedgerDelta(-delta.total_income_delta, -delta.total_expenses_delta)
        for apartment_id, delta in deltas.items()
    }


def merge_deltas(*delta_maps: Dict[str, LedgerDelta]) -> Dict[str, LedgerDelta]:
    """Sum delta maps per apartment, dropping cells that net to zero"""
    merged: Dict[str, LedgerDelta] = {}
    for delta_map in delta_maps:
        for apartment_id, delta in delta_map.items():
            cell = merged.setdefault(apartment_id, LedgerDelta())
            cell.total_income_delta += delta.total_income_delta
            cell.total_expenses_delta += delta.total_expenses_delta
    return {apartment_id: cell for apartment_id, cell in merged.items() if not cell.is_zero}


def calculate_delta_changes(
    old_expense: Expense,
    new_expense: Expense,
    registry: Optional[StrategyRegistry] = None,
) -> List[Tuple[str, Dict[str, LedgerDelta]]]:
    """
    Ledger writes needed when an expense is edited.

    The old expense's effect is reversed and the new one applied. When both land
    in the same month they are merged into a single write per apartment.

    Returns:
        List of (month_year, deltas by apartment) pairs; empty maps are omitted
    """
    registry = registry or StrategyRegistry()
    old = compute_expense_deltas(old_expense, registry)
    new = compute_expense_deltas(new_expense, registry)

    if old.month_year == new.month_year:
        writes = [(new.month_year, merge_deltas(negate_deltas(old.deltas), new.deltas))]
    else:
        writes = [
            (old.month_year, merge_deltas(negate_deltas(old.deltas))),
            (new.month_year, merge_deltas(new.deltas)),
        ]

    return [(month_year, deltas) for month_year, deltas in writes if deltas]
