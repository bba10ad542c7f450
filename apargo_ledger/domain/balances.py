"""Balance calculator - who owes whom across all shared expenses"""

from typing import Dict, Iterable, List

from apargo_ledger.domain.models import Apartment, ApartmentBalance, Expense
from apargo_ledger.domain.strategies import unpaid_apartments


def compute_balances(expenses: Iterable[Expense], apartments: Iterable[Apartment]) -> Dict[str, ApartmentBalance]:
    """
    Compute each apartment's net balance and pairwise debts.

    Requirements:
    - Every apartment appears, zero-balanced when it has no activity
    - Only unpaid shares count; the payer never owes itself
    - Result does not depend on expense ordering
    - Apartments missing from the list are skipped on their side only
    """
    balances: Dict[str, ApartmentBalance] = {
        apartment.id: ApartmentBalance(name=apartment.name) for apartment in apartments
    }

    for expense in expenses:
        unpaid = unpaid_apartments(expense)
        if not unpaid:
            continue

        payer_id = expense.paid_by_apartment
        share = float(expense.per_apartment_share or 0)

        payer = balances.get(payer_id)
        if payer is not None:
            payer.balance += share * len(unpaid)
            for apartment_id in unpaid:
                payer.is_owed[apartment_id] = payer.is_owed.get(apartment_id, 0.0) + share

        for apartment_id in unpaid:
            debtor = balances.get(apartment_id)
            if debtor is None:
                continue
            debtor.balance -= share
            debtor.owes[payer_id] = debtor.owes.get(payer_id, 0.0) + share

    return balances


def calculate_monthly_expenses(expenses: Iterable[Expense], year: int, month: int) -> float:
    """Total amount of expenses dated in the given month (1-12)"""
    return sum(
        float(expense.amount or 0)
        for expense in expenses
        if expense.date.year == year and expense.date.month == month
    )


def calculate_unpaid_bills_count(expenses: List[Expense]) -> int:
    """Count owed shares not yet settled, across all expenses"""
    count = 0
    for expense in expenses:
        settled = set(expense.paid_by_apartments)
        count += sum(1 for apartment_id in expense.owed_by_apartments if apartment_id not in settled)
    return count
