"""Unit tests for the balance calculator"""

import itertools
from dataclasses import replace
from datetime import date

from apargo_ledger.domain.balances import (
    calculate_monthly_expenses,
    calculate_unpaid_bills_count,
    compute_balances,
)
from apargo_ledger.domain.models import Apartment, Expense


def _expenses(shared_expense):
    return [
        shared_expense,
        Expense(
            id="exp2",
            amount=90.0,
            date=date(2024, 1, 20),
            category_id="utilities",
            paid_by_apartment="apt2",
            owed_by_apartments=["apt1", "apt2", "apt3"],
            per_apartment_share=30.0,
            paid_by_apartments=["apt3"],
        ),
        Expense(
            id="exp3",
            amount=50.0,
            date=date(2024, 2, 2),
            category_id="repairs",
            paid_by_apartment="apt3",
            owed_by_apartments=["apt1", "apt3"],
            per_apartment_share=25.0,
        ),
    ]


def test_split_scenario(shared_expense, apartments):
    """Test 300 split three ways, fronted by apt1"""
    balances = compute_balances([shared_expense], apartments)

    assert balances["apt1"].balance == 200.0
    assert balances["apt1"].is_owed == {"apt2": 100.0, "apt3": 100.0}
    assert balances["apt1"].owes == {}
    assert balances["apt2"].balance == -100.0
    assert balances["apt2"].owes == {"apt1": 100.0}
    assert balances["apt3"].balance == -100.0
    assert balances["apt3"].owes == {"apt1": 100.0}


def test_partial_settle_scenario(shared_expense, apartments):
    """Test settled apartment drops out of the balances"""
    balances = compute_balances([replace(shared_expense, paid_by_apartments=["apt2"])], apartments)

    assert balances["apt1"].balance == 100.0
    assert balances["apt1"].is_owed == {"apt3": 100.0}
    assert balances["apt2"].balance == 0.0
    assert balances["apt2"].owes == {}
    assert balances["apt3"].balance == -100.0


def test_inactive_apartments_present(apartments):
    """Test every apartment appears even without expenses"""
    balances = compute_balances([], apartments)

    assert set(balances) == {"apt1", "apt2", "apt3"}
    assert all(b.balance == 0.0 for b in balances.values())
    assert balances["apt2"].name == "Apartment 2"


def test_zero_sum(shared_expense, apartments):
    """Test every debit has a matching credit"""
    balances = compute_balances(_expenses(shared_expense), apartments)
    assert sum(b.balance for b in balances.values()) == 0.0


def test_balance_equals_is_owed_minus_owes(shared_expense, apartments):
    balances = compute_balances(_expenses(shared_expense), apartments)
    for balance in balances.values():
        assert balance.balance == sum(balance.is_owed.values()) - sum(balance.owes.values())


def test_order_independent(shared_expense, apartments):
    """Test any permutation of expenses yields identical balances"""
    expenses = _expenses(shared_expense)
    expected = compute_balances(expenses, apartments)

    for permutation in itertools.permutations(expenses):
        assert compute_balances(list(permutation), apartments) == expected


def test_unknown_apartments_skipped(shared_expense):
    """Test references to unknown apartments do not raise"""
    balances = compute_balances([shared_expense], [Apartment(id="apt2", name="Apartment 2")])

    assert list(balances) == ["apt2"]
    assert balances["apt2"].balance == -100.0
    assert balances["apt2"].owes == {"apt1": 100.0}


def test_inputs_not_mutated(shared_expense, apartments):
    expenses = _expenses(shared_expense)
    snapshot = list(expenses)
    compute_balances(expenses, apartments)
    assert expenses == snapshot


def test_calculate_monthly_expenses(shared_expense):
    expenses = _expenses(shared_expense)
    assert calculate_monthly_expenses(expenses, 2024, 1) == 390.0
    assert calculate_monthly_expenses(expenses, 2024, 2) == 50.0
    assert calculate_monthly_expenses(expenses, 2023, 1) == 0


def test_calculate_unpaid_bills_count(shared_expense):
    # exp1: 3 unpaid, exp2: 2 unpaid (apt3 settled), exp3: 2 unpaid
    assert calculate_unpaid_bills_count(_expenses(shared_expense)) == 7
