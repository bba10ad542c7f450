"""Unit tests for the payment delta calculator"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Tuple

import pytest

from apargo_ledger.domain.models import LedgerDelta, Payment, PaymentDelta
from apargo_ledger.domain.payment_deltas import (
    compute_payment_delta,
    group_deltas_by_month,
    is_approved_payment,
)

CREATED = datetime(2024, 1, 10, tzinfo=timezone.utc)


def make_payment(**overrides) -> Payment:
    fields = dict(
        id="p1",
        payer_id="user1",
        payee_id="user2",
        apartment_id="apt1",
        amount=120.0,
        status="pending",
        category="income",
        month_year="2024-01",
        created_at=CREATED,
    )
    fields.update(overrides)
    return Payment(**fields)


def net(*delta_lists: List[PaymentDelta]) -> Dict[Tuple[str, str], Tuple[float, float]]:
    totals: Dict[Tuple[str, str], Tuple[float, float]] = {}
    for deltas in delta_lists:
        for d in deltas:
            income, expenses = totals.get((d.apartment_id, d.month_year), (0.0, 0.0))
            totals[(d.apartment_id, d.month_year)] = (income + d.total_income_delta, expenses + d.total_expenses_delta)
    return totals


def test_pending_to_approved_adds_income():
    """Test approval books the amount on the income side"""
    deltas = compute_payment_delta(make_payment(), make_payment(status="approved"))
    assert deltas == [PaymentDelta("apt1", "2024-01", 120.0, 0.0)]


def test_approved_to_rejected_reverses():
    deltas = compute_payment_delta(make_payment(status="approved"), make_payment(status="rejected"))
    assert deltas == [PaymentDelta("apt1", "2024-01", -120.0, 0.0)]


def test_status_case_insensitive():
    assert is_approved_payment(make_payment(status="Approved")) is True
    assert is_approved_payment(make_payment(status="paid")) is False


def test_expense_id_books_expense_side():
    """Test linked expense payments without a category go to expenses"""
    payment = make_payment(status="approved", category=None, expense_id="exp1")
    assert compute_payment_delta(None, payment) == [PaymentDelta("apt1", "2024-01", 0.0, 120.0)]


def test_expense_id_wins_over_income_category():
    """Test a linked expense payment books expenses even when labelled income"""
    payment = make_payment(status="approved", category="income", expense_id="exp1")
    assert compute_payment_delta(None, payment) == [PaymentDelta("apt1", "2024-01", 0.0, 120.0)]


def test_category_case_insensitive():
    payment = make_payment(status="approved", category="Expense")
    assert compute_payment_delta(None, payment) == [PaymentDelta("apt1", "2024-01", 0.0, 120.0)]


def test_payer_fallback_for_apartment():
    payment = make_payment(status="approved", apartment_id=None)
    assert compute_payment_delta(None, payment)[0].apartment_id == "user1"


def test_missing_month_is_not_approved():
    assert compute_payment_delta(None, make_payment(status="approved", month_year="")) == []


def test_same_cell_amount_change_merged():
    """Test re-approval with a new amount writes only the difference"""
    old = make_payment(status="approved")
    new = make_payment(status="approved", amount=150.0)
    assert compute_payment_delta(old, new) == [PaymentDelta("apt1", "2024-01", 30.0, 0.0)]


def test_same_cell_no_change_emits_nothing():
    payment = make_payment(status="approved")
    assert compute_payment_delta(payment, replace(payment, status="APPROVED")) == []


def test_different_cells_kept_separate():
    """Test moving an approved payment to another month touches both cells"""
    old = make_payment(status="approved")
    new = make_payment(status="approved", month_year="2024-02")
    deltas = compute_payment_delta(old, new)

    assert deltas == [
        PaymentDelta("apt1", "2024-01", -120.0, 0.0),
        PaymentDelta("apt1", "2024-02", 120.0, 0.0),
    ]


def test_zero_amount_filtered():
    assert compute_payment_delta(None, make_payment(status="approved", amount=0.0)) == []


def test_no_payments():
    assert compute_payment_delta() == []


@pytest.mark.parametrize(
    "a, b",
    [
        (make_payment(), make_payment(status="approved")),
        (make_payment(status="approved"), make_payment(status="approved", month_year="2024-03")),
        (make_payment(status="approved", category="expense"), make_payment(status="approved", amount=10.0)),
        (None, make_payment(status="approved")),
    ],
)
def test_reverse_transition_nets_to_zero(a, b):
    """Test the A to B delta plus the B to A delta is zero on every cell"""
    totals = net(compute_payment_delta(a, b), compute_payment_delta(b, a))
    assert all(value == (0.0, 0.0) for value in totals.values())


def test_applying_twice_then_negation_nets_to_zero():
    deltas = compute_payment_delta(make_payment(), make_payment(status="approved"))
    negation = [PaymentDelta(d.apartment_id, d.month_year, -2 * d.total_income_delta, -2 * d.total_expenses_delta) for d in deltas]
    totals = net(deltas, deltas, negation)
    assert all(value == (0.0, 0.0) for value in totals.values())


def test_group_deltas_by_month():
    deltas = [
        PaymentDelta("apt1", "2024-01", -120.0, 0.0),
        PaymentDelta("apt1", "2024-02", 120.0, 0.0),
        PaymentDelta("apt2", "2024-02", 0.0, 40.0),
    ]
    assert group_deltas_by_month(deltas) == {
        "2024-01": {"apt1": LedgerDelta(-120.0, 0.0)},
        "2024-02": {"apt1": LedgerDelta(120.0, 0.0), "apt2": LedgerDelta(0.0, 40.0)},
    }
