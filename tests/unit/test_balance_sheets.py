"""Unit tests for balance sheet aggregation and continuity"""

from dataclasses import replace
from datetime import datetime, timezone

from apargo_ledger.domain.balance_sheets import (
    aggregate_balance_sheets,
    apply_delta_to_sheet,
    sheets_from_balance_sheets,
    validate_continuity,
)
from apargo_ledger.domain.models import AggregatedSheet, BalanceSheet, LedgerDelta, Payment

CREATED = datetime(2023, 1, 1, tzinfo=timezone.utc)


def payment(month_year: str, amount: float, status: str = "approved", **overrides) -> Payment:
    return Payment(
        id=f"{month_year}-{amount}",
        payer_id="user1",
        payee_id="user1",
        apartment_id="apt1",
        amount=amount,
        status=status,
        month_year=month_year,
        created_at=CREATED,
        **overrides,
    )


def test_gap_month_scenario():
    """Test January and March income with an empty February in between"""
    sheets = aggregate_balance_sheets([payment("2023-01", 10000), payment("2023-03", 5000)])

    assert sheets == [
        AggregatedSheet("2023-01", opening=0.0, income=10000.0, expenses=0.0, closing=10000.0),
        AggregatedSheet("2023-02", opening=10000.0, income=0.0, expenses=0.0, closing=10000.0),
        AggregatedSheet("2023-03", opening=10000.0, income=5000.0, expenses=0.0, closing=15000.0),
    ]


def test_only_settled_payments_count():
    sheets = aggregate_balance_sheets(
        [
            payment("2023-01", 100),
            payment("2023-01", 50, status="paid"),
            payment("2023-01", 999, status="pending"),
            payment("2023-02", 999, status="rejected"),
        ]
    )

    assert len(sheets) == 1
    assert sheets[0].income == 150.0


def test_expense_bucketing():
    """Test explicit category wins, expense_id decides when category is missing"""
    sheets = aggregate_balance_sheets(
        [
            payment("2023-05", 500, category="income"),
            payment("2023-05", 80, category="expense"),
            payment("2023-05", 20, expense_id="exp1"),
            payment("2023-05", 5, category="income", expense_id="exp2"),
        ]
    )

    assert sheets[0].income == 505.0
    assert sheets[0].expenses == 100.0
    assert sheets[0].closing == 405.0


def test_year_boundary_gap_fill():
    sheets = aggregate_balance_sheets([payment("2023-11", 10), payment("2024-02", 10)])
    assert [s.month_year for s in sheets] == ["2023-11", "2023-12", "2024-01", "2024-02"]


def test_no_payments():
    assert aggregate_balance_sheets([]) == []
    assert aggregate_balance_sheets([payment("2023-01", 10, status="pending")]) == []


def test_aggregate_output_is_continuous():
    """Test aggregated sheets always pass the continuity check"""
    sheets = aggregate_balance_sheets(
        [
            payment("2023-01", 1000),
            payment("2023-02", 300, category="expense"),
            payment("2023-04", 0.1),
            payment("2023-04", 0.2),
            payment("2023-06", 1500, category="expense"),
        ]
    )

    report = validate_continuity(sheets)
    assert report.is_valid is True
    assert report.errors == []
    for sheet in sheets:
        assert sheet.closing == sheet.opening + sheet.income - sheet.expenses


def test_perturbed_opening_reports_that_month():
    """Test one broken opening yields exactly one error naming the month"""
    sheets = aggregate_balance_sheets([payment("2023-01", 100), payment("2023-04", 100)])
    sheets[2] = replace(sheets[2], opening=sheets[2].opening + 5)

    report = validate_continuity(sheets)

    assert report.is_valid is False
    assert len(report.errors) == 1
    assert "2023-03 opening balance" in report.errors[0]


def test_continuity_reports_every_break_and_sorts():
    sheets = [
        AggregatedSheet("2023-03", opening=7, income=0, expenses=0, closing=7),
        AggregatedSheet("2023-01", opening=0, income=10, expenses=0, closing=10),
        AggregatedSheet("2023-02", opening=11, income=0, expenses=0, closing=11),
    ]
    report = validate_continuity(sheets)
    assert len(report.errors) == 2


def test_continuity_tolerance():
    sheets = [
        AggregatedSheet("2023-01", opening=0, income=10, expenses=0, closing=10),
        AggregatedSheet("2023-02", opening=10.005, income=0, expenses=0, closing=10.005),
    ]
    assert validate_continuity(sheets).is_valid is True
    assert validate_continuity(sheets, tolerance=0.001).is_valid is False


def test_apply_delta_new_sheet_opens_at_previous_closing():
    previous = BalanceSheet("apt1", "2023-01", 0.0, 300.0, 100.0, 200.0)
    sheet = apply_delta_to_sheet("apt1", "2023-02", LedgerDelta(50.0, 20.0), previous=previous)

    assert sheet == BalanceSheet("apt1", "2023-02", 200.0, 50.0, 20.0, 230.0)


def test_apply_delta_existing_sheet_accumulates():
    existing = BalanceSheet("apt1", "2023-02", 200.0, 50.0, 20.0, 230.0)
    sheet = apply_delta_to_sheet("apt1", "2023-02", LedgerDelta(-50.0, 10.0), existing=existing)

    assert sheet == BalanceSheet("apt1", "2023-02", 200.0, 0.0, 30.0, 170.0)


def test_apply_delta_first_sheet_opens_at_zero():
    sheet = apply_delta_to_sheet("apt1", "2023-02", LedgerDelta(0.0, 40.0))
    assert sheet.opening_balance == 0.0
    assert sheet.closing_balance == -40.0


def test_stored_sheets_continuity():
    stored = [
        BalanceSheet("apt1", "2023-01", 0.0, 100.0, 0.0, 100.0),
        BalanceSheet("apt1", "2023-02", 90.0, 0.0, 0.0, 90.0),
    ]
    report = validate_continuity(sheets_from_balance_sheets(stored))
    assert report.errors == [
        "Continuity error: 2023-02 opening balance (90.0) does not match 2023-01 closing balance (100.0)"
    ]
