"""Unit tests for the Q1 financial report."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from services.analytics.quarterly import estimate_revenue_from_expenses, quarterly_report
from services.analytics.schema import CategoryTotal, percent_change
from services.invoices.schema import Invoice

NOW = datetime(2024, 5, 15, 12, 0)


def test_report_compares_with_previous_year(make_invoice: Callable[..., Invoice]) -> None:
    """Should sum categorized Q1 invoices and compare year over year."""
    invoices = [
        make_invoice(amount=300, category="Travel", issue_date=datetime(2024, 1, 10)),
        make_invoice(amount=200, category="Office", issue_date=datetime(2024, 3, 31, 23, 59, 59)),
        make_invoice(amount=1000, issue_date=datetime(2024, 2, 1)),
        make_invoice(amount=999, category="Travel", issue_date=datetime(2024, 4, 1)),
        make_invoice(amount=250, category="Travel", issue_date=datetime(2023, 2, 1)),
    ]

    report = quarterly_report(invoices, NOW)

    assert report.period_start == datetime(2024, 1, 1)
    assert report.period_end == datetime(2024, 3, 31, 23, 59, 59)
    assert report.expenses.total == Decimal("500")
    assert report.expenses.percent_change == 100
    assert report.revenue.total == Decimal("750.0")
    assert report.revenue.percent_change == 100
    assert report.net_profit.total == Decimal("250.0")
    assert report.net_profit.percent_change == 100
    assert report.top_expense_categories == [
        CategoryTotal(category="Travel", amount=Decimal("300")),
        CategoryTotal(category="Office", amount=Decimal("200")),
    ]


def test_no_previous_year_data(make_invoice: Callable[..., Invoice]) -> None:
    """Should report a 0% change when last year had no expenses."""
    invoices = [make_invoice(amount=100, category="Travel", issue_date=datetime(2024, 2, 2))]

    report = quarterly_report(invoices, NOW)

    assert report.expenses.percent_change == 0
    assert report.revenue.percent_change == 0
    assert report.net_profit.percent_change == 0


def test_empty_collection() -> None:
    """Should produce zero totals without dividing by zero."""
    report = quarterly_report([], NOW)

    assert report.expenses.total == 0
    assert report.top_expense_categories == []


def test_custom_revenue_estimator(make_invoice: Callable[..., Invoice]) -> None:
    """Should use the supplied estimator for revenue."""
    invoices = [make_invoice(amount=100, category="Travel", issue_date=datetime(2024, 2, 2))]

    report = quarterly_report(invoices, NOW, revenue_estimator=lambda expenses: expenses * 3)

    assert report.revenue.total == Decimal("300")
    assert report.net_profit.total == Decimal("200")


def test_top_categories_limited_to_five(make_invoice: Callable[..., Invoice]) -> None:
    """Should keep the five largest categories."""
    invoices = [
        make_invoice(amount=amount, category=f"C{amount}", issue_date=datetime(2024, 1, 5))
        for amount in range(10, 80, 10)
    ]

    report = quarterly_report(invoices, NOW)

    assert [entry.category for entry in report.top_expense_categories] == [
        "C70",
        "C60",
        "C50",
        "C40",
        "C30",
    ]


def test_default_estimator() -> None:
    """Should estimate revenue as one and a half times expenses."""
    assert estimate_revenue_from_expenses(Decimal("200")) == Decimal("300")


def test_percent_change_rounding() -> None:
    """Should round half up and guard a zero baseline."""
    assert percent_change(Decimal("3"), Decimal("2")) == 50
    assert percent_change(Decimal("1"), Decimal("3")) == -67
    assert percent_change(Decimal("5"), Decimal("0")) == 0
