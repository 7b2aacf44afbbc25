"""Q1 financial report."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from services.analytics.schema import (
    ZERO,
    CategoryTotal,
    FinancialMetric,
    QuarterlyReport,
    percent_change,
)
from services.invoices.schema import Invoice
from services.shared.periods import Period, first_quarter, within

logger = logging.getLogger(__name__)

TOP_CATEGORY_LIMIT = 5
REVENUE_TO_EXPENSE_RATIO = Decimal("1.5")

RevenueEstimator = Callable[[Decimal], Decimal]


def estimate_revenue_from_expenses(expenses: Decimal) -> Decimal:
    """Placeholder revenue model: a fixed multiple of expenses."""
    return expenses * REVENUE_TO_EXPENSE_RATIO


def _categorized_in(invoices: list[Invoice], period: Period) -> list[Invoice]:
    return [
        invoice
        for invoice in invoices
        if invoice.category is not None and within(invoice.issue_date, period)
    ]


def _expenses(invoices: list[Invoice]) -> Decimal:
    return sum((invoice.amount for invoice in invoices if invoice.amount is not None), ZERO)


def top_categories(invoices: list[Invoice], limit: int = TOP_CATEGORY_LIMIT) -> list[CategoryTotal]:
    """Sum amounts per category id and return the largest, descending."""
    totals: dict[str, CategoryTotal] = {}
    for invoice in invoices:
        if invoice.category is None or not invoice.amount:
            continue
        entry = totals.setdefault(
            invoice.category.id, CategoryTotal(category=invoice.category.name, amount=ZERO)
        )
        entry.amount += invoice.amount
    return sorted(totals.values(), key=lambda entry: entry.amount, reverse=True)[:limit]


def quarterly_report(
    invoices: list[Invoice],
    now: datetime,
    revenue_estimator: RevenueEstimator = estimate_revenue_from_expenses,
) -> QuarterlyReport:
    """Build the Q1 report for ``now``'s year, compared with the year before.

    Args:
        invoices: The owner's invoices
        now: Reference instant
        revenue_estimator: Maps an expense total to estimated revenue

    Returns:
        QuarterlyReport
    """
    current_window = first_quarter(now.year)
    previous_window = first_quarter(now.year - 1)

    current = _categorized_in(invoices, current_window)
    previous = _categorized_in(invoices, previous_window)

    expenses = _expenses(current)
    prev_expenses = _expenses(previous)
    revenue = revenue_estimator(expenses)
    prev_revenue = revenue_estimator(prev_expenses)
    net_profit = revenue - expenses
    prev_net_profit = prev_revenue - prev_expenses

    logger.info(
        f"Q1 {now.year}: {len(current)} invoices, expenses {expenses} "
        f"(previous year {prev_expenses})"
    )

    return QuarterlyReport(
        period_start=current_window[0],
        period_end=current_window[1],
        revenue=FinancialMetric(total=revenue, percent_change=percent_change(revenue, prev_revenue)),
        expenses=FinancialMetric(
            total=expenses, percent_change=percent_change(expenses, prev_expenses)
        ),
        net_profit=FinancialMetric(
            total=net_profit, percent_change=percent_change(net_profit, prev_net_profit)
        ),
        top_expense_categories=top_categories(current),
    )
