"""Next-month expense forecast from the trailing six calendar months."""

import logging
import statistics
from datetime import datetime
from decimal import Decimal

from services.analytics.schema import (
    ForecastReport,
    PredictionRange,
    SignificantExpense,
    percent_change,
    round_half_up,
    sum_amounts,
)
from services.invoices.schema import Invoice
from services.shared.periods import month_period, shift_month, within

logger = logging.getLogger(__name__)

BUCKET_COUNT = 6
SIGNIFICANT_SHARE = Decimal("0.2")
REGULAR_SHARE = Decimal("0.7")


def monthly_totals(invoices: list[Invoice], now: datetime, count: int = BUCKET_COUNT) -> list[Decimal]:
    """Sum invoice amounts per calendar month, newest first.

    Args:
        invoices: The owner's invoices
        now: Reference instant; its month is bucket 0
        count: Number of buckets

    Returns:
        ``count`` totals, index 0 is the current month
    """
    totals = []
    for offset in range(count):
        period = month_period(*shift_month(now.year, now.month, -offset))
        totals.append(sum_amounts([inv for inv in invoices if within(inv.issue_date, period)]))
    return totals


def significant_expenses(
    invoices: list[Invoice], now: datetime, mean: Decimal
) -> list[SignificantExpense]:
    """Expected annual payments plus the regular monthly baseline.

    Annual payments are invoices from the upcoming month's calendar month one
    year earlier, with a resolved vendor and an amount above a fifth of the mean.
    """
    year, month = shift_month(now.year, now.month, 1)
    period = month_period(year - 1, month)
    threshold = mean * SIGNIFICANT_SHARE

    expenses = [
        SignificantExpense(description=f"Annual payment to {invoice.vendor.name}", amount=invoice.amount)
        for invoice in invoices
        if invoice.vendor is not None
        and invoice.amount
        and invoice.amount > threshold
        and within(invoice.issue_date, period)
    ]
    expenses.append(
        SignificantExpense(
            description="Regular monthly expenses",
            amount=Decimal(round_half_up(mean * REGULAR_SHARE)),
        )
    )
    return expenses


def expense_forecast(invoices: list[Invoice], now: datetime) -> ForecastReport:
    """Predict next month's expenses as mean plus/minus one standard deviation.

    Args:
        invoices: The owner's invoices
        now: Reference instant

    Returns:
        ForecastReport
    """
    totals = monthly_totals(invoices, now)
    mean = statistics.mean(totals)
    std_dev = statistics.pstdev(totals, mu=mean)

    logger.info(f"Forecast from buckets {[str(total) for total in totals]}: mean {mean}, sd {std_dev}")

    return ForecastReport(
        monthly_totals=totals,
        mean=mean,
        std_dev=std_dev,
        prediction=PredictionRange(
            min=round_half_up(mean - std_dev),
            max=round_half_up(mean + std_dev),
        ),
        percentage_change=percent_change(mean, totals[0]),
        significant_expenses=significant_expenses(invoices, now, mean),
    )
