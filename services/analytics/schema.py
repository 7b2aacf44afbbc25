"""Analytics report models and shared arithmetic helpers.

Reports are derived, request-scoped values. Every report carries a ``kind``
discriminator so a single response field can hold any of them.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from services.invoices.schema import Invoice

ZERO = Decimal(0)

NO_VENDOR_DATA_MESSAGE = "No vendor data found"
NO_MATCHING_INTENT_MESSAGE = (
    "No specific data found for query. Try asking about recent invoices, vendors, "
    "financial reports, expense predictions, or duplicate invoices."
)


def round_half_up(value: Decimal | float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(Decimal(str(value)) + Decimal("0.5"))


def percent_change(current: Decimal, previous: Decimal) -> int:
    """Rounded percentage change from ``previous`` to ``current``; 0 when previous is 0."""
    if previous == 0:
        return 0
    return round_half_up((current - previous) / previous * 100)


def sum_amounts(invoices: list[Invoice]) -> Decimal:
    """Total of invoice amounts; absent amounts count as zero."""
    return sum((invoice.amount for invoice in invoices if invoice.amount is not None), ZERO)


def newest_first(invoices: list[Invoice]) -> list[Invoice]:
    """Stable sort by issue date descending, undated invoices last."""
    return sorted(invoices, key=lambda inv: inv.issue_date or datetime.min, reverse=True)


class NoDataReport(BaseModel):
    """Returned when there is nothing to report."""

    kind: Literal["no_data"] = "no_data"
    message: str


class VendorRankingReport(BaseModel):
    """Vendor with the largest total spend."""

    kind: Literal["vendor_ranking"] = "vendor_ranking"
    vendor_id: str
    vendor: str | None
    total: Decimal
    invoice_count: int
    percentage_of_expenses: int
    recent_invoices: list[Invoice]


class FinancialMetric(BaseModel):
    """A total with its change versus the same period last year."""

    total: Decimal
    percent_change: int


class CategoryTotal(BaseModel):
    category: str
    amount: Decimal


class QuarterlyReport(BaseModel):
    """Q1 revenue, expenses and net profit compared with the previous year."""

    kind: Literal["quarterly_report"] = "quarterly_report"
    period_start: datetime
    period_end: datetime
    revenue: FinancialMetric
    expenses: FinancialMetric
    net_profit: FinancialMetric
    top_expense_categories: list[CategoryTotal]


class PredictionRange(BaseModel):
    min: int
    max: int


class SignificantExpense(BaseModel):
    description: str
    amount: Decimal


class ForecastReport(BaseModel):
    """Next-month expense prediction from the last six monthly totals.

    Attributes:
        monthly_totals: Bucket totals, index 0 is the current month
        mean: Mean of the bucket totals
        std_dev: Population standard deviation of the bucket totals
        prediction: Rounded mean minus/plus one standard deviation
        percentage_change: Mean versus the current month, rounded
        significant_expenses: Expected annual payments and the regular baseline
    """

    kind: Literal["forecast"] = "forecast"
    monthly_totals: list[Decimal]
    mean: Decimal
    std_dev: Decimal
    prediction: PredictionRange
    percentage_change: int
    significant_expenses: list[SignificantExpense]


class DuplicatePair(BaseModel):
    original: Invoice
    duplicate: Invoice


class DuplicateReport(BaseModel):
    """Invoice pairs that look like the same bill entered twice."""

    kind: Literal["duplicates"] = "duplicates"
    potential_duplicates: list[DuplicatePair]


class StatusTotal(BaseModel):
    count: int = 0
    amount: Decimal = ZERO


class InvoiceSummary(BaseModel):
    total: Decimal = ZERO
    count: int = 0
    paid: StatusTotal = Field(default_factory=StatusTotal)
    pending: StatusTotal = Field(default_factory=StatusTotal)
    overdue: StatusTotal = Field(default_factory=StatusTotal)


class RecentSummaryReport(BaseModel):
    """Last calendar month's invoices with per-status totals."""

    kind: Literal["recent_summary"] = "recent_summary"
    period_start: datetime
    period_end: datetime
    summary: InvoiceSummary
    invoices: list[Invoice]


AnalyticsReport = Annotated[
    NoDataReport
    | VendorRankingReport
    | QuarterlyReport
    | ForecastReport
    | DuplicateReport
    | RecentSummaryReport,
    Field(discriminator="kind"),
]
