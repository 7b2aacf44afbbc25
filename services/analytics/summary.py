"""Last-month invoice summary and the whole-collection financial overview."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from pydantic import BaseModel, Field

from services.analytics.schema import (
    ZERO,
    InvoiceSummary,
    RecentSummaryReport,
    StatusTotal,
    newest_first,
    sum_amounts,
)
from services.invoices.schema import Invoice, InvoiceStatus
from services.shared import periods

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = "#cccccc"
UPCOMING_WINDOW = timedelta(days=7)
TOP_VENDOR_LIMIT = 5


def summarize(invoices: list[Invoice]) -> InvoiceSummary:
    """Totals overall and per PAID / PENDING / OVERDUE status."""
    summary = InvoiceSummary(count=len(invoices))
    buckets = {
        InvoiceStatus.PAID: summary.paid,
        InvoiceStatus.PENDING: summary.pending,
        InvoiceStatus.OVERDUE: summary.overdue,
    }
    for invoice in invoices:
        amount = invoice.amount or ZERO
        summary.total += amount
        bucket = buckets.get(invoice.status)
        if bucket is not None:
            bucket.count += 1
            bucket.amount += amount
    return summary


def last_month_summary(invoices: list[Invoice], now: datetime) -> RecentSummaryReport:
    """Invoices issued in the previous calendar month, newest first, with totals.

    Args:
        invoices: The owner's invoices
        now: Reference instant

    Returns:
        RecentSummaryReport
    """
    start, end = periods.last_month(now.date())
    in_period = newest_first([inv for inv in invoices if periods.within(inv.issue_date, (start, end))])
    logger.info(f"Last-month summary {start:%Y-%m}: {len(in_period)} invoices")
    return RecentSummaryReport(
        period_start=start,
        period_end=end,
        summary=summarize(in_period),
        invoices=in_period,
    )


class PeriodOverview(BaseModel):
    total_invoices: int
    total_amount: Decimal
    this_month_amount: Decimal
    last_month_amount: Decimal
    this_year_amount: Decimal
    month_over_month_change: Decimal = Field(description="Percent, unrounded; 0 when last month is 0")


class StatusBreakdown(BaseModel):
    paid: StatusTotal
    pending: StatusTotal
    overdue: StatusTotal


class UpcomingInvoice(BaseModel):
    id: str
    invoice_number: str | None
    amount: Decimal | None
    due_date: datetime | None
    vendor_name: str | None


class UpcomingDue(BaseModel):
    count: int
    amount: Decimal
    invoices: list[UpcomingInvoice]


class VendorTotal(BaseModel):
    name: str
    amount: Decimal = ZERO
    count: int = 0


class CategoryBreakdown(BaseModel):
    name: str
    color: str
    amount: Decimal = ZERO
    count: int = 0


class FinancialOverview(BaseModel):
    """Dashboard summary over an owner's whole collection."""

    overview: PeriodOverview
    status: StatusBreakdown
    upcoming: UpcomingDue
    top_vendors: list[VendorTotal]
    category_breakdown: list[CategoryBreakdown]


def _amount_within(invoices: list[Invoice], period: periods.Period) -> Decimal:
    return sum_amounts([inv for inv in invoices if periods.within(inv.issue_date, period)])


def _status_total(invoices: list[Invoice], status: InvoiceStatus) -> StatusTotal:
    matching = [inv for inv in invoices if inv.status == status]
    return StatusTotal(count=len(matching), amount=sum_amounts(matching))


def _upcoming_due(invoices: list[Invoice], now: datetime) -> UpcomingDue:
    horizon = now + UPCOMING_WINDOW
    due = [
        inv
        for inv in invoices
        if inv.status == InvoiceStatus.PENDING
        and inv.due_date is not None
        and now < inv.due_date <= horizon
    ]
    return UpcomingDue(
        count=len(due),
        amount=sum_amounts(due),
        invoices=[
            UpcomingInvoice(
                id=inv.id,
                invoice_number=inv.invoice_number,
                amount=inv.amount,
                due_date=inv.due_date,
                vendor_name=inv.vendor.name if inv.vendor else None,
            )
            for inv in due
        ],
    )


def _top_vendors(invoices: list[Invoice]) -> list[VendorTotal]:
    totals: dict[str, VendorTotal] = {}
    for inv in invoices:
        if inv.vendor is None or not inv.amount:
            continue
        entry = totals.setdefault(inv.vendor.name, VendorTotal(name=inv.vendor.name))
        entry.amount += inv.amount
        entry.count += 1
    return sorted(totals.values(), key=lambda v: v.amount, reverse=True)[:TOP_VENDOR_LIMIT]


def _category_breakdown(invoices: list[Invoice]) -> list[CategoryBreakdown]:
    totals: dict[str, CategoryBreakdown] = {}
    for inv in invoices:
        if inv.category is None or not inv.amount:
            continue
        entry = totals.setdefault(
            inv.category.name,
            CategoryBreakdown(
                name=inv.category.name,
                color=inv.category.color or DEFAULT_CATEGORY_COLOR,
            ),
        )
        entry.amount += inv.amount
        entry.count += 1
    return sorted(totals.values(), key=lambda c: c.amount, reverse=True)


def financial_overview(invoices: list[Invoice], now: datetime) -> FinancialOverview:
    """Compute the dashboard financial overview.

    Args:
        invoices: All of the owner's invoices
        now: Reference instant

    Returns:
        FinancialOverview
    """
    today = now.date()
    this_month = _amount_within(invoices, periods.this_month(today))
    last_month = _amount_within(invoices, periods.last_month(today))
    change = (this_month - last_month) / last_month * 100 if last_month > 0 else ZERO

    return FinancialOverview(
        overview=PeriodOverview(
            total_invoices=len(invoices),
            total_amount=sum_amounts(invoices),
            this_month_amount=this_month,
            last_month_amount=last_month,
            this_year_amount=_amount_within(invoices, periods.this_year(today)),
            month_over_month_change=change,
        ),
        status=StatusBreakdown(
            paid=_status_total(invoices, InvoiceStatus.PAID),
            pending=_status_total(invoices, InvoiceStatus.PENDING),
            overdue=_status_total(invoices, InvoiceStatus.OVERDUE),
        ),
        upcoming=_upcoming_due(invoices, now),
        top_vendors=_top_vendors(invoices),
        category_breakdown=_category_breakdown(invoices),
    )
