"""Vendor ranking: which vendor charged the most."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from services.analytics.schema import (
    NO_VENDOR_DATA_MESSAGE,
    ZERO,
    NoDataReport,
    VendorRankingReport,
    newest_first,
    round_half_up,
)
from services.invoices.schema import Invoice

logger = logging.getLogger(__name__)

RECENT_INVOICE_LIMIT = 5


@dataclass
class VendorTotals:
    """Running totals for one vendor."""

    vendor_id: str
    vendor: str | None
    total: Decimal = ZERO
    invoice_count: int = 0
    invoices: list[Invoice] = field(default_factory=list)


def group_by_vendor(invoices: list[Invoice]) -> list[VendorTotals]:
    """Group amount-bearing invoices by vendor id, in first-seen order.

    Args:
        invoices: Invoices in caller order

    Returns:
        One VendorTotals per vendor id, ordered by first appearance
    """
    groups: dict[str, VendorTotals] = {}
    for invoice in invoices:
        if invoice.vendor_id is None or invoice.amount is None:
            continue
        group = groups.get(invoice.vendor_id)
        if group is None:
            name = invoice.vendor.name if invoice.vendor else invoice.vendor_name
            group = groups[invoice.vendor_id] = VendorTotals(vendor_id=invoice.vendor_id, vendor=name)
        group.total += invoice.amount
        group.invoice_count += 1
        group.invoices.append(invoice)
    return list(groups.values())


def rank_top_vendor(invoices: list[Invoice]) -> VendorRankingReport | NoDataReport:
    """Find the vendor with the highest total spend.

    Ties go to the vendor seen first in ``invoices``.

    Args:
        invoices: The owner's invoices

    Returns:
        VendorRankingReport, or NoDataReport when no invoice has both a vendor and an amount
    """
    groups = group_by_vendor(invoices)
    if not groups:
        return NoDataReport(message=NO_VENDOR_DATA_MESSAGE)

    top = groups[0]
    for group in groups[1:]:
        if group.total > top.total:
            top = group

    total_expenses = sum((group.total for group in groups), ZERO)
    percentage = round_half_up(top.total / total_expenses * 100) if total_expenses > 0 else 0

    logger.info(f"Top vendor {top.vendor_id} with {top.invoice_count} invoices ({percentage}%)")

    return VendorRankingReport(
        vendor_id=top.vendor_id,
        vendor=top.vendor,
        total=top.total,
        invoice_count=top.invoice_count,
        percentage_of_expenses=percentage,
        recent_invoices=newest_first(top.invoices)[:RECENT_INVOICE_LIMIT],
    )
