"""Potential duplicate invoice detection.

Two invoices are candidates when they share a vendor, their amounts differ by
at most 1% of the earlier-listed one, and they were issued within 30 days of
each other. Pairing is greedy: once an invoice is paired it is never
reconsidered, so a third near-identical invoice stays unmatched.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from services.analytics.schema import DuplicatePair, DuplicateReport, newest_first
from services.invoices.schema import Invoice

logger = logging.getLogger(__name__)

MAX_AMOUNT_RATIO = Decimal("0.01")
MAX_DATE_GAP = timedelta(days=30)
EPOCH = datetime(1970, 1, 1)


def _eligible(invoice: Invoice) -> bool:
    return bool(invoice.amount) and invoice.vendor is not None


def is_candidate_pair(first: Invoice, second: Invoice) -> bool:
    """Same vendor, amounts within 1% of ``first``, issued within 30 days."""
    if first.vendor_id != second.vendor_id:
        return False
    if abs(first.amount - second.amount) / first.amount > MAX_AMOUNT_RATIO:
        return False
    gap = abs((first.issue_date or EPOCH) - (second.issue_date or EPOCH))
    return gap <= MAX_DATE_GAP


def detect_duplicates(invoices: list[Invoice]) -> DuplicateReport:
    """Pair up invoices that look like the same bill entered twice.

    Args:
        invoices: The owner's invoices, any order

    Returns:
        DuplicateReport with pairs in scan order
    """
    ordered = newest_first(invoices)
    processed: set[str] = set()
    pairs: list[DuplicatePair] = []

    for i, original in enumerate(ordered):
        if original.id in processed or not _eligible(original):
            continue
        for duplicate in ordered[i + 1 :]:
            if duplicate.id in processed or not _eligible(duplicate):
                continue
            if is_candidate_pair(original, duplicate):
                pairs.append(DuplicatePair(original=original, duplicate=duplicate))
                processed.update((original.id, duplicate.id))
                break

    logger.info(f"Found {len(pairs)} potential duplicate pairs in {len(ordered)} invoices")
    return DuplicateReport(potential_duplicates=pairs)
