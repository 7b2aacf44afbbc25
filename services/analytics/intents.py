"""Analytics intent detection and dispatch.

Intents are checked in priority order; the first whose keywords appear in the
lower-cased query wins. Unknown queries map to no intent and produce the
generic no-data report rather than an error.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum

from services.analytics.duplicates import detect_duplicates
from services.analytics.forecast import expense_forecast
from services.analytics.quarterly import quarterly_report
from services.analytics.schema import NO_MATCHING_INTENT_MESSAGE, AnalyticsReport, NoDataReport
from services.analytics.summary import last_month_summary
from services.analytics.vendors import rank_top_vendor
from services.invoices.schema import Invoice

logger = logging.getLogger(__name__)


class AnalyticsIntent(str, Enum):
    """Analytics question families, in detection priority order."""

    VENDOR_RANKING = "vendor-ranking"
    QUARTERLY_REPORT = "quarterly-report"
    FORECAST = "forecast"
    DUPLICATES = "duplicates"
    RECENT_SUMMARY = "recent-summary"


def _mentions_any(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


_INTENT_MATCHERS: tuple[tuple[AnalyticsIntent, Callable[[str], bool]], ...] = (
    (
        AnalyticsIntent.VENDOR_RANKING,
        lambda text: "vendor" in text and _mentions_any(text, "most", "top", "highest"),
    ),
    (
        AnalyticsIntent.QUARTERLY_REPORT,
        lambda text: _mentions_any(text, "financial report", "q1", "quarter"),
    ),
    (
        AnalyticsIntent.FORECAST,
        lambda text: _mentions_any(text, "predict", "forecast", "next month"),
    ),
    (
        AnalyticsIntent.DUPLICATES,
        lambda text: _mentions_any(text, "duplicate", "same invoice"),
    ),
    (
        AnalyticsIntent.RECENT_SUMMARY,
        lambda text: _mentions_any(text, "last month", "recent invoices"),
    ),
)

_HANDLERS: dict[AnalyticsIntent, Callable[[list[Invoice], datetime], AnalyticsReport]] = {
    AnalyticsIntent.VENDOR_RANKING: lambda invoices, now: rank_top_vendor(invoices),
    AnalyticsIntent.QUARTERLY_REPORT: quarterly_report,
    AnalyticsIntent.FORECAST: expense_forecast,
    AnalyticsIntent.DUPLICATES: lambda invoices, now: detect_duplicates(invoices),
    AnalyticsIntent.RECENT_SUMMARY: last_month_summary,
}


def detect_intent(text: str) -> AnalyticsIntent | None:
    """Return the highest-priority intent mentioned in ``text``, or None."""
    lowered = (text or "").lower()
    for intent, matcher in _INTENT_MATCHERS:
        if matcher(lowered):
            return intent
    return None


def run_analytics(
    intent: AnalyticsIntent | None, invoices: list[Invoice], now: datetime
) -> AnalyticsReport:
    """Produce the report for ``intent`` over the owner's invoices.

    Args:
        intent: Detected intent; None yields the generic no-data report
        invoices: The owner's invoices
        now: Reference instant

    Returns:
        An analytics report model
    """
    if intent is None:
        return NoDataReport(message=NO_MATCHING_INTENT_MESSAGE)
    logger.info(f"Running {intent.value} analytics over {len(invoices)} invoices")
    return _HANDLERS[intent](invoices, now)
