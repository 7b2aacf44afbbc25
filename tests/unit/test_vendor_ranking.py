"""Unit tests for vendor ranking."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from services.analytics.schema import NoDataReport, VendorRankingReport, round_half_up
from services.analytics.vendors import group_by_vendor, rank_top_vendor
from services.invoices.schema import Invoice


def test_no_vendor_data(make_invoice: Callable[..., Invoice]) -> None:
    """Should return an explicit no-data report when nothing qualifies."""
    invoices = [make_invoice(amount=100), make_invoice(amount=None, vendor="Acme")]

    report = rank_top_vendor(invoices)

    assert isinstance(report, NoDataReport)
    assert report.message == "No vendor data found"


def test_empty_collection() -> None:
    """Should return no-data for an empty collection."""
    assert isinstance(rank_top_vendor([]), NoDataReport)


def test_top_vendor_percentage(make_invoice: Callable[..., Invoice]) -> None:
    """Should rank by total and compute the share of grouped expenses."""
    invoices = [
        make_invoice(amount=300, vendor="Small"),
        make_invoice(amount=400, vendor="Big"),
        make_invoice(amount=300, vendor="Big"),
    ]

    report = rank_top_vendor(invoices)

    assert isinstance(report, VendorRankingReport)
    assert report.vendor_id == "v-big"
    assert report.vendor == "Big"
    assert report.total == Decimal("700")
    assert report.invoice_count == 2
    assert report.percentage_of_expenses == 70


def test_tie_goes_to_first_vendor(make_invoice: Callable[..., Invoice]) -> None:
    """Should keep the first-seen vendor on equal totals."""
    invoices = [make_invoice(amount=50, vendor="First"), make_invoice(amount=50, vendor="Second")]

    report = rank_top_vendor(invoices)

    assert isinstance(report, VendorRankingReport)
    assert report.vendor == "First"
    assert report.percentage_of_expenses == 50


def test_vendor_id_without_relation(make_invoice: Callable[..., Invoice]) -> None:
    """Should fall back to the written vendor name."""
    invoice = make_invoice(amount=10, vendor_id="v-raw", vendor_name="Raw Vendor")

    report = rank_top_vendor([invoice])

    assert isinstance(report, VendorRankingReport)
    assert report.vendor == "Raw Vendor"


def test_recent_invoices_limited_and_sorted(make_invoice: Callable[..., Invoice]) -> None:
    """Should return the five newest invoices with undated ones last."""
    invoices = [make_invoice(vendor="Acme", issue_date=None)] + [
        make_invoice(vendor="Acme", issue_date=datetime(2024, month, 1)) for month in range(1, 7)
    ]

    report = rank_top_vendor(invoices)

    assert isinstance(report, VendorRankingReport)
    assert [inv.issue_date.month for inv in report.recent_invoices if inv.issue_date] == [
        6,
        5,
        4,
        3,
        2,
    ]
    assert report.invoice_count == 7


def test_group_by_vendor_skips_missing_amounts(make_invoice: Callable[..., Invoice]) -> None:
    """Should group only invoices with both a vendor id and an amount."""
    invoices: list[Invoice] = [
        make_invoice(amount=None, vendor="Acme"),
        make_invoice(amount=5, vendor="Acme"),
        make_invoice(amount=7),
    ]

    groups = group_by_vendor(invoices)

    assert len(groups) == 1
    assert groups[0].total == Decimal("5")


def test_round_half_up() -> None:
    """Should round halves toward positive infinity."""
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("-2.5")) == -2
    assert round_half_up(Decimal("66.666")) == 67
