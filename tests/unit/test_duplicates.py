"""Unit tests for potential duplicate detection."""

from collections.abc import Callable
from datetime import datetime

from services.analytics.duplicates import detect_duplicates, is_candidate_pair
from services.invoices.schema import Invoice


def test_near_identical_invoices_are_paired(make_invoice: Callable[..., Invoice]) -> None:
    """Should pair invoices within 1% and 30 days from the same vendor."""
    original = make_invoice(amount=1000, vendor="Acme", issue_date=datetime(2024, 5, 10))
    duplicate = make_invoice(amount=995, vendor="Acme", issue_date=datetime(2024, 5, 5))

    report = detect_duplicates([duplicate, original])

    assert len(report.potential_duplicates) == 1
    pair = report.potential_duplicates[0]
    assert pair.original.id == original.id
    assert pair.duplicate.id == duplicate.id


def test_amount_difference_too_large(make_invoice: Callable[..., Invoice]) -> None:
    """Should not pair invoices differing by 2%."""
    invoices = [
        make_invoice(amount=1000, vendor="Acme", issue_date=datetime(2024, 5, 10)),
        make_invoice(amount=980, vendor="Acme", issue_date=datetime(2024, 5, 9)),
    ]

    assert detect_duplicates(invoices).potential_duplicates == []


def test_dates_too_far_apart(make_invoice: Callable[..., Invoice]) -> None:
    """Should not pair invoices more than 30 days apart."""
    invoices = [
        make_invoice(amount=100, vendor="Acme", issue_date=datetime(2024, 5, 10)),
        make_invoice(amount=100, vendor="Acme", issue_date=datetime(2024, 4, 9)),
    ]

    assert detect_duplicates(invoices).potential_duplicates == []


def test_different_vendors(make_invoice: Callable[..., Invoice]) -> None:
    """Should not pair invoices from different vendors."""
    invoices = [
        make_invoice(amount=100, vendor="Acme"),
        make_invoice(amount=100, vendor="Globex"),
    ]

    assert detect_duplicates(invoices).potential_duplicates == []


def test_greedy_triple_yields_one_pair(make_invoice: Callable[..., Invoice]) -> None:
    """Should leave the third near-identical invoice unmatched."""
    a = make_invoice(amount=100, vendor="Acme", issue_date=datetime(2024, 5, 3))
    b = make_invoice(amount=100, vendor="Acme", issue_date=datetime(2024, 5, 2))
    c = make_invoice(amount=100, vendor="Acme", issue_date=datetime(2024, 5, 1))

    report = detect_duplicates([c, b, a])

    assert [(p.original.id, p.duplicate.id) for p in report.potential_duplicates] == [
        (a.id, b.id)
    ]


def test_ineligible_invoices_skipped(make_invoice: Callable[..., Invoice]) -> None:
    """Should ignore invoices without an amount or a resolved vendor."""
    invoices = [
        make_invoice(amount=0, vendor="Acme"),
        make_invoice(amount=0, vendor="Acme"),
        make_invoice(amount=None, vendor="Acme"),
        make_invoice(amount=100, vendor_id="v-acme"),
        make_invoice(amount=100, vendor_id="v-acme"),
    ]

    assert detect_duplicates(invoices).potential_duplicates == []


def test_undated_invoices_compare_as_epoch(make_invoice: Callable[..., Invoice]) -> None:
    """Should treat two undated invoices as issued together."""
    first = make_invoice(amount=100, vendor="Acme", issue_date=None)
    second = make_invoice(amount=100, vendor="Acme", issue_date=None)

    assert is_candidate_pair(first, second)
    assert len(detect_duplicates([first, second]).potential_duplicates) == 1
