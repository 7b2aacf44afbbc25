"""Unit tests for natural-language entity extraction."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from services.invoices.schema import InvoiceStatus
from services.query.extractor import EntityExtractor, parse_amount
from services.query.schema import NumericRange

TODAY = date(2024, 5, 15)  # a Wednesday


@pytest.fixture
def extractor() -> EntityExtractor:
    """Create entity extractor."""
    return EntityExtractor()


class TestParseAmount:
    """Test amount literal parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("500", Decimal("500")),
            ("$1,250.00", Decimal("1250.00")),
            ("€99.5", Decimal("99.5")),
            ("42.", Decimal("42")),
        ],
    )
    def test_valid_literals(self, raw: str, expected: Decimal) -> None:
        """Should strip currency symbols and thousands separators."""
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["...", "1.2.3", ",", "$"])
    def test_malformed_literals(self, raw: str) -> None:
        """Should return None for literals that are not numbers."""
        assert parse_amount(raw) is None


class TestStatusExtraction:
    """Test status word recognition."""

    def test_first_rule_wins(self, extractor: EntityExtractor) -> None:
        """Should pick overdue over paid when both appear."""
        entities = extractor.extract("paid or overdue invoices", TODAY)
        assert entities.status == InvoiceStatus.OVERDUE

    def test_archived_maps_to_cancelled(self, extractor: EntityExtractor) -> None:
        """Should treat archived as cancelled."""
        assert extractor.extract("archived bills", TODAY).status == InvoiceStatus.CANCELLED

    def test_unpaid_is_not_paid(self, extractor: EntityExtractor) -> None:
        """Should only match whole words."""
        assert extractor.extract("unpaid", TODAY).status is None


class TestDateExtraction:
    """Test relative date phrases."""

    def test_last_month(self, extractor: EntityExtractor) -> None:
        """Should resolve to the previous calendar month."""
        date_range = extractor.extract("invoices from last month", TODAY).date_range
        assert date_range is not None
        assert date_range.gte == datetime(2024, 4, 1)
        assert date_range.lte is not None
        assert date_range.lte.date() == date(2024, 4, 30)

    def test_last_week_on_wednesday(self, extractor: EntityExtractor) -> None:
        """Should resolve to Monday..Saturday of the previous week."""
        date_range = extractor.extract("paid last week", TODAY).date_range
        assert date_range is not None
        assert date_range.gte == datetime(2024, 5, 6)
        assert date_range.lte is not None
        assert date_range.lte.date() == date(2024, 5, 11)

    def test_first_date_rule_wins(self, extractor: EntityExtractor) -> None:
        """Should prefer last month over this year."""
        date_range = extractor.extract("this year and last month", TODAY).date_range
        assert date_range is not None
        assert date_range.gte == datetime(2024, 4, 1)


class TestAmountExtraction:
    """Test amount comparator phrases."""

    def test_less_and_greater_compose(self, extractor: EntityExtractor) -> None:
        """Should combine under and over into one range."""
        amount = extractor.extract("under 100 over 50", TODAY).amount
        assert amount == NumericRange(lt=Decimal("100"), gt=Decimal("50"))

    def test_between_overrides_comparators(self, extractor: EntityExtractor) -> None:
        """Should replace lt/gt with an inclusive range."""
        amount = extractor.extract("under 1000 over 10 between 100 and 500", TODAY).amount
        assert amount == NumericRange(gte=Decimal("100"), lte=Decimal("500"))

    def test_exactly_discards_comparators(self, extractor: EntityExtractor) -> None:
        """Should keep only the equality."""
        amount = extractor.extract("under 100 over 10 exactly 42", TODAY).amount
        assert amount == NumericRange(eq=Decimal("42"))

    def test_currency_literal(self, extractor: EntityExtractor) -> None:
        """Should parse currency-prefixed literals."""
        amount = extractor.extract("more than $1,250.50", TODAY).amount
        assert amount == NumericRange(gt=Decimal("1250.50"))

    def test_malformed_literal_is_skipped(self, extractor: EntityExtractor) -> None:
        """Should drop only the sub-pattern with the malformed literal."""
        amount = extractor.extract("over ... under 300", TODAY).amount
        assert amount == NumericRange(lt=Decimal("300"))

    def test_malformed_synonym_falls_back(self, extractor: EntityExtractor) -> None:
        """Should try the next synonym when the first literal does not parse."""
        amount = extractor.extract("less than 1.2.3 but under 300", TODAY).amount
        assert amount == NumericRange(lt=Decimal("300"))

    def test_literal_needs_a_digit(self, extractor: EntityExtractor) -> None:
        """Should not treat bare separators as an amount."""
        assert extractor.extract("under ... budget", TODAY).amount is None

    def test_no_amount(self, extractor: EntityExtractor) -> None:
        """Should leave amount unset when no phrase appears."""
        assert extractor.extract("pending invoices", TODAY).amount is None


class TestTargetExtraction:
    """Test vendor, category and tag capture."""

    def test_vendor_stops_at_vocabulary(self, extractor: EntityExtractor) -> None:
        """Should stop the vendor run at a status or amount word."""
        entities = extractor.extract("invoices from acme corp over 500", TODAY)
        assert entities.vendor == "acme corp"

    def test_vendor_keyword(self, extractor: EntityExtractor) -> None:
        """Should capture the run after vendor."""
        assert extractor.extract("vendor globex", TODAY).vendor == "globex"

    def test_category(self, extractor: EntityExtractor) -> None:
        """Should capture the run after in category."""
        entities = extractor.extract("expenses in category office supplies", TODAY)
        assert entities.category == "office supplies"

    def test_tag_is_single_word(self, extractor: EntityExtractor) -> None:
        """Should capture only one token after tagged."""
        entities = extractor.extract("tagged urgent quarterly", TODAY)
        assert entities.tag == "urgent"
        assert entities.terms == ["quarterly"]

    def test_leading_stop_word_is_skipped(self, extractor: EntityExtractor) -> None:
        """Should capture the vendor after an article."""
        entities = extractor.extract("invoices from the home depot", TODAY)
        assert entities.vendor == "home depot"
        assert entities.terms == []

    def test_stop_word_inside_run_ends_it(self, extractor: EntityExtractor) -> None:
        """Should still stop at a stop word once the run has started."""
        assert extractor.extract("from acme for me", TODAY).vendor == "acme"

    def test_trailing_punctuation_ends_run(self, extractor: EntityExtractor) -> None:
        """Should stop at a comma and strip it."""
        assert extractor.extract("from acme, tagged travel", TODAY).vendor == "acme"


class TestResidualTerms:
    """Test free-text term collection."""

    def test_pending_from_acme_over_500(self, extractor: EntityExtractor) -> None:
        """Should recognize everything and leave no residual terms."""
        entities = extractor.extract("show me pending invoices from acme over 500", TODAY)
        assert entities.status == InvoiceStatus.PENDING
        assert entities.vendor == "acme"
        assert entities.amount == NumericRange(gt=Decimal("500"))
        assert entities.terms == []

    def test_short_and_numeric_tokens_ignored(self, extractor: EntityExtractor) -> None:
        """Should keep only tokens longer than three characters."""
        entities = extractor.extract("hosting fee 2024 aws", TODAY)
        assert entities.terms == ["hosting"]

    def test_duplicates_preserved(self, extractor: EntityExtractor) -> None:
        """Should keep repeated terms."""
        assert extractor.extract("cloud cloud", TODAY).terms == ["cloud", "cloud"]

    def test_empty_text(self, extractor: EntityExtractor) -> None:
        """Should return empty entities for empty input."""
        assert extractor.extract("", TODAY).is_empty()
