"""Phrase/entity extraction for natural-language invoice queries.

Scans free text for the fixed vocabulary in ``services.query.vocabulary``
and returns the typed entities it recognizes. Every family is evaluated
independently; a family that finds nothing contributes nothing, and
nothing here raises on user input.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation

from services.invoices.schema import InvoiceStatus
from services.query.schema import DateRange, NumericRange
from services.query.vocabulary import (
    AMOUNT_RULES,
    CATEGORY_RULES,
    CURRENCY_SYMBOLS,
    DATE_RULES,
    STATUS_RULES,
    STOP_WORDS,
    TAG_RULES,
    TOKEN_PUNCTUATION,
    VENDOR_RULES,
    VOCABULARY_WORDS,
    AmountOp,
    DatePeriod,
    PhraseRule,
)
from services.shared import periods

logger = logging.getLogger(__name__)

_PERIOD_RESOLVERS: dict[DatePeriod, Callable[[date], periods.Period]] = {
    DatePeriod.LAST_MONTH: periods.last_month,
    DatePeriod.THIS_MONTH: periods.this_month,
    DatePeriod.THIS_YEAR: periods.this_year,
    DatePeriod.LAST_YEAR: periods.last_year,
    DatePeriod.LAST_WEEK: periods.last_week,
}

_NUMERIC_TOKEN = re.compile(r"^[$€£¥]?[\d.,]+$")


@dataclass
class ExtractedEntities:
    """Bag of entities recognized in one query.

    Attributes:
        status: Status word, if any
        date_range: Resolved date phrase, if any
        amount: Amount constraint built from the amount phrases, if any
        vendor: Vendor-name substring target
        category: Category-name substring target
        tag: Single tag token
        terms: Residual free-text terms (duplicates preserved)
    """

    status: InvoiceStatus | None = None
    date_range: DateRange | None = None
    amount: NumericRange | None = None
    vendor: str | None = None
    category: str | None = None
    tag: str | None = None
    terms: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.status is None
            and self.date_range is None
            and self.amount is None
            and self.vendor is None
            and self.category is None
            and self.tag is None
            and not self.terms
        )


def parse_amount(raw: str) -> Decimal | None:
    """Parse an amount literal, ignoring a currency symbol and thousands separators.

    Args:
        raw: Literal as it appeared in the query (e.g. "$1,250.00")

    Returns:
        Decimal value, or None if the literal is not a finite number
    """
    cleaned = raw.strip().lstrip(CURRENCY_SYMBOLS).replace(",", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _clean_token(token: str) -> str:
    return token.strip(TOKEN_PUNCTUATION)


def _is_numeric(token: str) -> bool:
    return bool(_NUMERIC_TOKEN.match(token)) and any(ch.isdigit() for ch in token)


class EntityExtractor:
    """Recognizes status, date, vendor, category, tag, amount and free-text entities."""

    def extract(self, text: str, today: date) -> ExtractedEntities:
        """Extract every recognized entity from a query.

        Args:
            text: Free-text query
            today: Reference date for relative date phrases

        Returns:
            ExtractedEntities (empty when nothing is recognized)
        """
        lowered = text.lower()
        captured: set[str] = set()

        entities = ExtractedEntities(
            status=self._extract_status(lowered),
            date_range=self._extract_date_range(lowered, today),
            amount=self._extract_amount(lowered),
        )

        entities.vendor = self._extract_target(lowered, VENDOR_RULES, captured)
        entities.category = self._extract_target(lowered, CATEGORY_RULES, captured)
        entities.tag = self._extract_target(lowered, TAG_RULES, captured, single_word=True)
        entities.terms = self._extract_terms(lowered, captured)

        logger.debug(f"Extracted entities from {text!r}: {entities}")
        return entities

    @staticmethod
    def _extract_status(text: str) -> InvoiceStatus | None:
        for rule in STATUS_RULES:
            if rule.pattern.search(text):
                return InvoiceStatus(rule.effect)
        return None

    @staticmethod
    def _extract_date_range(text: str, today: date) -> DateRange | None:
        for rule in DATE_RULES:
            if rule.pattern.search(text):
                start, end = _PERIOD_RESOLVERS[DatePeriod(rule.effect)](today)
                return DateRange(gte=start, lte=end)
        return None

    @staticmethod
    def _extract_amount(text: str) -> NumericRange | None:
        """Apply the amount sub-patterns in order onto one constraint.

        Less-than and greater-than compose; equality and between replace
        whatever is there. A sub-pattern whose literal does not parse is
        skipped and the next synonym is tried.
        """
        bounds: dict[str, Decimal] = {}

        for synonyms in AMOUNT_RULES:
            op, values = None, []
            for rule in synonyms:
                match = rule.pattern.search(text)
                if match is None:
                    continue
                values = [parse_amount(group) for group in match.groups()]
                if any(value is None for value in values):
                    logger.debug(f"Ignoring malformed amount literal in {match.group(0)!r}")
                    continue
                op = AmountOp(rule.effect)
                break
            if op is None:
                continue

            if op is AmountOp.LESS_THAN:
                bounds["lt"] = values[0]
            elif op is AmountOp.GREATER_THAN:
                bounds["gt"] = values[0]
            elif op is AmountOp.EQUAL_TO:
                bounds = {"eq": values[0]}
            elif op is AmountOp.BETWEEN:
                bounds = {"gte": values[0], "lte": values[1]}

        return NumericRange(**bounds) if bounds else None

    @staticmethod
    def _read_word_run(text: str, start: int, single_word: bool) -> list[str]:
        """Read words from ``start`` up to the first vocabulary word, stop word or number.

        Stop words directly after the keyword ("from the ...") are skipped.
        """
        run: list[str] = []
        for raw in text[start:].split():
            word = _clean_token(raw)
            if not run and word in STOP_WORDS and raw == raw.rstrip(TOKEN_PUNCTUATION):
                continue
            if not word or word in VOCABULARY_WORDS or word in STOP_WORDS or _is_numeric(word):
                break
            run.append(word)
            if single_word or raw != raw.rstrip(TOKEN_PUNCTUATION):
                break
        return run

    def _extract_target(
        self,
        text: str,
        rules: tuple[PhraseRule, ...],
        captured: set[str],
        single_word: bool = False,
    ) -> str | None:
        for rule in rules:
            for match in rule.pattern.finditer(text):
                run = self._read_word_run(text, match.end(), single_word)
                if run:
                    captured.update(run)
                    return " ".join(run)
        return None

    @staticmethod
    def _extract_terms(text: str, captured: set[str]) -> list[str]:
        terms: list[str] = []
        for raw in text.split():
            token = _clean_token(raw)
            if token in VOCABULARY_WORDS or token in STOP_WORDS or token in captured:
                continue
            if len(token) > 3 and not _is_numeric(token):
                terms.append(token)
        return terms
