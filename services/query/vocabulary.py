"""Fixed phrase vocabulary recognized by the query compiler.

Each phrase family is an ordered table of rules. A rule pairs a compiled
pattern with the effect it has when it fires; the extractor walks a table
in order and the first satisfied rule wins. Adding a phrase means adding a
row to one table.
"""

import re
from dataclasses import dataclass
from enum import Enum

from services.invoices.schema import InvoiceStatus


class DatePeriod(str, Enum):
    """Named calendar periods a date phrase resolves to."""

    LAST_MONTH = "last_month"
    THIS_MONTH = "this_month"
    THIS_YEAR = "this_year"
    LAST_YEAR = "last_year"
    LAST_WEEK = "last_week"


class AmountOp(str, Enum):
    """Effect of an amount phrase on the amount constraint.

    LESS_THAN and GREATER_THAN compose onto the current constraint;
    EQUAL_TO and BETWEEN replace it.
    """

    LESS_THAN = "lt"
    GREATER_THAN = "gt"
    EQUAL_TO = "eq"
    BETWEEN = "between"


class TargetField(str, Enum):
    """Which entity a captured word run becomes."""

    VENDOR = "vendor"
    CATEGORY = "category"
    TAG = "tag"


@dataclass(frozen=True)
class PhraseRule:
    """One (pattern, effect) row of a phrase family."""

    pattern: re.Pattern[str]
    effect: InvoiceStatus | DatePeriod | AmountOp | TargetField


def _rule(pattern: str, effect: InvoiceStatus | DatePeriod | AmountOp | TargetField) -> PhraseRule:
    return PhraseRule(re.compile(pattern), effect)


# Amount literal: optional currency symbol, a digit, then digits and separators
NUMBER = r"([$€£¥]?\d[\d.,]*)"
CURRENCY_SYMBOLS = "$€£¥"

STATUS_RULES: tuple[PhraseRule, ...] = (
    _rule(r"\boverdue\b", InvoiceStatus.OVERDUE),
    _rule(r"\bpaid\b", InvoiceStatus.PAID),
    _rule(r"\bpending\b", InvoiceStatus.PENDING),
    _rule(r"\b(?:archived|cancelled)\b", InvoiceStatus.CANCELLED),
)

DATE_RULES: tuple[PhraseRule, ...] = (
    _rule(r"\blast\s+month\b", DatePeriod.LAST_MONTH),
    _rule(r"\bthis\s+month\b", DatePeriod.THIS_MONTH),
    _rule(r"\bthis\s+year\b", DatePeriod.THIS_YEAR),
    _rule(r"\blast\s+year\b", DatePeriod.LAST_YEAR),
    _rule(r"\blast\s+week\b", DatePeriod.LAST_WEEK),
)

# The word run that follows each match is the captured target
VENDOR_RULES: tuple[PhraseRule, ...] = (
    _rule(r"\bfrom\s+", TargetField.VENDOR),
    _rule(r"\bvendor\s+", TargetField.VENDOR),
)

CATEGORY_RULES: tuple[PhraseRule, ...] = (
    _rule(r"\bin\s+category\s+", TargetField.CATEGORY),
    _rule(r"\bcategory\s+", TargetField.CATEGORY),
)

TAG_RULES: tuple[PhraseRule, ...] = (
    _rule(r"\bwith\s+tag\s+", TargetField.TAG),
    _rule(r"\btag(?:ged)?(?:\s+(?:with|as))?\s+", TargetField.TAG),
)

# Sub-patterns evaluated in this order; each is its own synonym table
AMOUNT_RULES: tuple[tuple[PhraseRule, ...], ...] = (
    (
        _rule(r"\bless\s+than\s*" + NUMBER, AmountOp.LESS_THAN),
        _rule(r"\bunder\s*" + NUMBER, AmountOp.LESS_THAN),
        _rule(r"\bbelow\s*" + NUMBER, AmountOp.LESS_THAN),
        _rule(r"\bmaximum\s*" + NUMBER, AmountOp.LESS_THAN),
        _rule(r"\bmax\s*" + NUMBER, AmountOp.LESS_THAN),
        _rule(r"<\s*" + NUMBER, AmountOp.LESS_THAN),
    ),
    (
        _rule(r"\bmore\s+than\s*" + NUMBER, AmountOp.GREATER_THAN),
        _rule(r"\bover\s*" + NUMBER, AmountOp.GREATER_THAN),
        _rule(r"\babove\s*" + NUMBER, AmountOp.GREATER_THAN),
        _rule(r"\bminimum\s*" + NUMBER, AmountOp.GREATER_THAN),
        _rule(r"\bmin\s*" + NUMBER, AmountOp.GREATER_THAN),
        _rule(r">\s*" + NUMBER, AmountOp.GREATER_THAN),
    ),
    (
        _rule(r"\bexactly\s*" + NUMBER, AmountOp.EQUAL_TO),
        _rule(r"\bequal\s+to\s*" + NUMBER, AmountOp.EQUAL_TO),
        _rule(r"\bequals\s*" + NUMBER, AmountOp.EQUAL_TO),
        _rule(r"=\s*" + NUMBER, AmountOp.EQUAL_TO),
    ),
    (_rule(r"\bbetween\s*" + NUMBER + r"\s+and\s*" + NUMBER, AmountOp.BETWEEN),),
)

STATUS_WORDS = frozenset({"overdue", "paid", "pending", "archived", "cancelled"})
DATE_WORDS = frozenset({"last", "this", "month", "year", "week"})
CONNECTOR_WORDS = frozenset(
    {"from", "vendor", "category", "tag", "tagged", "with", "as", "and", "in"}
)
AMOUNT_WORDS = frozenset(
    {
        "less",
        "than",
        "under",
        "below",
        "maximum",
        "max",
        "more",
        "over",
        "above",
        "minimum",
        "min",
        "exactly",
        "equal",
        "to",
        "equals",
        "between",
        "<",
        ">",
        "=",
    }
)

VOCABULARY_WORDS = STATUS_WORDS | DATE_WORDS | CONNECTOR_WORDS | AMOUNT_WORDS

# Filler words that carry no search meaning
STOP_WORDS = frozenset(
    {
        "a",
        "all",
        "an",
        "any",
        "are",
        "bill",
        "bills",
        "by",
        "find",
        "for",
        "get",
        "give",
        "have",
        "i",
        "invoice",
        "invoices",
        "is",
        "list",
        "me",
        "my",
        "of",
        "on",
        "please",
        "show",
        "some",
        "that",
        "the",
        "were",
        "what",
        "which",
        "was",
    }
)

# Punctuation trimmed from both ends of a token
TOKEN_PUNCTUATION = "?!.,;:\"'()[]"
