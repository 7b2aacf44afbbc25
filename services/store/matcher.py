"""Evaluate a PredicateSet against a single invoice.

A field that is absent on the invoice never satisfies a constraint on it.
"""

from collections.abc import Callable
from typing import Any

from services.invoices.schema import Invoice
from services.query.schema import (
    AnyOf,
    Contains,
    DateRange,
    Equals,
    FieldMatch,
    NumericRange,
    PredicateSet,
)

_FIELD_ACCESSORS: dict[str, Callable[[Invoice], Any]] = {
    "status": lambda inv: inv.status.value,
    "issue_date": lambda inv: inv.issue_date,
    "due_date": lambda inv: inv.due_date,
    "amount": lambda inv: inv.amount,
    "vendor_name": lambda inv: inv.vendor_name,
    "category_name": lambda inv: inv.category.name if inv.category else None,
    "tags": lambda inv: inv.tags,
    "invoice_number": lambda inv: inv.invoice_number,
    "title": lambda inv: inv.title,
    "notes": lambda inv: inv.notes,
}

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "lt": lambda value, bound: value < bound,
    "gt": lambda value, bound: value > bound,
    "eq": lambda value, bound: value == bound,
    "gte": lambda value, bound: value >= bound,
    "lte": lambda value, bound: value <= bound,
}


def field_value(invoice: Invoice, field: str) -> Any:
    accessor = _FIELD_ACCESSORS.get(field)
    if accessor is None:
        raise KeyError(f"Unknown invoice field: {field}")
    return accessor(invoice)


def _contains(value: Any, needle: str) -> bool:
    return isinstance(value, str) and needle.lower() in value.lower()


def _satisfies(value: Any, constraint: Any) -> bool:
    if value is None:
        return False
    if isinstance(constraint, Equals):
        return value == constraint.value
    if isinstance(constraint, Contains):
        return _contains(value, constraint.value)
    if isinstance(constraint, AnyOf):
        return bool(set(value) & set(constraint.values))
    if isinstance(constraint, NumericRange):
        bounds = constraint.bounds()
    elif isinstance(constraint, DateRange):
        bounds = constraint.render()
    else:
        raise TypeError(f"Unsupported constraint: {constraint!r}")
    return all(_COMPARATORS[op](value, bound) for op, bound in bounds.items())


def _matches_alternative(invoice: Invoice, alternative: FieldMatch) -> bool:
    return _contains(field_value(invoice, alternative.field), alternative.value)


def matches(invoice: Invoice, predicates: PredicateSet) -> bool:
    """True when every constraint holds and, if any, at least one OR alternative does."""
    for field, constraint in predicates.constraints.items():
        if not _satisfies(field_value(invoice, field), constraint):
            return False
    if predicates.any_of:
        return any(_matches_alternative(invoice, alt) for alt in predicates.any_of)
    return True
