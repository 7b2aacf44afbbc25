"""Predicate Set models produced by the query compiler.

A Predicate Set is a store-agnostic description of which invoices match a
query. It maps field names to constraints and carries an ``OR`` list of
free-text alternatives. All models are frozen: a compiled set is a value.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Searchable text fields used for OR alternatives
SEARCH_FIELDS: tuple[str, ...] = ("invoice_number", "vendor_name", "title", "notes")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Equals(_Frozen):
    """Exact equality."""

    kind: Literal["equals"] = "equals"
    value: str

    def render(self) -> Any:
        return self.value


class Contains(_Frozen):
    """Case-insensitive substring match."""

    kind: Literal["contains"] = "contains"
    value: str

    def render(self) -> Any:
        return {"contains": self.value, "mode": "insensitive"}


class NumericRange(_Frozen):
    """Numeric comparator: any combination of lt/gt, a bare eq, or a gte/lte range."""

    kind: Literal["numeric"] = "numeric"
    lt: Decimal | None = None
    gt: Decimal | None = None
    eq: Decimal | None = None
    gte: Decimal | None = None
    lte: Decimal | None = None

    def bounds(self) -> dict[str, Decimal]:
        return {
            key: value
            for key in ("lt", "gt", "eq", "gte", "lte")
            if (value := getattr(self, key)) is not None
        }

    def render(self) -> Any:
        bounds = self.bounds()
        if set(bounds) == {"eq"}:
            return bounds["eq"]
        return bounds


class AnyOf(_Frozen):
    """Set membership: the field shares at least one value with ``values``."""

    kind: Literal["any_of"] = "any_of"
    values: tuple[str, ...]

    def render(self) -> Any:
        return {"has_some": list(self.values)}


class DateRange(_Frozen):
    """Inclusive date range; either bound may be open."""

    kind: Literal["date_range"] = "date_range"
    gte: datetime | None = None
    lte: datetime | None = None

    def render(self) -> Any:
        return {key: value for key in ("gte", "lte") if (value := getattr(self, key)) is not None}


Constraint = Annotated[
    Equals | Contains | NumericRange | AnyOf | DateRange,
    Field(discriminator="kind"),
]


class FieldMatch(_Frozen):
    """One OR alternative: ``field`` contains ``value`` (case-insensitive)."""

    field: str
    value: str


class PredicateSet(_Frozen):
    """Canonical compiled query handed to the invoice store.

    Attributes:
        constraints: Field name to constraint
        any_of: OR alternatives; when non-empty at least one must match
    """

    constraints: dict[str, Constraint] = Field(default_factory=dict)
    any_of: tuple[FieldMatch, ...] = ()

    def is_empty(self) -> bool:
        return not self.constraints and not self.any_of

    def to_query(self) -> dict[str, Any]:
        """Render the predicate set as a store-facing where-clause dictionary."""
        query: dict[str, Any] = {
            field: constraint.render() for field, constraint in self.constraints.items()
        }
        if self.any_of:
            query["OR"] = [
                {match.field: Contains(value=match.value).render()} for match in self.any_of
            ]
        return query
