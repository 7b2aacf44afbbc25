"""Predicate Set construction.

Merges entities extracted from free text with explicit filters chosen by
the caller into one canonical PredicateSet. Explicit filters are applied
first and win for the fields they set, with two exceptions: the date range
is merged key by key (later keys win) and tags are unioned.
"""

import logging
from datetime import UTC, date, datetime, time
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from services.invoices.schema import InvoiceStatus
from services.query.extractor import ExtractedEntities
from services.query.schema import (
    SEARCH_FIELDS,
    AnyOf,
    Contains,
    DateRange,
    Equals,
    FieldMatch,
    PredicateSet,
)

logger = logging.getLogger(__name__)


class ExplicitFilters(BaseModel):
    """Structured filters passed alongside the free-text query.

    Values are kept as raw strings; anything malformed is dropped while
    building rather than rejected.
    """

    status: str | None = Field(None, description="Invoice status (PENDING, PAID, ...)")
    search: str | None = Field(None, description="Keyword searched across text fields")
    category: str | None = Field(None, description="Exact category name")
    tags: list[str] = Field(default_factory=list, description="Tags, any of which must match")
    start_date: str | None = Field(
        None,
        validation_alias=AliasChoices("start_date", "startDate"),
        description="ISO date or datetime, inclusive",
    )
    end_date: str | None = Field(
        None,
        validation_alias=AliasChoices("end_date", "endDate"),
        description="ISO date or datetime, inclusive",
    )


def _parse_bound(raw: str | None, end: bool) -> datetime | None:
    """Parse an explicit date bound; a bare date covers the whole day."""
    if not raw or not raw.strip():
        return None
    text = raw.strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end else time.min)
        moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Dropping malformed date filter: {raw!r}")
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC).replace(tzinfo=None)
    return moment


def _parse_status(raw: str | None) -> InvoiceStatus | None:
    if not raw:
        return None
    try:
        return InvoiceStatus(raw.strip().upper())
    except ValueError:
        logger.debug(f"Dropping unknown status filter: {raw!r}")
        return None


class PredicateSetBuilder:
    """Builds PredicateSets from extracted entities and explicit filters."""

    def build(
        self,
        entities: ExtractedEntities,
        filters: ExplicitFilters | None = None,
    ) -> PredicateSet:
        """Merge entities and explicit filters.

        Args:
            entities: Entities recognized in the free text
            filters: Caller-supplied filters (optional)

        Returns:
            Finalized PredicateSet
        """
        filters = filters or ExplicitFilters()
        constraints: dict[str, Any] = {}
        any_of: list[FieldMatch] = []
        tags: list[str] = []
        date_bounds: dict[str, datetime] = {}

        # Explicit filters first
        status = _parse_status(filters.status)
        if status is not None:
            constraints["status"] = Equals(value=status.value)

        if filters.search and filters.search.strip():
            keyword = filters.search.strip()
            any_of.extend(FieldMatch(field=name, value=keyword) for name in SEARCH_FIELDS)

        if filters.category and filters.category.strip():
            constraints["category_name"] = Equals(value=filters.category.strip())

        self._add_tags(tags, filters.tags)

        for key, raw, end in (("gte", filters.start_date, False), ("lte", filters.end_date, True)):
            bound = _parse_bound(raw, end)
            if bound is not None:
                date_bounds[key] = bound

        # Extracted entities
        if entities.status is not None and "status" not in constraints:
            constraints["status"] = Equals(value=entities.status.value)

        if entities.date_range is not None:
            date_bounds.update(
                {
                    key: value
                    for key, value in (
                        ("gte", entities.date_range.gte),
                        ("lte", entities.date_range.lte),
                    )
                    if value is not None
                }
            )

        if entities.amount is not None:
            constraints["amount"] = entities.amount

        if entities.vendor:
            constraints.setdefault("vendor_name", Contains(value=entities.vendor))

        if entities.category:
            constraints.setdefault("category_name", Contains(value=entities.category))

        if entities.tag:
            self._add_tags(tags, [entities.tag])

        for term in entities.terms:
            any_of.extend(FieldMatch(field=name, value=term) for name in SEARCH_FIELDS)

        # Finalize
        if tags:
            constraints["tags"] = AnyOf(values=tuple(tags))
        if date_bounds:
            constraints["issue_date"] = DateRange(**date_bounds)

        return PredicateSet(constraints=constraints, any_of=tuple(any_of))

    @staticmethod
    def _add_tags(tags: list[str], new_tags: list[str]) -> None:
        for tag in new_tags:
            cleaned = tag.strip()
            if cleaned and cleaned not in tags:
                tags.append(cleaned)
