"""Abstract base class for invoice stores.

The query compiler produces a store-agnostic PredicateSet; a store applies
it to one owner's invoices. Backends only need to load an owner's
collection; filtering, ordering and paging are shared here.
"""

import math
from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel

from services.invoices.schema import Invoice
from services.query.schema import PredicateSet
from services.shared.config import Settings
from services.store.matcher import matches


class StoreError(Exception):
    """Base class for invoice store failures."""


class StoreUnavailableError(StoreError):
    """The backing store could not be reached after retries."""


class InvoicePage(BaseModel):
    """One page of search results.

    Attributes:
        invoices: Invoices on this page, newest first
        total: Number of invoices matching the predicates
        page: 1-based page number
        limit: Page size
        pages: Total number of pages
    """

    invoices: list[Invoice]
    total: int
    page: int
    limit: int
    pages: int


class InvoiceStore(ABC):
    """Read access to invoices, scoped by owner."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    @abstractmethod
    def store_name(self) -> str:
        """Backend identifier (e.g. 'memory', 'object')."""

    @abstractmethod
    def list_invoices(self, owner_id: str) -> list[Invoice]:
        """Return every invoice belonging to ``owner_id``.

        Raises:
            StoreUnavailableError: If the backend cannot be reached
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the backend is configured and reachable."""

    def health_check(self) -> bool:
        """Check whether the backend answers requests; readiness probes call this."""
        return self.is_available()

    def count(self, owner_id: str, predicates: PredicateSet) -> int:
        return sum(1 for invoice in self.list_invoices(owner_id) if matches(invoice, predicates))

    def find(
        self,
        owner_id: str,
        predicates: PredicateSet,
        skip: int = 0,
        take: int | None = None,
    ) -> list[Invoice]:
        """Invoices matching ``predicates``, ordered by issue date descending.

        Args:
            owner_id: Owner whose invoices are searched
            predicates: Compiled predicate set
            skip: Number of matches to skip
            take: Maximum number of matches to return (all when None)

        Returns:
            Matching invoices; undated invoices sort last
        """
        matching = [inv for inv in self.list_invoices(owner_id) if matches(inv, predicates)]
        matching.sort(key=lambda inv: inv.issue_date or datetime.min, reverse=True)
        end = None if take is None else skip + take
        return matching[skip:end]


def fetch_page(
    store: InvoiceStore,
    owner_id: str,
    predicates: PredicateSet,
    page: int,
    limit: int,
) -> InvoicePage:
    """Count and fetch one page of matching invoices.

    Args:
        store: Invoice store to query
        owner_id: Owner whose invoices are searched
        predicates: Compiled predicate set
        page: 1-based page number
        limit: Page size (must be positive)

    Returns:
        InvoicePage
    """
    total = store.count(owner_id, predicates)
    invoices = store.find(owner_id, predicates, skip=(page - 1) * limit, take=limit)
    return InvoicePage(
        invoices=invoices,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit),
    )
