"""Natural-language query compiler.

Entry point for turning a free-text invoice query into a PredicateSet.

Example:
    >>> predicates = compile_query("pending invoices from acme over 500")
    >>> where = predicates.to_query()
"""

import logging
from datetime import date

from services.query.builder import ExplicitFilters, PredicateSetBuilder
from services.query.extractor import EntityExtractor, ExtractedEntities
from services.query.schema import PredicateSet

logger = logging.getLogger(__name__)


class QueryCompiler:
    """Runs the entity extractor and the predicate builder in sequence.

    Attributes:
        extractor: Phrase/entity extractor
        builder: Predicate set builder
    """

    def __init__(
        self,
        extractor: EntityExtractor | None = None,
        builder: PredicateSetBuilder | None = None,
    ) -> None:
        self.extractor = extractor or EntityExtractor()
        self.builder = builder or PredicateSetBuilder()

    def extract(self, free_text: str, today: date) -> ExtractedEntities:
        return self.extractor.extract(free_text or "", today)

    def compile(
        self,
        free_text: str,
        filters: ExplicitFilters | None = None,
        today: date | None = None,
    ) -> PredicateSet:
        """Compile free text plus explicit filters into a PredicateSet.

        Args:
            free_text: Natural-language query (may be empty)
            filters: Explicit structured filters
            today: Reference date for relative phrases (defaults to today, read once)

        Returns:
            Compiled PredicateSet; never raises on user input
        """
        today = today or date.today()
        entities = self.extract(free_text, today)
        predicates = self.builder.build(entities, filters)

        logger.info(
            f"Compiled query {free_text!r} into {len(predicates.constraints)} constraints "
            f"and {len(predicates.any_of)} OR alternatives"
        )
        return predicates


_default_compiler = QueryCompiler()


def compile_query(
    free_text: str,
    filters: ExplicitFilters | None = None,
    *,
    today: date | None = None,
) -> PredicateSet:
    """Compile a query with the default compiler."""
    return _default_compiler.compile(free_text, filters, today)
