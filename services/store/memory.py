"""In-process invoice store, optionally seeded from a JSON file."""

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from services.invoices.schema import Invoice
from services.shared.config import Settings
from services.store.base import InvoiceStore, StoreError

logger = logging.getLogger(__name__)

_SEED_ADAPTER = TypeAdapter(dict[str, list[Invoice]])


def load_seed_file(path: Path) -> dict[str, list[Invoice]]:
    """Load ``{owner_id: [invoice, ...]}`` from a JSON file.

    Raises:
        StoreError: If the file is missing or does not hold valid invoices
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return _SEED_ADAPTER.validate_python(raw)
    except (OSError, ValueError) as e:
        raise StoreError(f"Could not load invoice seed file {path}: {e}") from e


class InMemoryInvoiceStore(InvoiceStore):
    """Dictionary of owner id to invoices, held in process memory."""

    def __init__(
        self,
        settings: Settings,
        invoices: dict[str, list[Invoice]] | None = None,
    ) -> None:
        super().__init__(settings)
        self._invoices: dict[str, list[Invoice]] = {}

        if settings.store_seed_file:
            seeded = load_seed_file(Path(settings.store_seed_file))
            for owner_id, owner_invoices in seeded.items():
                self.add(owner_id, *owner_invoices)
            logger.info(f"Seeded memory store from {settings.store_seed_file}")

        for owner_id, owner_invoices in (invoices or {}).items():
            self.add(owner_id, *owner_invoices)

    @property
    def store_name(self) -> str:
        return "memory"

    def add(self, owner_id: str, *invoices: Invoice) -> None:
        self._invoices.setdefault(owner_id, []).extend(invoices)

    def list_invoices(self, owner_id: str) -> list[Invoice]:
        return list(self._invoices.get(owner_id, []))

    def is_available(self) -> bool:
        return True
