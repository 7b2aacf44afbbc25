"""Factory for creating invoice stores based on configuration.

Registry pattern: backends are looked up by the name configured in
``APP_STORE_BACKEND`` and new backends can be registered at runtime.
"""

import logging

from services.shared.config import Settings
from services.store.base import InvoiceStore
from services.store.memory import InMemoryInvoiceStore
from services.store.object_store import ObjectInvoiceStore

logger = logging.getLogger(__name__)


class StoreRegistry:
    """Registry of available invoice store backends."""

    _stores: dict[str, type[InvoiceStore]] = {
        "memory": InMemoryInvoiceStore,
        "object": ObjectInvoiceStore,
    }

    @classmethod
    def register(cls, name: str, store_class: type[InvoiceStore]) -> None:
        """Register a new backend.

        Args:
            name: Backend identifier (must match Settings.store_backend)
            store_class: Class implementing InvoiceStore
        """
        cls._stores[name] = store_class
        logger.info(f"Registered invoice store: {name}")

    @classmethod
    def get_store_class(cls, name: str) -> type[InvoiceStore]:
        """Get backend class by name.

        Raises:
            ValueError: If the backend is not registered
        """
        if name not in cls._stores:
            available = ", ".join(cls._stores.keys())
            raise ValueError(f"Unknown invoice store: '{name}'. Available stores: {available}")
        return cls._stores[name]

    @classmethod
    def list_stores(cls) -> list[str]:
        return list(cls._stores.keys())


def create_invoice_store(settings: Settings) -> InvoiceStore:
    """Create the invoice store selected by settings.store_backend.

    Logs a warning if the backend is not fully configured.

    Args:
        settings: Application settings

    Returns:
        Configured invoice store

    Raises:
        ValueError: If the configured backend is unknown
    """
    name = settings.store_backend
    store = StoreRegistry.get_store_class(name)(settings)

    if not store.is_available():
        logger.warning(
            f"Invoice store '{name}' is not fully available. "
            f"Check configuration (e.g., storage credentials)."
        )

    logger.info(f"Created invoice store: {name}")
    return store
