"""Shared fixtures for unit tests."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

import pytest

from services.invoices.schema import Category, Invoice, Vendor


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Build invoices with sequential ids and sensible defaults.

    ``amount`` may be given as int/str and is converted to Decimal;
    ``vendor`` and ``category`` may be given as names.
    """
    counter = iter(range(1, 10_000))

    def factory(
        amount: Any = 100,
        issue_date: datetime | None = datetime(2024, 5, 15),
        vendor: str | None = None,
        category: str | None = None,
        **fields: Any,
    ) -> Invoice:
        number = next(counter)
        if vendor is not None:
            fields.setdefault("vendor", Vendor(id=f"v-{vendor.lower()}", name=vendor))
            fields.setdefault("vendor_name", vendor)
        if category is not None:
            fields.setdefault("category", Category(id=f"c-{category.lower()}", name=category))
        return Invoice(
            id=fields.pop("id", f"inv-{number}"),
            amount=None if amount is None else Decimal(str(amount)),
            issue_date=issue_date,
            **fields,
        )

    return factory
