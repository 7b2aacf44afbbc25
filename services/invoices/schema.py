"""Invoice data models consumed by the query compiler and analytics.

Records arrive from the invoice store with their vendor and category joined.
The core treats them as read-only.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class Vendor(BaseModel):
    """Vendor an invoice was issued by."""

    id: str
    name: str


class Category(BaseModel):
    """Expense category assigned to an invoice."""

    id: str
    name: str
    color: str | None = None


class Invoice(BaseModel):
    """A stored invoice record with related vendor and category."""

    id: str = Field(description="Stable invoice identity")
    invoice_number: str | None = Field(None, description="Invoice number printed on the document")
    title: str | None = Field(None, description="Short human title")
    notes: str | None = Field(None, description="Free-text notes")

    amount: Decimal | None = Field(None, description="Invoice total", ge=0)
    currency: str = Field("USD", description="Currency code (ISO 4217)")
    status: InvoiceStatus = Field(InvoiceStatus.PENDING, description="Invoice status")

    issue_date: datetime | None = Field(None, description="When the invoice was issued")
    due_date: datetime | None = Field(None, description="Payment due date")

    # Vendor information
    vendor_name: str | None = Field(None, description="Vendor name as written on the invoice")
    vendor_id: str | None = Field(None, description="Reference to a Vendor record")
    vendor: Vendor | None = Field(None, description="Resolved vendor record")

    # Classification
    category_id: str | None = Field(None, description="Reference to a Category record")
    category: Category | None = Field(None, description="Resolved category record")
    tags: list[str] = Field(default_factory=list, description="Free-text labels")

    @field_validator("issue_date", "due_date")
    @classmethod
    def _to_naive_utc(cls, value: datetime | None) -> datetime | None:
        """Store aware timestamps as naive UTC so comparisons never mix kinds."""
        if value is not None and value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def _link_relations(self) -> "Invoice":
        if self.vendor is not None and self.vendor_id is None:
            self.vendor_id = self.vendor.id
        if self.category is not None and self.category_id is None:
            self.category_id = self.category.id
        return self
