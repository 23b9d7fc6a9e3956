"""Structured invoice and receipt records.

Records arrive from the field-extraction service as untrusted JSON.
Attribute names here are Pythonic; :data:`WIRE_KEYS` maps them to the
JSON keys used on the wire.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

WIRE_KEYS: dict[str, str] = {
    "doc_type": "doc_type",
    "vendor": "vendor_or_sender",
    "reference_no": "receipt_or_invoice_no",
    "date": "date",
    "currency": "currency",
    "recipient_name": "recipient_name",
    "recipient_address": "recipient_address",
    "subtotal": "subtotal",
    "tax_rate": "tax_rate",
    "tax_amount": "tax_amount",
    "total": "total",
    "line_items": "line_items",
    "notes": "notes",
}

TEXT_FIELDS = (
    "doc_type",
    "vendor",
    "reference_no",
    "date",
    "currency",
    "recipient_name",
    "recipient_address",
    "notes",
)


def clean_text(value: Any) -> str | None:
    """Normalize a descriptive field; absent or blank values become ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def get_field(raw: Mapping[str, Any], name: str) -> Any:
    """Read a field by wire key, falling back to the attribute name."""
    wire = WIRE_KEYS.get(name, name)
    if wire in raw:
        return raw[wire]
    return raw.get(name)


@dataclass
class LineItem:
    """One row of an invoice or receipt table."""

    product_or_service: str | None = None
    description: str | None = None
    qty: float | None = None
    unit_price: float | None = None
    amount: float | None = None

    def to_dict(self) -> dict[str, Any]:
        qty = self.qty
        if qty is not None and float(qty).is_integer():
            qty = int(qty)
        return {
            "product_or_service": self.product_or_service,
            "description": self.description,
            "qty": qty,
            "unit_price": self.unit_price,
            "amount": self.amount,
        }


@dataclass
class StructuredDocument:
    """A reconciled document record."""

    doc_type: str | None = None
    vendor: str | None = None
    reference_no: str | None = None
    date: str | None = None
    currency: str | None = None
    recipient_name: str | None = None
    recipient_address: str | None = None
    subtotal: float | None = None
    tax_rate: float | None = None
    tax_amount: float | None = None
    total: float | None = None
    line_items: list[LineItem] = field(default_factory=list)
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire key names."""
        data: dict[str, Any] = {}
        for name, wire in WIRE_KEYS.items():
            if name == "line_items":
                data[wire] = [item.to_dict() for item in self.line_items]
            else:
                data[wire] = getattr(self, name)
        return data
