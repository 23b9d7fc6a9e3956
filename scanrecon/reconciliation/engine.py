"""Arithmetic reconciliation of extracted document records.

Repairs line items so that ``qty * unit_price == amount`` and derives
missing subtotal, tax, and total values. The engine never raises on
bad input: unparseable numbers become ``None`` and stay unknown.

Repair precedence for each line item:

1. Normalize ``qty``, ``unit_price`` and ``amount`` (prices rounded).
2. Fill a missing ``amount`` from ``qty * unit_price``.
3. Fill a missing ``unit_price`` from ``amount / qty``.
4. Fill a missing ``qty`` from ``amount / unit_price``, snapping to a
   whole number when close.
5. When all three disagree, retry with a whole-number quantity, and
   failing that recompute ``unit_price`` from ``amount / qty``.

Step 5 assumes only one field is wrong. When both ``qty`` and
``unit_price`` are wrong the repaired unit price absorbs both errors.

Reconciling an already reconciled record is a no-op except after a step 5
unit-price recompute: the rounded unit price can let a second pass find a
whole-number quantity, which that pass then adopts.
"""

import math
from collections.abc import Mapping
from typing import Any

from scanrecon.utils.config import ReconciliationConfig
from scanrecon.utils.logger import get_logger

from .models import TEXT_FIELDS, LineItem, StructuredDocument, clean_text, get_field
from .numbers import approx_equal, round2, round_half_up, to_number

logger = get_logger(__name__)


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, StructuredDocument):
        return raw.to_dict()
    if isinstance(raw, LineItem):
        return raw.to_dict()
    if isinstance(raw, Mapping):
        return raw
    return {}


class ReconciliationEngine:
    """Repairs and completes the numeric fields of a document record.

    Args:
        config: Tolerances for comparisons and whole-number snapping.
    """

    def __init__(self, config: ReconciliationConfig | None = None) -> None:
        self.config = config or ReconciliationConfig()

    def reconcile_line_item(self, raw: Any) -> LineItem:
        """Normalize and repair a single line item.

        Args:
            raw: Untrusted line item, usually a dict from extractor JSON.

        Returns:
            A new, repaired line item.
        """
        item = _as_mapping(raw)
        cfg = self.config

        qty = to_number(item.get("qty"))
        unit = round2(to_number(item.get("unit_price")))
        amount = round2(to_number(item.get("amount")))

        if amount is None and qty is not None and unit is not None:
            amount = round2(qty * unit)
        elif unit is None and qty is not None and amount is not None and qty != 0:
            unit = round2(amount / qty)
        elif qty is None and unit is not None and amount is not None and unit != 0:
            q = amount / unit
            if math.isfinite(q):
                q_int = round_half_up(q)
                qty = float(q_int) if abs(q - q_int) < cfg.integer_snap else round2(q)

        if qty is not None and unit is not None and amount is not None:
            calc = round2(qty * unit)
            if not approx_equal(calc, amount, cfg.tolerance):
                qty, unit = self._correct(qty, unit, amount)

        return LineItem(
            product_or_service=clean_text(item.get("product_or_service")),
            description=clean_text(item.get("description")),
            qty=qty,
            unit_price=unit,
            amount=amount,
        )

    def _correct(self, qty: float, unit: float, amount: float) -> tuple[float, float]:
        """Resolve a line item whose three values disagree."""
        cfg = self.config
        q = amount / unit if unit != 0 else math.inf
        if math.isfinite(q):
            q_int = round_half_up(q)
            calc = round2(q_int * unit)
            if abs(q - q_int) < cfg.integer_retry and approx_equal(
                calc, amount, cfg.integer_retry_tolerance
            ):
                logger.debug("Corrected qty %s -> %d", qty, q_int)
                return float(q_int), unit

        if qty != 0:
            corrected = round2(amount / qty)
            logger.debug("Corrected unit_price %s -> %s", unit, corrected)
            return qty, corrected
        return qty, unit

    def reconcile(self, record: Any) -> StructuredDocument:
        """Normalize a raw record and fill in what its arithmetic implies.

        A present ``total`` is never overwritten, even when it disagrees
        with ``subtotal + tax_amount``.

        Args:
            record: Untrusted extractor output (dict), or an already
                reconciled :class:`StructuredDocument`.

        Returns:
            The reconciled document.
        """
        raw = _as_mapping(record)

        raw_items = get_field(raw, "line_items")
        if not isinstance(raw_items, list):
            raw_items = []
        items = [self.reconcile_line_item(it) for it in raw_items]

        doc = StructuredDocument(
            subtotal=round2(to_number(get_field(raw, "subtotal"))),
            tax_rate=to_number(get_field(raw, "tax_rate")),
            tax_amount=round2(to_number(get_field(raw, "tax_amount"))),
            total=round2(to_number(get_field(raw, "total"))),
            line_items=items,
        )
        for name in TEXT_FIELDS:
            setattr(doc, name, clean_text(get_field(raw, name)))

        items_sum = round2(sum(it.amount or 0 for it in items))
        if doc.subtotal is None and items_sum:
            doc.subtotal = items_sum

        if doc.tax_amount is None and doc.subtotal is not None and doc.tax_rate is not None:
            doc.tax_amount = round2(doc.subtotal * (doc.tax_rate / 100))

        if doc.total is None and doc.subtotal is not None and doc.tax_amount is not None:
            doc.total = round2(doc.subtotal + doc.tax_amount)

        logger.info(
            "Reconciled %d line items: subtotal=%s tax=%s total=%s",
            len(items),
            doc.subtotal,
            doc.tax_amount,
            doc.total,
        )
        return doc


def reconcile(
    record: Any, config: ReconciliationConfig | None = None
) -> StructuredDocument:
    """Reconcile a record with a default-configured engine."""
    return ReconciliationEngine(config).reconcile(record)
