"""Arithmetic repair of extracted invoice and receipt records."""

from .audit import ConsistencyIssue, ConsistencyReport, audit
from .engine import ReconciliationEngine, reconcile
from .models import LineItem, StructuredDocument
from .numbers import approx_equal, round2, to_number

__all__ = [
    "ConsistencyIssue",
    "ConsistencyReport",
    "LineItem",
    "ReconciliationEngine",
    "StructuredDocument",
    "approx_equal",
    "audit",
    "reconcile",
    "round2",
    "to_number",
]
