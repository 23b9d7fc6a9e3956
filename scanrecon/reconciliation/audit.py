"""Consistency checks on reconciled documents.

Reports arithmetic that still disagrees after reconciliation without
changing any value.
"""

from dataclasses import dataclass, field

from scanrecon.utils.logger import get_logger

from .models import StructuredDocument
from .numbers import DEFAULT_TOLERANCE, approx_equal, round2

logger = get_logger(__name__)


@dataclass
class ConsistencyIssue:
    """One arithmetic identity that does not hold."""

    field_name: str
    message: str
    expected: float | None
    actual: float | None


@dataclass
class ConsistencyReport:
    """All issues found in a document."""

    issues: list[ConsistencyIssue] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.issues


def audit(
    document: StructuredDocument, tolerance: float = DEFAULT_TOLERANCE
) -> ConsistencyReport:
    """Check line items, subtotal, and total against each other.

    Args:
        document: A reconciled document.
        tolerance: Allowed absolute difference between amounts.

    Returns:
        Report listing every identity that does not hold.
    """
    issues: list[ConsistencyIssue] = []

    for i, item in enumerate(document.line_items, 1):
        if item.qty is None or item.unit_price is None or item.amount is None:
            continue
        expected = round2(item.qty * item.unit_price)
        if not approx_equal(expected, item.amount, tolerance):
            issues.append(
                ConsistencyIssue(
                    f"line_items[{i}].amount",
                    f"qty {item.qty} x unit_price {item.unit_price} = {expected}, "
                    f"amount is {item.amount}",
                    expected,
                    item.amount,
                )
            )

    amounts = [item.amount for item in document.line_items]
    if document.subtotal is not None and amounts and None not in amounts:
        expected = round2(sum(amounts))
        if not approx_equal(expected, document.subtotal, tolerance):
            issues.append(
                ConsistencyIssue(
                    "subtotal",
                    f"Line items sum to {expected}, subtotal is {document.subtotal}",
                    expected,
                    document.subtotal,
                )
            )

    if (
        document.subtotal is not None
        and document.tax_amount is not None
        and document.total is not None
    ):
        expected = round2(document.subtotal + document.tax_amount)
        if not approx_equal(expected, document.total, tolerance):
            issues.append(
                ConsistencyIssue(
                    "total",
                    f"subtotal + tax_amount = {expected}, total is {document.total}",
                    expected,
                    document.total,
                )
            )

    for issue in issues:
        logger.warning("Consistency: %s", issue.message)
    return ConsistencyReport(issues=issues)
