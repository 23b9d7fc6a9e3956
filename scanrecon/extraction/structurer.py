"""Text-to-record pipeline: field extraction followed by reconciliation."""

from scanrecon.reconciliation.audit import ConsistencyReport, audit
from scanrecon.reconciliation.engine import ReconciliationEngine
from scanrecon.reconciliation.models import StructuredDocument
from scanrecon.utils.config import AppConfig
from scanrecon.utils.logger import get_logger

from .client import StructuringClient

logger = get_logger(__name__)


class Structurer:
    """Turns OCR text into a reconciled :class:`StructuredDocument`.

    Args:
        config: Application configuration object.
        client: Extraction client; built from ``config`` when omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        client: StructuringClient | None = None,
    ) -> None:
        self.config = config
        self.client = client or StructuringClient(config.extraction)
        self.engine = ReconciliationEngine(config.reconciliation)

    def structure(
        self, text: str, file_name: str | None = None
    ) -> tuple[StructuredDocument, ConsistencyReport]:
        """Extract, reconcile, and audit a document's fields.

        Raises:
            EmptyInputError: If ``text`` is blank.
            ConfigurationError: If extraction credentials are missing.
            ExtractionFailure: If the extraction service output is unusable.
        """
        raw = self.client.structure(text, file_name)
        document = self.engine.reconcile(raw)
        report = audit(document, self.config.reconciliation.tolerance)
        if not report.consistent:
            logger.warning(
                "%s: %d arithmetic inconsistencies remain",
                file_name or "document",
                len(report.issues),
            )
        return document, report
