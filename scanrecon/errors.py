"""Exception hierarchy for the scan reconciliation pipeline."""


class ScanReconError(Exception):
    """Base class for all pipeline errors."""


class RenderingUnavailable(ScanReconError):
    """A drawing surface for a page bitmap could not be acquired.

    Args:
        message: Human-readable description of the failure.
        page_index: 1-based page being processed, when known.
    """

    def __init__(self, message: str, page_index: int | None = None) -> None:
        if page_index is not None:
            message = f"Page {page_index}: {message}"
        super().__init__(message)
        self.page_index = page_index


class DecodeError(ScanReconError):
    """An input document or one of its frames is malformed.

    Args:
        message: Human-readable description of the failure.
        page_index: 1-based page or frame that failed, when known.
    """

    def __init__(self, message: str, page_index: int | None = None) -> None:
        if page_index is not None:
            message = f"Page {page_index}: {message}"
        super().__init__(message)
        self.page_index = page_index


class RecognitionError(ScanReconError):
    """The text recognition engine failed or is not available."""


class EmptyInputError(ScanReconError):
    """No usable text was provided for field extraction."""


class ConfigurationError(ScanReconError):
    """A required external credential or setting is missing."""


class ExtractionFailure(ScanReconError):
    """The field-extraction service returned unusable output."""
