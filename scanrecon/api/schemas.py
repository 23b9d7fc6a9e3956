"""Pydantic request/response schemas for the FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StructureRequest(BaseModel):
    """OCR text to be turned into a structured record."""

    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    file_name: str | None = Field(default=None, alias="fileName")


class StructureResponse(BaseModel):
    """Reconciled record, keyed by wire field names."""

    structured: dict[str, Any]


class OCRResponse(BaseModel):
    """Text extracted from an uploaded document."""

    text: str
    file_name: str
    kind: str
    page_count: int


class ErrorResponse(BaseModel):
    """Error body returned instead of a result."""

    error: str
