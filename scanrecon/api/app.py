"""FastAPI application for the scan reconciliation service.

Provides endpoints for document text extraction and for turning OCR
text into a reconciled structured record.
"""

import functools
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from scanrecon import __version__
from scanrecon.errors import ConfigurationError, DecodeError, EmptyInputError
from scanrecon.extraction.structurer import Structurer
from scanrecon.ocr.document_processor import DocumentProcessor
from scanrecon.ocr.progress import log_progress
from scanrecon.utils.config import AppConfig, load_config
from scanrecon.utils.logger import get_logger

from .schemas import ErrorResponse, OCRResponse, StructureRequest, StructureResponse

logger = get_logger(__name__)

NO_TEXT_MESSAGE = "No OCR text provided."
STRUCTURE_FAILED_MESSAGE = "Failed to structure OCR output."
OCR_FAILED_MESSAGE = "Failed to extract text from document."


@functools.lru_cache(maxsize=1)
def _get_config() -> AppConfig:
    return load_config()


@functools.lru_cache(maxsize=1)
def _get_processor() -> DocumentProcessor:
    """Shared document processor; its engine is reused across requests."""
    processor = DocumentProcessor(_get_config())
    processor.progress.subscribe(log_progress)
    return processor


def _get_structurer() -> Structurer:
    return Structurer(_get_config())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    if _get_processor.cache_info().currsize:
        _get_processor().close()
        _get_processor.cache_clear()


app = FastAPI(
    title="Scan Reconciliation API",
    description="Extract text from scanned documents and reconcile invoice arithmetic",
    version=__version__,
    lifespan=lifespan,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected malformed request to %s", request.url.path)
    return _error(400, "Invalid request body.")


@app.post(
    "/api/structure",
    response_model=StructureResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def structure_text(request: StructureRequest) -> StructureResponse | JSONResponse:
    """Turn OCR text into a reconciled structured record.

    Args:
        request: OCR text and the originating file name.

    Returns:
        The reconciled record, or an error body.
    """
    if not request.text or not request.text.strip():
        return _error(400, NO_TEXT_MESSAGE)

    try:
        structurer = _get_structurer()
        document, _ = await run_in_threadpool(
            structurer.structure, request.text, request.file_name
        )
    except EmptyInputError:
        return _error(400, NO_TEXT_MESSAGE)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return _error(500, str(exc))
    except Exception as exc:
        logger.error("Structuring failed for %s: %s", request.file_name, exc)
        return _error(500, STRUCTURE_FAILED_MESSAGE)

    return StructureResponse(structured=document.to_dict())


@app.post(
    "/api/ocr",
    response_model=OCRResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def ocr_document(
    file: Annotated[UploadFile, File(...)],
) -> OCRResponse | JSONResponse:
    """Extract the text of an uploaded PDF, TIFF, or image.

    Args:
        file: Uploaded document file.

    Returns:
        Combined page text, or an error body.
    """
    content = await file.read()
    if not content:
        return _error(400, "No file content provided.")

    filename = file.filename or "document"
    try:
        processor = _get_processor()
        result = await run_in_threadpool(
            processor.process, content, filename, file.content_type
        )
    except DecodeError as exc:
        logger.error("Could not decode %s: %s", filename, exc)
        return _error(422, str(exc))
    except Exception as exc:
        logger.error("Text extraction failed for %s: %s", filename, exc)
        return _error(500, OCR_FAILED_MESSAGE)

    return OCRResponse(
        text=result.combined_text,
        file_name=filename,
        kind=str(result.kind),
        page_count=result.page_count,
    )
