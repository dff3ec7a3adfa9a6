"""FastAPI application for the docvision API.

Provides the document processing endpoint and a health check.
"""

import asyncio
import base64
import shutil
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docvision.errors import DocumentError, validate_upload
from docvision.ocr.document_processor import DocumentOutcome, DocumentProcessor
from docvision.ocr.page_renderer import Document
from docvision.ocr.tessdata import ensure_tessdata
from docvision.utils.config import AppConfig, load_config
from docvision.utils.logger import get_logger

from .schemas import (
    DocumentDetails,
    HealthResponse,
    ImageMetadata,
    ProcessResponse,
    QualityMetricsResponse,
)

logger = get_logger(__name__)

_DISCONNECT_POLL_SECONDS = 0.5


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load the process-wide configuration once."""
    return load_config()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await run_in_threadpool(ensure_tessdata, get_config().ocr)
    yield


app = FastAPI(
    title="docvision API",
    description="Image cleaning, OCR and document field extraction",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().api.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_processor() -> DocumentProcessor:
    """Build a document processor from the shared configuration."""
    return DocumentProcessor(get_config())


def _b64(data: bytes) -> str | None:
    return base64.b64encode(data).decode("ascii") if data else None


def _to_response(outcome: DocumentOutcome) -> ProcessResponse:
    """Convert a document outcome into the API response schema."""
    imagery = {
        "original_image_base64": _b64(outcome.original_image),
        "processed_image_base64": _b64(outcome.processed_image),
        "image_mime_type": outcome.mime_type,
    }
    if not outcome.success:
        return ProcessResponse(
            success=False, error_message=outcome.error_message, **imagery
        )

    quality = outcome.quality
    return ProcessResponse(
        success=True,
        extracted_text=outcome.text,
        document_details=(
            DocumentDetails(**outcome.fields.to_dict()) if outcome.fields else None
        ),
        metadata=ImageMetadata(
            original_width=outcome.original_width,
            original_height=outcome.original_height,
            processed_width=outcome.processed_width,
            processed_height=outcome.processed_height,
            format=outcome.image_format,
            file_size_bytes=outcome.file_size_bytes,
            processing_steps=outcome.processing_steps,
            tokens_used=outcome.tokens_used,
            page_count=outcome.page_count,
            processed_page_count=outcome.processed_page_count,
            quality=QualityMetricsResponse(**vars(quality)) if quality else None,
        ),
        **imagery,
    )


async def _watch_disconnect(request: Request, cancel: threading.Event) -> None:
    """Set ``cancel`` once the client has gone away."""
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.warning("Client disconnected, abandoning remaining pages")
            cancel.set()
            return
        await asyncio.sleep(_DISCONNECT_POLL_SECONDS)


@app.exception_handler(DocumentError)
async def document_error_handler(_: Request, exc: DocumentError) -> JSONResponse:
    """Answer caller-facing document errors with a failure body."""
    logger.warning("Rejected document: %s", exc)
    body = ProcessResponse(success=False, error_message=str(exc))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/api/image/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return service liveness."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC).isoformat(),
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post(
    "/api/image/process",
    response_model=ProcessResponse,
    responses={400: {"model": ProcessResponse}, 500: {"model": ProcessResponse}},
)
async def process_image(
    request: Request,
    image: Annotated[UploadFile, File(...)],
) -> ProcessResponse | JSONResponse:
    """Clean an uploaded image or PDF and extract its text and fields.

    For PDFs, up to the configured page limit is processed and the page
    texts are combined.

    Args:
        request: The incoming request, watched for client disconnects.
        image: Uploaded file (JPEG, PNG, WebP, BMP, TIFF or PDF).

    Returns:
        Processing results; HTTP 500 with imagery when every page failed.
    """
    config = get_config()
    if image.size is not None:
        validate_upload(image.size, config.api.max_upload_bytes)
    content = await image.read()
    validate_upload(len(content), config.api.max_upload_bytes)

    document = Document(
        content=content,
        content_type=image.content_type or "",
        filename=image.filename or "document",
    )
    logger.info(
        "Processing file: %s (%d bytes, %s)",
        document.filename,
        document.size,
        document.content_type,
    )

    cancel = threading.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel))
    processor = _get_processor()
    try:
        outcome = await run_in_threadpool(processor.process, document, cancel)
    except DocumentError:
        raise
    except Exception as exc:
        logger.exception("Unhandled error processing %s", document.filename)
        body = ProcessResponse(
            success=False, error_message=f"An unexpected error occurred: {exc}"
        )
        return JSONResponse(status_code=500, content=body.model_dump())
    finally:
        watcher.cancel()
        processor.close()

    response = _to_response(outcome)
    if not outcome.success:
        return JSONResponse(status_code=500, content=response.model_dump())
    return response
