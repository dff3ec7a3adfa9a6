"""Unified document processing pipeline.

Renders a document into pages, enhances each page, runs OCR and field
extraction per page, and folds the page outcomes into one result. Page
failures are absorbed into the combined text; only rendering errors and
cancellation abort a document.
"""

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TypeVar

from docvision.errors import ProcessingCancelled
from docvision.extraction.field_extractor import FieldExtractor
from docvision.extraction.fields import FieldRecord
from docvision.preprocessing.enhancer import (
    OUTPUT_FORMAT,
    OUTPUT_MIME_TYPE,
    ImageEnhancer,
    QualityMetrics,
)
from docvision.utils.config import AppConfig
from docvision.utils.logger import get_logger

from .page_pipeline import PageOutcome, PagePipeline
from .page_renderer import Document, Page, PageRenderer
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

ALL_PAGES_FAILED_MESSAGE = "Text could not be extracted from any page."

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class DocumentOutcome:
    """Aggregated result for a whole document."""

    source_file: str
    success: bool
    text: str
    fields: FieldRecord | None
    tokens_used: int
    page_count: int
    processed_page_count: int
    outcomes: list[PageOutcome]
    original_image: bytes
    processed_image: bytes
    original_width: int
    original_height: int
    processed_width: int
    processed_height: int
    file_size_bytes: int
    enhancement_log: list[str] = field(default_factory=list)
    render_log: list[str] = field(default_factory=list)
    quality: QualityMetrics | None = None
    image_format: str = OUTPUT_FORMAT
    mime_type: str = OUTPUT_MIME_TYPE
    error_message: str | None = None

    @property
    def processing_steps(self) -> list[str]:
        """Renderer notes followed by the first page's enhancement log."""
        return self.render_log + self.enhancement_log


def page_marker(number: int, total: int) -> str:
    return f"=== Page {number} of {total} ==="


def assemble_text(outcomes: list[PageOutcome], processed_page_count: int) -> str:
    """Join page texts in page order.

    With more than one page, every page gets a ``Page i of N`` marker and
    failed pages contribute an inline failure note instead of text.
    """
    multi_page = processed_page_count > 1
    parts: list[str] = []
    for outcome in outcomes:
        number = outcome.index + 1
        if outcome.success:
            if multi_page:
                parts.append(
                    f"{page_marker(number, processed_page_count)}\n{outcome.text}"
                )
            else:
                parts.append(outcome.text)
        elif multi_page:
            parts.append(
                f"=== Page {number} of {processed_page_count}: "
                f"extraction failed: {outcome.error} ==="
            )
    return "\n\n".join(parts)


def select_fields(outcomes: Iterable[PageOutcome]) -> FieldRecord | None:
    """Return the field record of the first successful page that has one.

    Later pages never override an earlier record, however sparse it is.
    """
    for outcome in outcomes:
        if outcome.success and outcome.fields is not None:
            return outcome.fields
    return None


class DocumentProcessor:
    """End-to-end document processing pipeline.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.renderer = PageRenderer(config.render)
        self.enhancer = ImageEnhancer(config.enhancement)
        self.pipeline = PagePipeline(
            TesseractEngine(config.ocr), FieldExtractor(config.llm)
        )

    def close(self) -> None:
        self.pipeline.extractor.close()

    def process(
        self, document: Document, cancel_event: threading.Event | None = None
    ) -> DocumentOutcome:
        """Process a document into text, fields and cleaned imagery.

        Args:
            document: The uploaded document.
            cancel_event: When set, remaining page work is abandoned.

        Returns:
            The aggregated outcome. ``success`` is False only when every
            page failed.

        Raises:
            UnsupportedFormatError: If the content kind is not accepted.
            RenderError: If the document cannot be decoded.
            ProcessingCancelled: If ``cancel_event`` was set mid-way.
        """
        logger.info(
            "Processing document: %s (%d bytes, %s)",
            document.filename,
            document.size,
            document.content_type,
        )
        rendered = self.renderer.render(document)
        pages = rendered.pages

        def enhance(page: Page) -> Page:
            _check_cancelled(cancel_event)
            logger.debug("Enhancing page %d/%d", page.index + 1, len(pages))
            page.apply_enhancement(self.enhancer.enhance(page.content))
            return page

        def extract(page: Page) -> PageOutcome:
            _check_cancelled(cancel_event)
            logger.debug("Extracting page %d/%d", page.index + 1, len(pages))
            return self.pipeline.run(page)

        pages = self._map(enhance, pages)
        outcomes = self._map(extract, pages)

        processed_count = rendered.processed_page_count
        succeeded = [o for o in outcomes if o.success]
        first = pages[0]
        outcome = DocumentOutcome(
            source_file=document.filename,
            success=bool(succeeded),
            text=assemble_text(outcomes, processed_count),
            fields=select_fields(outcomes),
            tokens_used=sum(o.tokens_used for o in succeeded),
            page_count=rendered.page_count,
            processed_page_count=processed_count,
            outcomes=outcomes,
            original_image=rendered.original,
            processed_image=first.cleaned,
            original_width=rendered.original_width,
            original_height=rendered.original_height,
            processed_width=first.cleaned_width,
            processed_height=first.cleaned_height,
            file_size_bytes=document.size,
            enhancement_log=list(first.enhancement_log),
            render_log=list(rendered.render_log),
            quality=first.quality,
        )

        if not succeeded:
            errors = [o.error for o in outcomes if o.error]
            outcome.error_message = errors[-1] if errors else ALL_PAGES_FAILED_MESSAGE
            logger.error(
                "All %d page(s) of %s failed: %s",
                processed_count,
                document.filename,
                outcome.error_message,
            )
        else:
            logger.info(
                "Processed %d/%d page(s) of %s (%d failed, %d tokens)",
                processed_count,
                rendered.page_count,
                document.filename,
                len(outcomes) - len(succeeded),
                outcome.tokens_used,
            )
        return outcome

    def _map(self, fn: Callable[[T], R], items: list[T]) -> list[R]:
        """Apply ``fn`` to every item, keeping input order.

        Uses a thread pool when more than one page worker is configured.
        """
        workers = min(self.config.processing.page_workers, len(items))
        if workers <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(fn, items))


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ProcessingCancelled("Processing cancelled by client.")
