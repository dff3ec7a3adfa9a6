"""OCR + field extraction for a single page."""

from dataclasses import dataclass

from docvision.extraction.field_extractor import FieldExtractor
from docvision.extraction.fields import FieldRecord
from docvision.utils.logger import get_logger

from .page_renderer import Page
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

NO_TEXT_PLACEHOLDER = "[No text detected in this image]"


@dataclass
class PageOutcome:
    """Result of running the page pipeline on one page.

    A failed outcome has empty ``text`` and no ``fields``.
    """

    index: int
    success: bool
    text: str = ""
    fields: FieldRecord | None = None
    tokens_used: int = 0
    error: str | None = None

    @classmethod
    def failure(cls, index: int, error: str) -> "PageOutcome":
        return cls(index=index, success=False, error=error)


class PagePipeline:
    """Runs text recognition then field extraction on a page.

    Never raises: any exception becomes a failed ``PageOutcome``.

    Args:
        recognizer: OCR engine.
        extractor: Remote field extractor.
    """

    def __init__(self, recognizer: TesseractEngine, extractor: FieldExtractor) -> None:
        self.recognizer = recognizer
        self.extractor = extractor

    def run(self, page: Page) -> PageOutcome:
        """Produce the outcome for one page.

        Args:
            page: A rendered page, normally already enhanced.

        Returns:
            The page outcome.
        """
        try:
            raw_text = self.recognizer.extract_text(page.image_bytes)
            if not raw_text.strip():
                logger.info("No text detected on page %d", page.index + 1)
                return PageOutcome(
                    index=page.index, success=True, text=NO_TEXT_PLACEHOLDER
                )

            result = self.extractor.extract(raw_text)
            return PageOutcome(
                index=page.index,
                success=True,
                text=result.text,
                fields=result.fields,
                tokens_used=result.tokens_used,
            )
        except Exception as exc:
            logger.error("Extraction failed on page %d: %s", page.index + 1, exc)
            return PageOutcome.failure(page.index, str(exc) or type(exc).__name__)
