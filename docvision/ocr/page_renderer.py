"""Document to raster page conversion.

Resolves the declared content kind of an upload once, then either wraps a
single image as one page or renders the first pages of a PDF to PNG.
"""

import io
from dataclasses import dataclass, field
from enum import StrEnum

from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError
from pdf2image.pdf2image import pdfinfo_from_bytes
from PIL import Image, UnidentifiedImageError

from docvision.errors import RenderError, UnsupportedFormatError
from docvision.preprocessing.enhancer import EnhancedImage, QualityMetrics
from docvision.utils.config import RenderConfig
from docvision.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/bmp",
    "image/tiff",
)
ACCEPTED_MIME_TYPES = IMAGE_MIME_TYPES + (PDF_MIME_TYPE,)
_MIME_ALIASES = {"image/jpg": "image/jpeg", "image/tif": "image/tiff"}


class DocumentKind(StrEnum):
    """How a document is turned into pages."""

    SINGLE_IMAGE = "single_image"
    PAGINATED = "paginated"


def normalize_mime_type(content_type: str | None) -> str:
    """Lower-case a MIME type and drop parameters and known aliases."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return _MIME_ALIASES.get(mime, mime)


def resolve_kind(content_type: str | None) -> DocumentKind:
    """Map a declared MIME type onto a document kind.

    Raises:
        UnsupportedFormatError: If the type is neither a supported image
            nor a PDF.
    """
    mime = normalize_mime_type(content_type)
    if mime == PDF_MIME_TYPE:
        return DocumentKind.PAGINATED
    if mime in IMAGE_MIME_TYPES:
        return DocumentKind.SINGLE_IMAGE
    raise UnsupportedFormatError(mime, ACCEPTED_MIME_TYPES)


@dataclass(frozen=True)
class Document:
    """An uploaded unit of work. Never persisted."""

    content: bytes
    content_type: str
    filename: str = "document"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class Page:
    """One raster image of a document.

    ``content`` is the rendered (or uploaded) image and is never modified;
    the enhancer stores its output in ``cleaned``.
    """

    index: int
    page_count: int
    width: int
    height: int
    content: bytes
    cleaned: bytes = b""
    cleaned_width: int = 0
    cleaned_height: int = 0
    enhancement_log: list[str] = field(default_factory=list)
    quality: QualityMetrics | None = None

    def apply_enhancement(self, enhanced: EnhancedImage) -> None:
        """Attach the enhancer output to this page."""
        self.cleaned = enhanced.content
        self.cleaned_width = enhanced.width
        self.cleaned_height = enhanced.height
        self.enhancement_log = list(enhanced.steps)
        self.quality = enhanced.quality

    @property
    def image_bytes(self) -> bytes:
        """The bytes OCR should read: cleaned if available, else the render."""
        return self.cleaned or self.content


@dataclass
class RenderedDocument:
    """Pages produced from a document plus the unenhanced display image."""

    kind: DocumentKind
    pages: list[Page]
    original: bytes
    original_width: int
    original_height: int
    page_count: int
    render_log: list[str] = field(default_factory=list)

    @property
    def processed_page_count(self) -> int:
        return len(self.pages)


class PageRenderer:
    """Turns a document into an ordered list of pages.

    Args:
        config: Rendering configuration (page cap and PDF resolution).
    """

    def __init__(self, config: RenderConfig) -> None:
        self.config = config

    def render(self, document: Document) -> RenderedDocument:
        """Render a document into pages.

        Args:
            document: The uploaded document.

        Returns:
            Rendered pages with page counts and the display original.

        Raises:
            UnsupportedFormatError: If the content kind is not accepted.
            RenderError: If the bytes cannot be decoded as the declared kind.
        """
        kind = resolve_kind(document.content_type)
        if kind is DocumentKind.PAGINATED:
            return self._render_pdf(document.content)
        return self._render_image(document.content)

    def _render_image(self, content: bytes) -> RenderedDocument:
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.load()
                width, height = img.size
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
        ) as exc:
            raise RenderError(f"Could not read image: {exc}") from exc

        page = Page(index=0, page_count=1, width=width, height=height, content=content)
        return RenderedDocument(
            kind=DocumentKind.SINGLE_IMAGE,
            pages=[page],
            original=content,
            original_width=width,
            original_height=height,
            page_count=1,
            render_log=[f"Loaded image: {width}x{height}"],
        )

    def _render_pdf(self, content: bytes) -> RenderedDocument:
        max_pages = self.config.max_pages
        dpi = self.config.pdf_dpi
        try:
            total_pages = int(pdfinfo_from_bytes(content)["Pages"])
        except (PDFPageCountError, PDFSyntaxError, KeyError, ValueError) as exc:
            raise RenderError(f"Could not read PDF: {exc}") from exc
        if total_pages < 1:
            raise RenderError("PDF contains no pages.")

        to_process = min(total_pages, max_pages)
        log = [
            f"PDF detected: {total_pages} total page(s), "
            f"processing {to_process} (max {max_pages})"
        ]

        try:
            images = convert_from_bytes(
                content, dpi=dpi, first_page=1, last_page=to_process
            )
        except (PDFPageCountError, PDFSyntaxError) as exc:
            raise RenderError(f"PDF conversion failed: {exc}") from exc

        pages: list[Page] = []
        for i, image in enumerate(images[:to_process]):
            buf = io.BytesIO()
            image.save(buf, format="PNG")
            pages.append(
                Page(
                    index=i,
                    page_count=total_pages,
                    width=image.width,
                    height=image.height,
                    content=buf.getvalue(),
                )
            )
            log.append(f"Rendered page {i + 1}/{to_process} to PNG at {dpi} DPI")

        if not pages:
            raise RenderError("PDF rendering produced no pages.")

        logger.info(
            "Rendered %d of %d PDF page(s) at %d DPI", len(pages), total_pages, dpi
        )
        first = pages[0]
        return RenderedDocument(
            kind=DocumentKind.PAGINATED,
            pages=pages,
            original=first.content,
            original_width=first.width,
            original_height=first.height,
            page_count=total_pages,
            render_log=log,
        )
