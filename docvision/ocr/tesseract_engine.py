"""Tesseract OCR engine wrapper.

Reads raw text from a cleaned page image. Recognition failures are an
expected condition and surface as empty text, never as exceptions.
"""

import io

import pytesseract
from PIL import Image, UnidentifiedImageError

from docvision.utils.config import OCRConfig
from docvision.utils.logger import get_logger

logger = get_logger(__name__)


class TesseractEngine:
    """Wrapper around Tesseract OCR for page text extraction.

    Args:
        config: OCR configuration (executable, language, segmentation mode,
            language data directory).
    """

    def __init__(self, config: OCRConfig) -> None:
        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd
        self.config = config

    @property
    def tesseract_config(self) -> str:
        """Command-line options passed to Tesseract."""
        options = f"--psm {self.config.psm}"
        if self.config.tessdata_dir:
            options += f' --tessdata-dir "{self.config.tessdata_dir}"'
        return options

    def extract_text(self, image_bytes: bytes, lang: str | None = None) -> str:
        """Extract raw text from an encoded image.

        Args:
            image_bytes: Encoded image, normally the enhancer's PNG output.
            lang: OCR language code. Defaults to the configured language.

        Returns:
            The recognized text, or an empty string if recognition failed.
        """
        lang = lang or self.config.default_lang
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                text = pytesseract.image_to_string(
                    image, lang=lang, config=self.tesseract_config
                )
        except (
            pytesseract.TesseractError,
            pytesseract.TesseractNotFoundError,
            UnidentifiedImageError,
            OSError,
            RuntimeError,
        ) as exc:
            logger.warning("OCR failed, treating page as blank: %s", exc)
            return ""

        text = text or ""
        logger.info("Tesseract extracted %d chars", len(text))
        return text
