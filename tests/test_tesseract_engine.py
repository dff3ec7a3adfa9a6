"""Tests for the Tesseract OCR wrapper."""

from unittest.mock import MagicMock, patch

import pytesseract

from docvision.ocr.tesseract_engine import TesseractEngine
from docvision.utils.config import OCRConfig
from helpers import make_png


class TestTesseractEngine:
    """Tests for the TesseractEngine class."""

    def test_options(self) -> None:
        engine = TesseractEngine(OCRConfig(psm=6))
        assert engine.tesseract_config == "--psm 6"

    def test_options_with_tessdata_dir(self) -> None:
        engine = TesseractEngine(OCRConfig(tessdata_dir="/opt/tessdata"))
        assert engine.tesseract_config == '--psm 3 --tessdata-dir "/opt/tessdata"'

    @patch("docvision.ocr.tesseract_engine.pytesseract.image_to_string")
    def test_extract_text(self, mock_ocr: MagicMock) -> None:
        mock_ocr.return_value = "Invoice #001\nTotal: $500.00\n"
        engine = TesseractEngine(OCRConfig())

        text = engine.extract_text(make_png())

        assert text == "Invoice #001\nTotal: $500.00\n"
        _, kwargs = mock_ocr.call_args
        assert kwargs["lang"] == "eng"
        assert kwargs["config"] == "--psm 3"

    @patch("docvision.ocr.tesseract_engine.pytesseract.image_to_string")
    def test_language_override(self, mock_ocr: MagicMock) -> None:
        mock_ocr.return_value = "Rechnung"
        TesseractEngine(OCRConfig()).extract_text(make_png(), lang="deu")
        assert mock_ocr.call_args.kwargs["lang"] == "deu"

    @patch("docvision.ocr.tesseract_engine.pytesseract.image_to_string")
    def test_engine_error_returns_empty(self, mock_ocr: MagicMock) -> None:
        mock_ocr.side_effect = pytesseract.TesseractError(1, "boom")
        assert TesseractEngine(OCRConfig()).extract_text(make_png()) == ""

    @patch("docvision.ocr.tesseract_engine.pytesseract.image_to_string")
    def test_missing_binary_returns_empty(self, mock_ocr: MagicMock) -> None:
        mock_ocr.side_effect = pytesseract.TesseractNotFoundError()
        assert TesseractEngine(OCRConfig()).extract_text(make_png()) == ""

    def test_unreadable_image_returns_empty(self) -> None:
        assert TesseractEngine(OCRConfig()).extract_text(b"not an image") == ""

    @patch("docvision.ocr.tesseract_engine.pytesseract.image_to_string")
    def test_none_result_becomes_empty(self, mock_ocr: MagicMock) -> None:
        mock_ocr.return_value = None
        assert TesseractEngine(OCRConfig()).extract_text(make_png()) == ""

    def test_custom_command(self) -> None:
        original = pytesseract.pytesseract.tesseract_cmd
        try:
            TesseractEngine(OCRConfig(tesseract_cmd="/usr/local/bin/tesseract"))
            assert pytesseract.pytesseract.tesseract_cmd == "/usr/local/bin/tesseract"
        finally:
            pytesseract.pytesseract.tesseract_cmd = original
