"""LLM-based structured field extraction from OCR text.

Sends (truncated) OCR text to a chat-completion model that answers with
the document field JSON. When the model is unavailable the raw OCR text
is passed through unchanged so the page still succeeds.
"""

from dataclasses import dataclass

from docvision.errors import FieldParseError, RemoteModelError, RemoteUnavailableError
from docvision.utils.config import LLMConfig
from docvision.utils.logger import get_logger

from .fields import CLEANUP_PROMPT, SYSTEM_PROMPT, FieldRecord, parse_field_record
from .llm_client import ChatCompletionClient

logger = get_logger(__name__)


@dataclass
class ExtractionResult:
    """Normalized text, fields and token usage for one page."""

    text: str
    fields: FieldRecord | None
    tokens_used: int


class FieldExtractor:
    """Extracts document fields from raw OCR text with a remote model.

    Args:
        config: Model configuration.
        client: Chat-completion client; built from ``config`` when omitted.
    """

    def __init__(
        self, config: LLMConfig, client: ChatCompletionClient | None = None
    ) -> None:
        self.config = config
        self.client = client or ChatCompletionClient(config)

    def close(self) -> None:
        self.client.close()

    def extract(self, raw_text: str) -> ExtractionResult:
        """Extract fields from OCR text.

        Args:
            raw_text: Non-blank OCR output for one page.

        Returns:
            The page text, the parsed field record (``None`` if the model
            was unavailable or its reply unparseable) and tokens consumed.

        Raises:
            RemoteCallError: If the model request timed out or broke off.
        """
        prompt_text = raw_text[: self.config.max_input_chars]
        try:
            completion = self.client.complete(
                SYSTEM_PROMPT, prompt_text, json_output=True
            )
        except RemoteUnavailableError as exc:
            logger.warning("%s, returning raw OCR text", exc)
            return ExtractionResult(text=raw_text, fields=None, tokens_used=0)

        try:
            record = parse_field_record(completion.content)
        except FieldParseError as exc:
            logger.warning("%s. Content was: %s", exc, completion.content)
            return ExtractionResult(text=raw_text, fields=None, tokens_used=0)

        logger.info(
            "Extraction OK: type=%s, vendor=%s, total=%s",
            record.document_type,
            record.vendor_name,
            record.total_amount,
        )
        text, tokens = raw_text, completion.total_tokens
        if self.config.clean_text:
            text, cleanup_tokens = self._clean_text(raw_text)
            tokens += cleanup_tokens
        return ExtractionResult(text=text, fields=record, tokens_used=tokens)

    def _clean_text(self, raw_text: str) -> tuple[str, int]:
        """Ask the model to repair OCR noise; keep the raw text if it cannot."""
        try:
            completion = self.client.complete(
                CLEANUP_PROMPT, raw_text, max_tokens=self.config.clean_max_tokens
            )
        except RemoteModelError as exc:
            logger.warning("Text clean-up skipped: %s", exc)
            return raw_text, 0
        return completion.content.strip(), completion.total_tokens
