"""Configuration management for the docvision service.

Loads and validates YAML configuration with sensible defaults for
rendering, image enhancement, OCR, the remote language model, and the
HTTP API. The resulting ``AppConfig`` is immutable and is built once per
process, then passed explicitly to every component.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "DOCVISION_LLM_API_KEY"
_PLACEHOLDER_KEYS = {"YOUR_API_KEY_HERE", "YOUR_DEEPSEEK_API_KEY_HERE"}


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class RenderConfig(_FrozenModel):
    """Configuration for turning documents into raster pages."""

    max_pages: int = Field(default=5, ge=1)
    pdf_dpi: int = Field(default=150, ge=36)


class EnhancementConfig(_FrozenModel):
    """Configuration for the fixed image enhancement chain."""

    max_dimension: int = Field(default=2048, ge=1)
    contrast: float = 1.15
    brightness: float = 1.05
    sharpen_radius: float = 1.2
    sharpen_percent: int = 120
    denoise_radius: float = 0.4
    resharpen_radius: float = 0.8
    resharpen_percent: int = 160
    png_compress_level: int = Field(default=1, ge=0, le=9)


class OCRConfig(_FrozenModel):
    """Configuration for Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    tessdata_dir: str | None = None
    tessdata_url: str = "https://github.com/tesseract-ocr/tessdata_fast/raw/main"
    tessdata_timeout_seconds: float = 120.0


class LLMConfig(_FrozenModel):
    """Configuration for the chat-completion model used for field extraction."""

    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama-3.3-70b-versatile"
    api_key: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.1
    timeout_seconds: float = 600.0
    max_input_chars: int = Field(default=1500, ge=1)
    clean_text: bool = False
    clean_max_tokens: int = 4096

    @property
    def has_credentials(self) -> bool:
        """Whether a usable API key is configured."""
        key = (self.api_key or "").strip()
        return bool(key) and key not in _PLACEHOLDER_KEYS


class ProcessingConfig(_FrozenModel):
    """Configuration for per-document orchestration."""

    page_workers: int = Field(default=1, ge=1)


class APIConfig(_FrozenModel):
    """Configuration for the HTTP service."""

    max_upload_bytes: int = 20 * 1024 * 1024
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:4200"])


class AppConfig(_FrozenModel):
    """Top-level application configuration."""

    render: RenderConfig = Field(default_factory=RenderConfig)
    enhancement: EnhancementConfig = Field(default_factory=EnhancementConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    The LLM API key falls back to the ``DOCVISION_LLM_API_KEY``
    environment variable when the file does not set one.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    raw: dict = {}
    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found at %s, using defaults", path)

    env_key = os.environ.get(API_KEY_ENV_VAR)
    llm_section = raw.get("llm") or {}
    if env_key and not llm_section.get("api_key"):
        raw["llm"] = {**llm_section, "api_key": env_key}

    return AppConfig(**raw)
