"""Tests for configuration loading and validation."""

from pathlib import Path

import pydantic
import pytest
import yaml

from docvision.utils.config import (
    API_KEY_ENV_VAR,
    APIConfig,
    AppConfig,
    EnhancementConfig,
    LLMConfig,
    OCRConfig,
    ProcessingConfig,
    RenderConfig,
    load_config,
)


class TestRenderConfig:
    """Tests for RenderConfig defaults and bounds."""

    def test_defaults(self) -> None:
        cfg = RenderConfig()
        assert cfg.max_pages == 5
        assert cfg.pdf_dpi == 150

    def test_rejects_zero_pages(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            RenderConfig(max_pages=0)


class TestEnhancementConfig:
    """Tests for EnhancementConfig defaults."""

    def test_defaults(self) -> None:
        cfg = EnhancementConfig()
        assert cfg.max_dimension == 2048
        assert cfg.contrast == 1.15
        assert cfg.brightness == 1.05
        assert cfg.denoise_radius == 0.4
        assert cfg.resharpen_percent > cfg.sharpen_percent


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.tesseract_cmd is None
        assert cfg.tessdata_dir is None

    def test_custom_lang(self) -> None:
        cfg = OCRConfig(default_lang="fra", psm=6)
        assert cfg.default_lang == "fra"
        assert cfg.psm == 6


class TestLLMConfig:
    """Tests for LLMConfig defaults and credential detection."""

    def test_defaults(self) -> None:
        cfg = LLMConfig()
        assert cfg.model == "llama-3.3-70b-versatile"
        assert cfg.max_tokens == 1024
        assert cfg.temperature == 0.1
        assert cfg.max_input_chars == 1500
        assert cfg.timeout_seconds == 600.0
        assert cfg.clean_text is False

    @pytest.mark.parametrize("key", [None, "", "   ", "YOUR_API_KEY_HERE"])
    def test_missing_or_placeholder_key(self, key: str | None) -> None:
        assert LLMConfig(api_key=key).has_credentials is False

    def test_real_key(self) -> None:
        assert LLMConfig(api_key="gsk_abc").has_credentials is True


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.render, RenderConfig)
        assert isinstance(cfg.enhancement, EnhancementConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.llm, LLMConfig)
        assert isinstance(cfg.processing, ProcessingConfig)
        assert isinstance(cfg.api, APIConfig)
        assert cfg.api.max_upload_bytes == 20 * 1024 * 1024
        assert cfg.processing.page_workers == 1
        assert cfg.log_level == "INFO"

    def test_is_immutable(self) -> None:
        cfg = AppConfig()
        with pytest.raises(pydantic.ValidationError):
            cfg.log_level = "DEBUG"
        with pytest.raises(pydantic.ValidationError):
            cfg.render.max_pages = 10

    def test_nested_override(self) -> None:
        cfg = AppConfig(render=RenderConfig(max_pages=2), log_level="DEBUG")
        assert cfg.render.max_pages == 2
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    @pytest.fixture(autouse=True)
    def _no_env_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)

    def test_load_shipped_config(self, project_root: Path) -> None:
        cfg = load_config(project_root / "configs" / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.default_lang == "eng"
        assert cfg.render.max_pages == 5

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert cfg == AppConfig()

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "render": {"max_pages": 3},
            "ocr": {"default_lang": "deu", "psm": 6},
            "llm": {"model": "other-model", "api_key": "from-file"},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.render.max_pages == 3
        assert cfg.ocr.default_lang == "deu"
        assert cfg.ocr.psm == 6
        assert cfg.llm.model == "other-model"
        assert cfg.llm.api_key == "from-file"
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file)
        assert isinstance(cfg, AppConfig)

    def test_api_key_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(API_KEY_ENV_VAR, "env-key")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  model: m\n")

        cfg = load_config(config_file)
        assert cfg.llm.api_key == "env-key"
        assert cfg.llm.model == "m"

    def test_file_key_wins_over_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(API_KEY_ENV_VAR, "env-key")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  api_key: file-key\n")

        assert load_config(config_file).llm.api_key == "file-key"
