"""Shared test fixtures for the docvision test suite."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from docvision.utils.config import AppConfig, LLMConfig
from helpers import make_png


@pytest.fixture
def llm_config() -> LLMConfig:
    """Model configuration with a usable API key."""
    return LLMConfig(base_url="https://llm.test/v1", api_key="test-key")


@pytest.fixture
def app_config(llm_config: LLMConfig) -> AppConfig:
    """Application configuration wired to the test model endpoint."""
    return AppConfig(llm=llm_config)


@pytest.fixture
def mock_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for httpx transports that answer with a fixed response."""

    def factory(
        status_code: int = 200,
        json_body: dict | None = None,
        content: bytes | None = None,
        exc: Exception | None = None,
    ) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if exc is not None:
                raise exc
            if json_body is not None:
                return httpx.Response(status_code, json=json_body)
            return httpx.Response(status_code, content=content or b"")

        return httpx.MockTransport(handler)

    return factory


@pytest.fixture
def white_png() -> bytes:
    """A blank white 300x200 PNG."""
    return make_png()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
