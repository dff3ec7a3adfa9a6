"""Tests for startup provisioning of Tesseract language data."""

from pathlib import Path

import httpx

from docvision.ocr.tessdata import ensure_tessdata
from docvision.utils.config import OCRConfig


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestEnsureTessdata:
    """Tests for ensure_tessdata."""

    def test_noop_without_directory(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no download expected")

        assert ensure_tessdata(OCRConfig(), client=_client(handler)) is True

    def test_existing_file_is_kept(self, tmp_path: Path) -> None:
        (tmp_path / "eng.traineddata").write_bytes(b"existing")

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no download expected")

        config = OCRConfig(tessdata_dir=str(tmp_path))
        assert ensure_tessdata(config, client=_client(handler)) is True
        assert (tmp_path / "eng.traineddata").read_bytes() == b"existing"

    def test_downloads_missing_file(self, tmp_path: Path) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=b"model-bytes")

        target = tmp_path / "data"
        config = OCRConfig(
            tessdata_dir=str(target),
            default_lang="deu",
            tessdata_url="https://example.test/tessdata/",
        )
        assert ensure_tessdata(config, client=_client(handler)) is True
        assert requested == ["https://example.test/tessdata/deu.traineddata"]
        assert (target / "deu.traineddata").read_bytes() == b"model-bytes"

    def test_http_error_is_not_fatal(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        config = OCRConfig(tessdata_dir=str(tmp_path))
        assert ensure_tessdata(config, client=_client(handler)) is False
        assert not (tmp_path / "eng.traineddata").exists()

    def test_network_error_is_not_fatal(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        config = OCRConfig(tessdata_dir=str(tmp_path))
        assert ensure_tessdata(config, client=_client(handler)) is False
