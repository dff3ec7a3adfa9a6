"""Startup provisioning of Tesseract language data."""

from pathlib import Path

import httpx

from docvision.utils.config import OCRConfig
from docvision.utils.logger import get_logger

logger = get_logger(__name__)


def ensure_tessdata(config: OCRConfig, client: httpx.Client | None = None) -> bool:
    """Download ``<lang>.traineddata`` into ``tessdata_dir`` if it is missing.

    Only runs when a tessdata directory is configured; otherwise the
    system installation is used as-is. Download failures are logged and
    never raised, so the service still starts (OCR will then report no
    text until the data is installed).

    Args:
        config: OCR configuration.
        client: HTTP client to use; one is created when omitted.

    Returns:
        True if the language file is present afterwards.
    """
    if not config.tessdata_dir:
        return True

    tessdata_dir = Path(config.tessdata_dir)
    lang_file = tessdata_dir / f"{config.default_lang}.traineddata"
    if lang_file.exists():
        logger.info("Tesseract data found at %s", lang_file)
        return True

    url = f"{config.tessdata_url.rstrip('/')}/{config.default_lang}.traineddata"
    logger.info("Tesseract language data not found, downloading %s", url)

    owns_client = client is None
    if client is None:
        client = httpx.Client(
            timeout=config.tessdata_timeout_seconds, follow_redirects=True
        )
    try:
        response = client.get(url)
        response.raise_for_status()
        tessdata_dir.mkdir(parents=True, exist_ok=True)
        lang_file.write_bytes(response.content)
    except (httpx.HTTPError, OSError) as exc:
        logger.error(
            "Could not download Tesseract data (%s). Place %s in %s manually.",
            exc,
            lang_file.name,
            tessdata_dir,
        )
        return False
    finally:
        if owns_client:
            client.close()

    logger.info("Tesseract data saved (%d KB)", len(response.content) // 1024)
    return True
