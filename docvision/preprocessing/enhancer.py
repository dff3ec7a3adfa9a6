"""Fixed image enhancement chain for OCR input.

Orients, bounds, sharpens and denoises a page image with Pillow, then
encodes it as PNG. The chain is deterministic: the same input bytes give
the same output bytes and the same step log. Sharpness and contrast are
measured before and after for diagnostics only.
"""

import io
from dataclasses import dataclass, field

import cv2
import numpy as np
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from docvision.utils.config import EnhancementConfig
from docvision.utils.logger import get_logger

logger = get_logger(__name__)

OUTPUT_FORMAT = "PNG"
OUTPUT_MIME_TYPE = "image/png"


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


@dataclass
class EnhancedImage:
    """Output of the enhancement chain for one image."""

    content: bytes
    width: int
    height: int
    steps: list[str] = field(default_factory=list)
    quality: QualityMetrics | None = None


def _gray(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("L"))


def calculate_sharpness(image: Image.Image) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image.

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: Image.Image) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image.

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(_gray(image).std())


def _flatten(image: Image.Image) -> Image.Image:
    """Composite transparent images onto white and convert to RGB."""
    if image.mode in ("RGBA", "LA") or (
        image.mode == "P" and "transparency" in image.info
    ):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return image.convert("RGB")


class ImageEnhancer:
    """Applies the fixed enhancement chain to page images.

    Args:
        config: Filter strengths and output limits.
    """

    def __init__(self, config: EnhancementConfig) -> None:
        self.config = config

    def enhance(self, content: bytes) -> EnhancedImage:
        """Run the enhancement chain on encoded image bytes.

        Args:
            content: Encoded image (any format Pillow reads).

        Returns:
            The cleaned PNG, its dimensions, the step log and quality metrics.
        """
        cfg = self.config
        steps: list[str] = []

        with Image.open(io.BytesIO(content)) as source:
            source.load()
            image = ImageOps.exif_transpose(source)
        steps.append("Auto-oriented (EXIF correction)")
        image = _flatten(image)

        sharpness_before = calculate_sharpness(image)
        contrast_before = calculate_contrast(image)

        if max(image.size) > cfg.max_dimension:
            image = self._downscale(image)
            steps.append(
                f"Resized to {image.width}x{image.height} to fit within "
                f"{cfg.max_dimension}x{cfg.max_dimension}"
            )

        image = ImageEnhance.Contrast(image).enhance(cfg.contrast)
        image = ImageEnhance.Brightness(image).enhance(cfg.brightness)
        image = image.filter(
            ImageFilter.UnsharpMask(
                radius=cfg.sharpen_radius, percent=cfg.sharpen_percent, threshold=0
            )
        )
        steps.append(
            "Applied contrast enhancement "
            f"(contrast {_percent(cfg.contrast)}, "
            f"brightness {_percent(cfg.brightness)}, sharpen)"
        )

        image = image.filter(ImageFilter.GaussianBlur(radius=cfg.denoise_radius))
        steps.append(
            f"Applied mild denoising (Gaussian blur radius={cfg.denoise_radius:g})"
        )

        image = image.filter(
            ImageFilter.UnsharpMask(
                radius=cfg.resharpen_radius,
                percent=cfg.resharpen_percent,
                threshold=0,
            )
        )
        steps.append("Re-sharpened after denoising")

        buf = io.BytesIO()
        image.save(buf, format=OUTPUT_FORMAT, compress_level=cfg.png_compress_level)
        steps.append("Encoded as PNG (lossless output)")

        quality = QualityMetrics(
            sharpness_before=sharpness_before,
            sharpness_after=calculate_sharpness(image),
            contrast_before=contrast_before,
            contrast_after=calculate_contrast(image),
        )
        logger.info(
            "Enhancement complete: %dx%d, sharpness %.1f->%.1f, contrast %.1f->%.1f",
            image.width,
            image.height,
            quality.sharpness_before,
            quality.sharpness_after,
            quality.contrast_before,
            quality.contrast_after,
        )
        return EnhancedImage(
            content=buf.getvalue(),
            width=image.width,
            height=image.height,
            steps=steps,
            quality=quality,
        )

    def _downscale(self, image: Image.Image) -> Image.Image:
        """Scale so the longer side equals ``max_dimension``."""
        limit = self.config.max_dimension
        width, height = image.size
        if width >= height:
            size = (limit, max(1, round(height * limit / width)))
        else:
            size = (max(1, round(width * limit / height)), limit)
        return image.resize(size, Image.Resampling.LANCZOS)


def _percent(factor: float) -> str:
    return f"{(factor - 1) * 100:+.0f}%"
