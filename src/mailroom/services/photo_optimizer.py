"""Package photo optimization: downscale, re-encode, return a base64 data URL.

The transform is pure and deterministic for identical bytes and options.
"""

from __future__ import annotations

import base64
import logging
import math
import mimetypes
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from mailroom.errors.exceptions import ImageProcessingError, InvalidImageTypeError
from mailroom.models.enums import ImageFormat

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})

_PIL_FORMATS = {ImageFormat.JPEG: "JPEG", ImageFormat.WEBP: "WEBP"}
_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


@dataclass(frozen=True)
class ImageOptimizationOptions:
    max_width: int = 800
    max_height: int = 600
    quality: float = 0.8
    format: ImageFormat = ImageFormat.JPEG

    def __post_init__(self) -> None:
        if self.max_width <= 0 or self.max_height <= 0:
            raise ValueError("max_width and max_height must be positive")
        if not 0 < self.quality <= 1:
            raise ValueError("quality must be in (0, 1]")
        object.__setattr__(self, "format", ImageFormat(self.format))


def is_valid_image_type(mime_type: str | None) -> bool:
    return (mime_type or "").lower() in ALLOWED_IMAGE_TYPES


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_dimensions(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Fit within the bounds keeping aspect ratio: width first, then height.

    >>> calculate_dimensions(2000, 1000, 800, 600)
    (800, 400)
    """
    w, h = float(width), float(height)
    if w > max_width:
        h = h * max_width / w
        w = max_width
    if h > max_height:
        w = w * max_height / h
        h = max_height
    return max(1, _round_half_up(w)), max(1, _round_half_up(h))


def optimize_image(
    data: bytes,
    mime_type: str,
    options: ImageOptimizationOptions | None = None,
) -> str:
    """Return *data* as an optimized ``data:image/...;base64,`` string.

    Raises:
        InvalidImageTypeError: *mime_type* is not an accepted type. Checked
            before anything is decoded.
        ImageProcessingError: the bytes could not be decoded or re-encoded.
    """
    if not is_valid_image_type(mime_type):
        raise InvalidImageTypeError(mime_type)
    opts = options or ImageOptimizationOptions()

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            width, height = calculate_dimensions(img.width, img.height, opts.max_width, opts.max_height)
            frame = img
            # JPEG has no alpha or palette; WebP keeps alpha.
            if opts.format == ImageFormat.JPEG and frame.mode not in ("RGB", "L"):
                frame = frame.convert("RGB")
            elif opts.format == ImageFormat.WEBP and frame.mode not in ("RGB", "RGBA"):
                frame = frame.convert("RGBA")
            if (width, height) != frame.size:
                frame = frame.resize((width, height), Image.Resampling.LANCZOS)

            buf = BytesIO()
            frame.save(buf, format=_PIL_FORMATS[opts.format], quality=_round_half_up(opts.quality * 100))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageProcessingError(f"Could not process image: {exc}") from exc

    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    logger.debug(
        "Optimized %s to %dx%d %s (%s)",
        mime_type,
        width,
        height,
        opts.format,
        format_file_size(len(buf.getvalue())),
    )
    return f"data:image/{opts.format};base64,{encoded}"


def optimize_image_file(path: Path, options: ImageOptimizationOptions | None = None) -> str:
    """Optimize an image on disk; the type is guessed from the file name."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if not is_valid_image_type(mime_type):
        raise InvalidImageTypeError(mime_type or "unknown")
    return optimize_image(path.read_bytes(), mime_type, options)


def base64_size(data: str) -> int:
    """Approximate decoded size in bytes of a base64 payload or data URL."""
    payload = _DATA_URL_PREFIX.sub("", data)
    return _round_half_up(len(payload) * 3 / 4)


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[exponent]}"
