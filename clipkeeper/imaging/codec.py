"""Encode captured rasters to BMP, JPEG, PNG or WebP bytes."""

import io
import logging
from dataclasses import dataclass
from enum import Enum

from PIL import Image

from ..errors import EncodingFault

logger = logging.getLogger(__name__)

__all__ = ["ImageFormat", "EncodeSpec", "EncodedImage", "encode", "encode_png"]


class ImageFormat(str, Enum):
    """On-disk image formats."""

    BMP = "bmp"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        """File extension including the leading dot."""
        return _EXTENSIONS[self]


_EXTENSIONS = {
    ImageFormat.BMP: ".bmp",
    ImageFormat.JPEG: ".jpg",
    ImageFormat.PNG: ".png",
    ImageFormat.WEBP: ".webp",
}

# Pillow plugin names
_PIL_FORMATS = {
    ImageFormat.BMP: "BMP",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
    ImageFormat.WEBP: "WEBP",
}

# Modes each writer accepts as-is; anything else is converted first.
_SAVE_MODES = {
    ImageFormat.BMP: ("1", "L", "P", "RGB", "RGBA"),
    ImageFormat.JPEG: ("L", "RGB"),
    ImageFormat.PNG: ("1", "L", "LA", "I", "P", "RGB", "RGBA"),
    ImageFormat.WEBP: ("RGB", "RGBA"),
}

# Pillow raises KeyError for a missing encoder plugin.
_ENCODE_ERRORS = (OSError, ValueError, KeyError)

MIN_QUALITY = 1
MAX_QUALITY = 100


@dataclass(frozen=True)
class EncodeSpec:
    """Active encoding settings.

    ``quality`` only applies to JPEG and WebP.
    """

    format: ImageFormat = ImageFormat.PNG
    quality: int = MAX_QUALITY
    grayscale: bool = False

    def __post_init__(self) -> None:
        if not MIN_QUALITY <= self.quality <= MAX_QUALITY:
            raise ValueError(
                f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {self.quality}"
            )


@dataclass(frozen=True)
class EncodedImage:
    """Encoded bytes plus the format that was actually written."""

    data: bytes
    format: ImageFormat
    requested: ImageFormat

    @property
    def extension(self) -> str:
        return self.format.extension

    @property
    def fell_back(self) -> bool:
        """True when the encoder had to substitute another format."""
        return self.format is not self.requested


def encode(image: Image.Image, spec: EncodeSpec) -> EncodedImage:
    """Encode an image according to ``spec``.

    WebP failures of any kind are recovered by encoding PNG instead; the
    returned ``format`` tells the caller which extension to use.

    Raises:
        EncodingFault: If the image cannot be encoded (and no fallback applies).
    """
    fmt = spec.format

    if fmt is ImageFormat.WEBP:
        try:
            data = _save(image, fmt, quality=spec.quality)
        except Exception as e:
            logger.warning(f"WebP encoding failed ({e}), falling back to PNG")
            return EncodedImage(encode_png(image), ImageFormat.PNG, fmt)
        return EncodedImage(data, fmt, fmt)

    if fmt is ImageFormat.JPEG:
        return EncodedImage(_encode_jpeg(image, spec.quality), fmt, fmt)

    try:
        data = _save(image, fmt)
    except _ENCODE_ERRORS as e:
        raise EncodingFault(f"{fmt.name} encoding failed: {e}") from e
    return EncodedImage(data, fmt, fmt)


def encode_png(image: Image.Image) -> bytes:
    """Lossless PNG encode, also used as the fingerprint intermediate.

    Raises:
        EncodingFault: If Pillow cannot write the image.
    """
    try:
        return _save(image, ImageFormat.PNG)
    except _ENCODE_ERRORS as e:
        raise EncodingFault(f"PNG encoding failed: {e}") from e


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    try:
        return _save(image, ImageFormat.JPEG, quality=quality, optimize=True)
    except _ENCODE_ERRORS as e:
        logger.debug(f"JPEG encode at quality {quality} failed ({e}), retrying with defaults")

    try:
        return _save(image, ImageFormat.JPEG)
    except _ENCODE_ERRORS as e:
        raise EncodingFault(f"JPEG encoding failed: {e}") from e


def _save(image: Image.Image, fmt: ImageFormat, **params) -> bytes:
    buf = io.BytesIO()
    _prepare(image, fmt).save(buf, format=_PIL_FORMATS[fmt], **params)
    return buf.getvalue()


def _prepare(image: Image.Image, fmt: ImageFormat) -> Image.Image:
    """Convert to a mode the target writer accepts. Never mutates ``image``."""
    if image.mode in _SAVE_MODES[fmt]:
        return image
    if fmt is not ImageFormat.JPEG and _has_alpha(image):
        return image.convert("RGBA")
    return image.convert("RGB")


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA", "La", "RGBa") or "transparency" in image.info
