"""Clipboard change detection."""

import logging
from typing import Optional

from PIL import Image

from ..imaging.codec import encode_png

logger = logging.getLogger(__name__)

__all__ = ["Fingerprint", "image_fingerprint", "is_new_image"]

Fingerprint = tuple[int, ...]

# Positions (as fractions of the encoded length) sampled into the fingerprint.
_SAMPLE_POINTS = (0.2, 0.4, 0.6, 0.8)


def image_fingerprint(image: Image.Image) -> Fingerprint:
    """Cheap summary of an image: PNG byte length plus four sampled bytes.

    Not a cryptographic hash; only used to tell "probably the same" images
    apart between polls.

    Raises:
        EncodingFault: If the image cannot be encoded.
    """
    data = encode_png(image)
    length = len(data)
    if length <= 16:
        return (length,)
    return (length,) + tuple(data[int(length * point)] for point in _SAMPLE_POINTS)


def is_new_image(current: Image.Image, previous: Optional[Image.Image]) -> bool:
    """Check whether ``current`` differs from the last processed image.

    Fails open: if either image cannot be fingerprinted the clipboard is
    treated as changed, so a real copy is never silently dropped.
    """
    if previous is None:
        return True

    if current.size != previous.size:
        return True

    try:
        return image_fingerprint(current) != image_fingerprint(previous)
    except Exception as e:
        logger.debug(f"Fingerprint failed, treating clipboard image as new: {e}")
        return True
