"""Luminance-preserving grayscale conversion."""

from PIL import Image

__all__ = ["LUMA_WEIGHTS", "grayscale"]

# ITU-R 601-2 luma. Pillow's "L" conversion applies exactly these weights
# (in 16-bit fixed point), so gray pixels map to themselves.
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

_GRAY_MODES = ("1", "L", "LA", "I", "F")


def grayscale(image: Image.Image) -> Image.Image:
    """Return a grayscale copy of ``image``.

    Color output keeps its mode: every pixel gets R == G == B ==
    0.299 R + 0.587 G + 0.114 B. Alpha and dimensions are unchanged and
    the input is never modified.
    """
    if image.mode in _GRAY_MODES:
        return image.copy()

    if image.mode == "RGB":
        luma = image.convert("L")
        return Image.merge("RGB", (luma, luma, luma))

    if image.mode == "RGBA":
        luma = image.convert("L")
        return Image.merge("RGBA", (luma, luma, luma, image.getchannel("A")))

    # Palette, CMYK, etc.
    has_alpha = image.mode in ("PA", "La", "RGBa") or "transparency" in image.info
    return grayscale(image.convert("RGBA" if has_alpha else "RGB"))
