"""Tests for image encoding."""

import io
from unittest.mock import patch

import pytest
from PIL import Image, features

from clipkeeper.errors import EncodingFault
from clipkeeper.imaging import codec
from clipkeeper.imaging.codec import EncodedImage, EncodeSpec, ImageFormat, encode, encode_png

requires_webp = pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WebP")


def sample_image(mode: str = "RGB") -> Image.Image:
    image = Image.new(mode, (24, 12))
    for x in range(24):
        for y in range(12):
            if mode == "RGBA":
                image.putpixel((x, y), (x * 10, y * 20, 100, 128 + y))
            else:
                image.putpixel((x, y), (x * 10, y * 20, 100))
    return image


def decode(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class TestEncode:
    """Tests for encode()."""

    @pytest.mark.parametrize(
        "fmt, pil_format",
        [
            (ImageFormat.PNG, "PNG"),
            (ImageFormat.BMP, "BMP"),
            (ImageFormat.JPEG, "JPEG"),
        ],
    )
    def test_encodes_requested_format(self, fmt, pil_format):
        result = encode(sample_image(), EncodeSpec(format=fmt, quality=80))

        assert isinstance(result, EncodedImage)
        assert result.format is fmt
        assert not result.fell_back
        decoded = decode(result.data)
        assert decoded.format == pil_format
        assert decoded.size == (24, 12)

    def test_png_is_lossless(self):
        image = sample_image("RGBA")

        result = encode(image, EncodeSpec(format=ImageFormat.PNG))

        assert decode(result.data).convert("RGBA").tobytes() == image.tobytes()

    def test_jpeg_drops_alpha(self):
        result = encode(sample_image("RGBA"), EncodeSpec(format=ImageFormat.JPEG, quality=90))

        assert decode(result.data).mode == "RGB"
        assert result.extension == ".jpg"

    def test_jpeg_quality_changes_output(self):
        image = sample_image()

        low = encode(image, EncodeSpec(format=ImageFormat.JPEG, quality=5))
        high = encode(image, EncodeSpec(format=ImageFormat.JPEG, quality=95))

        assert len(low.data) < len(high.data)

    def test_jpeg_retries_without_quality(self):
        calls = []
        real_save = codec._save

        def flaky_save(image, fmt, **params):
            calls.append(params)
            if params:
                raise OSError("encoder rejected parameters")
            return real_save(image, fmt)

        with patch("clipkeeper.imaging.codec._save", side_effect=flaky_save):
            result = encode(sample_image(), EncodeSpec(format=ImageFormat.JPEG, quality=50))

        assert result.format is ImageFormat.JPEG
        assert calls[0] == {"quality": 50, "optimize": True}
        assert calls[1] == {}
        assert decode(result.data).format == "JPEG"

    def test_jpeg_missing_plugin_retries_with_defaults(self):
        calls = []
        real_save = codec._save

        def no_plugin_for_params(image, fmt, **params):
            calls.append(params)
            if params:
                raise KeyError("JPEG")
            return real_save(image, fmt)

        with patch("clipkeeper.imaging.codec._save", side_effect=no_plugin_for_params):
            result = encode(sample_image(), EncodeSpec(format=ImageFormat.JPEG, quality=50))

        assert len(calls) == 2
        assert decode(result.data).format == "JPEG"

    def test_jpeg_failure_raises(self):
        with patch("clipkeeper.imaging.codec._save", side_effect=OSError("broken")):
            with pytest.raises(EncodingFault):
                encode(sample_image(), EncodeSpec(format=ImageFormat.JPEG))

    def test_png_failure_raises(self):
        with patch("clipkeeper.imaging.codec._save", side_effect=OSError("broken")):
            with pytest.raises(EncodingFault):
                encode(sample_image(), EncodeSpec(format=ImageFormat.PNG))

    def test_palette_image_encodes(self):
        image = sample_image().convert("P")

        for fmt in (ImageFormat.PNG, ImageFormat.BMP, ImageFormat.JPEG):
            result = encode(image, EncodeSpec(format=fmt))
            assert decode(result.data).size == image.size

    def test_input_not_mutated(self):
        image = sample_image("RGBA")
        before = image.tobytes()

        encode(image, EncodeSpec(format=ImageFormat.JPEG))

        assert image.mode == "RGBA"
        assert image.tobytes() == before


class TestWebpFallback:
    """Tests for WebP encoding and its PNG fallback."""

    @requires_webp
    def test_webp_encodes(self):
        result = encode(sample_image("RGBA"), EncodeSpec(format=ImageFormat.WEBP, quality=80))

        assert result.format is ImageFormat.WEBP
        assert result.extension == ".webp"
        assert decode(result.data).format == "WEBP"

    def test_webp_failure_falls_back_to_png(self):
        real_save = codec._save

        def no_webp(image, fmt, **params):
            if fmt is ImageFormat.WEBP:
                raise KeyError("WEBP")
            return real_save(image, fmt, **params)

        with patch("clipkeeper.imaging.codec._save", side_effect=no_webp):
            result = encode(sample_image(), EncodeSpec(format=ImageFormat.WEBP, quality=80))

        assert result.format is ImageFormat.PNG
        assert result.requested is ImageFormat.WEBP
        assert result.fell_back
        assert result.extension == ".png"
        assert decode(result.data).format == "PNG"

    def test_any_webp_error_falls_back(self):
        real_save = codec._save

        def crash(image, fmt, **params):
            if fmt is ImageFormat.WEBP:
                raise RuntimeError("codec crashed")
            return real_save(image, fmt, **params)

        with patch("clipkeeper.imaging.codec._save", side_effect=crash):
            result = encode(sample_image(), EncodeSpec(format=ImageFormat.WEBP))

        assert result.format is ImageFormat.PNG


class TestEncodeSpec:
    """Tests for EncodeSpec validation."""

    @pytest.mark.parametrize("quality", [0, -5, 101])
    def test_invalid_quality(self, quality):
        with pytest.raises(ValueError):
            EncodeSpec(format=ImageFormat.JPEG, quality=quality)

    def test_defaults(self):
        spec = EncodeSpec()

        assert spec.format is ImageFormat.PNG
        assert spec.quality == 100
        assert spec.grayscale is False


class TestEncodePng:
    def test_returns_png_bytes(self):
        data = encode_png(sample_image())

        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_failure_raises(self):
        with patch("clipkeeper.imaging.codec._save", side_effect=ValueError("bad")):
            with pytest.raises(EncodingFault):
                encode_png(sample_image())
