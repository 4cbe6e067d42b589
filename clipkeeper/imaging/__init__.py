"""Imaging module - encoding and pixel transforms for captured rasters."""

from .codec import EncodedImage, EncodeSpec, ImageFormat, encode, encode_png
from .grayscale import grayscale

__all__ = [
    "EncodedImage",
    "EncodeSpec",
    "ImageFormat",
    "encode",
    "encode_png",
    "grayscale",
]
