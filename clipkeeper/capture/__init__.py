"""Capture module - clipboard polling, change detection and image saving."""

from .clipboard import PillowClipboard
from .detector import image_fingerprint, is_new_image
from .location import SaveLocation, SaveLocationMode, resolve_save_directory
from .naming import NamingMode, NamingState, generate_filename
from .pipeline import (
    CaptureOutcome,
    CapturePipeline,
    CaptureResult,
    CaptureSettings,
    PipelinePhase,
)
from .protocols import ClipboardReader, ConfirmationPrompt, Notifier
from .state import CaptureState

__all__ = [
    "PillowClipboard",
    "image_fingerprint",
    "is_new_image",
    "SaveLocation",
    "SaveLocationMode",
    "resolve_save_directory",
    "NamingMode",
    "NamingState",
    "generate_filename",
    "CaptureOutcome",
    "CapturePipeline",
    "CaptureResult",
    "CaptureSettings",
    "PipelinePhase",
    "ClipboardReader",
    "ConfirmationPrompt",
    "Notifier",
    "CaptureState",
]
