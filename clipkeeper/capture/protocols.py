"""Protocol types for CapturePipeline collaborators.

Defines the interfaces the pipeline requires from the clipboard, the
confirmation UI and the notifier, so tests and GUI shells can plug in
their own implementations.
"""

from concurrent.futures import Future
from typing import Optional, Protocol, runtime_checkable

from PIL import Image

from ..notifications import SoundMode


@runtime_checkable
class ClipboardReader(Protocol):
    """Interface for reading the current clipboard image."""

    def read_image(self) -> Optional[Image.Image]: ...


@runtime_checkable
class ConfirmationPrompt(Protocol):
    """Interface for asking the user whether to save an image.

    The returned future resolves to True (save) or False (discard). It may be
    cancelled by the caller, e.g. when monitoring stops.
    """

    def request_confirmation(self, image: Image.Image) -> "Future[bool]": ...


@runtime_checkable
class Notifier(Protocol):
    """Interface for non-blocking user notifications."""

    def notify(self, title: str, message: str, sound: SoundMode = ...) -> None: ...
