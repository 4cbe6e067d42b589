"""Capture pipeline - turns a clipboard poll into a saved image file."""

import logging
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from PIL import Image

from ..errors import CaptureError, ClipboardAccessFault, DirectoryFault, WriteFault
from ..imaging.codec import EncodeSpec, ImageFormat, encode
from ..imaging.grayscale import grayscale
from ..notifications import APP_TITLE, SoundMode
from .detector import is_new_image
from .location import SaveLocation, resolve_save_directory
from .naming import NamingState, generate_filename
from .protocols import ClipboardReader, ConfirmationPrompt, Notifier
from .state import CaptureState

logger = logging.getLogger(__name__)

__all__ = [
    "CapturePipeline",
    "CaptureSettings",
    "CaptureResult",
    "CaptureOutcome",
    "PipelinePhase",
]


class PipelinePhase(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    ENCODING = "encoding"
    WRITING = "writing"
    NOTIFYING = "notifying"


class CaptureOutcome(str, Enum):
    BUSY = "busy"  # confirmation still pending from an earlier tick
    NO_IMAGE = "no_image"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    SAVED = "saved"
    FAILED = "failed"


@dataclass(frozen=True)
class CaptureSettings:
    """Settings snapshot taken at the start of a tick."""

    encode: EncodeSpec
    location: SaveLocation
    naming: NamingState
    confirm_before_save: bool = False
    sound: SoundMode = SoundMode.DEFAULT_SOUND


@dataclass
class CaptureResult:
    """What a single tick did.

    ``naming`` is the naming state after the tick; in sequential mode it is
    advanced whenever a filename was generated, even if the write failed.
    """

    outcome: CaptureOutcome
    naming: NamingState
    filename: Optional[str] = None
    path: Optional[Path] = None
    format: Optional[ImageFormat] = None
    error: Optional[str] = None

    @property
    def saved(self) -> bool:
        return self.outcome is CaptureOutcome.SAVED


class CapturePipeline:
    """Per-tick state machine: detect, confirm, encode, write, notify.

    Always returns to ``PipelinePhase.IDLE`` when a tick finishes, whatever
    happened during it. Only surfaced failures (encode, directory, write)
    reach the user, via the notifier.
    """

    def __init__(
        self,
        clipboard: ClipboardReader,
        notifier: Notifier,
        confirmation: Optional[ConfirmationPrompt] = None,
        state: Optional[CaptureState] = None,
    ):
        self.clipboard = clipboard
        self.notifier = notifier
        self.confirmation = confirmation
        self.state = state or CaptureState()
        self._phase = PipelinePhase.IDLE
        self._pending: Optional[Future] = None

    @property
    def phase(self) -> PipelinePhase:
        return self._phase

    def tick(self, settings: CaptureSettings) -> CaptureResult:
        """Run one poll of the clipboard."""
        if self.state.awaiting_confirmation:
            return CaptureResult(CaptureOutcome.BUSY, settings.naming)
        session = self.state.session
        try:
            return self._run(settings, session)
        finally:
            self._set_phase(PipelinePhase.IDLE)

    def cancel_confirmation(self) -> bool:
        """Cancel a pending confirmation, if any. Returns True if one was cancelled."""
        future = self._pending
        if future is None:
            return False
        cancelled = future.cancel()
        if cancelled:
            logger.info("Pending save confirmation cancelled")
        return cancelled

    def reset(self) -> None:
        """Drop session state (used when monitoring stops).

        A tick still running finishes its save but does not refill the
        last-image slot.
        """
        self.cancel_confirmation()
        self.state.end_session()

    # -- internal ---------------------------------------------------------

    def _run(self, settings: CaptureSettings, session: int) -> CaptureResult:
        self._set_phase(PipelinePhase.DETECTING)
        try:
            image = self.clipboard.read_image()
        except ClipboardAccessFault as e:
            # Another process may hold the clipboard; try again next tick.
            logger.debug(f"Clipboard unavailable: {e}")
            return CaptureResult(CaptureOutcome.NO_IMAGE, settings.naming)

        if image is None:
            self.state.forget()
            return CaptureResult(CaptureOutcome.NO_IMAGE, settings.naming)

        if not is_new_image(image, self.state.last_image):
            return CaptureResult(CaptureOutcome.UNCHANGED, settings.naming)

        logger.debug(f"New clipboard image: {image.width}x{image.height} ({image.mode})")

        if settings.confirm_before_save:
            declined = self._confirm(image, settings)
            if declined is not None:
                return declined

        return self._save(image, settings, session)

    def _confirm(self, image: Image.Image, settings: CaptureSettings) -> Optional[CaptureResult]:
        """Ask the user. Returns a result if the image must not be saved."""
        if self.confirmation is None:
            logger.warning("Save confirmation enabled but no prompt available, saving anyway")
            return None

        self._set_phase(PipelinePhase.AWAITING_CONFIRMATION)
        try:
            with self.state.confirmation_gate():
                future = self.confirmation.request_confirmation(image)
                self._pending = future
                try:
                    accepted = future.result()
                finally:
                    self._pending = None
        except CancelledError:
            return CaptureResult(CaptureOutcome.CANCELLED, settings.naming)
        except Exception as e:
            logger.warning(f"Save confirmation failed: {e}")
            self._notify_failure(e)
            return CaptureResult(CaptureOutcome.FAILED, settings.naming, error=str(e))

        if not accepted:
            logger.info("User declined to save clipboard image")
            return CaptureResult(CaptureOutcome.REJECTED, settings.naming)
        return None

    def _save(self, image: Image.Image, settings: CaptureSettings, session: int) -> CaptureResult:
        naming = settings.naming
        try:
            self._set_phase(PipelinePhase.ENCODING)
            source = grayscale(image) if settings.encode.grayscale else image
            encoded = encode(source, settings.encode)

            self._set_phase(PipelinePhase.WRITING)
            directory = resolve_save_directory(settings.location)
            _ensure_directory(directory)
            filename, naming = generate_filename(naming, encoded.format)
            path = directory / filename
            _write_file(path, encoded.data)
        except CaptureError as e:
            logger.warning(f"Failed to save clipboard image: {e}")
            self._notify_failure(e)
            return CaptureResult(CaptureOutcome.FAILED, naming, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error saving clipboard image: {e}")
            self._notify_failure(e)
            return CaptureResult(CaptureOutcome.FAILED, naming, error=str(e))

        self._set_phase(PipelinePhase.NOTIFYING)
        self.state.remember(image, session)
        logger.info(f"Image saved: {path} ({len(encoded.data)} bytes)")
        self.notifier.notify(APP_TITLE, f"Image saved: {filename}", settings.sound)
        return CaptureResult(
            CaptureOutcome.SAVED,
            naming,
            filename=filename,
            path=path,
            format=encoded.format,
        )

    def _notify_failure(self, error: Exception) -> None:
        self.notifier.notify(
            f"{APP_TITLE} Error", f"Failed to save image: {error}", SoundMode.SILENT
        )

    def _set_phase(self, phase: PipelinePhase) -> None:
        if phase is not self._phase:
            logger.debug(f"Pipeline {self._phase.value} -> {phase.value}")
            self._phase = phase


def _ensure_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryFault(f"Cannot create directory {directory}: {e}") from e


def _write_file(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise WriteFault(f"Cannot write {path}: {e}") from e
