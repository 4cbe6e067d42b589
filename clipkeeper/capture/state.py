"""Per-session capture state: the dedup slot and the confirmation gate."""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from PIL import Image

logger = logging.getLogger(__name__)

__all__ = ["CaptureState"]


class CaptureState:
    """Mutable state owned by a single pipeline instance.

    ``last_image`` is the dedup slot; ``awaiting_confirmation`` is only ever
    set inside ``confirmation_gate()``. ``session`` changes on every
    ``end_session()`` so a tick still running across a stop cannot refill
    the slot.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_image: Optional[Image.Image] = None
        self._awaiting_confirmation = False
        self._session = 0

    @property
    def session(self) -> int:
        return self._session

    @property
    def last_image(self) -> Optional[Image.Image]:
        return self._last_image

    @property
    def awaiting_confirmation(self) -> bool:
        return self._awaiting_confirmation

    def remember(self, image: Image.Image, session: Optional[int] = None) -> bool:
        """Record ``image`` as the last processed clipboard image.

        Returns False without recording when ``session`` is given and a
        session has ended since it was read.
        """
        with self._lock:
            if session is not None and session != self._session:
                logger.debug("Session ended during capture, not recording last image")
                return False
            self._last_image = image.copy()
            return True

    def forget(self) -> None:
        """Clear the last processed image."""
        with self._lock:
            if self._last_image is not None:
                self._last_image = None
                logger.debug("Clipboard no longer holds an image, cleared last image")

    def end_session(self) -> None:
        """Clear the last image and invalidate ticks already in progress."""
        with self._lock:
            self._session += 1
            self._last_image = None

    @contextmanager
    def confirmation_gate(self) -> Iterator[None]:
        """Hold the gate while a confirmation is pending.

        The flag is cleared on every exit path, including exceptions and
        cancellation.

        Raises:
            RuntimeError: If the gate is already held.
        """
        with self._lock:
            if self._awaiting_confirmation:
                raise RuntimeError("Confirmation already pending")
            self._awaiting_confirmation = True
        try:
            yield
        finally:
            with self._lock:
                self._awaiting_confirmation = False
