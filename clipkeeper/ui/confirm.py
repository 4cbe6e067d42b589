"""Save confirmation prompt using tkinter."""

import logging
import threading
from concurrent.futures import Future, InvalidStateError
from typing import Optional

from PIL import Image

logger = logging.getLogger(__name__)


class TkConfirmationPrompt:
    """Yes/no dialog asking whether to save a new clipboard image.

    Each request opens a dialog on its own thread with its own Tk root and
    returns a future for the answer. If the future is cancelled while the
    dialog is open, the dialog stays up and its answer is discarded.
    """

    TITLE = "ClipKeeper - Save Confirmation"
    MESSAGE = "Save the image on the clipboard?"

    def request_confirmation(self, image: Image.Image) -> "Future[bool]":
        future: Future = Future()
        threading.Thread(
            target=self._ask,
            args=(future, image.width, image.height),
            name="clipkeeper-confirm",
            daemon=True,
        ).start()
        return future

    def _ask(self, future: Future, width: int, height: int) -> None:
        try:
            import tkinter as tk
            from tkinter import messagebox

            root = tk.Tk()
            root.withdraw()
            root.attributes("-topmost", True)
            try:
                answer = messagebox.askyesno(
                    self.TITLE,
                    f"{self.MESSAGE}\n\n{width} x {height} pixels",
                    parent=root,
                )
            finally:
                root.destroy()
        except Exception as e:
            logger.warning(f"Could not show confirmation dialog: {e}")
            _resolve(future, exception=e)
            return
        _resolve(future, result=bool(answer))


def _resolve(
    future: Future,
    result: Optional[bool] = None,
    exception: Optional[BaseException] = None,
) -> None:
    try:
        if exception is not None:
            future.set_exception(exception)
        else:
            future.set_result(result)
    except InvalidStateError:
        logger.debug("Confirmation answered after the request was cancelled")
