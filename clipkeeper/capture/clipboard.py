"""System clipboard access via Pillow."""

import logging
from typing import Optional

from PIL import Image, ImageGrab

from ..errors import ClipboardAccessFault

logger = logging.getLogger(__name__)

__all__ = ["PillowClipboard"]


class PillowClipboard:
    """Reads bitmap images from the system clipboard.

    Uses ``ImageGrab.grabclipboard()``, which works natively on Windows and
    macOS and through wl-paste/xclip on Linux.
    """

    def read_image(self) -> Optional[Image.Image]:
        """Return the clipboard image, or None if the clipboard holds none.

        File lists (copied files) and text count as "no image".

        Raises:
            ClipboardAccessFault: If the clipboard could not be read, e.g.
                because another process holds it open.
        """
        try:
            content = ImageGrab.grabclipboard()
            if not isinstance(content, Image.Image):
                return None
            content.load()
        except Exception as e:
            raise ClipboardAccessFault(f"Clipboard read failed: {e}") from e

        # grabclipboard may hand back a lazily decoded file object; detach it.
        image = content.copy()
        content.close()
        return image
