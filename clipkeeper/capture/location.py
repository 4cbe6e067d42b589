"""Save directory resolution."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from platformdirs import user_pictures_dir

logger = logging.getLogger(__name__)

__all__ = ["SaveLocationMode", "SaveLocation", "resolve_save_directory", "pictures_directory"]


class SaveLocationMode(str, Enum):
    CURRENT_DIRECTORY = "current_directory"
    PICTURES = "pictures"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SaveLocation:
    """Where captured images go. Resolved on every capture, never cached."""

    mode: SaveLocationMode = SaveLocationMode.PICTURES
    custom_path: str = ""


def pictures_directory() -> Path:
    """Get the platform's standard pictures directory."""
    return Path(user_pictures_dir())


def resolve_save_directory(location: SaveLocation) -> Path:
    """Map a save location to a concrete directory.

    A custom path is accepted when it is absolute and its parent exists, so a
    not-yet-created leaf folder is fine. Otherwise the pictures directory is
    used. Nothing is created here; the caller creates the directory at write
    time.
    """
    if location.mode is SaveLocationMode.CURRENT_DIRECTORY:
        directory = Path.cwd()
    elif location.mode is SaveLocationMode.CUSTOM:
        directory = _custom_directory(location.custom_path)
    else:
        directory = pictures_directory()

    logger.debug(f"Save directory ({location.mode.value}): {directory}")
    return directory


def _custom_directory(custom_path: str) -> Path:
    if custom_path and custom_path.strip():
        candidate = Path(custom_path.strip()).expanduser()
        # A bare relative name has no parent folder to check.
        if candidate.is_absolute() and candidate.parent.is_dir():
            return candidate.resolve()
    logger.info(f"Custom directory '{custom_path}' is invalid, falling back to pictures folder")
    return pictures_directory()
