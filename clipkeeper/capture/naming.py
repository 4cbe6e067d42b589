"""Target filename generation (timestamp or prefix/sequence/suffix)."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from ..imaging.codec import ImageFormat

logger = logging.getLogger(__name__)

__all__ = ["NamingMode", "NamingState", "generate_filename", "TIMESTAMP_FORMAT"]

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class NamingMode(str, Enum):
    TIMESTAMP = "timestamp"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class NamingState:
    """Filename strategy and, for sequential naming, the next number to use."""

    mode: NamingMode = NamingMode.TIMESTAMP
    prefix: str = ""
    suffix: str = ""
    sequence_number: int = 1
    digits: int = 3

    def __post_init__(self) -> None:
        if self.sequence_number < 0:
            raise ValueError(f"sequence_number must be >= 0, got {self.sequence_number}")
        if self.digits < 1:
            raise ValueError(f"digits must be >= 1, got {self.digits}")


def generate_filename(
    state: NamingState,
    fmt: ImageFormat,
    now: Optional[datetime] = None,
) -> tuple[str, NamingState]:
    """Build a filename for ``fmt`` and return it with the advanced state.

    Timestamp naming uses local time and leaves the state untouched.
    Sequential naming pads the number to ``digits`` (never truncating) and
    returns a state whose ``sequence_number`` is one higher, whether or not
    the caller goes on to write the file.
    """
    extension = fmt.extension

    if state.mode is NamingMode.TIMESTAMP:
        now = now or datetime.now()
        filename = now.strftime(TIMESTAMP_FORMAT) + extension
        logger.debug(f"Generated timestamp filename: {filename}")
        return filename, state

    number = str(state.sequence_number).zfill(state.digits)
    filename = f"{state.prefix}{number}{state.suffix}{extension}"
    logger.debug(
        f"Generated sequential filename: {filename} "
        f"(sequence {state.sequence_number}, digits {state.digits})"
    )
    return filename, replace(state, sequence_number=state.sequence_number + 1)
