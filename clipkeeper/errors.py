"""Failure taxonomy for the capture pipeline."""

__all__ = [
    "CaptureError",
    "ClipboardAccessFault",
    "EncodingFault",
    "DirectoryFault",
    "WriteFault",
]


class CaptureError(Exception):
    """Base class for capture pipeline failures."""

    pass


class ClipboardAccessFault(CaptureError):
    """Clipboard could not be read (e.g. locked by another process).

    Transient: the tick treats it as "no image" and the next tick retries.
    """

    pass


class EncodingFault(CaptureError):
    """Image could not be encoded to the requested format."""

    pass


class DirectoryFault(CaptureError):
    """Save directory could not be created."""

    pass


class WriteFault(CaptureError):
    """Encoded bytes could not be written to disk."""

    pass
