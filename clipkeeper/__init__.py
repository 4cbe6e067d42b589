"""ClipKeeper - saves images copied to the clipboard."""

__version__ = "1.0.0"
