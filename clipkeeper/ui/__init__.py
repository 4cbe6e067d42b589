"""UI module - minimal dialogs the headless watcher needs."""

from .confirm import TkConfirmationPrompt

__all__ = ["TkConfirmationPrompt"]
