"""ClipKeeper - Main entry point."""

import logging
import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import IO, Optional

from . import __version__
from .capture.clipboard import PillowClipboard
from .capture.location import resolve_save_directory
from .capture.pipeline import CapturePipeline
from .config import Config, setup_logging
from .monitor import ClipboardMonitor
from .notifications import APP_TITLE, DesktopNotifier, SoundMode
from .ui.confirm import TkConfirmationPrompt

logger = logging.getLogger(__name__)


class ClipKeeperApp:
    """Main application orchestrator.

    Wires components together, handles lifecycle (start / shutdown) and
    persists settings. A GUI shell drives it through ``monitor``.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize the application."""
        self.config_path = config_path
        config = Config.load(config_path)
        setup_logging(config.debug_mode)

        logger.info(f"ClipKeeper {__version__} starting...")

        self.pipeline = CapturePipeline(
            clipboard=PillowClipboard(),
            notifier=DesktopNotifier(),
            confirmation=TkConfirmationPrompt(),
        )
        self.monitor = ClipboardMonitor(
            config=config,
            pipeline=self.pipeline,
            on_settings_changed=self._save_config,
        )

        # State
        self._shutdown_done = False
        self._shutdown_event = threading.Event()

    def run(self, start_monitoring: bool = True) -> None:
        """Run until a signal or ``stop()`` arrives.

        Without a tray there is nothing else to start monitoring, so the
        console entry point starts it right away. GUI shells pass
        ``start_monitoring=config.auto_start``.
        """
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        if start_monitoring:
            self.monitor.start_monitoring()
        self.pipeline.notifier.notify(APP_TITLE, "ClipKeeper started", SoundMode.SILENT)

        logger.info("ClipKeeper running")
        try:
            # Short waits keep the main thread responsive to signals on Windows.
            while not self._shutdown_event.wait(timeout=1.0):
                pass
        finally:
            self._shutdown()

    def stop(self) -> None:
        """Request shutdown."""
        logger.info("Quit requested")
        self._shutdown_event.set()

    def open_save_folder(self) -> Path:
        """Open the current save directory in the platform file browser."""
        directory = resolve_save_directory(self.monitor.config.save_location.to_location())
        directory.mkdir(parents=True, exist_ok=True)
        try:
            if sys.platform == "darwin":
                subprocess.Popen(["open", str(directory)])
            elif sys.platform == "win32":
                subprocess.Popen(["explorer", str(directory)])
            else:
                subprocess.Popen(["xdg-open", str(directory)])
        except OSError as e:
            logger.error(f"Failed to open save folder {directory}: {e}")
        return directory

    # -- internal ---------------------------------------------------------

    def _save_config(self, config: Config) -> None:
        config.save(self.config_path)

    def _signal_handler(self, signum, frame) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}")
        self._shutdown_event.set()

    def _shutdown(self) -> None:
        """Shutdown the application. Safe to call multiple times."""
        if self._shutdown_done:
            return
        self._shutdown_done = True
        logger.info("Shutting down...")

        self.monitor.shutdown()
        try:
            self._save_config(self.monitor.config)
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")

        logger.info("Shutdown complete")

    def __enter__(self) -> "ClipKeeperApp":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._shutdown()


class SingleInstanceLock:
    """Keeps a second watcher from saving into the same folders.

    Holds an advisory lock on a file in the config directory for as long as
    the process runs. The file contains the owner's PID.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else Config.get_lock_file()
        self._handle: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> bool:
        """Try to take the lock. Returns False if another instance holds it."""
        if self.held:
            return True
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle = self.path.open("a+", encoding="utf-8")
        try:
            _lock_handle(handle)
        except OSError:
            handle.close()
            logger.info(f"Lock {self.path} is held by another instance")
            return False

        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle
        return True

    def release(self) -> None:
        """Drop the lock and remove the lock file."""
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            _unlock_handle(handle)
        except OSError as e:
            logger.debug(f"Unlocking {self.path} failed: {e}")
        handle.close()
        try:
            self.path.unlink()
        except OSError as e:
            logger.debug(f"Could not remove {self.path}: {e}")

    def __enter__(self) -> "SingleInstanceLock":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def _lock_handle(handle: IO[str]) -> None:
    if sys.platform == "win32":
        import msvcrt
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
    else:
        import fcntl
        fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock_handle(handle: IO[str]) -> None:
    if sys.platform == "win32":
        import msvcrt
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl
        fcntl.flock(handle, fcntl.LOCK_UN)


def main() -> None:
    """Main entry point."""
    lock = SingleInstanceLock()
    if not lock.acquire():
        print("ClipKeeper is already running.")
        sys.exit(0)

    try:
        with ClipKeeperApp() as app:
            app.run()
    finally:
        lock.release()


if __name__ == "__main__":
    main()
