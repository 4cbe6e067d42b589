"""Clipboard monitor - owns the poll scheduler and the public capture operations."""

import logging
import threading
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .capture.naming import NamingState, generate_filename
from .capture.pipeline import CapturePipeline, CaptureResult
from .config import Config

logger = logging.getLogger(__name__)

__all__ = ["ClipboardMonitor"]


class ClipboardMonitor:
    """Drives the capture pipeline from a single interval job.

    Holds the live settings record. Each tick works on a snapshot taken when
    it starts, so ``apply_settings()`` only affects later ticks. Sequence
    numbers advanced by a tick are written back into the record, and
    ``on_settings_changed`` is called so the owner can persist them.
    """

    JOB_ID = "clipboard_poll"

    def __init__(
        self,
        config: Config,
        pipeline: CapturePipeline,
        on_settings_changed: Optional[Callable[[Config], None]] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.pipeline = pipeline
        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={"max_instances": 1, "coalesce": True}
        )
        self._config = config.copy().normalized()
        self._on_settings_changed = on_settings_changed
        self._lock = threading.Lock()
        self._monitoring = False

    @property
    def config(self) -> Config:
        """A copy of the current settings record."""
        with self._lock:
            return self._config.copy()

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    def start_monitoring(self) -> None:
        """Start polling the clipboard at the configured interval."""
        with self._lock:
            if self._monitoring:
                return
            self._monitoring = True
            interval_ms = self._config.interval_ms

        if not self.scheduler.running:
            self.scheduler.start()
        self.scheduler.add_job(
            self.poll,
            trigger=self._trigger(interval_ms),
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Clipboard monitoring started (interval: {interval_ms}ms)")

    def stop_monitoring(self) -> None:
        """Stop polling, cancel any pending confirmation and forget the last image."""
        with self._lock:
            if not self._monitoring:
                return
            self._monitoring = False

        try:
            self.scheduler.remove_job(self.JOB_ID)
        except JobLookupError:
            pass  # Job already gone
        self.pipeline.reset()
        logger.info("Clipboard monitoring stopped")

    def shutdown(self) -> None:
        """Stop monitoring and shut down the scheduler if running."""
        self.stop_monitoring()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def apply_settings(self, config: Config) -> None:
        """Replace the settings record. Takes effect from the next tick."""
        new_config = config.copy().normalized()
        with self._lock:
            old_interval = self._config.interval_ms
            self._config = new_config
            monitoring = self._monitoring

        if monitoring and new_config.interval_ms != old_interval:
            self.scheduler.reschedule_job(
                self.JOB_ID,
                trigger=self._trigger(new_config.interval_ms),
            )
            logger.info(f"Polling interval changed to {new_config.interval_ms}ms")
        logger.debug("Settings applied")

    def generate_file_name(self) -> str:
        """Generate the next filename for the current format.

        In sequential mode this consumes a sequence number, exactly as a
        capture would.
        """
        with self._lock:
            before = self._config.naming.to_state()
            filename, after = generate_filename(before, self._config.image_format)
            changed = self._store_naming(before, after)
        if changed:
            self._notify_settings_changed()
        return filename

    def poll(self) -> Optional[CaptureResult]:
        """Run one capture tick. Called by the scheduler; safe to call directly."""
        with self._lock:
            settings = self._config.capture_settings()

        try:
            result = self.pipeline.tick(settings)
        except Exception as e:
            logger.exception(f"Clipboard poll error: {e}")
            return None

        with self._lock:
            changed = self._store_naming(settings.naming, result.naming)
        if changed:
            self._notify_settings_changed()
        return result

    # -- internal ---------------------------------------------------------

    def _store_naming(self, before: NamingState, after: NamingState) -> bool:
        """Write an advanced sequence number back. Caller holds the lock."""
        if after.sequence_number == before.sequence_number:
            return False
        current = self._config.naming.sequence_number
        if current != before.sequence_number:
            # Settings were replaced mid-tick; their counter wins.
            logger.debug(
                f"Sequence changed externally ({before.sequence_number} -> {current}), "
                "not storing advanced value"
            )
            return False
        self._config.naming.sequence_number = after.sequence_number
        return True

    def _notify_settings_changed(self) -> None:
        if self._on_settings_changed is None:
            return
        try:
            self._on_settings_changed(self.config)
        except Exception as e:
            logger.warning(f"Failed to persist settings: {e}")

    @staticmethod
    def _trigger(interval_ms: int) -> IntervalTrigger:
        return IntervalTrigger(seconds=interval_ms / 1000)
