"""Refresh scheduling.

Two policies drive the synchronizer, chosen by the active source:

- `DirectoryWatchScheduler` (local directory): every read rebuilds the
  snapshot synchronously. A watchdog observer on the rules directory
  only logs changes; the next read picks them up.
- `PollingScheduler` (GitHub repository): a background thread refreshes
  on a fixed interval, independent of reads. Ticks never overlap.

Both are started once at startup and stopped on shutdown.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .parser import is_rule_name
from .synchronizer import RefreshReport, SnapshotSynchronizer

if TYPE_CHECKING:
    from .config import AppConfig

logger = logging.getLogger(__name__)


class RefreshScheduler(ABC):
    """Common interface of the refresh policies."""

    def __init__(self, synchronizer: SnapshotSynchronizer) -> None:
        self.synchronizer = synchronizer

    @abstractmethod
    def start(self) -> None:
        """Start background work (watcher / timer)."""

    @abstractmethod
    def stop(self) -> None:
        """Stop background work and release OS resources. Idempotent."""

    def on_read(self) -> Optional[RefreshReport]:
        """Hook called by the resource facade before every snapshot read."""
        return None

    def refresh_now(self) -> RefreshReport:
        """Run one blocking refresh cycle (manual refresh)."""
        return self.synchronizer.refresh()


class RuleChangeLogger(FileSystemEventHandler):
    """Logs rule file events; the rebuild itself happens on the next read."""

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed", "closed_no_write"):
            return
        paths = [event.src_path]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(dest_path)
        for path in paths:
            name = Path(str(path)).name
            if is_rule_name(name):
                logger.info(
                    "Rules file %s: %s - cache will be refreshed on next request",
                    event.event_type,
                    name,
                )


class DirectoryWatchScheduler(RefreshScheduler):
    """Read-triggered rebuilds plus a logging-only directory watcher.

    Args:
        synchronizer: Synchronizer wrapping a local directory source.
        rules_dir: Directory to watch (non-recursive).
        min_interval_seconds: Reuse the previous rebuild if it finished
            less than this many seconds ago; 0 rebuilds on every read.
    """

    def __init__(
        self,
        synchronizer: SnapshotSynchronizer,
        rules_dir: str | Path,
        *,
        min_interval_seconds: float = 0.0,
    ) -> None:
        super().__init__(synchronizer)
        self.rules_dir = Path(rules_dir)
        self.min_interval_seconds = min_interval_seconds
        self._observer: Optional[Observer] = None
        self._last_rebuild: Optional[float] = None

    @property
    def watching(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Load the initial snapshot and start watching the directory."""
        if self._observer is not None:
            return
        self.on_read()
        if not self.rules_dir.is_dir():
            logger.warning(
                "Rules directory does not exist for watching: %s", self.rules_dir
            )
            return
        observer = Observer()
        observer.schedule(RuleChangeLogger(), str(self.rules_dir), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("File watcher set up for rules directory: %s", self.rules_dir)

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
        logger.debug("File watcher stopped")

    def on_read(self) -> Optional[RefreshReport]:
        now = time.monotonic()
        if (
            self.min_interval_seconds > 0
            and self._last_rebuild is not None
            and now - self._last_rebuild < self.min_interval_seconds
        ):
            return None
        report = self.synchronizer.refresh()
        self._last_rebuild = time.monotonic()
        return report


class PollingScheduler(RefreshScheduler):
    """Refreshes on a fixed interval from a background thread.

    The first cycle runs as soon as the thread starts. A tick that comes
    due while a cycle (e.g. a manual refresh) is still in flight is
    skipped rather than queued.
    """

    def __init__(
        self, synchronizer: SnapshotSynchronizer, *, interval_seconds: float = 60.0
    ) -> None:
        super().__init__(synchronizer)
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="rules-poller", daemon=True
        )
        self._thread.start()
        logger.info("Polling rules source every %ss", self.interval_seconds)

    def stop(self) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval_seconds + 5)
            logger.debug("Rules poller stopped")

    def tick(self) -> RefreshReport:
        """Run one scheduled cycle, skipping it if another is in flight.

        A cycle still fetching when `stop()` is called gives up before the
        next download instead of holding up shutdown.
        """
        return self.synchronizer.refresh(
            blocking=False, cancelled=self._stop_event.is_set
        )

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                # keep polling; the next tick may succeed
                logger.exception("Unexpected error during scheduled refresh")
            self._stop_event.wait(self.interval_seconds)


def create_scheduler(
    config: AppConfig, synchronizer: SnapshotSynchronizer
) -> RefreshScheduler:
    """Pick the refresh policy matching the configured source."""

    if config.source == "local":
        return DirectoryWatchScheduler(
            synchronizer,
            config.rules_dir,
            min_interval_seconds=config.reload_min_interval_seconds,
        )
    return PollingScheduler(synchronizer, interval_seconds=config.poll_interval_seconds)
