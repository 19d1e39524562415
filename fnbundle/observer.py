from __future__ import annotations

import logging

from .models import ArchiveEntry

logger = logging.getLogger(__name__)


class ArchiveObserver:
    """Hooks called while an archive is built or loaded. All no-ops here."""

    def build_started(self, src: str) -> None:
        pass

    def entry_skipped(self, relpath: str, reason: str) -> None:
        pass

    def entry_added(self, entry: ArchiveEntry) -> None:
        pass

    def build_finished(self, size: int, count: int) -> None:
        pass

    def archive_loaded(self, src: str, size: int) -> None:
        pass

    def entry_listed(self, entry: ArchiveEntry) -> None:
        pass


class LoggingObserver(ArchiveObserver):
    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    def build_started(self, src: str) -> None:
        self.log.info("creating zip archive from %s", src)

    def entry_skipped(self, relpath: str, reason: str) -> None:
        self.log.debug("skipping %s (%s)", relpath, reason)

    def entry_added(self, entry: ArchiveEntry) -> None:
        self.log.debug("%s", entry.describe())

    def build_finished(self, size: int, count: int) -> None:
        self.log.info("zip archive wrote %d bytes (%d entries)", size, count)

    def archive_loaded(self, src: str, size: int) -> None:
        self.log.info("zip archive %s is %d bytes", src, size)

    def entry_listed(self, entry: ArchiveEntry) -> None:
        self.log.debug("%s", entry.describe())


class RecordingObserver(ArchiveObserver):
    """Keeps every event in ``events`` as ``(hook_name, payload)`` tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def build_started(self, src: str) -> None:
        self.events.append(("build_started", src))

    def entry_skipped(self, relpath: str, reason: str) -> None:
        self.events.append(("entry_skipped", (relpath, reason)))

    def entry_added(self, entry: ArchiveEntry) -> None:
        self.events.append(("entry_added", entry))

    def build_finished(self, size: int, count: int) -> None:
        self.events.append(("build_finished", (size, count)))

    def archive_loaded(self, src: str, size: int) -> None:
        self.events.append(("archive_loaded", (src, size)))

    def entry_listed(self, entry: ArchiveEntry) -> None:
        self.events.append(("entry_listed", entry))

    def of(self, hook: str) -> list:
        return [payload for name, payload in self.events if name == hook]
