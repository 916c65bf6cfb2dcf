"""Snapshot synchronizer.

Runs one refresh cycle: enumerate the source, fetch every entry,
assemble a new mapping, log what changed, then swap it into the store.
Both refresh policies (read-triggered rebuilds and background polling)
go through `SnapshotSynchronizer.refresh`.

Source-level failures never escape a cycle. A failed listing aborts the
cycle and leaves the store untouched; a failed document is left out of
the new snapshot and reported as a failed `FetchOutcome`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Literal, Mapping, Optional, Tuple

from .document_source import RuleDocument, RuleSource
from .errors import DocumentFetchError, SourceUnavailableError
from .parser import content_fingerprint, extract_title, fingerprint_changed
from .store import SnapshotStore

logger = logging.getLogger(__name__)

RefreshStatus = Literal["published", "not_modified", "aborted", "cancelled", "skipped"]


@dataclass(frozen=True)
class FetchOutcome:
    """Per-document result of one refresh cycle."""

    name: str
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ChangeSet:
    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    changed: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


@dataclass(frozen=True)
class RefreshReport:
    """Result of one refresh cycle, kept for status reporting and tests."""

    status: RefreshStatus
    outcomes: Tuple[FetchOutcome, ...] = ()
    changes: ChangeSet = field(default_factory=ChangeSet)
    error: Optional[str] = None
    generation: Optional[int] = None
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def failures(self) -> List[FetchOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


def diff_snapshots(
    old: Mapping[str, RuleDocument], new: Mapping[str, RuleDocument]
) -> ChangeSet:
    """Compare two mappings by name set, then by fingerprint per shared name."""

    old_names = set(old)
    new_names = set(new)
    changed = sorted(
        name
        for name in old_names & new_names
        if fingerprint_changed(old[name].fingerprint, new[name].fingerprint)
    )
    return ChangeSet(
        added=tuple(sorted(new_names - old_names)),
        removed=tuple(sorted(old_names - new_names)),
        changed=tuple(changed),
    )


class SnapshotSynchronizer:
    """Builds snapshots from a source and publishes them into a store.

    Args:
        source: The active rule source.
        store: Store the new generations are swapped into.
    """

    def __init__(self, source: RuleSource, store: SnapshotStore) -> None:
        self.source = source
        self.store = store
        self._lock = threading.Lock()

    def refresh(
        self,
        *,
        blocking: bool = True,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> RefreshReport:
        """Run one refresh cycle.

        Args:
            blocking: Wait for a cycle already in flight to finish. When
                False, return a "skipped" report instead.
            cancelled: Checked between document fetches; once it returns
                True the cycle stops without publishing anything.
        """

        if not self._lock.acquire(blocking=blocking):
            logger.debug("Refresh already in flight; skipping")
            return RefreshReport(status="skipped")
        try:
            report = self._run_cycle(cancelled or (lambda: False))
            self.store.record_report(report)
        finally:
            self._lock.release()
        return report

    def _run_cycle(self, cancelled: Callable[[], bool]) -> RefreshReport:
        try:
            entries = self.source.list_entries()
        except SourceUnavailableError as exc:
            logger.error("Refresh aborted, keeping previous rules: %s", exc)
            return RefreshReport(status="aborted", error=str(exc))

        if entries is None:
            logger.debug("Rules source not modified; snapshot kept")
            return RefreshReport(status="not_modified")

        documents: Dict[str, RuleDocument] = {}
        outcomes: List[FetchOutcome] = []
        for entry in entries:
            if cancelled():
                logger.info("Refresh cancelled, keeping previous rules")
                return RefreshReport(status="cancelled", outcomes=tuple(outcomes))
            try:
                body = self.source.fetch_body(entry)
            except DocumentFetchError as exc:
                logger.error("Error fetching rule %s: %s", entry.name, exc)
                outcomes.append(FetchOutcome(name=entry.name, ok=False, error=str(exc)))
                continue
            documents[entry.name] = RuleDocument(
                name=entry.name,
                title=extract_title(body, entry.name),
                body=body,
                fingerprint=entry.fingerprint or content_fingerprint(body),
            )
            outcomes.append(FetchOutcome(name=entry.name, ok=True))

        if any(not outcome.ok for outcome in outcomes):
            # retry the failed downloads on the next cycle instead of a 304
            self.source.forget_validator()

        changes = diff_snapshots(self.store.read(), documents)
        snapshot = self.store.swap(documents)
        self._log_changes(changes, snapshot.generation, len(documents))
        return RefreshReport(
            status="published",
            outcomes=tuple(outcomes),
            changes=changes,
            generation=snapshot.generation,
        )

    @staticmethod
    def _log_changes(changes: ChangeSet, generation: int, count: int) -> None:
        for name in changes.added:
            logger.info("Rule added: %s", name)
        for name in changes.removed:
            logger.info("Rule removed: %s", name)
        for name in changes.changed:
            logger.info("Rule changed: %s", name)
        logger.debug("Published rules generation %d (%d rules)", generation, count)
