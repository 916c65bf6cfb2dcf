"""Snapshot store.

Holds the single published generation of rule documents. A new mapping
is always assembled off to the side and published with one attribute
assignment, so readers see either the old or the new generation, never
a mix of both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

from .document_source import RuleDocument

if TYPE_CHECKING:
    from .synchronizer import RefreshReport


@dataclass(frozen=True)
class Snapshot:
    """One immutable generation of the rule mapping."""

    documents: Mapping[str, RuleDocument] = field(
        default_factory=lambda: MappingProxyType({})
    )
    generation: int = 0
    published_at: Optional[datetime] = None

    @property
    def published_at_iso(self) -> Optional[str]:
        return self.published_at.isoformat() if self.published_at else None


class SnapshotStore:
    """Owner of the current snapshot.

    Shared by the synchronizer (the only writer) and the resource facade
    (readers). Starts with an empty generation 0.
    """

    def __init__(self) -> None:
        self._snapshot = Snapshot()
        self._last_report: Optional[RefreshReport] = None

    def swap(self, documents: Mapping[str, RuleDocument]) -> Snapshot:
        """Publish `documents` as the next generation and return it."""

        snapshot = Snapshot(
            documents=MappingProxyType(dict(documents)),
            generation=self._snapshot.generation + 1,
            published_at=datetime.now(timezone.utc),
        )
        self._snapshot = snapshot
        return snapshot

    def read(self) -> Mapping[str, RuleDocument]:
        """Return the mapping of the currently published generation."""
        return self._snapshot.documents

    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def last_report(self) -> Optional[RefreshReport]:
        return self._last_report

    def record_report(self, report: RefreshReport) -> None:
        self._last_report = report
