"""Rules status tool function."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..schemas import FetchFailure, RulesStatusOutput

if TYPE_CHECKING:
    from ..config import AppConfig
    from ..document_source import RuleSource
    from ..store import SnapshotStore


def rules_status(
    config: AppConfig, store: SnapshotStore, source: RuleSource
) -> RulesStatusOutput:
    """Report the active source, the published generation and the last refresh.

    Reading the status never triggers a refresh, even for the local
    directory source.
    """

    snapshot = store.snapshot()
    report = store.last_report

    return RulesStatusOutput(
        source=config.source,
        location=config.source_location,
        source_info=source.get_source_info(),
        document_count=len(snapshot.documents),
        generation=snapshot.generation,
        published_at=snapshot.published_at_iso,
        last_refresh_status=report.status if report else None,
        last_refresh_ts=report.finished_at.isoformat() if report else None,
        last_error=report.error if report else None,
        failures=[
            FetchFailure(name=f.name, error=f.error) for f in (report.failures if report else [])
        ],
    )
