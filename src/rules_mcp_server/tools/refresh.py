"""Refresh tool for manual snapshot updates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..schemas import FetchFailure, RefreshRulesInput, RefreshRulesOutput

if TYPE_CHECKING:
    from ..scheduler import RefreshScheduler


_MESSAGES = {
    "published": "Rules refreshed successfully",
    "not_modified": "Rules source not modified; snapshot kept",
    "aborted": "Rules source unavailable; previous snapshot kept",
    "cancelled": "Refresh cancelled; previous snapshot kept",
}


def refresh_rules(
    scheduler: RefreshScheduler,
    params: RefreshRulesInput,
) -> RefreshRulesOutput:
    """Manually refresh the rule snapshot.

    Runs one blocking refresh cycle through the active scheduler, waiting
    for a cycle already in flight instead of overlapping it. Source
    failures are reported in the output, never raised.

    Args:
        scheduler: Active refresh policy.
        params: Refresh parameters (currently none).

    Returns:
        Status, change summary and per-document failures of the cycle.
    """
    report = scheduler.refresh_now()
    snapshot = scheduler.synchronizer.store.snapshot()

    message = _MESSAGES.get(report.status, report.status)
    if report.error:
        message = f"{message}: {report.error}"
    elif report.failures:
        message = f"{message} ({len(report.failures)} rule(s) failed to load)"

    return RefreshRulesOutput(
        success=report.status not in ("aborted", "cancelled"),
        status=report.status,
        message=message,
        document_count=len(snapshot.documents),
        generation=snapshot.generation,
        added=list(report.changes.added),
        removed=list(report.changes.removed),
        changed=list(report.changes.changed),
        failures=[FetchFailure(name=f.name, error=f.error) for f in report.failures],
    )
