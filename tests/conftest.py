"""Shared fixtures for the rules MCP server tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from rules_mcp_server.document_source import RuleEntry, RuleSource
from rules_mcp_server.errors import DocumentFetchError, SourceUnavailableError


class FakeSource(RuleSource):
    """In-memory rule source; a body of None makes that fetch fail."""

    kind = "fake"

    def __init__(
        self,
        bodies: Optional[Dict[str, Optional[str]]] = None,
        fingerprints: Optional[Dict[str, str]] = None,
    ) -> None:
        self.bodies: Dict[str, Optional[str]] = dict(bodies or {})
        self.fingerprints: Dict[str, str] = dict(fingerprints or {})
        self.fail_listing = False
        self.not_modified = False
        self.fetch_calls: List[str] = []
        self.forget_calls = 0
        self.gate: Optional[threading.Event] = None
        self.fetch_started = threading.Event()

    def list_entries(self) -> Optional[List[RuleEntry]]:
        if self.fail_listing:
            raise SourceUnavailableError("source is down")
        if self.not_modified:
            return None
        return [
            RuleEntry(name=name, fingerprint=self.fingerprints.get(name), location=name)
            for name in self.bodies
        ]

    def fetch_body(self, entry: RuleEntry) -> str:
        self.fetch_calls.append(entry.name)
        self.fetch_started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        body = self.bodies[entry.location]
        if body is None:
            raise DocumentFetchError(f"cannot fetch {entry.name}")
        return body

    def forget_validator(self) -> None:
        self.forget_calls += 1

    def get_source_info(self) -> Dict[str, object]:
        return {"kind": self.kind, "location": "memory"}


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource(
        {
            "alpha.md": "# Alpha\n\nFirst rule.",
            "beta.md": "Second rule without heading.",
        }
    )


@pytest.fixture
def rules_dir(tmp_path: Path) -> Path:
    """A rules directory with two rules and one non-markdown file."""
    directory = tmp_path / "rules"
    directory.mkdir()
    (directory / "style.md").write_text("# Code Style\n\nUse black.\n", encoding="utf-8")
    (directory / "testing.md").write_text("Always write tests.\n", encoding="utf-8")
    (directory / "notes.txt").write_text("not a rule", encoding="utf-8")
    return directory
