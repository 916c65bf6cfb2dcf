"""Tests for the local directory rule source."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rules_mcp_server.document_source import RuleEntry
from rules_mcp_server.errors import DocumentFetchError
from rules_mcp_server.sources import LocalDirectorySource


class TestLocalDirectorySource:
    """Test LocalDirectorySource."""

    def test_lists_markdown_files_only(self, rules_dir: Path) -> None:
        """Should list .md files sorted by name."""
        source = LocalDirectorySource(rules_dir)

        entries = source.list_entries()

        assert [e.name for e in entries] == ["style.md", "testing.md"]
        assert all(e.fingerprint is None for e in entries)
        assert entries[0].location == str(rules_dir / "style.md")

    def test_ignores_subdirectories(self, rules_dir: Path) -> None:
        """Should not descend into or list directories."""
        (rules_dir / "nested.md").mkdir()
        (rules_dir / "nested.md" / "inner.md").write_text("# Inner")

        names = [e.name for e in LocalDirectorySource(rules_dir).list_entries()]

        assert names == ["style.md", "testing.md"]

    def test_missing_directory_is_empty(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Should degrade to no rules when the directory does not exist."""
        source = LocalDirectorySource(tmp_path / "missing")

        with caplog.at_level(logging.WARNING):
            entries = source.list_entries()

        assert entries == []
        assert "does not exist" in caplog.text

    def test_fetch_body(self, rules_dir: Path) -> None:
        """Should read the whole file as UTF-8."""
        source = LocalDirectorySource(rules_dir)
        entry = source.list_entries()[0]

        assert source.fetch_body(entry) == "# Code Style\n\nUse black.\n"

    def test_fetch_missing_file(self, rules_dir: Path) -> None:
        """Should raise DocumentFetchError for an unreadable file."""
        source = LocalDirectorySource(rules_dir)
        entry = RuleEntry("gone.md", None, str(rules_dir / "gone.md"))

        with pytest.raises(DocumentFetchError) as excinfo:
            source.fetch_body(entry)

        assert excinfo.value.details["path"] == str(rules_dir / "gone.md")

    def test_fetch_invalid_utf8(self, rules_dir: Path) -> None:
        """Should raise DocumentFetchError for undecodable content."""
        (rules_dir / "binary.md").write_bytes(b"\xff\xfe\x00bad")
        source = LocalDirectorySource(rules_dir)
        entry = RuleEntry("binary.md", None, str(rules_dir / "binary.md"))

        with pytest.raises(DocumentFetchError):
            source.fetch_body(entry)

    def test_source_info(self, rules_dir: Path) -> None:
        """Should describe kind and location."""
        info = LocalDirectorySource(rules_dir).get_source_info()

        assert info == {"kind": "local", "location": str(rules_dir), "exists": True}
