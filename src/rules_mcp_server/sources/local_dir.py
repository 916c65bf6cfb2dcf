"""Local directory rule source.

Reads every `.md` file of one directory. There is no staleness check:
each refresh re-reads all files, which is what lets reads always see the
latest content.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..document_source import RuleEntry, RuleSource
from ..errors import DocumentFetchError, SourceUnavailableError
from ..parser import is_rule_name

logger = logging.getLogger(__name__)


class LocalDirectorySource(RuleSource):
    """Rule source backed by a directory on local storage.

    Args:
        rules_dir: Directory containing the rule files (non-recursive).
    """

    kind = "local"

    def __init__(self, rules_dir: str | Path) -> None:
        self._rules_dir = Path(rules_dir)

    @property
    def rules_dir(self) -> Path:
        return self._rules_dir

    def list_entries(self) -> Optional[List[RuleEntry]]:
        """List `.md` files; a missing directory yields no rules."""

        if not self._rules_dir.is_dir():
            logger.warning("Rules directory does not exist: %s", self._rules_dir)
            return []

        try:
            paths = sorted(self._rules_dir.iterdir())
        except OSError as exc:
            raise SourceUnavailableError(
                f"Error reading rules directory: {self._rules_dir}",
                {"path": str(self._rules_dir), "reason": str(exc)},
            ) from exc

        return [
            RuleEntry(name=path.name, fingerprint=None, location=str(path))
            for path in paths
            if is_rule_name(path.name) and path.is_file()
        ]

    def fetch_body(self, entry: RuleEntry) -> str:
        try:
            return Path(entry.location).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentFetchError(
                f"Error reading file {entry.name}",
                {"path": entry.location, "reason": str(exc)},
            ) from exc

    def get_source_info(self) -> Dict[str, object]:
        return {
            "kind": self.kind,
            "location": str(self._rules_dir),
            "exists": self._rules_dir.is_dir(),
        }
