"""Rule source abstraction layer.

Provides pluggable implementations for enumerating and fetching rule
documents from different sources (local directory, GitHub repository)
behind one interface, plus the immutable records the synchronizer builds
from them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class RuleEntry:
    """One enumerated rule, not yet fetched.

    Attributes:
        name: Source filename, used as the snapshot key.
        fingerprint: Version marker supplied by the source, if any.
        location: Where `fetch_body` reads the content from (path or URL).
    """

    name: str
    fingerprint: Optional[str]
    location: str


@dataclass(frozen=True)
class RuleDocument:
    """A fetched rule document as published in a snapshot."""

    name: str
    title: str
    body: str
    fingerprint: Optional[str]


class RuleSource(ABC):
    """Abstract interface for rule sources.

    Implementations enumerate rule documents and fetch their bodies from
    exactly one backing store. A source may implement a staleness check
    by returning None from `list_entries` when nothing changed since the
    previous call.
    """

    kind: str = "abstract"

    @abstractmethod
    def list_entries(self) -> Optional[List[RuleEntry]]:
        """Enumerate the rule documents currently available.

        Returns:
            Entries in source order, or None when the source reports that
            nothing changed since the previous successful listing.

        Raises:
            SourceUnavailableError: If the source cannot be enumerated.
        """

    @abstractmethod
    def fetch_body(self, entry: RuleEntry) -> str:
        """Fetch the full text of one entry.

        Raises:
            DocumentFetchError: If this single document cannot be fetched.
        """

    def forget_validator(self) -> None:
        """Drop any stored staleness validator so the next listing is full."""

    @abstractmethod
    def get_source_info(self) -> Dict[str, object]:
        """Get information about the source (kind, location, validator...)."""

    def close(self) -> None:
        """Release any held resources (HTTP clients, handles)."""
