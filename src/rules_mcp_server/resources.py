"""Resource facade.

Translates MCP resource list/read requests into snapshot reads. This is
the only component the protocol layer talks to for resources; it never
reaches the source directly. Before each read it lets the scheduler run
its read hook, which is where the local directory policy rebuilds.
"""

from __future__ import annotations

from typing import List, Mapping
from urllib.parse import quote, unquote, urlsplit

from .document_source import RuleDocument
from .errors import NotFoundError
from .scheduler import RefreshScheduler
from .schemas import RuleResource, RuleResourceContent
from .store import SnapshotStore


def rule_uri(name: str, scheme: str = "rule") -> str:
    """Build the resource URI of a rule, e.g. ``rule:///style.md``."""
    return f"{scheme}:///{quote(name)}"


def parse_rule_uri(uri: str, scheme: str = "rule") -> str:
    """Return the rule name of `uri`.

    Raises:
        NotFoundError: If the URI is not a ``<scheme>:///<name>`` identifier.
    """

    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        raise NotFoundError("Malformed rule URI", {"uri": uri}) from exc
    if parts.scheme != scheme or parts.netloc or parts.query or parts.fragment:
        raise NotFoundError("Malformed rule URI", {"uri": uri})
    name = unquote(parts.path[1:] if parts.path.startswith("/") else parts.path)
    if not name or "/" in name:
        raise NotFoundError("Malformed rule URI", {"uri": uri})
    return name


def describe_rule(document: RuleDocument) -> str:
    return f"Roo rule: {document.title} ({document.name})"


class ResourceFacade:
    """List and read rules as MCP resources.

    Args:
        store: Snapshot store shared with the synchronizer.
        scheduler: Active refresh policy; its `on_read` hook runs first.
        scheme: URI scheme of the resources.
    """

    def __init__(
        self, store: SnapshotStore, scheduler: RefreshScheduler, *, scheme: str = "rule"
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self.scheme = scheme

    def _current(self) -> Mapping[str, RuleDocument]:
        self._scheduler.on_read()
        return self._store.read()

    def list_resources(self) -> List[RuleResource]:
        """One entry per rule of the current snapshot."""

        documents = self._current()
        return [
            RuleResource(
                uri=rule_uri(name, self.scheme),
                name=document.title,
                description=describe_rule(document),
            )
            for name, document in documents.items()
        ]

    def read_resource(self, uri: str) -> RuleResourceContent:
        """Return the markdown content of the rule identified by `uri`.

        Raises:
            NotFoundError: If the URI is malformed or names no current rule.
        """

        name = parse_rule_uri(uri, self.scheme)
        document = self._current().get(name)
        if document is None:
            raise NotFoundError(f"Rule {name} not found", {"name": name})
        return RuleResourceContent(uri=uri, text=document.body)
