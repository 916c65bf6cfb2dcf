"""Rule document parsing helpers.

Pure functions used while assembling a snapshot: extract a display title
from markdown content and compute the content fingerprint used for
change detection when the source does not provide one.

Public API:
    - extract_title
    - content_fingerprint
    - fingerprint_changed
"""

from __future__ import annotations

import hashlib
import re
from typing import Optional

RULE_EXTENSION = ".md"

_HEADING_RE = re.compile(r"^#\s+(.+)$")


def is_rule_name(name: str) -> bool:
    """True when `name` carries the recognized rule extension."""
    return name.endswith(RULE_EXTENSION)


def strip_extension(name: str) -> str:
    if name.endswith(RULE_EXTENSION):
        return name[: -len(RULE_EXTENSION)]
    return name


def extract_title(content: str, name: str) -> str:
    """Return the first level-1 heading of `content`, else `name` sans `.md`.

    Example:
        >>> extract_title("# Hello World\\nbody", "hello.md")
        'Hello World'
        >>> extract_title("no heading here", "foo.md")
        'foo'
    """

    for line in content.split("\n"):
        match = _HEADING_RE.match(line)
        if match:
            return match.group(1).strip()
    return strip_extension(name)


def content_fingerprint(content: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded content."""

    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def fingerprint_changed(old: Optional[str], new: Optional[str]) -> bool:
    """Compare two fingerprints; a missing one always counts as changed."""

    if old is None or new is None:
        return True
    return old != new
