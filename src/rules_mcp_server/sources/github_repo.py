"""GitHub repository rule source.

Enumerates rules through the repository contents API and downloads each
file from the `download_url` the listing supplies. The listing request
carries the last seen ETag, so an unchanged directory costs one 304 and
no downloads.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import httpx

from ..document_source import RuleEntry, RuleSource
from ..errors import DocumentFetchError, SourceUnavailableError
from ..parser import is_rule_name

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"


class GitHubRepositorySource(RuleSource):
    """Rule source backed by a directory of a GitHub repository.

    Args:
        owner: Repository owner (user or organization).
        repo: Repository name.
        branch: Branch (or any ref) to read from.
        path: Subdirectory holding the rules; empty for the repository root.
        token: Optional token sent as a bearer Authorization header.
        api_base: Base URL of the REST API.
        timeout_seconds: Per-request timeout.
        client: Optional preconfigured `httpx.Client` (used by tests).
    """

    kind = "github"

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        branch: str = "main",
        path: str = "",
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
        timeout_seconds: float = 15,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.path = path.strip("/")
        self._api_base = api_base.rstrip("/")
        headers = {"Accept": GITHUB_ACCEPT, "User-Agent": "rules-mcp-server"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._headers = headers
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout_seconds, follow_redirects=True
        )
        self._etag: Optional[str] = None

    @property
    def etag(self) -> Optional[str]:
        return self._etag

    @property
    def listing_url(self) -> str:
        url = f"{self._api_base}/repos/{quote(self.owner)}/{quote(self.repo)}/contents"
        if self.path:
            url += "/" + quote(self.path)
        return url

    def _conditional_headers(self) -> Dict[str, str]:
        headers = dict(self._headers)
        if self._etag:
            headers["If-None-Match"] = self._etag
        return headers

    def list_entries(self) -> Optional[List[RuleEntry]]:
        """List `.md` files of the configured directory.

        Returns:
            None on 304 Not Modified, the entries otherwise.

        Raises:
            SourceUnavailableError: On network errors, unexpected statuses
                or a body that is not a directory listing.
        """

        url = self.listing_url
        try:
            response = self._client.get(
                url, params={"ref": self.branch}, headers=self._conditional_headers()
            )
        except httpx.RequestError as exc:
            raise SourceUnavailableError(
                "Failed to list rules repository", {"url": url, "reason": str(exc)}
            ) from exc

        if response.status_code == 304:
            logger.debug("Rules listing not modified (etag %s)", self._etag)
            return None
        if not response.is_success:
            raise SourceUnavailableError(
                f"Rules listing returned HTTP {response.status_code}",
                {"url": url, "status": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceUnavailableError(
                "Rules listing is not valid JSON", {"url": url, "reason": str(exc)}
            ) from exc
        if not isinstance(payload, list):
            raise SourceUnavailableError(
                "Rules listing is not a directory",
                {"url": url, "type": type(payload).__name__},
            )

        entries: List[RuleEntry] = []
        for item in payload:
            if not isinstance(item, dict) or item.get("type") != "file":
                continue
            name = item.get("name")
            download_url = item.get("download_url")
            if not isinstance(name, str) or not is_rule_name(name):
                continue
            if not isinstance(download_url, str) or not download_url:
                continue
            sha = item.get("sha")
            entries.append(
                RuleEntry(
                    name=name,
                    fingerprint=sha if isinstance(sha, str) else None,
                    location=download_url,
                )
            )

        self._etag = response.headers.get("ETag")
        return entries

    def fetch_body(self, entry: RuleEntry) -> str:
        headers = {"User-Agent": self._headers["User-Agent"]}
        if "Authorization" in self._headers:
            headers["Authorization"] = self._headers["Authorization"]
        try:
            response = self._client.get(entry.location, headers=headers)
        except httpx.RequestError as exc:
            raise DocumentFetchError(
                f"Failed to download {entry.name}",
                {"url": entry.location, "reason": str(exc)},
            ) from exc
        if not response.is_success:
            raise DocumentFetchError(
                f"Failed to download {entry.name}: HTTP {response.status_code}",
                {"url": entry.location, "status": response.status_code},
            )
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentFetchError(
                f"{entry.name} is not valid UTF-8",
                {"url": entry.location, "reason": str(exc)},
            ) from exc

    def forget_validator(self) -> None:
        self._etag = None

    def get_source_info(self) -> Dict[str, object]:
        return {
            "kind": self.kind,
            "location": f"{self.owner}/{self.repo}@{self.branch}/{self.path}",
            "listing_url": self.listing_url,
            "etag": self._etag,
        }

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
