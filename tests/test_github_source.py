"""Tests for the GitHub repository rule source."""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import httpx
import pytest

from rules_mcp_server.document_source import RuleEntry
from rules_mcp_server.errors import DocumentFetchError, SourceUnavailableError
from rules_mcp_server.sources import GitHubRepositorySource
from rules_mcp_server.store import SnapshotStore
from rules_mcp_server.synchronizer import SnapshotSynchronizer

RAW = "https://raw.githubusercontent.com/acme/team-rules/main/rules"


def _listing_item(name: str, sha: str, kind: str = "file") -> Dict[str, object]:
    return {
        "name": name,
        "path": f"rules/{name}",
        "sha": sha,
        "type": kind,
        "download_url": f"{RAW}/{name}" if kind == "file" else None,
    }


class GitHubStub:
    """Minimal contents API + raw download server for httpx.MockTransport."""

    def __init__(self) -> None:
        self.etag = '"v1"'
        self.listing_status = 200
        self.listing: List[Dict[str, object]] = [
            _listing_item("style.md", "sha-style"),
            _listing_item("testing.md", "sha-testing"),
            _listing_item("review.md", "sha-review"),
            _listing_item("README.txt", "sha-readme"),
            _listing_item("drafts", "sha-drafts", kind="dir"),
        ]
        self.files: Dict[str, Tuple[int, str]] = {
            f"{RAW}/style.md": (200, "# Code Style\n\nUse black."),
            f"{RAW}/testing.md": (200, "# Testing\n\nWrite tests."),
            f"{RAW}/review.md": (200, "Review everything."),
        }
        self.requests: List[httpx.Request] = []
        self.offline = False

    @property
    def downloads(self) -> List[httpx.Request]:
        return [r for r in self.requests if not r.url.path.startswith("/repos/")]

    @property
    def listings(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/repos/")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)
        if request.url.path.startswith("/repos/"):
            if self.listing_status != 200:
                return httpx.Response(self.listing_status, json={"message": "nope"})
            if request.headers.get("If-None-Match") == self.etag:
                return httpx.Response(304, headers={"ETag": self.etag})
            return httpx.Response(200, json=self.listing, headers={"ETag": self.etag})
        status, body = self.files.get(str(request.url), (404, "Not Found"))
        return httpx.Response(status, text=body)


@pytest.fixture
def stub() -> GitHubStub:
    return GitHubStub()


@pytest.fixture
def source(stub: GitHubStub) -> GitHubRepositorySource:
    client = httpx.Client(transport=httpx.MockTransport(stub.handler))
    return GitHubRepositorySource(
        "acme", "team-rules", branch="main", path="rules", token="t0ken", client=client
    )


class TestListEntries:
    """Test the conditional directory listing."""

    def test_filters_markdown_files(
        self, source: GitHubRepositorySource, stub: GitHubStub
    ) -> None:
        """Should keep only .md files and carry the blob sha."""
        entries = source.list_entries()

        assert [(e.name, e.fingerprint) for e in entries] == [
            ("style.md", "sha-style"),
            ("testing.md", "sha-testing"),
            ("review.md", "sha-review"),
        ]
        assert entries[0].location == f"{RAW}/style.md"
        assert source.etag == '"v1"'

    def test_request_shape(self, source: GitHubRepositorySource, stub: GitHubStub) -> None:
        """Should hit the contents API with ref, accept and auth headers."""
        source.list_entries()

        request = stub.listings[0]
        assert request.url.path == "/repos/acme/team-rules/contents/rules"
        assert request.url.params["ref"] == "main"
        assert request.headers["Accept"] == "application/vnd.github+json"
        assert request.headers["Authorization"] == "Bearer t0ken"
        assert "If-None-Match" not in request.headers

    def test_not_modified_returns_none(
        self, source: GitHubRepositorySource, stub: GitHubStub
    ) -> None:
        """Should send the stored ETag and return None on 304."""
        source.list_entries()

        assert source.list_entries() is None
        assert stub.listings[1].headers["If-None-Match"] == '"v1"'
        assert source.etag == '"v1"'

    def test_forget_validator(self, source: GitHubRepositorySource, stub: GitHubStub) -> None:
        """Should list in full again after the ETag is dropped."""
        source.list_entries()
        source.forget_validator()

        assert source.etag is None
        assert len(source.list_entries()) == 3

    def test_error_status(self, source: GitHubRepositorySource, stub: GitHubStub) -> None:
        """Should raise SourceUnavailableError on non-2xx listings."""
        stub.listing_status = 500

        with pytest.raises(SourceUnavailableError) as excinfo:
            source.list_entries()

        assert excinfo.value.details["status"] == 500

    def test_network_error(self, source: GitHubRepositorySource, stub: GitHubStub) -> None:
        """Should raise SourceUnavailableError when the request fails."""
        stub.offline = True

        with pytest.raises(SourceUnavailableError):
            source.list_entries()

    def test_path_is_a_file(self, source: GitHubRepositorySource, stub: GitHubStub) -> None:
        """Should reject a listing that is not a JSON array."""
        stub.listing = {"type": "file", "name": "rules"}  # type: ignore[assignment]

        with pytest.raises(SourceUnavailableError):
            source.list_entries()


class TestFetchBody:
    """Test per-document downloads."""

    def test_downloads_content(self, source: GitHubRepositorySource) -> None:
        """Should GET the download URL."""
        entry = RuleEntry("style.md", "sha-style", f"{RAW}/style.md")

        assert source.fetch_body(entry) == "# Code Style\n\nUse black."

    def test_error_status(self, source: GitHubRepositorySource) -> None:
        """Should raise DocumentFetchError on non-2xx downloads."""
        entry = RuleEntry("gone.md", "sha-gone", f"{RAW}/gone.md")

        with pytest.raises(DocumentFetchError) as excinfo:
            source.fetch_body(entry)

        assert excinfo.value.details["status"] == 404


class TestRefreshCycle:
    """Test full refresh cycles against the stub."""

    def test_not_modified_keeps_snapshot(
        self, source: GitHubRepositorySource, stub: GitHubStub
    ) -> None:
        """A 304 should keep the snapshot and ETag and fetch nothing."""
        store = SnapshotStore()
        synchronizer = SnapshotSynchronizer(source, store)
        synchronizer.refresh()
        before = store.snapshot()
        downloads_before = len(stub.downloads)

        report = synchronizer.refresh()

        assert report.status == "not_modified"
        assert store.snapshot() is before
        assert source.etag == '"v1"'
        assert len(stub.downloads) == downloads_before

    def test_one_failed_download(
        self,
        source: GitHubRepositorySource,
        stub: GitHubStub,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Should publish the two good rules and log the failed one."""
        stub.files[f"{RAW}/testing.md"] = (500, "boom")
        store = SnapshotStore()

        with caplog.at_level(logging.ERROR):
            report = SnapshotSynchronizer(source, store).refresh()

        assert report.status == "published"
        assert sorted(store.read()) == ["review.md", "style.md"]
        assert [f.name for f in report.failures] == ["testing.md"]
        assert "testing.md" in caplog.text
        assert source.etag is None

    def test_fingerprint_is_blob_sha(self, source: GitHubRepositorySource) -> None:
        """Records should carry the blob sha and extracted title."""
        store = SnapshotStore()
        SnapshotSynchronizer(source, store).refresh()

        style = store.read()["style.md"]
        assert style.fingerprint == "sha-style"
        assert style.title == "Code Style"
        assert store.read()["review.md"].title == "review"

    def test_listing_failure_keeps_snapshot(
        self, source: GitHubRepositorySource, stub: GitHubStub
    ) -> None:
        """A failed listing should keep the previous snapshot."""
        store = SnapshotStore()
        synchronizer = SnapshotSynchronizer(source, store)
        synchronizer.refresh()
        before = store.snapshot()
        stub.offline = True

        report = synchronizer.refresh()

        assert report.status == "aborted"
        assert store.snapshot() is before
        assert len(store.read()) == 3


class TestClose:
    def test_close_keeps_injected_client(self, stub: GitHubStub) -> None:
        """Should not close a client it did not create."""
        client = httpx.Client(transport=httpx.MockTransport(stub.handler))
        GitHubRepositorySource("acme", "team-rules", client=client).close()

        assert not client.is_closed

    def test_close_owned_client(self) -> None:
        source = GitHubRepositorySource("acme", "team-rules")
        source.close()

        assert source._client.is_closed
