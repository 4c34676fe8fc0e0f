"""Pytest configuration: set test env before any repodrive imports so the KV store uses a temp file."""

import base64
import hashlib
import json
import os
import tempfile
from typing import Dict, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

# Set before repodrive.db.session or repodrive.config are used so the engine uses a test path
_tmp = tempfile.mkdtemp(prefix="repodrive_test_")
_db_path = os.path.join(_tmp, "test.db")
os.environ.setdefault("REPODRIVE_DB_PATH", _db_path)
os.environ.setdefault("REPODRIVE_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REPODRIVE_GITHUB_OWNER", "octo")
os.environ.setdefault("REPODRIVE_GITHUB_TOKEN", "gh-test-token")

API = "https://api.github.test"
RAW = "https://raw.github.test"


def raw_response(status_code: int, body: bytes, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    """Response whose body is left unread, as a streamed download arrives."""
    headers = dict(headers or {})
    headers.setdefault("Content-Length", str(len(body)))
    return httpx.Response(status_code, stream=httpx.ByteStream(body), headers=headers)


class FakeGitHub:
    """
    In-memory stand-in for the contents API: directory listings, file
    descriptors, raw downloads, repository list and sha-checked PUT.
    """

    def __init__(self, owner: str = "octo") -> None:
        self.owner = owner
        self.files: Dict[Tuple[str, str], bytes] = {}
        self.repos = []
        self.requests = []
        self.fail_downloads = False
        # Files the contents API reports without inline content (over its size limit)
        self.oversized: set = set()

    @staticmethod
    def sha_of(body: bytes) -> str:
        return hashlib.sha1(body).hexdigest()

    def add_file(self, repo: str, path: str, body: bytes) -> str:
        self.files[(repo, path)] = body
        if not any(r["name"] == repo for r in self.repos):
            self.repos.append({"name": repo, "private": False, "updated_at": "2024-01-01T00:00:00Z"})
        return self.sha_of(body)

    def _descriptor(self, repo: str, path: str) -> dict:
        body = self.files[(repo, path)]
        oversized = (repo, path) in self.oversized
        return {
            "type": "file",
            "name": path.split("/")[-1],
            "path": path,
            "sha": self.sha_of(body),
            "encoding": "none" if oversized else "base64",
            "content": "" if oversized else base64.encodebytes(body).decode("ascii"),
            "download_url": f"{RAW}/{self.owner}/{repo}/main/{path}",
        }

    def _listing(self, repo: str, prefix: str) -> list:
        entries = {}
        for (r, path) in self.files:
            if r != repo:
                continue
            if prefix and not path.startswith(prefix + "/"):
                continue
            rest = path[len(prefix) + 1:] if prefix else path
            head = rest.split("/")[0]
            full = f"{prefix}/{head}" if prefix else head
            kind = "dir" if "/" in rest else "file"
            entries[full] = {"type": kind, "name": head, "path": full}
        return list(entries.values())

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url.startswith(RAW):
            if self.fail_downloads:
                return raw_response(500, b"boom")
            _, repo, _, path = request.url.path.lstrip("/").split("/", 3)
            body = self.files.get((repo, path))
            if body is None:
                return raw_response(404, b"404: Not Found")
            return raw_response(200, body, {"Content-Type": "text/plain; charset=utf-8"})
        path = request.url.path
        if path == "/user/repos":
            return httpx.Response(200, json=self.repos)
        prefix = f"/repos/{self.owner}/"
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        repo, _, rest = path[len(prefix):].partition("/")
        file_path = rest[len("contents"):].strip("/") if rest.startswith("contents") else None
        if file_path is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if request.method == "PUT":
            payload = json.loads(request.content)
            current = self.files.get((repo, file_path))
            if current is not None and payload.get("sha") != self.sha_of(current):
                return httpx.Response(409, json={"message": f"{file_path} does not match {payload.get('sha')}"})
            body = base64.b64decode(payload["content"])
            self.files[(repo, file_path)] = body
            return httpx.Response(200, json={"content": {"sha": self.sha_of(body)}})
        if (repo, file_path) in self.files:
            return httpx.Response(200, json=self._descriptor(repo, file_path))
        listing = self._listing(repo, file_path)
        if listing:
            return httpx.Response(200, json=listing)
        return httpx.Response(404, json={"message": "Not Found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self):
        from repodrive.remote.client import RemoteContentClient

        return RemoteContentClient("octo", "gh-test-token", api_url=API, transport=self.transport())


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest_asyncio.fixture
async def init_test_db():
    """Create the KV table and empty it after the test."""
    from sqlalchemy import delete

    from repodrive.db.session import get_session, init_db
    from repodrive.shares.models import KVEntry

    await init_db()
    yield
    async with get_session() as session:
        await session.execute(delete(KVEntry))


@pytest.fixture
def session_factory(init_test_db):
    """Yield get_session so tests can use async with session_factory() as session."""
    from repodrive.db.session import get_session
    return get_session


@pytest.fixture
def share_store(session_factory):
    """ShareStore over the test KV table."""
    from repodrive.shares.store import ShareStore
    return ShareStore(session_factory, prefix="share_")
