"""Virtual path parsing and request classification."""

from dataclasses import dataclass
from enum import Enum
from typing import List

SHARE_PREFIX = "/s/"

# Exact path + method -> administrative action
API_ROUTES = {
    ("POST", "/api/share/create"): "share_create",
    ("POST", "/api/share/toggle"): "share_toggle",
    ("POST", "/api/share/delete"): "share_delete",
    ("POST", "/api/file/update"): "file_update",
}


class RouteKind(str, Enum):
    """What an inbound request addresses."""

    SHARE = "share"
    API = "api"
    ADMIN = "admin"
    HEALTH = "health"
    ROOT = "root"
    CONTENT = "content"


def normalize_path(path: str) -> str:
    """Ensure a leading slash and strip a trailing one (root stays '/')."""
    if not path.startswith("/"):
        path = "/" + path
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


def classify_request(method: str, path: str) -> RouteKind:
    """Classify a request into exactly one RouteKind."""
    path = normalize_path(path)
    if path.startswith(SHARE_PREFIX) or path == "/s":
        return RouteKind.SHARE
    if (method.upper(), path) in API_ROUTES or path.startswith("/api/"):
        return RouteKind.API
    if path == "/admin/shares":
        return RouteKind.ADMIN
    if path == "/health":
        return RouteKind.HEALTH
    if path == "/":
        return RouteKind.ROOT
    return RouteKind.CONTENT


def _segments(path: str) -> List[str]:
    parts = [p for p in path.replace("\\", "/").split("/") if p]
    for part in parts:
        if part in (".", ".."):
            raise ValueError(f"Unsafe path segment: {part!r}")
    return parts


@dataclass(frozen=True)
class VirtualPath:
    """Repository name plus the path inside it ('' = repository root)."""

    repository: str
    relative_path: str = ""

    @classmethod
    def parse(cls, path: str) -> "VirtualPath":
        """'/repo/a/b.txt' -> VirtualPath('repo', 'a/b.txt'). Raises ValueError for root."""
        parts = _segments(path)
        if not parts:
            raise ValueError("Path does not name a repository")
        return cls(repository=parts[0], relative_path="/".join(parts[1:]))

    @property
    def full_path(self) -> str:
        if not self.relative_path:
            return self.repository
        return f"{self.repository}/{self.relative_path}"

    @property
    def name(self) -> str:
        return self.full_path.split("/")[-1]

    def parent(self) -> str:
        """URL path of the parent listing ('/' above a repository root)."""
        if not self.relative_path:
            return "/"
        parts = self.relative_path.split("/")[:-1]
        if not parts:
            return f"/{self.repository}"
        return f"/{self.repository}/{'/'.join(parts)}"

    def breadcrumbs(self) -> List[tuple]:
        """[(label, url_path), ...] for each segment below the repository."""
        crumbs = []
        accum = f"/{self.repository}"
        for part in self.relative_path.split("/") if self.relative_path else []:
            accum += "/" + part
            crumbs.append((part, accum))
        return crumbs
