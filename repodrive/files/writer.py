"""Conditional file writes guarded by the file's version token (sha)."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from repodrive.codec import encode_text
from repodrive.errors import RemoteUnavailable
from repodrive.remote.client import RemoteContentClient

log = logging.getLogger(__name__)


class WriteStatus(str, Enum):
    OK = "ok"
    CONFLICT = "conflict"
    UPSTREAM_FAILURE = "upstream_failure"


@dataclass
class WriteResult:
    status: WriteStatus
    status_code: int
    message: str = ""
    new_sha: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is WriteStatus.OK


async def write_file(
    remote: RemoteContentClient,
    repository: str,
    relative_path: str,
    version_token: str,
    content: str,
    message: str = "Update via Web Manager",
) -> WriteResult:
    """
    Submit new text content for repository/relative_path, valid only if the
    file is still at version_token. A stale token yields CONFLICT and the file
    is left unchanged. Never retries: the caller must re-read the file and its
    token before trying again.
    """
    try:
        r = await remote.put_contents(
            repository, relative_path, encode_text(content), version_token, message
        )
    except RemoteUnavailable as e:
        return WriteResult(WriteStatus.UPSTREAM_FAILURE, e.status_code, e.message)
    try:
        data = r.json()
    except ValueError:
        data = {}
    if r.is_success:
        new_sha = (data.get("content") or {}).get("sha") if isinstance(data, dict) else None
        log.info("Updated %s/%s sha=%s -> %s", repository, relative_path, version_token, new_sha)
        return WriteResult(WriteStatus.OK, r.status_code, new_sha=new_sha)
    upstream_message = ""
    if isinstance(data, dict):
        upstream_message = str(data.get("message") or "")
    upstream_message = upstream_message or r.reason_phrase or "Update failed"
    if r.status_code == 409:
        log.info("Write conflict on %s/%s with stale sha=%s", repository, relative_path, version_token)
        return WriteResult(WriteStatus.CONFLICT, 409, upstream_message)
    log.warning("Update of %s/%s rejected: %d %s", repository, relative_path, r.status_code, upstream_message)
    return WriteResult(WriteStatus.UPSTREAM_FAILURE, r.status_code, upstream_message)
