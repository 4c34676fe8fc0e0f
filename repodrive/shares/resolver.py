"""Public share resolution: record state checks, visit counting, content fetch."""

import logging
from dataclasses import dataclass
from typing import Optional

from repodrive.errors import (
    RemoteError,
    ShareExpired,
    ShareInactive,
    ShareNotFound,
    ShareUpstreamFailure,
    UnexpectedContent,
)
from repodrive.files.paths import VirtualPath
from repodrive.remote.client import RemoteContentClient, RemoteStream
from repodrive.shares.models import ShareRecord, now_ms
from repodrive.shares.store import ShareStore

log = logging.getLogger(__name__)


@dataclass
class SharedContent:
    """A successful resolution: the record with its visit counted, and the open body."""

    record: ShareRecord
    stream: RemoteStream


class ShareResolver:
    """Resolves share ids without the shared secret; the id is the only credential."""

    def __init__(self, store: ShareStore, remote: RemoteContentClient) -> None:
        self._store = store
        self._remote = remote

    async def check(self, share_id: str, now: Optional[int] = None) -> ShareRecord:
        """Return the record if resolvable, else raise NotFound/Inactive/Expired."""
        record = await self._store.get(share_id)
        if record is None:
            log.info("Share id=%s not found", share_id)
            raise ShareNotFound(share_id)
        if not record.active:
            log.info("Share id=%s is inactive", share_id)
            raise ShareInactive(share_id)
        if record.is_expired(now):
            log.info("Share id=%s expired at %s", share_id, record.expire_at)
            raise ShareExpired(share_id, record.expire_at)
        return record

    async def open(self, record: ShareRecord) -> RemoteStream:
        """Fetch the shared file's descriptor and open its byte stream."""
        try:
            vpath = VirtualPath.parse(record.full_path)
            descriptor = await self._remote.get_contents(vpath.repository, vpath.relative_path)
            if not isinstance(descriptor, dict) or descriptor.get("type") != "file":
                raise UnexpectedContent(f"{record.full_path} is not a file")
            stream = await self._remote.open_stream(descriptor["download_url"])
        except (RemoteError, UnexpectedContent, ValueError, KeyError) as e:
            log.warning("Share id=%s source unavailable: %s", record.id, e)
            raise ShareUpstreamFailure(record.id, getattr(e, "status_code", None)) from e
        if not 200 <= stream.status_code < 300:
            await stream.aclose()
            log.warning("Share id=%s download returned %d", record.id, stream.status_code)
            raise ShareUpstreamFailure(record.id, stream.status_code)
        return stream

    async def resolve(self, share_id: str, now: Optional[int] = None) -> SharedContent:
        """
        Check the record, open the content and return the record with visits
        incremented. Persisting the new count is left to record_visit so it
        can run after the response.
        """
        record = await self.check(share_id, now)
        stream = await self.open(record)
        counted = record.model_copy(update={"visits": record.visits + 1})
        return SharedContent(record=counted, stream=stream)

    async def record_visit(self, record: ShareRecord) -> None:
        """Best-effort write of the incremented counter; failures are only logged."""
        try:
            await self._store.put(record.id, record)
        except Exception as e:
            log.warning("Could not persist visit for share id=%s: %s", record.id, e)
