"""Share records kept in the key-value table, one JSON value per share id."""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from repodrive.shares.models import KVEntry, ShareRecord

log = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def _escape_like(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ShareStore:
    """
    CRUD over share records. Every call runs in its own session, so there is
    no atomic read-modify-write: concurrent puts to one id race and the last
    one wins.
    """

    def __init__(self, session_factory: SessionFactory, prefix: str = "share_") -> None:
        self._session_factory = session_factory
        self._prefix = prefix

    def key_for(self, share_id: str) -> str:
        return f"{self._prefix}{share_id}"

    async def get(self, share_id: str) -> Optional[ShareRecord]:
        """Return the record or None when absent."""
        async with self._session_factory() as session:
            row = await session.get(KVEntry, self.key_for(share_id))
            if row is None:
                return None
            return ShareRecord.model_validate_json(row.value)

    async def put(self, share_id: str, record: ShareRecord) -> None:
        """Store the record under the id, overwriting whatever was there."""
        value = record.model_dump_json(by_alias=True)
        async with self._session_factory() as session:
            await session.merge(KVEntry(key=self.key_for(share_id), value=value))

    async def create(self, record: ShareRecord) -> None:
        await self.put(record.id, record)

    async def exists(self, share_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(KVEntry, self.key_for(share_id))
            return row is not None

    async def delete(self, share_id: str) -> None:
        """Remove the record. Missing ids are ignored."""
        async with self._session_factory() as session:
            row = await session.get(KVEntry, self.key_for(share_id))
            if row is not None:
                await session.delete(row)

    async def list_all(self, prefix: Optional[str] = None) -> List[ShareRecord]:
        """Return all records whose key starts with prefix (default: the share namespace)."""
        key_prefix = self._prefix if prefix is None else prefix
        async with self._session_factory() as session:
            result = await session.execute(
                select(KVEntry.key, KVEntry.value).where(
                    KVEntry.key.like(f"{_escape_like(key_prefix)}%", escape="\\")
                )
            )
            rows = result.all()
        records: List[ShareRecord] = []
        for key, value in rows:
            try:
                records.append(ShareRecord.model_validate_json(value))
            except ValueError as e:
                log.warning("Skipping unreadable share record key=%s: %s", key, e)
        return records
