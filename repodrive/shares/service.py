"""Share lifecycle: create, toggle, delete and list records."""

import logging
import secrets
import string
from typing import List, Optional

from repodrive.shares.models import UNIT_DURATIONS_MS, ShareRecord, now_ms
from repodrive.shares.store import ShareStore

log = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_letters + string.digits
_MAX_ID_ATTEMPTS = 5


def compute_expire_at(created_at: int, unit: str, value: int) -> Optional[int]:
    """Absolute expiry in ms, or None for 'forever'. Raises ValueError on bad input."""
    if unit == "forever":
        return None
    if unit not in UNIT_DURATIONS_MS:
        raise ValueError(f"Unknown duration unit: {unit!r}")
    if value <= 0:
        raise ValueError("Duration value must be a positive integer")
    return created_at + value * UNIT_DURATIONS_MS[unit]


def generate_share_id(length: int = 12) -> str:
    """Random id from [A-Za-z0-9] using the secrets module."""
    if length < 1:
        raise ValueError("Share id length must be positive")
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def normalize_full_path(full_path: str) -> str:
    """'/repo/dir/file' -> 'repo/dir/file'. Requires a repository and a file segment."""
    parts = [p for p in full_path.replace("\\", "/").split("/") if p]
    if len(parts) < 2:
        raise ValueError("fullPath must be '<repository>/<file path>'")
    if any(p in (".", "..") for p in parts):
        raise ValueError("fullPath must not contain '.' or '..' segments")
    return "/".join(parts)


async def create_share(
    store: ShareStore,
    full_path: str,
    unit: str,
    value: int,
    id_length: int = 12,
    now: Optional[int] = None,
) -> ShareRecord:
    """Create and persist a new active share with zero visits."""
    created_at = now_ms() if now is None else now
    expire_at = compute_expire_at(created_at, unit, value)
    path = normalize_full_path(full_path)
    share_id = generate_share_id(id_length)
    attempts = 1
    while await store.exists(share_id):
        if attempts >= _MAX_ID_ATTEMPTS:
            raise RuntimeError("Could not allocate an unused share id")
        log.warning("Share id collision, drawing a new id (attempt %d)", attempts)
        share_id = generate_share_id(id_length)
        attempts += 1
    record = ShareRecord(
        id=share_id,
        full_path=path,
        created_at=created_at,
        expire_at=expire_at,
        active=True,
        visits=0,
    )
    await store.create(record)
    log.info("Created share id=%s path=%s expire_at=%s", share_id, path, expire_at)
    return record


async def toggle_share(store: ShareStore, share_id: str, active: bool) -> bool:
    """Set the active flag. Returns False (and writes nothing) when the id is unknown."""
    record = await store.get(share_id)
    if record is None:
        log.info("Toggle of unknown share id=%s", share_id)
        return False
    record.active = active
    await store.put(share_id, record)
    log.info("Share id=%s active=%s", share_id, active)
    return True


async def delete_share(store: ShareStore, share_id: str) -> None:
    """Delete the record; unknown ids are a no-op."""
    await store.delete(share_id)
    log.info("Deleted share id=%s", share_id)


async def list_shares(store: ShareStore) -> List[ShareRecord]:
    """All share records, newest first."""
    records = await store.list_all()
    records.sort(key=lambda r: r.created_at, reverse=True)
    return records
