"""Tests for public share resolution."""

from unittest.mock import AsyncMock

import pytest

from repodrive.errors import ShareExpired, ShareInactive, ShareNotFound, ShareUpstreamFailure
from repodrive.shares.models import ShareRecord
from repodrive.shares.resolver import ShareResolver
from repodrive.shares.service import create_share, toggle_share


async def _read(stream) -> bytes:
    body = b""
    async for chunk in stream.aiter_bytes():
        body += chunk
    await stream.aclose()
    return body


@pytest.fixture
def resolver(share_store, fake_github):
    fake_github.add_file("myrepo", "notes.txt", "grüße\n".encode("utf-8"))
    return ShareResolver(share_store, fake_github.client())


@pytest.mark.asyncio
async def test_unknown_id_is_not_found(resolver) -> None:
    with pytest.raises(ShareNotFound):
        await resolver.resolve("missing")


@pytest.mark.asyncio
async def test_scenario_two_hour_share(resolver, share_store) -> None:
    """Created at t=0 for 2 hours: expired at 7200001, served at 7199999 with visits=1."""
    record = await create_share(share_store, "myrepo/notes.txt", "hour", 2, now=0)
    with pytest.raises(ShareExpired):
        await resolver.resolve(record.id, now=7_200_001)

    shared = await resolver.resolve(record.id, now=7_199_999)
    assert await _read(shared.stream) == "grüße\n".encode("utf-8")
    assert shared.record.visits == 1
    await resolver.record_visit(shared.record)
    assert (await share_store.get(record.id)).visits == 1


@pytest.mark.asyncio
async def test_each_resolution_counts_one_visit(resolver, share_store) -> None:
    record = await create_share(share_store, "myrepo/notes.txt", "forever", 1)
    for expected in (1, 2, 3):
        shared = await resolver.resolve(record.id)
        await _read(shared.stream)
        await resolver.record_visit(shared.record)
        assert (await share_store.get(record.id)).visits == expected


@pytest.mark.asyncio
async def test_inactive_share_never_resolves(resolver, share_store) -> None:
    """Inactive wins regardless of expiry."""
    forever = await create_share(share_store, "myrepo/notes.txt", "forever", 1)
    await toggle_share(share_store, forever.id, False)
    with pytest.raises(ShareInactive):
        await resolver.resolve(forever.id)
    expired = await create_share(share_store, "myrepo/notes.txt", "hour", 1, now=0)
    await toggle_share(share_store, expired.id, False)
    with pytest.raises(ShareInactive):
        await resolver.resolve(expired.id, now=10 ** 12)


@pytest.mark.asyncio
async def test_past_expiry_is_expired_not_not_found(resolver, share_store) -> None:
    record = await create_share(share_store, "myrepo/notes.txt", "day", 1, now=0)
    with pytest.raises(ShareExpired) as info:
        await resolver.resolve(record.id, now=86_400_000 + 1)
    assert info.value.expire_at == 86_400_000


@pytest.mark.asyncio
async def test_missing_source_is_upstream_failure(resolver, share_store) -> None:
    record = await create_share(share_store, "myrepo/gone.txt", "forever", 1)
    with pytest.raises(ShareUpstreamFailure):
        await resolver.resolve(record.id)
    assert (await share_store.get(record.id)).visits == 0


@pytest.mark.asyncio
async def test_failed_download_is_upstream_failure(resolver, share_store, fake_github) -> None:
    record = await create_share(share_store, "myrepo/notes.txt", "forever", 1)
    fake_github.fail_downloads = True
    with pytest.raises(ShareUpstreamFailure) as info:
        await resolver.resolve(record.id)
    assert info.value.status_code == 500


@pytest.mark.asyncio
async def test_directory_share_is_upstream_failure(share_store, fake_github) -> None:
    fake_github.add_file("myrepo", "dir/a.txt", b"a")
    resolver = ShareResolver(share_store, fake_github.client())
    record = await create_share(share_store, "myrepo/dir", "forever", 1)
    with pytest.raises(ShareUpstreamFailure):
        await resolver.resolve(record.id)


@pytest.mark.asyncio
async def test_record_visit_swallows_store_failure() -> None:
    """A failing store write is logged, not raised."""
    store = AsyncMock()
    store.put.side_effect = RuntimeError("store down")
    resolver = ShareResolver(store, AsyncMock())
    record = ShareRecord(id="x", full_path="r/f", created_at=0, visits=1)
    await resolver.record_visit(record)
    store.put.assert_awaited_once_with("x", record)
