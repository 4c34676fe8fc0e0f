"""Share routes: public /s/{id} access and the protected share admin API."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from starlette.background import BackgroundTasks

from repodrive import views
from repodrive.auth.gate import require_access, token_query
from repodrive.config import Settings, get_settings
from repodrive.dependencies import get_share_resolver, get_share_store
from repodrive.limiter import limiter
from repodrive.shares.models import ShareCreate, ShareCreateResponse, ShareDelete, ShareToggle
from repodrive.shares.resolver import ShareResolver
from repodrive.shares.service import create_share, delete_share, list_shares, toggle_share
from repodrive.shares.store import ShareStore

# No secret here: the share id is the credential
public_router = APIRouter(tags=["shares"])
admin_router = APIRouter(tags=["shares"], dependencies=[Depends(require_access)])
log = logging.getLogger(__name__)


@public_router.get("/s")
@public_router.get("/s/")
async def share_missing_id() -> None:
    """A share URL without an id."""
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid share link")


@public_router.get("/s/{share_id:path}")
@limiter.limit("120/minute")
async def open_share(
    request: Request,
    share_id: str,
    resolver: Annotated[ShareResolver, Depends(get_share_resolver)],
) -> StreamingResponse:
    """
    Stream the shared file. 404 unknown id, 403 disabled, 410 expired,
    502 when the source file cannot be fetched. Every path below /s/ lands
    here, so ids containing '/' are simply unknown. The visit counter is
    written after the response and never fails it.
    """
    shared = await resolver.resolve(share_id)
    tasks = BackgroundTasks()
    # Visit is recorded before the upstream response is closed
    tasks.add_task(resolver.record_visit, shared.record)
    tasks.add_task(shared.stream.aclose)
    log.info("open_share id=%s path=%s visits=%d", share_id, shared.record.full_path, shared.record.visits)
    return StreamingResponse(
        shared.stream.aiter_bytes(),
        status_code=shared.stream.status_code,
        headers=shared.stream.headers,
        background=tasks,
    )


@admin_router.post("/api/share/create", response_model=ShareCreateResponse)
@limiter.limit("60/minute")
async def create_share_link(
    request: Request,
    body: ShareCreate,
    store: Annotated[ShareStore, Depends(get_share_store)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Create a share for fullPath valid for value x unit (or forever)."""
    try:
        record = await create_share(
            store, body.full_path, body.unit, body.value, id_length=settings.share_id_length
        )
    except ValueError as e:
        log.warning("create_share rejected path=%r: %s", body.full_path, e)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": str(e)},
        )
    origin = settings.public_base_url.rstrip("/") or str(request.base_url).rstrip("/")
    return ShareCreateResponse(url=f"{origin}/s/{record.id}", id=record.id)


@admin_router.post("/api/share/toggle")
async def toggle_share_link(
    body: ShareToggle,
    store: Annotated[ShareStore, Depends(get_share_store)],
) -> dict:
    """Enable or disable a share. success is false for an unknown id."""
    return {"success": await toggle_share(store, body.id, body.active)}


@admin_router.post("/api/share/delete")
async def delete_share_link(
    body: ShareDelete,
    store: Annotated[ShareStore, Depends(get_share_store)],
) -> dict:
    """Delete a share. Unknown ids succeed too."""
    await delete_share(store, body.id)
    return {"success": True}


@admin_router.get("/admin/shares", response_class=HTMLResponse)
async def share_manager(
    store: Annotated[ShareStore, Depends(get_share_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HTMLResponse:
    """Share admin page, newest first."""
    records = await list_shares(store)
    return HTMLResponse(views.render_shares(records, token_query(settings)))
