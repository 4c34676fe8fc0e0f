"""File routes: repository list, directory listing, file proxy, editor, update."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response, StreamingResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from repodrive import views
from repodrive.auth.gate import require_access, token_query
from repodrive.codec import decode_text
from repodrive.config import Settings, get_settings
from repodrive.dependencies import get_remote_client
from repodrive.errors import UnexpectedContent
from repodrive.files.paths import VirtualPath, normalize_path
from repodrive.files.writer import write_file
from repodrive.limiter import limiter
from repodrive.remote.client import RemoteContentClient

router = APIRouter(tags=["files"], dependencies=[Depends(require_access)])
log = logging.getLogger(__name__)


class FileUpdate(BaseModel):
    """Body of POST /api/file/update."""

    repo: str
    path: str
    sha: str
    content: str


def _parse_virtual_path(path: str) -> VirtualPath:
    try:
        return VirtualPath.parse(path)
    except ValueError as e:
        log.warning("Rejected path=%r: %s", path, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/api/file/update")
@limiter.limit("60/minute")
async def update_file(
    request: Request,
    body: FileUpdate,
    remote: Annotated[RemoteContentClient, Depends(get_remote_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JSONResponse:
    """
    Save new content for repo/path if the file is still at sha.
    409 with the upstream message when sha is stale; the client must reload.
    """
    vpath = _parse_virtual_path(f"{body.repo}/{body.path}")
    if not vpath.relative_path:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Path must name a file")
    result = await write_file(
        remote, vpath.repository, vpath.relative_path, body.sha, body.content,
        message=settings.commit_message,
    )
    if result.ok:
        return JSONResponse(content={"success": True, "sha": result.new_sha})
    return JSONResponse(
        status_code=result.status_code,
        content={"success": False, "message": result.message},
    )


async def _render_editor(
    remote: RemoteContentClient, vpath: VirtualPath, tq: str
) -> HTMLResponse:
    data = await remote.get_contents(vpath.repository, vpath.relative_path)
    if not isinstance(data, dict) or data.get("type") != "file":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only files can be edited")
    # Files over the contents API size limit come back with encoding "none" and no content
    if data.get("encoding") != "base64":
        log.warning("edit refused repo=%s path=%s encoding=%r", vpath.repository, vpath.relative_path, data.get("encoding"))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large to edit")
    try:
        content = decode_text(data.get("content") or "")
    except (ValueError, UnicodeDecodeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is not UTF-8 text")
    name = data.get("name") or vpath.name
    log.info("edit repo=%s path=%s sha=%s", vpath.repository, vpath.relative_path, data.get("sha"))
    return HTMLResponse(views.render_editor(vpath, name, data.get("sha") or "", content, tq))


@router.get("/{full_path:path}")
async def browse(
    full_path: str,
    remote: Annotated[RemoteContentClient, Depends(get_remote_client)],
    settings: Annotated[Settings, Depends(get_settings)],
    edit: Optional[str] = None,
) -> Response:
    """
    '/' lists repositories; '/<repo>/<path>' lists a directory or streams a
    file; '?edit=true' opens the editor for a file.
    """
    tq = token_query(settings)
    path = normalize_path(full_path)
    if path == "/":
        repos = await remote.list_repositories()
        return HTMLResponse(views.render_repositories(repos, tq))
    vpath = _parse_virtual_path(path)
    if edit == "true":
        return await _render_editor(remote, vpath, tq)
    data = await remote.get_contents(vpath.repository, vpath.relative_path)
    if isinstance(data, list):
        log.debug("list repo=%s path=%s count=%d", vpath.repository, vpath.relative_path, len(data))
        return HTMLResponse(views.render_listing(vpath, data, tq))
    if isinstance(data, dict) and data.get("type") == "file" and data.get("download_url"):
        stream = await remote.open_stream(data["download_url"])
        log.info("download repo=%s path=%s status=%d", vpath.repository, vpath.relative_path, stream.status_code)
        return StreamingResponse(
            stream.aiter_bytes(),
            status_code=stream.status_code,
            headers=stream.headers,
            background=BackgroundTask(stream.aclose),
        )
    raise UnexpectedContent(f"Unsupported content at {vpath.full_path}")
