"""Shared-secret gate for the protected pages and API."""

import hmac
import logging
from typing import Annotated, Optional
from urllib.parse import urlencode

from fastapi import Depends, Request

from repodrive.config import Settings, get_settings
from repodrive.errors import AccessDenied

log = logging.getLogger(__name__)

TOKEN_QUERY_PARAM = "token"
TOKEN_HEADER = "X-Access-Token"


def is_authorized(provided: Optional[str], secret: Optional[str]) -> bool:
    """True if no secret is configured or the credential matches it."""
    if not secret:
        return True
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), secret.encode("utf-8"))


def extract_credential(request: Request) -> Optional[str]:
    """Credential from the X-Access-Token header, else the ?token= query parameter."""
    return request.headers.get(TOKEN_HEADER) or request.query_params.get(TOKEN_QUERY_PARAM)


def token_query(settings: Settings) -> str:
    """'?token=...' to append to generated links, or '' when the gate is open."""
    if not settings.access_token:
        return ""
    return "?" + urlencode({TOKEN_QUERY_PARAM: settings.access_token})


async def require_access(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """
    Raise AccessDenied unless the request carries the configured secret.
    Only attached to protected routers; share links are served by a router
    without this dependency.
    """
    if is_authorized(extract_credential(request), settings.access_token):
        return
    log.warning("Access denied: %s %s", request.method, request.url.path)
    raise AccessDenied("Invalid access token")
