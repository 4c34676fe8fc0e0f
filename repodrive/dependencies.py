"""FastAPI dependencies wiring settings into the services."""

import logging
from typing import Annotated

from fastapi import Depends

from repodrive.config import Settings, get_settings
from repodrive.db.session import get_session
from repodrive.errors import ConfigurationError
from repodrive.remote.client import RemoteContentClient
from repodrive.shares.resolver import ShareResolver
from repodrive.shares.store import ShareStore

log = logging.getLogger(__name__)


def get_remote_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> RemoteContentClient:
    """Remote client for the configured owner; ConfigurationError when unset."""
    if not settings.remote_configured:
        log.error("Remote host not configured (REPODRIVE_GITHUB_OWNER / REPODRIVE_GITHUB_TOKEN)")
        raise ConfigurationError(
            "Set REPODRIVE_GITHUB_OWNER and REPODRIVE_GITHUB_TOKEN"
        )
    return RemoteContentClient.from_settings(settings)


def get_share_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ShareStore:
    return ShareStore(get_session, prefix=settings.share_key_prefix)


def get_share_resolver(
    store: Annotated[ShareStore, Depends(get_share_store)],
    remote: Annotated[RemoteContentClient, Depends(get_remote_client)],
) -> ShareResolver:
    return ShareResolver(store, remote)
