"""Domain exceptions raised by the services and mapped to responses in main."""

from typing import Optional


class RepoDriveError(Exception):
    """Base class for all domain errors."""


class ConfigurationError(RepoDriveError):
    """A required external setting is missing."""


class AccessDenied(RepoDriveError):
    """Caller credential does not match the configured secret."""


class ShareNotFound(RepoDriveError):
    """No share record exists for the id."""

    def __init__(self, share_id: str) -> None:
        self.share_id = share_id
        super().__init__(f"Share not found: {share_id}")


class ShareInactive(RepoDriveError):
    """Share record exists but was disabled by an administrator."""

    def __init__(self, share_id: str) -> None:
        self.share_id = share_id
        super().__init__(f"Share is inactive: {share_id}")


class ShareExpired(RepoDriveError):
    """Share record exists but its expiry has passed."""

    def __init__(self, share_id: str, expire_at: int) -> None:
        self.share_id = share_id
        self.expire_at = expire_at
        super().__init__(f"Share {share_id} expired at {expire_at}")


class ShareUpstreamFailure(RepoDriveError):
    """Shared file could not be fetched from the remote host."""

    def __init__(self, share_id: str, status_code: Optional[int] = None) -> None:
        self.share_id = share_id
        self.status_code = status_code
        super().__init__(f"Source of share {share_id} unavailable (upstream status {status_code})")


class RemoteError(RepoDriveError):
    """Non-success answer from the remote repository host."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Remote error {status_code}: {message}")


class RemoteNotFound(RemoteError):
    """Remote resource does not exist."""

    def __init__(self, message: str = "Not Found") -> None:
        super().__init__(404, message)


class RemoteUnavailable(RemoteError):
    """Remote host could not be reached."""

    def __init__(self, message: str = "Upstream unreachable") -> None:
        super().__init__(502, message)


class UnexpectedContent(RepoDriveError):
    """Remote answered with a shape that is neither a listing nor a file."""
