"""Configuration from environment (no hardcoded secrets)."""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings from env."""

    model_config = SettingsConfigDict(env_prefix="REPODRIVE_", extra="ignore")

    # Remote repository host (GitHub contents API)
    github_owner: str = ""
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    user_agent: str = "RepoDrive-FileManager"
    http_timeout: float = 30.0
    commit_message: str = "Update via Web Manager"

    # Shared secret for the protected pages and API. Empty = open access.
    access_token: str = ""

    # Key-value store (SQLite file)
    db_path: Path = Path("/data/repodrive.db")

    # Share links
    share_key_prefix: str = "share_"
    share_id_length: int = 12
    # Origin used when building share URLs; empty = origin of the creating request
    public_base_url: str = ""

    # CORS: comma-separated string in env, empty = no CORS middleware
    cors_origins: str = ""

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins as a list (split on comma)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def remote_configured(self) -> bool:
        """True when both the upstream owner and credential are set."""
        return bool(self.github_owner.strip() and self.github_token.strip())

    # Server
    port: int = 8080
    rate_limit_enabled: bool = True

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""


def get_settings() -> Settings:
    """Return application settings."""
    return Settings()
