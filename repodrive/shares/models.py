"""Share record schema, API payloads and the key-value table that stores them."""

import time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from repodrive.db.session import Base

# Milliseconds per duration unit; month and year are fixed-length
UNIT_DURATIONS_MS = {
    "hour": 3_600_000,
    "day": 86_400_000,
    "week": 604_800_000,
    "month": 2_592_000_000,
    "year": 31_536_000_000,
}

DurationUnit = Literal["hour", "day", "week", "month", "year", "forever"]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class KVEntry(Base):
    """One key-value pair. Values are opaque text (JSON for share records)."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class ShareRecord(BaseModel):
    """Public, revocable pointer to one file. Serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    full_path: str = Field(alias="fullPath")
    created_at: int = Field(alias="createdAt")
    expire_at: Optional[int] = Field(default=None, alias="expireAt")
    active: bool = True
    visits: int = Field(default=0, ge=0)

    def is_expired(self, now: Optional[int] = None) -> bool:
        """True when an expiry is set and it is not in the future."""
        if self.expire_at is None:
            return False
        return (now_ms() if now is None else now) >= self.expire_at

    def is_resolvable(self, now: Optional[int] = None) -> bool:
        """Active and not expired."""
        return self.active and not self.is_expired(now)

    @property
    def file_name(self) -> str:
        return self.full_path.rstrip("/").split("/")[-1]


class ShareCreate(BaseModel):
    """Body of POST /api/share/create."""

    model_config = ConfigDict(populate_by_name=True)

    full_path: str = Field(alias="fullPath", min_length=1)
    unit: DurationUnit
    value: int = Field(default=1, gt=0)


class ShareCreateResponse(BaseModel):
    success: bool = True
    url: str
    id: str


class ShareToggle(BaseModel):
    """Body of POST /api/share/toggle."""

    id: str
    active: bool


class ShareDelete(BaseModel):
    """Body of POST /api/share/delete."""

    id: str
