"""Action records broadcast by the actions store.

Every action carries an opaque ``token``. Views use it to decide whether a
broadcast touched the slice of state they render.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionStatus(StrEnum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class ActionRecord(BaseModel):
    """An in-flight or finished action.

    Extra fields are allowed: they are the state fragment the action
    produced (e.g. ``{"token": ..., "todo": {...}}``).
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    token: str = Field(..., description="Opaque action identifier")
    type: str = Field(default="", description="Action type, for diagnostics")
    status: ActionStatus = ActionStatus.PENDING
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("token")
    @classmethod
    def _normalize_token(cls, value: str) -> str:
        token = value.strip()
        if not token:
            raise ValueError("token must be non-empty")
        return token

    @property
    def is_pending(self) -> bool:
        return self.status == ActionStatus.PENDING
