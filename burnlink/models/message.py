# burnlink/models/message.py

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RevealStatus(str, Enum):
    """Outcome of a reveal attempt against the store."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    DENIED = "denied"


class Message(BaseModel):
    """A persisted message row. The internal id never leaves the store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    text: str
    token: str
    ttl_unit: str
    ttl_value: int
    created_at: datetime
    active_until: Optional[datetime] = None
    bound_fingerprint: Optional[str] = None


class RevealResult(BaseModel):
    status: RevealStatus
    message: Optional[Message] = None
    # True only for the caller whose conditional update committed the binding
    first_bind: bool = False

    @classmethod
    def not_found(cls) -> "RevealResult":
        return cls(status=RevealStatus.NOT_FOUND)

    @classmethod
    def denied(cls) -> "RevealResult":
        return cls(status=RevealStatus.DENIED)


class ViewOutcome(str, Enum):
    SHOWN = "shown"
    DENIED = "denied"
    EXPIRED = "expired"


class ViewResult(BaseModel):
    """What a reader gets back for a token, ready for display."""

    outcome: ViewOutcome
    text: Optional[str] = None
    token: Optional[str] = None
    active_until: Optional[datetime] = None
    active_until_timestamp: Optional[int] = None  # epoch millis
    active_until_display: Optional[str] = None
    time_remaining: Optional[str] = None
    expires_in_seconds: Optional[int] = None
    first_view: bool = False

    @property
    def shown(self) -> bool:
        return self.outcome == ViewOutcome.SHOWN

    @classmethod
    def denied(cls) -> "ViewResult":
        return cls(outcome=ViewOutcome.DENIED)

    @classmethod
    def expired(cls) -> "ViewResult":
        return cls(outcome=ViewOutcome.EXPIRED)
