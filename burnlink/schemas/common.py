from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class CreateMessageRequest(BaseModel):
    # stored as given, blank included
    message: str = ""
    # any value is accepted; unknown selectors fall back to the default window
    delay: Optional[Any] = None


class CreateMessageResponse(BaseModel):
    success: bool
    token: Optional[str] = None


class DeleteMessageResponse(BaseModel):
    success: bool


class PurgeResponse(BaseModel):
    success: bool
    removed: int
    message: str


class MessageView(BaseModel):
    message: str
    token: str
    active_until: datetime
    active_until_timestamp: int
    active_until_date: str
    time_remaining: str
    expires_in_seconds: int
