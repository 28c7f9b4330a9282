# tests/fakes.py
# A controllable clock and an in-memory message store with the same
# compare-and-swap semantics as the Postgres repository.

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from burnlink.constants import MODE_SECONDS, TTL_UNITS
from burnlink.middleware.error_handler import StorageError
from burnlink.models.message import Message, RevealResult, RevealStatus
from burnlink.repositories.message_repository import generate_token

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def _expiry(message: Message) -> datetime:
    if message.ttl_unit == MODE_SECONDS:
        return message.created_at + timedelta(seconds=message.ttl_value)
    return message.created_at + timedelta(minutes=message.ttl_value)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeMessageRepository:
    """Dict-backed stand-in for MessageRepository."""

    def __init__(self, clock: FakeClock, retention: timedelta = timedelta(days=30)):
        self.rows: Dict[str, Message] = {}
        self.clock = clock
        self.retention = retention
        self.fail_with: Optional[Exception] = None
        self.healthy = True

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _live(self, message: Message, now: datetime) -> bool:
        if message.created_at < now - self.retention:
            return False
        return message.active_until is None or message.active_until > now

    async def create(self, text, ttl_unit, ttl_value, now=None) -> str:
        self._check()
        if ttl_unit not in TTL_UNITS or ttl_value <= 0:
            raise ValueError("bad ttl")
        token = generate_token(64)
        self.rows[token] = Message(
            text=text,
            token=token,
            ttl_unit=ttl_unit,
            ttl_value=ttl_value,
            created_at=now or self.clock(),
        )
        return token

    async def reveal_or_bind(self, token, fingerprint, now=None) -> RevealResult:
        self._check()
        # let concurrent callers interleave before the compare-and-swap
        await asyncio.sleep(0)
        now = now or self.clock()
        message = self.rows.get(token)
        if message is None or message.created_at < now - self.retention:
            return RevealResult.not_found()

        if message.active_until is None:
            bound = message.model_copy(
                update={
                    "active_until": _expiry(message),
                    "bound_fingerprint": fingerprint,
                }
            )
            self.rows[token] = bound
            if bound.active_until <= now:
                return RevealResult.not_found()
            return RevealResult(status=RevealStatus.FOUND, message=bound, first_bind=True)

        if not self._live(message, now):
            return RevealResult.not_found()
        if message.bound_fingerprint != fingerprint:
            return RevealResult.denied()
        return RevealResult(status=RevealStatus.FOUND, message=message)

    async def destroy(self, token, fingerprint) -> bool:
        self._check()
        message = self.rows.get(token)
        if message is None or message.bound_fingerprint is None:
            return False
        if message.bound_fingerprint != fingerprint:
            return False
        del self.rows[token]
        return True

    async def purge(self, now=None) -> int:
        self._check()
        now = now or self.clock()
        doomed = [
            token for token, m in self.rows.items()
            if (m.active_until is not None and m.active_until <= now)
            or m.created_at < now - self.retention
        ]
        for token in doomed:
            del self.rows[token]
        return len(doomed)

    async def ping(self) -> bool:
        if not self.healthy:
            raise StorageError()
        return True

