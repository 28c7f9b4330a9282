# burnlink/repositories/message_repository.py
# Persistence for messages and the one atomic reveal/bind transition

from __future__ import annotations

import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Optional

from sqlalchemy import Interval, and_, case, delete, literal_column, or_, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from burnlink.config import settings
from burnlink.constants import MODE_SECONDS, TOKEN_ALPHABET, TTL_UNITS
from burnlink.middleware.error_handler import StorageError, TokenConflictError
from burnlink.models.message import Message, RevealResult, RevealStatus
from burnlink.models.message_table import messages
from burnlink.utils.logger import log_exception, log_info, token_ref

UNIQUE_VIOLATION = "23505"

# every column except the internal id
_PUBLIC_COLUMNS = (
    messages.c.text,
    messages.c.token,
    messages.c.ttl_unit,
    messages.c.ttl_value,
    messages.c.created_at,
    messages.c.active_until,
    messages.c.bound_fingerprint,
)

# created_at + ttl_value * (1 second | 1 minute), evaluated by postgres
_UNIT_INTERVAL = case(
    (messages.c.ttl_unit == MODE_SECONDS, literal_column("INTERVAL '1 second'", Interval)),
    else_=literal_column("INTERVAL '1 minute'", Interval),
)
_EXPIRY_EXPR = messages.c.created_at + messages.c.ttl_value * _UNIT_INTERVAL


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_token(length: int) -> str:
    """Generate a URL-safe random token."""
    return ''.join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def _is_unique_violation(exc: IntegrityError) -> bool:
    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "unique" in str(exc.orig).lower()


class MessageRepository:
    """Repository for message persistence.

    Every operation opens its own session and transaction from the injected
    session factory, so connections go back to the pool on every exit path.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        retention: Optional[timedelta] = None,
        token_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if session_factory is None:
            from burnlink.db.base import AsyncSessionFactory
            session_factory = AsyncSessionFactory
        self._session_factory = session_factory
        self._retention = retention or timedelta(days=settings.RETENTION_DAYS)
        self._token_length = token_length or settings.TOKEN_LENGTH
        self._max_attempts = max_attempts or settings.TOKEN_MAX_ATTEMPTS
        self._clock = clock

    def retention_ceiling(self, now: datetime) -> datetime:
        """Rows created before this instant are expired."""
        return now - self._retention

    @asynccontextmanager
    async def _storage_guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except (SQLAlchemyError, OSError) as e:
            log_exception(e, f"MessageRepository.{operation}")
            raise StorageError() from e

    async def create(
        self,
        text_value: str,
        ttl_unit: str,
        ttl_value: int,
        now: Optional[datetime] = None,
    ) -> str:
        """Persist an unbound message and return its token."""
        if ttl_unit not in TTL_UNITS:
            raise ValueError(f"ttl_unit must be one of {TTL_UNITS}")
        if ttl_value <= 0:
            raise ValueError("ttl_value must be positive")

        created_at = now or self._clock()
        for attempt in range(1, self._max_attempts + 1):
            token = generate_token(self._token_length)
            try:
                await self._insert(text_value, token, ttl_unit, ttl_value, created_at)
            except TokenConflictError:
                log_info(f"MessageRepository: token collision, attempt {attempt}/{self._max_attempts}")
                continue
            log_info(f"MessageRepository: created message token={token_ref(token)}")
            return token

        raise StorageError("Could not allocate a unique token")

    async def _insert(
        self,
        text_value: str,
        token: str,
        ttl_unit: str,
        ttl_value: int,
        created_at: datetime,
    ) -> None:
        async with self._storage_guard("create"):
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        await session.execute(
                            messages.insert().values(
                                text=text_value,
                                token=token,
                                ttl_unit=ttl_unit,
                                ttl_value=ttl_value,
                                created_at=created_at,
                            )
                        )
            except IntegrityError as e:
                if _is_unique_violation(e):
                    raise TokenConflictError() from e
                raise

    async def reveal_or_bind(
        self,
        token: str,
        fingerprint: str,
        now: Optional[datetime] = None,
    ) -> RevealResult:
        """Bind an unbound message to `fingerprint`, or check an existing binding.

        The bind is a single conditional UPDATE on the "unbound and within
        retention" predicate. Postgres row locks make exactly one concurrent
        caller match it; the others fall through to the read and see the
        committed binding.
        """
        now = now or self._clock()
        ceiling = self.retention_ceiling(now)

        bind_stmt = (
            update(messages)
            .where(
                messages.c.token == token,
                messages.c.active_until.is_(None),
                messages.c.created_at >= ceiling,
            )
            .values(active_until=_EXPIRY_EXPR, bound_fingerprint=fingerprint)
            .returning(*_PUBLIC_COLUMNS)
        )
        read_stmt = select(*_PUBLIC_COLUMNS).where(
            messages.c.token == token,
            messages.c.active_until > now,
            messages.c.created_at >= ceiling,
        )

        async with self._storage_guard("reveal_or_bind"):
            async with self._session_factory() as session:
                async with session.begin():
                    row = (await session.execute(bind_stmt)).mappings().first()
                    first_bind = row is not None
                    if row is None:
                        row = (await session.execute(read_stmt)).mappings().first()

        if row is None:
            return RevealResult.not_found()

        message = Message.model_validate(dict(row))

        if first_bind:
            log_info(
                f"MessageRepository: bound token={token_ref(token)} until={message.active_until.isoformat()}"
            )
            # window already closed at first sight: keep the binding so purge reclaims it
            if message.active_until <= now:
                return RevealResult.not_found()
            return RevealResult(status=RevealStatus.FOUND, message=message, first_bind=True)

        if message.bound_fingerprint != fingerprint:
            return RevealResult.denied()
        return RevealResult(status=RevealStatus.FOUND, message=message)

    async def destroy(self, token: str, fingerprint: str) -> bool:
        """Delete a bound message owned by `fingerprint`. Returns whether a row was removed."""
        if not fingerprint:
            return False
        async with self._storage_guard("destroy"):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(messages).where(
                            messages.c.token == token,
                            messages.c.bound_fingerprint == fingerprint,
                        )
                    )
        removed = (result.rowcount or 0) > 0
        if removed:
            log_info(f"MessageRepository: destroyed token={token_ref(token)}")
        return removed

    async def purge(self, now: Optional[datetime] = None) -> int:
        """Delete expired and stale rows. Returns the number removed."""
        now = now or self._clock()
        ceiling = self.retention_ceiling(now)
        async with self._storage_guard("purge"):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(messages).where(
                            or_(
                                and_(
                                    messages.c.active_until.is_not(None),
                                    messages.c.active_until <= now,
                                ),
                                messages.c.created_at < ceiling,
                            )
                        )
                    )
        return result.rowcount or 0

    async def get_by_token(self, token: str) -> Optional[Message]:
        """Raw lookup with no expiry filtering. Not a reader path."""
        async with self._storage_guard("get_by_token"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(*_PUBLIC_COLUMNS).where(messages.c.token == token)
                )
                row = result.mappings().first()
        if row is None:
            return None
        return Message.model_validate(dict(row))

    async def ping(self) -> bool:
        async with self._storage_guard("ping"):
            async with self._session_factory() as session:
                value = (await session.execute(text("SELECT 1"))).scalar()
        return value == 1
