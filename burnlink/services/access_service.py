# burnlink/services/access_service.py

import hashlib
import math
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from burnlink.config import settings
from burnlink.constants import DELAYS, MODE_MINUTES, UNKNOWN_CLIENT
from burnlink.models.message import RevealStatus, ViewOutcome, ViewResult
from burnlink.observability.metrics import record_outcome, record_purged
from burnlink.repositories.message_repository import MessageRepository
from burnlink.utils.formatting import epoch_millis, format_expiry_date, time_remaining
from burnlink.utils.logger import log_info, token_ref


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_delay(selector: Any, default: Optional[int] = None) -> int:
    """Map a delay selector to minutes; unknown selectors get the default window."""
    if default is None:
        default = settings.DEFAULT_DELAY_MINUTES
    key = str(selector).strip() if selector is not None else ""
    if key in DELAYS:
        return int(key)
    return default


def fingerprint_of(network_identity: Optional[str], token: str) -> str:
    """One-way fingerprint of a (reader, token) pair.

    Salting with the token keeps one client's fingerprints unlinkable across
    messages. Only ever compared for equality.
    """
    identity = (network_identity or "").strip() or UNKNOWN_CLIENT
    return hashlib.sha256(f"{identity}{token}".encode("utf-8")).hexdigest()


class AccessService:
    """Admission decisions for messages. Holds no state beyond its repository."""

    def __init__(
        self,
        repository: MessageRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._repo = repository
        self._clock = clock

    async def create(self, text: str, ttl_selector: Any = None) -> str:
        """Store `text` as is. Fails only when storage is unavailable."""
        minutes = resolve_delay(ttl_selector)
        token = await self._repo.create(text, MODE_MINUTES, minutes, now=self._clock())
        record_outcome("created")
        log_info(f"AccessService: created token={token_ref(token)} ttl={minutes}m")
        return token

    async def view(self, token: str, network_identity: Optional[str]) -> ViewResult:
        """Reveal a message to the caller, binding it on first access."""
        if not token:
            record_outcome("not_found")
            return ViewResult.expired()

        now = self._clock()
        fingerprint = fingerprint_of(network_identity, token)
        result = await self._repo.reveal_or_bind(token, fingerprint, now=now)

        if result.status == RevealStatus.NOT_FOUND:
            record_outcome("not_found")
            log_info(f"AccessService: token={token_ref(token)} not available")
            return ViewResult.expired()

        if result.status == RevealStatus.DENIED:
            record_outcome("denied")
            log_info(f"AccessService: token={token_ref(token)} denied to a different reader")
            return ViewResult.denied()

        message = result.message
        until = message.active_until
        record_outcome("shown")
        log_info(
            f"AccessService: token={token_ref(token)} shown "
            f"({'first view' if result.first_bind else 'repeat view'})"
        )
        return ViewResult(
            outcome=ViewOutcome.SHOWN,
            text=message.text,
            token=message.token,
            active_until=until,
            active_until_timestamp=epoch_millis(until),
            active_until_display=format_expiry_date(until),
            time_remaining=time_remaining(until, now),
            expires_in_seconds=max(0, math.ceil((until - now).total_seconds())),
            first_view=result.first_bind,
        )

    async def delete(self, token: str, network_identity: Optional[str]) -> bool:
        if not token:
            return False
        removed = await self._repo.destroy(token, fingerprint_of(network_identity, token))
        if removed:
            record_outcome("destroyed")
        return removed

    async def purge(self) -> int:
        removed = await self._repo.purge(now=self._clock())
        record_purged(removed)
        log_info(f"AccessService: purge removed {removed} message(s)")
        return removed
