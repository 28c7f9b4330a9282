# burnlink/utils/network.py

from typing import Mapping, Optional

from burnlink.config import settings


def client_identity(
    headers: Mapping[str, str],
    peer: Optional[str],
    trust_forwarded_for: Optional[bool] = None,
) -> Optional[str]:
    """Best-effort network address of the caller.

    Returns the first X-Forwarded-For hop when proxies are trusted, else the
    socket peer. None when neither is known.
    """
    if trust_forwarded_for is None:
        trust_forwarded_for = settings.TRUST_FORWARDED_FOR

    if trust_forwarded_for:
        forwarded = headers.get("x-forwarded-for") or headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first

    if peer:
        return peer
    return None
