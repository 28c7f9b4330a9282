# burnlink/utils/formatting.py
# Human readable expiry strings for the message page

from datetime import datetime, timezone

import arrow

EXPIRY_FORMAT = "MMMM Do YYYY, h:mm:ss a"


def format_expiry_date(moment: datetime) -> str:
    """'October 19th 2026, 3:04:05 pm' style date."""
    return arrow.get(moment).format(EXPIRY_FORMAT)


def time_remaining(until: datetime, now: datetime = None) -> str:
    """Relative phrase such as 'in 30 minutes' or 'an hour ago'."""
    now = now or datetime.now(timezone.utc)
    return arrow.get(until).humanize(arrow.get(now))


def epoch_millis(moment: datetime) -> int:
    return int(arrow.get(moment).timestamp() * 1000)
