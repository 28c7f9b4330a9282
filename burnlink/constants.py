# burnlink/constants.py
# Expiry choices offered to senders and the units the store understands

MODE_MINUTES: str = "minutes"
MODE_SECONDS: str = "seconds"

TTL_UNITS: tuple[str, ...] = (MODE_MINUTES, MODE_SECONDS)

# selector (minutes) -> label shown in the form
DELAYS: dict[str, str] = {
    "15": "15min",
    "30": "30min",
    "60": "1h",
    "120": "2h",
    "1440": "24h",
}

TOKEN_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

# used in logs instead of the full token
TOKEN_LOG_PREFIX: int = 8

UNKNOWN_CLIENT: str = "unknown"
