"""Timestamp normalisation for the formats explorers hand back."""

from datetime import datetime, timezone


def parse_timestamp(value: object) -> int | None:
    """Unix seconds from an int, a numeric string or an RFC3339 string. None when unusable."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.isdigit():
        return int(text) or None
    # RFC3339 from Tendermint carries nanoseconds, which fromisoformat rejects
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    main, sep, rest = text.partition(".")
    if sep:
        frac_end = len(rest)
        for i, ch in enumerate(rest):
            if not ch.isdigit():
                frac_end = i
                break
        text = f"{main}.{rest[:frac_end][:6]}{rest[frac_end:]}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())
