from datetime import datetime, timezone

MILLIS_PER_MINUTE = 60 * 1000
MILLIS_PER_HOUR = 60 * MILLIS_PER_MINUTE


def timeformat(millis: int) -> str:
    """Render a millisecond duration as e.g. ``"1hr 5m 3.250s"``.

    Hours and minutes are only included when the duration exceeds them.

    Args:
        millis: Non-negative duration in milliseconds.

    Returns:
        Human-readable duration string.
    """
    result = ""
    if millis > MILLIS_PER_HOUR:
        result += f"{millis // MILLIS_PER_HOUR}hr "
    if millis > MILLIS_PER_MINUTE:
        result += f"{(millis // MILLIS_PER_MINUTE) % 60}m "
        millis %= MILLIS_PER_MINUTE
    result += f"{millis / 1000:.3f}s"
    return result


def now_millis() -> int:
    """Current UTC time as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def latency_millis(sent_at: datetime, received_at: datetime | None = None) -> int:
    """Milliseconds between a message timestamp and ``received_at`` (default: now)."""
    if sent_at.tzinfo is None:
        sent_at = sent_at.replace(tzinfo=timezone.utc)
    received_at = received_at or datetime.now(timezone.utc)
    return int((received_at - sent_at).total_seconds() * 1000)
