"""Formatting helper functions."""

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600


def format_duration(total_seconds: float) -> str:
    """
    Format a duration as ``D days HH:MM:SS``.

    The day and hour segments only appear when non-zero; minutes and
    seconds are always two digits.

    Args:
        total_seconds: Duration in seconds (fractions are dropped, negatives clamp to 0)

    Returns:
        Formatted duration, e.g. "01:05" or "1 days 01:01:05"
    """
    remaining = max(0, int(total_seconds))

    days, remaining = divmod(remaining, SECONDS_PER_DAY)
    hours, remaining = divmod(remaining, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remaining, 60)

    clock = f"{minutes:02d}:{seconds:02d}"
    if hours > 0:
        clock = f"{hours:02d}:{clock}"
    if days > 0:
        return f"{days} days {clock}"
    return clock
