"""Remaining-time labels - no I/O dependencies."""

from datetime import datetime

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def split_duration(seconds: float) -> tuple[int, int, int]:
    """Floor-split a non-negative number of seconds into (days, hours, minutes)."""
    total = int(seconds)
    days, rest = divmod(total, DAY)
    hours, rest = divmod(rest, HOUR)
    minutes = rest // MINUTE
    return days, hours, minutes


def format_duration(days: int, hours: int, minutes: int) -> str:
    """
    Format d/h/m components, largest first.

    Leading zero units are dropped; once a unit is shown every smaller unit
    is shown too. All zeros gives "0m".
    """
    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if days > 0 or hours > 0:
        parts.append(f"{hours}h")
    if parts or minutes > 0:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def remaining_label(
    end: datetime,
    now: datetime,
    completed_label: str = "Completed",
    overdue_label: str = "Overdue",
    completed: bool = False,
) -> str:
    """
    Human label for the time left until end.

    Examples:
        47 minutes left -> "47m"
        1 day 3 hours   -> "1d 3h 0m"
    """
    if completed:
        return completed_label
    distance = (end - now).total_seconds()
    if distance < 0:
        return overdue_label
    return format_duration(*split_duration(distance))
