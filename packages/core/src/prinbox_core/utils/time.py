from __future__ import annotations

from datetime import datetime, timezone


def parse_datetime(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported datetime value: {value!r}")


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_relative(value: datetime, now: datetime | None = None) -> str:
    """Human-friendly age: "5 minutes ago", "3 days ago", or "Mar 4, 2024" past a month."""
    now = now or datetime.now(timezone.utc)
    seconds = abs((now - value).total_seconds())
    days = int(seconds // 86400)

    if days == 0:
        hours = int(seconds // 3600)
        if hours == 0:
            return _plural(int(seconds // 60), "minute")
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    if days < 30:
        return _plural(days // 7, "week")
    return f"{value.strftime('%b')} {value.day}, {value.year}"
