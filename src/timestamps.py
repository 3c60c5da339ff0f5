"""RFC 3339 timestamp parsing and formatting."""
import re
from datetime import datetime, timedelta, timezone

from src.errors import ValidationError

RFC3339_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)
DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(timezone.utc)


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 date-time into an aware datetime.

    Fractions beyond microseconds are truncated.

    Raises:
        ValueError: If the text is not an RFC 3339 date-time.
    """
    match = RFC3339_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")

    year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
    fraction = match.group(7) or ""
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0

    if match.group(8):
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(match.group(10)), minutes=int(match.group(11)))
        tz = timezone(-offset if match.group(9) == "-" else offset)

    # datetime() rejects out-of-range fields (month 13, hour 25, ...)
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)


def parse_since_date(text: str) -> datetime:
    """Parse a reference date for pruning: RFC 3339, or YYYY-MM-DD as UTC midnight."""
    match = DATE_PATTERN.match(text.strip())
    if match:
        year, month, day = (int(g) for g in match.groups())
        return datetime(year, month, day, tzinfo=timezone.utc)
    return parse_timestamp(text)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as RFC 3339, using ``Z`` for UTC."""
    if value.tzinfo is None:
        raise ValueError("timestamps must be timezone-aware")
    rendered = value.isoformat()
    if rendered.endswith("+00:00"):
        rendered = rendered[: -len("+00:00")] + "Z"
    return rendered


def coerce_timestamp(value: str | datetime | None, field: str) -> datetime | None:
    """Turn a caller-supplied timestamp into an aware datetime.

    Raises:
        ValidationError: If the value does not parse or lacks a UTC offset.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValidationError(f"{field} must carry a UTC offset", field=field)
        return value
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ValidationError(f"{field}: {e}", field=field) from e
