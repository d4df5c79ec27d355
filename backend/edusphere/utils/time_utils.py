"""Timestamp helpers.

All datetimes stored by the service are naive UTC, like ``datetime.utcnow()``.
The wire format matches JavaScript's ``Date.toISOString()``.
"""
from datetime import datetime, timezone, timedelta

def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def expiry_from(now: datetime, seconds: int) -> datetime:
    return now + timedelta(seconds=seconds)

def to_iso_z(value: datetime) -> str:
    """Format a naive UTC datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f'{value.microsecond // 1000:03d}Z'

def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive UTC.

    Raises ValueError when the string is not a valid timestamp.
    """
    if not isinstance(value, str) or not value:
        raise ValueError('Timestamp must be a non-empty string')
    
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
