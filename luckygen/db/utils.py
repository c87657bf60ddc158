from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Union


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def dt_iso(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO 8601 string in UTC, or return None.

    Naive datetimes are treated as UTC rather than local time so that the
    serialized form does not depend on the host timezone.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as a timezone-aware UTC datetime; naive values count as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """Parse a stored timestamp into a timezone-aware UTC datetime.

    Parameters
    ----------
    value : str | int | float | datetime
        ISO 8601 text (a trailing ``Z`` and naive values are accepted, the
        latter interpreted as UTC), epoch milliseconds, or a datetime.

    Returns
    -------
    datetime
        Timezone-aware datetime in UTC.

    Raises
    ------
    ValueError
        If ``value`` is an empty or unparseable string.
    TypeError
        If ``value`` is of an unsupported type.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise TypeError("timestamp must not be a boolean")
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("timestamp must not be empty")
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp {value!r}") from exc
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")

    return as_utc(parsed)
