# streamrokuo_admin/format_utils.py
import re
from datetime import datetime
from typing import Any, Optional

_UUID_SHAPE = re.compile(r"^[0-9a-fA-F-]{36}$")

# characters with meaning inside a PostgREST or=(...) expression
_RESERVED = set(',.:()"\\ ')


def is_uuid(value: Optional[str]) -> bool:
    """Shape check only: 36 hex digits/hyphens. Version and variant are not checked."""
    if value is None:
        return False
    return bool(_UUID_SHAPE.match(value.strip()))


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so user input never acts as a wildcard."""
    return re.sub(r"([\\%_])", r"\\\1", value)


def quote_filter_value(value: str) -> str:
    """Double-quote a value for PostgREST filter grammar when it holds reserved chars."""
    if value and not any(ch in _RESERVED for ch in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def first_or_none(value: Any) -> Any:
    """Embedded relations come back as an object or a one-element list; always return one."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_datetime(value: Optional[str]) -> str:
    parsed = parse_datetime(value)
    if parsed is None:
        return "-"
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


def format_duration(seconds: Optional[int]) -> str:
    if not seconds or seconds <= 0:
        return "-"
    mins, secs = divmod(int(seconds), 60)
    if mins <= 0:
        return f"{secs}s"
    return f"{mins}m {secs}s"


def truncate_id(value: str, length: int = 8) -> str:
    if len(value) <= length * 2:
        return value
    return f"{value[:length]}...{value[-length:]}"


def status_label(value: Optional[str]) -> str:
    normalized = (value or "unknown").lower()
    return normalized.replace("_", " ")
