"""
Utility helper functions
"""
from datetime import datetime, timezone
from typing import Iterable, Optional
import re


def format_date(date: datetime, format_str: str = "%d/%m/%Y") -> str:
    """Format datetime object"""
    if not date:
        return None
    return date.strftime(format_str)


def to_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_optional_datetime(value) -> Optional[datetime]:
    """Parse an ISO date/datetime string, returning None when it can't be read."""
    if not value:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return to_naive_utc(parsed)


def to_camel_case(label: str) -> str:
    """'Psychosocial Factors' -> 'psychosocialFactors'"""
    words = [w for w in re.split(r"\s+", label.strip()) if w]
    if not words:
        return ""
    first, rest = words[0], words[1:]
    return first[0].lower() + first[1:] + "".join(w[0].upper() + w[1:] for w in rest)


def humanize_enum(value: str) -> str:
    """'PHONE_CALL' -> 'PHONE CALL'"""
    return str(getattr(value, "value", value)).replace("_", " ")


def participant_label(role: str, name: str) -> str:
    """'INSURER_CM', 'Jo' -> 'INSURER CM: Jo' (first underscore only)"""
    role = str(getattr(role, "value", role))
    return f"{role.replace('_', ' ', 1)}: {name}"


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def str_ids(values: Optional[Iterable]) -> list:
    return [str(v) for v in (values or [])]
