"""Completion-time estimate shown under the form title."""
import math
from typing import Any, Iterable

BASE_SECONDS = 15
REQUIRED_BONUS_SECONDS = 5
BUFFER = 1.2
DEFAULT_OPTION_COUNT = 3


def _attr(field: Any, name: str, alias: str = None):
    if isinstance(field, dict):
        value = field.get(alias or name)
        return field.get(name) if value is None else value
    return getattr(field, name, None)


def field_seconds(field: Any) -> int:
    """Seconds one field adds before the buffer is applied."""
    raw_type = _attr(field, "type")
    field_type = str(getattr(raw_type, "value", raw_type) or "").upper()
    required = bool(_attr(field, "required"))
    min_length = _attr(field, "min_length", "minLength") or 0
    options = _attr(field, "options") or []
    option_count = len(options) or DEFAULT_OPTION_COUNT

    if field_type in ("TEXT", "EMAIL", "PHONE"):
        seconds = 20 if required else 15
        if min_length > 20:
            seconds += 10
    elif field_type == "TEXTAREA":
        seconds = 45 if required else 30
        if min_length > 100:
            seconds += 30
    elif field_type in ("SELECT", "RADIO"):
        seconds = min(5 + option_count * 2, 20)
    elif field_type == "CHECKBOX":
        seconds = min(10 + option_count * 3, 30)
    elif field_type == "NUMBER":
        seconds = 15 if required else 10
    elif field_type == "RATING":
        seconds = 8
    elif field_type == "FILE":
        seconds = 45
    elif field_type in ("DATE", "TIME"):
        seconds = 15
    else:
        seconds = 15

    if required:
        seconds += REQUIRED_BONUS_SECONDS
    return seconds


def estimate_seconds(fields: Iterable[Any]) -> int:
    total = BASE_SECONDS + sum(field_seconds(field) for field in fields)
    return math.ceil(total * BUFFER)


def format_duration(total_seconds: int) -> str:
    if total_seconds < 60:
        return "< 1 minute"
    if total_seconds < 120:
        return "1-2 minutes"
    minutes = math.ceil(total_seconds / 60)
    if total_seconds < 300:
        return f"{minutes - 1}-{minutes} minutes"
    return f"{minutes - 2}-{minutes} minutes"


def calculate_estimated_time(fields: Iterable[Any]) -> str:
    """Human readable completion time for ``fields`` (models or wire dicts)."""
    return format_duration(estimate_seconds(fields))
