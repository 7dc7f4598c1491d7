"""Opaque identifiers for forms and fields: ``<prefix>_<base36 ms>_<random>``."""
import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def _random_part(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def _timestamp() -> str:
    return _base36(int(time.time() * 1000))


def generate_form_id() -> str:
    return f"form_{_timestamp()}_{_random_part(6)}"


def generate_field_id() -> str:
    return f"field_{_timestamp()}_{_random_part(4)}"


def generate_slug() -> str:
    return f"form-{int(time.time() * 1000)}-{_random_part(4)}"


def is_new_form(form_id: str) -> bool:
    """True for the placeholder ids the builder uses before a form exists."""
    return form_id in ("new", "create")
