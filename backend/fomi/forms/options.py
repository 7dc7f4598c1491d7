"""JSON-text storage of choice options."""
import json
from typing import List, Optional

from fomi.core.errors import DecodeError
from fomi.core.logging import forms_logger


def encode_options(options: Optional[List[str]]) -> Optional[str]:
    if options is None:
        return None
    return json.dumps(list(options))


def parse_options(raw: Optional[str]) -> List[str]:
    """Strict decode; raises DecodeError on anything but a JSON list of strings."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise DecodeError(f"Invalid options JSON: {e}") from e
    if not isinstance(value, list):
        raise DecodeError("Options must be a JSON array")
    return [str(item) for item in value]


def decode_options(raw: Optional[str], field_id: str = None) -> Optional[List[str]]:
    """Lenient decode used on the load path.

    Returns None when nothing is stored and an empty list when the stored text
    is malformed, so a bad row never breaks loading the rest of the form.
    """
    if raw is None:
        return None
    try:
        return parse_options(raw)
    except DecodeError as e:
        forms_logger.warning("Discarding malformed options", error=e, field_id=field_id)
        return []
