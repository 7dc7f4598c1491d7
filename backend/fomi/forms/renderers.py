"""
Field renderer dispatch.

Maps each field type tag to how the builder and the public form treat it:
the HTML input kind, the placeholder shown when the author left none, and the
check run on a submitted answer.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from fomi.db.enums import FieldType
from fomi.forms.fields import (
    BaseField,
    ChoiceField,
    DateTimeField,
    NumberField,
    RatingField,
    TextareaField,
    TextField,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

TEXTAREA_MIN_ROWS = 2
TEXTAREA_MAX_ROWS = 10
TEXTAREA_DEFAULT_ROWS = 3

REQUIRED_MESSAGE = "This field is required"

Validator = Callable[[BaseField, Any], Optional[str]]


@dataclass(frozen=True)
class FieldRenderer:
    input_kind: str
    label: str
    default_placeholder: Optional[str]
    validate_value: Validator
    multiple: bool = False

    def placeholder_for(self, field: BaseField) -> Optional[str]:
        return getattr(field, "placeholder", None) or self.default_placeholder


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _check_length(field: BaseField, value: Any) -> Optional[str]:
    text = str(value)
    if field.min_length is not None and len(text) < field.min_length:
        return f"Please enter at least {field.min_length} characters"
    if field.max_length is not None and len(text) > field.max_length:
        return f"Please enter at most {field.max_length} characters"
    return None


def _validate_text(field: TextField, value: Any) -> Optional[str]:
    return _check_length(field, value)


def _validate_textarea(field: TextareaField, value: Any) -> Optional[str]:
    return _check_length(field, value)


def _validate_email(field: TextField, value: Any) -> Optional[str]:
    if not EMAIL_PATTERN.match(str(value)):
        return "Please enter a valid email address"
    return _check_length(field, value)


def _validate_single_choice(field: ChoiceField, value: Any) -> Optional[str]:
    if str(value) not in field.options:
        return "Please choose one of the listed options"
    return None


def _validate_multi_choice(field: ChoiceField, value: Any) -> Optional[str]:
    if not isinstance(value, list):
        return "Please choose from the listed options"
    unknown = [item for item in value if str(item) not in field.options]
    if unknown:
        return "Please choose one of the listed options"
    return None


def _validate_number(field: NumberField, value: Any) -> Optional[str]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "Please enter a number"
    if field.minimum is not None and number < field.minimum:
        return f"Please enter a number of at least {field.minimum:g}"
    if field.maximum is not None and number > field.maximum:
        return f"Please enter a number of at most {field.maximum:g}"
    return None


def _validate_rating(field: RatingField, value: Any) -> Optional[str]:
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return "Please choose a rating"
    if rating < 1 or rating > field.max_rating:
        return f"Please choose a rating between 1 and {field.max_rating}"
    return None


def _validate_file(field: BaseField, value: Any) -> Optional[str]:
    if not isinstance(value, list):
        return "Please upload at least one file"
    return None


def _validate_bounds(field: DateTimeField, value: Any) -> Optional[str]:
    # ISO dates and HH:MM times compare correctly as strings
    text = str(value)
    if field.minimum and text < field.minimum:
        return f"Please choose a value on or after {field.minimum}"
    if field.maximum and text > field.maximum:
        return f"Please choose a value on or before {field.maximum}"
    return None


RENDERERS: Dict[FieldType, FieldRenderer] = {
    FieldType.text: FieldRenderer("text", "Short answer", "Short answer text", _validate_text),
    FieldType.email: FieldRenderer("email", "Email", "Enter email address", _validate_email),
    FieldType.phone: FieldRenderer("tel", "Phone number", "Enter phone number", _validate_text),
    FieldType.textarea: FieldRenderer("textarea", "Paragraph", "Long answer text", _validate_textarea),
    FieldType.radio: FieldRenderer("radio", "Multiple choice", None, _validate_single_choice),
    FieldType.checkbox: FieldRenderer("checkbox", "Checkboxes", None, _validate_multi_choice, multiple=True),
    FieldType.select: FieldRenderer("select", "Dropdown", "Choose an option", _validate_single_choice),
    FieldType.number: FieldRenderer("number", "Number", "Enter number", _validate_number),
    FieldType.rating: FieldRenderer("rating", "Rating", None, _validate_rating),
    FieldType.file: FieldRenderer("file", "File upload", None, _validate_file, multiple=True),
    FieldType.date: FieldRenderer("date", "Date", None, _validate_bounds),
    FieldType.time: FieldRenderer("time", "Time", None, _validate_bounds),
}


def renderer_for(field_type: Any) -> FieldRenderer:
    return RENDERERS[FieldType.normalize(field_type)]


def clamp_rows(rows: Optional[int]) -> int:
    if rows is None:
        return TEXTAREA_DEFAULT_ROWS
    return max(TEXTAREA_MIN_ROWS, min(TEXTAREA_MAX_ROWS, rows))


def validate_answer(field: BaseField, value: Any) -> Optional[str]:
    """Error message for one answer, or None when it is acceptable."""
    renderer = renderer_for(field.type)
    empty = (not value) if renderer.multiple else _is_blank(value)
    if field.type == FieldType.rating and value in (0, "0"):
        # an untouched star widget reports 0
        empty = True
    if empty:
        if not field.required:
            return None
        if field.type == FieldType.checkbox:
            return "Please select at least one option"
        if field.type == FieldType.file:
            return "Please upload at least one file"
        return REQUIRED_MESSAGE
    return renderer.validate_value(field, value)


def validate_response(fields: Iterable[BaseField], answers: Dict[str, Any]) -> Dict[str, str]:
    """Map of field id to error message; empty when the response is valid."""
    errors = {}
    for field in fields:
        message = validate_answer(field, answers.get(field.id))
        if message:
            errors[field.id] = message
    return errors


def describe_field(field: BaseField) -> Dict[str, Any]:
    """Render hints for a field, used by the public form endpoint."""
    renderer = renderer_for(field.type)
    hints = {
        "inputKind": renderer.input_kind,
        "label": renderer.label,
        "placeholder": renderer.placeholder_for(field),
        "multiple": renderer.multiple,
    }
    if isinstance(field, TextareaField):
        hints["rows"] = clamp_rows(field.rows)
    if isinstance(field, RatingField):
        hints["scale"] = list(range(1, field.max_rating + 1))
    return hints
