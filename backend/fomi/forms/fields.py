"""
Field model - one question in a form.

Each field type tag has its own pydantic model carrying only the attributes
valid for that type. ``parse_field`` dispatches on the tag; attributes that do
not belong to the variant are dropped.

Wire names are camelCase (``minLength``, ``min``, ``max``); Python attribute
names are snake_case.
"""
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Type

from pydantic import BaseModel, Field as PydanticField, model_validator
from pydantic import ValidationError as PydanticValidationError

from fomi.core.errors import ValidationError
from fomi.db.enums import FieldType, CHOICE_TYPES, TEXT_TYPES
from fomi.forms.ids import generate_field_id

DEFAULT_QUESTION = "Untitled Question"
DEFAULT_OPTION = "Option 1"
DEFAULT_RATING_MAX = 5

LAST_OPTION_MESSAGE = "A choice field needs at least one option"


class BaseField(BaseModel):
    allowed_types: ClassVar[FrozenSet[FieldType]] = frozenset()

    id: str = PydanticField(default_factory=generate_field_id)
    type: FieldType
    question: str = DEFAULT_QUESTION
    required: bool = False

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _check_type(self):
        if self.type not in self.allowed_types:
            raise ValueError(f"{type(self).__name__} does not accept type {self.type.value}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """camelCase dict without unset attributes; options stay a list."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class TextField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = TEXT_TYPES

    placeholder: Optional[str] = None
    min_length: Optional[int] = PydanticField(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = PydanticField(default=None, alias="maxLength", ge=0)


class TextareaField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = frozenset({FieldType.textarea})

    placeholder: Optional[str] = None
    rows: Optional[int] = None
    min_length: Optional[int] = PydanticField(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = PydanticField(default=None, alias="maxLength", ge=0)


class ChoiceField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = CHOICE_TYPES

    options: List[str] = PydanticField(default_factory=lambda: [DEFAULT_OPTION])
    placeholder: Optional[str] = None  # SELECT prompt text


class NumberField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = frozenset({FieldType.number})

    placeholder: Optional[str] = None
    minimum: Optional[float] = PydanticField(default=None, alias="min")
    maximum: Optional[float] = PydanticField(default=None, alias="max")
    step: Optional[float] = None


class RatingField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = frozenset({FieldType.rating})

    max_rating: int = PydanticField(default=DEFAULT_RATING_MAX, alias="max", ge=1)


class FileField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = frozenset({FieldType.file})

    placeholder: Optional[str] = None  # accepted file types, e.g. ".pdf,image/*"


class DateTimeField(BaseField):
    allowed_types: ClassVar[FrozenSet[FieldType]] = frozenset({FieldType.date, FieldType.time})

    minimum: Optional[str] = PydanticField(default=None, alias="min")
    maximum: Optional[str] = PydanticField(default=None, alias="max")


FIELD_VARIANTS: Dict[FieldType, Type[BaseField]] = {
    FieldType.text: TextField,
    FieldType.email: TextField,
    FieldType.phone: TextField,
    FieldType.textarea: TextareaField,
    FieldType.select: ChoiceField,
    FieldType.radio: ChoiceField,
    FieldType.checkbox: ChoiceField,
    FieldType.number: NumberField,
    FieldType.rating: RatingField,
    FieldType.file: FileField,
    FieldType.date: DateTimeField,
    FieldType.time: DateTimeField,
}


def _resolve_type(value: Any) -> FieldType:
    try:
        return FieldType.normalize(value)
    except ValueError:
        raise ValidationError(f"Unknown field type: {value}")


def parse_field(data: Dict[str, Any]) -> BaseField:
    """Build the variant for ``data['type']``. Raises ValidationError."""
    if isinstance(data, BaseField):
        return data
    if not isinstance(data, dict) or "type" not in data:
        raise ValidationError("Field definition requires a type")
    field_type = _resolve_type(data["type"])
    payload = {k: v for k, v in data.items() if v is not None}
    payload["type"] = field_type
    try:
        return FIELD_VARIANTS[field_type].model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid {field_type.value} field {location}: {first.get('msg')}")


def new_field(field_type: Any) -> BaseField:
    """A freshly created field with builder defaults for its type."""
    field_type = _resolve_type(field_type)
    return FIELD_VARIANTS[field_type](type=field_type)


def apply_update(field: BaseField, updates: Dict[str, Any]) -> BaseField:
    """Shallow-merge ``updates`` into ``field``; the type tag and id are fixed."""
    if "type" in updates and _resolve_type(updates["type"]) != field.type:
        raise ValidationError("A field's type cannot be changed; delete it and add a new one")
    aliases = {name: info.alias for name, info in type(field).model_fields.items() if info.alias}
    updates = {aliases.get(key, key): value for key, value in updates.items()}
    if isinstance(field, ChoiceField) and "options" in updates and not updates["options"]:
        raise ValidationError(LAST_OPTION_MESSAGE)
    merged = {**field.model_dump(by_alias=True), **updates}
    merged["id"] = field.id
    merged["type"] = field.type
    return parse_field(merged)


def field_problems(field: BaseField) -> List[str]:
    """Builder-side warnings; empty list means the field is publishable."""
    problems = []
    if not field.question.strip():
        problems.append("Question is required")
    if isinstance(field, ChoiceField) and not field.options:
        problems.append("At least one option is required")
    if isinstance(field, (TextField, TextareaField)):
        if field.min_length is not None and field.max_length is not None and field.min_length > field.max_length:
            problems.append("Minimum length exceeds maximum length")
    if isinstance(field, NumberField):
        if field.minimum is not None and field.maximum is not None and field.minimum > field.maximum:
            problems.append("Minimum exceeds maximum")
    return problems


# ============================================================================
# Option editing (choice fields)
# ============================================================================

def _require_choice(field: BaseField) -> ChoiceField:
    if not isinstance(field, ChoiceField):
        raise ValidationError(f"{field.type.value} fields have no options")
    return field


def add_option(field: BaseField, label: str = None) -> ChoiceField:
    choice = _require_choice(field)
    options = list(choice.options)
    options.append(label or f"Option {len(options) + 1}")
    return choice.model_copy(update={"options": options})


def update_option(field: BaseField, index: int, label: str) -> ChoiceField:
    """Blank labels are ignored, keeping the previous text."""
    choice = _require_choice(field)
    if not 0 <= index < len(choice.options):
        raise ValidationError(f"Option index {index} out of range")
    if label.strip() == "":
        return choice
    options = list(choice.options)
    options[index] = label
    return choice.model_copy(update={"options": options})


def remove_option(field: BaseField, index: int) -> ChoiceField:
    choice = _require_choice(field)
    if len(choice.options) <= 1:
        raise ValidationError(LAST_OPTION_MESSAGE)
    if not 0 <= index < len(choice.options):
        raise ValidationError(f"Option index {index} out of range")
    options = [opt for i, opt in enumerate(choice.options) if i != index]
    return choice.model_copy(update={"options": options})


def move_option(field: BaseField, from_index: int, to_index: int) -> ChoiceField:
    choice = _require_choice(field)
    size = len(choice.options)
    if not (0 <= from_index < size and 0 <= to_index < size):
        raise ValidationError("Option index out of range")
    options = list(choice.options)
    options.insert(to_index, options.pop(from_index))
    return choice.model_copy(update={"options": options})
