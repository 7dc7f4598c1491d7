import enum


class FieldType(str, enum.Enum):
    text = "TEXT"
    textarea = "TEXTAREA"
    select = "SELECT"
    radio = "RADIO"
    checkbox = "CHECKBOX"
    email = "EMAIL"
    phone = "PHONE"
    number = "NUMBER"
    rating = "RATING"
    file = "FILE"
    date = "DATE"
    time = "TIME"

    @classmethod
    def normalize(cls, value) -> "FieldType":
        """Accept any casing of a tag ("text", "Text", "TEXT")."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


CHOICE_TYPES = frozenset({FieldType.select, FieldType.radio, FieldType.checkbox})
TEXT_TYPES = frozenset({FieldType.text, FieldType.email, FieldType.phone})
