"""Field model: per-type variants, updates, option editing and the options codec."""
import re

import pytest

from fomi.core.errors import DecodeError, ValidationError
from fomi.db.enums import FieldType
from fomi.forms.fields import (
    ChoiceField,
    NumberField,
    RatingField,
    TextField,
    add_option,
    apply_update,
    field_problems,
    move_option,
    new_field,
    parse_field,
    remove_option,
    update_option,
)
from fomi.forms.ids import generate_field_id, generate_form_id, generate_slug, is_new_form
from fomi.forms.options import decode_options, encode_options, parse_options
from fomi.forms.snapshot import FormSnapshot


class TestNewField:

    @pytest.mark.parametrize("field_type", ["SELECT", "RADIO", "CHECKBOX"])
    def test_choice_types_start_with_one_option(self, field_type):
        field = new_field(field_type)
        assert isinstance(field, ChoiceField)
        assert field.options == ["Option 1"]
        assert field.question == "Untitled Question"
        assert field.required is False

    def test_rating_defaults_to_five(self):
        field = new_field("rating")
        assert isinstance(field, RatingField)
        assert field.to_dict()["max"] == 5

    def test_text_has_no_options(self):
        data = new_field(FieldType.text).to_dict()
        assert "options" not in data
        assert "max" not in data
        assert data["type"] == "TEXT"

    def test_ids_are_fresh(self):
        assert new_field("TEXT").id != new_field("TEXT").id

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            new_field("SIGNATURE")


class TestParseField:

    def test_lowercase_type_normalized(self):
        field = parse_field({"id": "f1", "type": "email", "question": "Email?"})
        assert field.type == FieldType.email
        assert isinstance(field, TextField)

    def test_attributes_outside_variant_are_dropped(self):
        field = parse_field({"id": "f1", "type": "TEXT", "options": ["a"], "rows": 4, "step": 2})
        data = field.to_dict()
        assert "options" not in data
        assert "rows" not in data
        assert "step" not in data

    def test_wire_aliases(self):
        field = parse_field({"type": "NUMBER", "min": 1, "max": 10, "step": 0.5})
        assert isinstance(field, NumberField)
        assert (field.minimum, field.maximum, field.step) == (1, 10, 0.5)
        assert field.to_dict()["max"] == 10

    def test_bad_attribute_raises_validation_error(self):
        with pytest.raises(ValidationError):
            parse_field({"type": "RATING", "max": 0})

    def test_missing_type(self):
        with pytest.raises(ValidationError):
            parse_field({"question": "No type"})


class TestApplyUpdate:

    def test_shallow_merge_keeps_id(self):
        field = new_field("TEXT")
        updated = apply_update(field, {"question": "Your name?", "required": True, "id": "other"})
        assert updated.id == field.id
        assert updated.question == "Your name?"
        assert updated.required is True

    def test_snake_case_and_alias_keys(self):
        field = new_field("TEXT")
        assert apply_update(field, {"min_length": 3}).min_length == 3
        assert apply_update(field, {"maxLength": 9}).max_length == 9

    def test_type_change_rejected(self):
        with pytest.raises(ValidationError):
            apply_update(new_field("TEXT"), {"type": "NUMBER"})

    def test_same_type_in_any_casing_is_allowed(self):
        field = new_field("TEXT")
        assert apply_update(field, {"type": "text", "question": "Q"}).question == "Q"

    def test_choice_options_cannot_be_emptied(self):
        field = parse_field({"type": "RADIO", "options": ["A"]})
        with pytest.raises(ValidationError):
            apply_update(field, {"options": []})
        assert apply_update(field, {"options": ["A", "B"]}).options == ["A", "B"]


class TestOptionEditing:

    def test_add_option_numbers_label(self):
        field = add_option(new_field("RADIO"))
        assert field.options == ["Option 1", "Option 2"]

    def test_cannot_remove_last_option(self):
        with pytest.raises(ValidationError):
            remove_option(new_field("SELECT"), 0)

    def test_remove_option(self):
        field = parse_field({"type": "CHECKBOX", "options": ["a", "b", "c"]})
        assert remove_option(field, 1).options == ["a", "c"]

    def test_blank_label_ignored(self):
        field = parse_field({"type": "RADIO", "options": ["Yes", "No"]})
        assert update_option(field, 1, "   ").options == ["Yes", "No"]
        assert update_option(field, 1, "Maybe").options == ["Yes", "Maybe"]

    def test_move_option(self):
        field = parse_field({"type": "RADIO", "options": ["a", "b", "c"]})
        assert move_option(field, 0, 2).options == ["b", "c", "a"]

    def test_options_on_non_choice_field(self):
        with pytest.raises(ValidationError):
            add_option(new_field("TEXT"))


def test_field_problems():
    assert field_problems(new_field("TEXT")) == []
    blank = apply_update(new_field("TEXT"), {"question": " "})
    assert field_problems(blank) == ["Question is required"]
    empty_choice = parse_field({"type": "RADIO", "options": []})
    assert "At least one option is required" in field_problems(empty_choice)


class TestOptionsCodec:

    def test_encode(self):
        assert encode_options(None) is None
        assert encode_options(["a", "b"]) == '["a", "b"]'

    def test_decode(self):
        assert decode_options(None) is None
        assert decode_options('["Yes","No"]') == ["Yes", "No"]

    def test_malformed_decodes_to_empty_list(self):
        assert decode_options("not json", field_id="f1") == []
        assert decode_options('{"a": 1}') == []

    def test_strict_parse_raises(self):
        with pytest.raises(DecodeError):
            parse_options("[1,")


class TestIds:

    def test_formats(self):
        assert re.fullmatch(r"form_[0-9a-z]+_[0-9a-z]{6}", generate_form_id())
        assert re.fullmatch(r"field_[0-9a-z]+_[0-9a-z]{4}", generate_field_id())
        assert re.fullmatch(r"form-\d+-[0-9a-z]{4}", generate_slug())

    def test_placeholders(self):
        assert is_new_form("new")
        assert is_new_form("create")
        assert not is_new_form(generate_form_id())


class TestSnapshot:

    def test_from_api_payload_decodes_options(self):
        snapshot = FormSnapshot.from_dict({
            "id": "form_1",
            "title": "Survey",
            "fields": [
                {"id": "a", "type": "RADIO", "options": '["x","y"]', "order": 0},
                {"id": "b", "type": "TEXT", "options": None, "order": 1},
            ],
        })
        assert [f.id for f in snapshot.fields] == ["a", "b"]
        assert snapshot.fields[0].options == ["x", "y"]

    def test_serialize_is_canonical(self):
        field = new_field("TEXT")
        one = FormSnapshot(id="form_1", title="T", fields=[field])
        two = FormSnapshot(id="form_1", title="T", fields=[field.model_copy()])
        assert one.serialize() == two.serialize()
        assert one.serialize() != FormSnapshot(id="form_1", title="U", fields=[field]).serialize()
