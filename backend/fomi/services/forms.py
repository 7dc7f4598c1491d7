"""
Form Store - server side persistence of forms and their fields.

Every operation works on the AsyncSession it is given. Field sets are never
patched: an update deletes every stored field of the form and inserts the
submitted list, with the list position stored as ``order``. Both steps commit
together or not at all.
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fomi.core.errors import NotFoundError, ValidationError
from fomi.core.logging import forms_logger, log_operation
from fomi.db.enums import FieldType
from fomi.db.models import Form, FormField, FormResponse
from fomi.forms.fields import (
    BaseField,
    ChoiceField,
    DateTimeField,
    NumberField,
    RatingField,
    TextareaField,
    TextField,
    new_field,
    parse_field,
)
from fomi.forms.ids import generate_form_id, generate_slug
from fomi.forms.options import decode_options, encode_options
from fomi.forms.renderers import describe_field, validate_response
from fomi.forms.snapshot import FormSnapshot

DEFAULT_TITLE = "Untitled form"
DEFAULT_DESCRIPTION = "Form description"
DEFAULT_ESTIMATED_TIME = "5-7 minutes"

NOT_FOUND_OR_DENIED = "Form not found or access denied"
EMPTY_FORM_MESSAGE = "A form needs at least one field"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _number(value: Optional[float]):
    if value is None:
        return None
    return int(value) if float(value).is_integer() else value


# ============================================================================
# Row <-> model conversion
# ============================================================================

def field_to_row(form_id: str, order: int, field: BaseField) -> FormField:
    row = FormField(
        id=field.id,
        form_id=form_id,
        type=field.type,
        question=field.question,
        required=field.required,
        order=order,
        placeholder=getattr(field, "placeholder", None),
    )
    if isinstance(field, (TextField, TextareaField)):
        row.min_length = field.min_length
        row.max_length = field.max_length
    if isinstance(field, TextareaField):
        row.rows = field.rows
    if isinstance(field, ChoiceField):
        row.options = encode_options(field.options)
    if isinstance(field, NumberField):
        row.min_value = field.minimum
        row.max_value = field.maximum
        row.step = field.step
    if isinstance(field, RatingField):
        row.max_value = field.max_rating
    if isinstance(field, DateTimeField):
        row.min_bound = field.minimum
        row.max_bound = field.maximum
    return row


def field_row_to_dict(row: FormField) -> Dict[str, Any]:
    """Wire shape: upper-case type, options left as JSON text."""
    field_type = FieldType.normalize(row.type)
    if field_type in (FieldType.date, FieldType.time):
        minimum, maximum = row.min_bound, row.max_bound
    else:
        minimum, maximum = _number(row.min_value), _number(row.max_value)
    return {
        "id": row.id,
        "type": field_type.value,
        "question": row.question,
        "required": bool(row.required),
        "order": row.order,
        "options": row.options,
        "placeholder": row.placeholder,
        "rows": row.rows,
        "min": minimum,
        "max": maximum,
        "step": _number(row.step),
        "minLength": row.min_length,
        "maxLength": row.max_length,
    }


def field_row_to_model(row: FormField) -> BaseField:
    data = field_row_to_dict(row)
    data["options"] = decode_options(row.options, row.id)
    data.pop("order")
    return parse_field(data)


def form_to_dict(form: Form, include_fields: bool = True) -> Dict[str, Any]:
    data = {
        "id": form.id,
        "userId": form.user_id,
        "title": form.title,
        "description": form.description,
        "slug": form.slug,
        "estimatedTime": form.estimated_time,
        "isDraft": bool(form.is_draft),
        "isPublished": bool(form.is_published),
        "publishedAt": _iso(form.published_at),
        "createdAt": _iso(form.created_at),
        "updatedAt": _iso(form.updated_at),
    }
    if include_fields:
        data["fields"] = [field_row_to_dict(row) for row in sorted(form.fields, key=lambda r: r.order)]
    return data


# ============================================================================
# Store
# ============================================================================

class FormStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, form_id: str) -> Optional[Form]:
        query = (
            select(Form)
            .options(selectinload(Form.fields))
            .where(Form.id == form_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _load_owned(self, form_id: str, user_id: int) -> Form:
        form = await self._load(form_id)
        if not form or form.user_id != user_id:
            raise NotFoundError(NOT_FOUND_OR_DENIED)
        return form

    async def get_form(self, form_id: str, user_id: int) -> Dict[str, Any]:
        """Owner load for the editor."""
        form = await self._load(form_id)
        if not form or form.user_id != user_id:
            raise NotFoundError()
        return form_to_dict(form)

    async def get_preview_form(self, form_id: str, viewer_id: Optional[int] = None) -> Dict[str, Any]:
        """Read-only load: published forms for anyone, drafts for their owner."""
        form = await self._load(form_id)
        if not form:
            raise NotFoundError()
        if not form.is_published and form.user_id != viewer_id:
            raise NotFoundError()
        data = form_to_dict(form)
        for item, row in zip(data["fields"], sorted(form.fields, key=lambda r: r.order)):
            item["render"] = describe_field(field_row_to_model(row))
        return data

    @log_operation("create_empty_form", forms_logger)
    async def create_empty_form(self, user_id: int) -> str:
        placeholder = new_field(FieldType.text)
        form = Form(
            id=generate_form_id(),
            user_id=user_id,
            title=DEFAULT_TITLE,
            description=DEFAULT_DESCRIPTION,
            estimated_time=DEFAULT_ESTIMATED_TIME,
            slug=generate_slug(),
            is_draft=True,
            is_published=False,
        )
        self.db.add(form)
        self.db.add(field_to_row(form.id, 0, placeholder))
        await self.db.commit()
        return form.id

    @log_operation("create_form", forms_logger)
    async def create_form(self, user_id: int, snapshot: FormSnapshot) -> Dict[str, Any]:
        if not snapshot.fields:
            raise ValidationError(EMPTY_FORM_MESSAGE)
        form = Form(
            id=generate_form_id(),
            user_id=user_id,
            title=snapshot.title or DEFAULT_TITLE,
            description=snapshot.description,
            estimated_time=snapshot.estimated_time,
            slug=generate_slug(),
            is_draft=True,
            is_published=False,
        )
        self.db.add(form)
        for index, field in enumerate(snapshot.fields):
            self.db.add(field_to_row(form.id, index, field))
        await self.db.commit()
        return form_to_dict(await self._load(form.id))

    @log_operation("update_form", forms_logger)
    async def update_form(self, form_id: Optional[str], user_id: int, snapshot: FormSnapshot) -> Dict[str, Any]:
        if not form_id:
            raise ValidationError("Form ID is required")
        if not snapshot.fields:
            raise ValidationError(EMPTY_FORM_MESSAGE)
        form = await self._load_owned(form_id, user_id)

        try:
            await self.db.execute(delete(FormField).where(FormField.form_id == form_id))
            for index, field in enumerate(snapshot.fields):
                self.db.add(field_to_row(form_id, index, field))
            form.title = snapshot.title
            form.description = snapshot.description
            form.estimated_time = snapshot.estimated_time
            form.updated_at = datetime.now(timezone.utc)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            forms_logger.error("Replace-all save rolled back", error=e, form_id=form_id)
            raise

        forms_logger.info("Form saved", form_id=form_id, field_count=len(snapshot.fields))
        return form_to_dict(await self._load(form_id))

    async def list_forms(self, user_id: int) -> List[Dict[str, Any]]:
        field_counts = (
            select(FormField.form_id, func.count(FormField.pk).label("n"))
            .group_by(FormField.form_id)
            .subquery()
        )
        response_counts = (
            select(FormResponse.form_id, func.count(FormResponse.id).label("n"))
            .group_by(FormResponse.form_id)
            .subquery()
        )
        query = (
            select(Form, field_counts.c.n, response_counts.c.n)
            .outerjoin(field_counts, field_counts.c.form_id == Form.id)
            .outerjoin(response_counts, response_counts.c.form_id == Form.id)
            .where(Form.user_id == user_id)
            .order_by(Form.updated_at.desc(), Form.created_at.desc())
        )
        result = await self.db.execute(query)
        forms = []
        for form, field_count, response_count in result.all():
            forms.append({
                "id": form.id,
                "title": form.title,
                "isDraft": bool(form.is_draft),
                "isPublished": bool(form.is_published),
                "fieldCount": field_count or 0,
                "responseCount": response_count or 0,
                "estimatedTime": form.estimated_time,
                "updatedAt": _iso(form.updated_at),
                "createdAt": _iso(form.created_at),
            })
        return forms

    @log_operation("delete_form", forms_logger)
    async def delete_form(self, form_id: str, user_id: int) -> None:
        await self._load_owned(form_id, user_id)
        await self.db.execute(delete(FormResponse).where(FormResponse.form_id == form_id))
        await self.db.execute(delete(FormField).where(FormField.form_id == form_id))
        await self.db.execute(delete(Form).where(Form.id == form_id))
        await self.db.commit()

    @log_operation("toggle_publish", forms_logger)
    async def toggle_publish(self, form_id: str, user_id: int, publish: bool) -> Dict[str, Any]:
        form = await self._load_owned(form_id, user_id)
        form.is_published = publish
        form.is_draft = not publish
        form.published_at = datetime.now(timezone.utc) if publish else None
        await self.db.commit()
        return form_to_dict(await self._load(form_id))

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def submit_response(self, form_id: str, answers: Dict[str, Any]) -> int:
        form = await self._load(form_id)
        if not form or not form.is_published:
            raise NotFoundError()
        fields = [field_row_to_model(row) for row in form.fields]
        errors = validate_response(fields, answers)
        if errors:
            raise ResponseValidationError(errors)
        known = {field.id for field in fields}
        response = FormResponse(
            form_id=form_id,
            answers=json.dumps({key: value for key, value in answers.items() if key in known}),
        )
        self.db.add(response)
        await self.db.commit()
        forms_logger.info("Response recorded", form_id=form_id, response_id=response.id)
        return response.id

    async def list_responses(self, form_id: str, user_id: int) -> List[Dict[str, Any]]:
        await self._load_owned(form_id, user_id)
        result = await self.db.execute(
            select(FormResponse)
            .where(FormResponse.form_id == form_id)
            .order_by(FormResponse.created_at.desc(), FormResponse.id.desc())
        )
        return [
            {
                "id": row.id,
                "answers": json.loads(row.answers),
                "createdAt": _iso(row.created_at),
            }
            for row in result.scalars().all()
        ]


class ResponseValidationError(ValidationError):
    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("Please fix the highlighted fields")
