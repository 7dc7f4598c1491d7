"""
Forms API - the JSON surface the form builder talks to.

Provides:
- Dashboard listing of the caller's forms
- Create (empty or from a snapshot), replace-all update, delete
- Load for editing (owner only) and preview (published, or owner's draft)
- Publish / unpublish
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from fomi.api.deps import get_current_user, get_optional_user, get_form_store
from fomi.core.errors import AuthError
from fomi.core.logging import forms_logger
from fomi.db.models import User
from fomi.forms.estimation import calculate_estimated_time
from fomi.forms.snapshot import FormSnapshot
from fomi.services.forms import FormStore

router = APIRouter()


# ============================================================================
# Pydantic Schemas
# ============================================================================

class FormPayload(BaseModel):
    title: str = "Untitled form"
    description: Optional[str] = None
    estimated_time: Optional[str] = Field(default=None, alias="estimatedTime")
    fields: List[dict] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def to_snapshot(self, form_id: Optional[str] = None) -> FormSnapshot:
        snapshot = FormSnapshot.from_dict({
            "id": form_id,
            "title": self.title,
            "description": self.description,
            "estimatedTime": self.estimated_time,
            "fields": self.fields,
        })
        if not snapshot.estimated_time:
            snapshot.estimated_time = calculate_estimated_time(snapshot.fields)
        return snapshot


class FormUpdate(FormPayload):
    form_id: Optional[str] = Field(default=None, alias="formId")
    id: Optional[str] = None


class PublishToggle(BaseModel):
    is_published: bool = Field(alias="isPublished")

    class Config:
        populate_by_name = True


# ============================================================================
# Endpoints
# ============================================================================

@router.get("")
async def list_forms(
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    return {"forms": await store.list_forms(user.id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_form(
    payload: FormPayload,
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    form = await store.create_form(user.id, payload.to_snapshot())
    forms_logger.info("Form created", form_id=form["id"], user_id=user.id)
    return {"form": form}


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_empty_form(
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    form_id = await store.create_empty_form(user.id)
    return {"formId": form_id}


@router.put("")
async def update_form(
    payload: FormUpdate,
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    form_id = payload.form_id or payload.id
    form = await store.update_form(form_id, user.id, payload.to_snapshot(form_id))
    return {"form": form}


@router.get("/{form_id}")
async def get_form(
    form_id: str,
    preview: bool = False,
    user: Optional[User] = Depends(get_optional_user),
    store: FormStore = Depends(get_form_store),
):
    if preview:
        form = await store.get_preview_form(form_id, user.id if user else None)
    else:
        if user is None:
            raise AuthError("Unauthorized")
        form = await store.get_form(form_id, user.id)
    return {"form": form}


@router.delete("/{form_id}")
async def delete_form(
    form_id: str,
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    await store.delete_form(form_id, user.id)
    return {"success": True}


@router.patch("/{form_id}")
async def toggle_publish(
    form_id: str,
    payload: PublishToggle,
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    form = await store.toggle_publish(form_id, user.id, payload.is_published)
    return {"form": form}
