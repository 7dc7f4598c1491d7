from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from fomi.api.deps import get_current_user, get_form_store
from fomi.db.models import User
from fomi.services.forms import FormStore

router = APIRouter()


class ResponseSubmit(BaseModel):
    answers: Dict[str, Any] = Field(default_factory=dict)


@router.post("/{form_id}/responses", status_code=status.HTTP_201_CREATED)
async def submit_response(
    form_id: str,
    payload: ResponseSubmit,
    store: FormStore = Depends(get_form_store),
):
    """Respondents are anonymous; the form only has to be published."""
    response_id = await store.submit_response(form_id, payload.answers)
    return {"responseId": response_id}


@router.get("/{form_id}/responses")
async def list_responses(
    form_id: str,
    user: User = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    return {"responses": await store.list_responses(form_id, user.id)}
