from fastapi import APIRouter, Depends, Request

from pydantic import BaseModel

from fomi.api.deps import get_current_user
from fomi.core.errors import ValidationError
from fomi.db.models import User
from fomi.services.assistant import AssistantStub, GREETING

router = APIRouter()


class AssistantMessage(BaseModel):
    content: str


def get_assistant(request: Request) -> AssistantStub:
    assistant = getattr(request.app.state, "assistant", None)
    if assistant is None:
        assistant = request.app.state.assistant = AssistantStub()
    return assistant


@router.get("/greeting")
async def greeting():
    return {"message": {"type": "assistant", "content": GREETING}}


@router.post("/messages")
async def send_message(
    payload: AssistantMessage,
    user: User = Depends(get_current_user),
    assistant: AssistantStub = Depends(get_assistant),
):
    answer = assistant.answer(payload.content)
    if answer is None:
        raise ValidationError("Message cannot be empty")
    return {"message": answer}
