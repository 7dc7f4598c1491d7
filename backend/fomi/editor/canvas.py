"""
Form Canvas - the editing session for one form.

The canvas owns the in-memory field list and form metadata. Every mutation
recomputes the estimated completion time and hands the new snapshot to the
autosave scheduler. Guard violations and failed loads/saves become notices;
local edits are never rolled back.
"""
import enum
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from fomi.core.errors import ValidationError
from fomi.core.logging import editor_logger
from fomi.editor.autosave import AutosaveScheduler
from fomi.editor.gateway import ErrorKind, FormGateway, GatewayResult
from fomi.forms.estimation import calculate_estimated_time
from fomi.forms import fields as field_ops
from fomi.forms.fields import BaseField, apply_update, field_problems, new_field
from fomi.forms.ids import generate_field_id, is_new_form
from fomi.forms.snapshot import FormSnapshot

DEFAULT_TITLE = "Untitled form"
DEFAULT_DESCRIPTION = "Form description"
DEFAULT_ESTIMATED_TIME = "5-7 minutes"

LAST_FIELD_NOTICE = "A form needs at least one field"
SIGN_IN_NOTICE = "Please sign in to access the form builder."


class CanvasStatus(str, enum.Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    READY = "ready"


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass
class Notice:
    id: int
    level: str
    message: str


class FormCanvas:
    def __init__(
        self,
        form_id: str,
        gateway: FormGateway,
        scheduler: Optional[AutosaveScheduler] = None,
    ):
        self.form_id = form_id
        self.gateway = gateway
        self.scheduler = scheduler or AutosaveScheduler(gateway)

        self.status = CanvasStatus.LOADING
        self.load_error_kind: Optional[ErrorKind] = None
        self.title = DEFAULT_TITLE
        self.description = DEFAULT_DESCRIPTION
        self.estimated_time = DEFAULT_ESTIMATED_TIME
        self.fields: List[BaseField] = []

        self.drag_state = DragState.IDLE
        self.dragged_index: Optional[int] = None

        self.notices: List[Notice] = []
        self._notice_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> CanvasStatus:
        if not self.gateway.has_session:
            self.load_error_kind = ErrorKind.AUTH
            self.status = CanvasStatus.UNAUTHENTICATED
            return self.status

        if is_new_form(self.form_id):
            created = await self.gateway.create_form()
            if not created.success:
                return self._load_failed(created)
            self.form_id = created.data

        result = await self.gateway.load_form(self.form_id)
        if not result.success:
            return self._load_failed(result)

        snapshot: FormSnapshot = result.data
        self.title = snapshot.title or DEFAULT_TITLE
        self.description = snapshot.description or DEFAULT_DESCRIPTION
        self.estimated_time = snapshot.estimated_time or DEFAULT_ESTIMATED_TIME
        self.fields = list(snapshot.fields)
        self.load_error_kind = None
        self.status = CanvasStatus.READY
        editor_logger.debug("Canvas hydrated", form_id=self.form_id, field_count=len(self.fields))
        return self.status

    def _load_failed(self, result: GatewayResult) -> CanvasStatus:
        self.load_error_kind = result.kind
        if result.kind == ErrorKind.AUTH:
            self.status = CanvasStatus.UNAUTHENTICATED
        else:
            self.status = CanvasStatus.NOT_FOUND
            self.notify(result.error, level="error")
        return self.status

    async def save(self) -> GatewayResult:
        if not self._editable():
            return GatewayResult.fail(ErrorKind.AUTH, SIGN_IN_NOTICE)
        result = await self.scheduler.manual_save(self.snapshot())
        if not result.success:
            self.notify(result.error, level="error")
        return result

    def close(self) -> None:
        self.drag_end()
        self.scheduler.close()

    def snapshot(self) -> FormSnapshot:
        return FormSnapshot(
            id=self.form_id,
            title=self.title,
            description=self.description,
            estimated_time=self.estimated_time,
            fields=list(self.fields),
        )

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def notify(self, message: str, level: str = "warning") -> Notice:
        notice = Notice(id=next(self._notice_ids), level=level, message=message)
        self.notices.append(notice)
        return notice

    def dismiss_notice(self, notice_id: int) -> None:
        self.notices = [n for n in self.notices if n.id != notice_id]

    # ------------------------------------------------------------------
    # Field mutations
    # ------------------------------------------------------------------

    def _editable(self) -> bool:
        return self.status == CanvasStatus.READY

    def _index_of(self, field_id: str) -> Optional[int]:
        for index, field in enumerate(self.fields):
            if field.id == field_id:
                return index
        return None

    def _fields_changed(self) -> None:
        self.estimated_time = calculate_estimated_time(self.fields)
        self._changed()

    def _changed(self) -> None:
        self.scheduler.trigger_autosave(self.snapshot())

    def _edit_field(self, field_id: str, edit: Callable[[BaseField], BaseField]) -> Optional[BaseField]:
        index = self._index_of(field_id)
        if not self._editable() or index is None:
            return None
        try:
            field = edit(self.fields[index])
        except ValidationError as e:
            self.notify(e.message)
            return None
        self.fields[index] = field
        self._fields_changed()
        return field

    def add_field(self, field_type: Any) -> Optional[BaseField]:
        if not self._editable():
            return None
        field = new_field(field_type)
        self.fields.append(field)
        self._fields_changed()
        return field

    def update_field(self, field_id: str, **updates) -> Optional[BaseField]:
        return self._edit_field(field_id, lambda f: apply_update(f, updates))

    def delete_field(self, field_id: str) -> bool:
        index = self._index_of(field_id)
        if not self._editable() or index is None:
            return False
        if len(self.fields) <= 1:
            self.notify(LAST_FIELD_NOTICE)
            return False
        del self.fields[index]
        self._fields_changed()
        return True

    def duplicate_field(self, field_id: str) -> Optional[BaseField]:
        index = self._index_of(field_id)
        if not self._editable() or index is None:
            return None
        copy = self.fields[index].model_copy(update={"id": generate_field_id()}, deep=True)
        self.fields.insert(index + 1, copy)
        self._fields_changed()
        return copy

    def move_field(self, from_index: int, to_index: int) -> bool:
        if not self._editable() or from_index == to_index:
            return False
        size = len(self.fields)
        if not (0 <= from_index < size and 0 <= to_index < size):
            self.notify(f"Cannot move field from position {from_index} to {to_index}")
            return False
        self.fields.insert(to_index, self.fields.pop(from_index))
        self._fields_changed()
        return True

    # ------------------------------------------------------------------
    # Drag and drop
    # ------------------------------------------------------------------

    def drag_start(self, index: int) -> None:
        if not self._editable() or not 0 <= index < len(self.fields):
            return
        self.drag_state = DragState.DRAGGING
        self.dragged_index = index

    def drag_over(self, index: int) -> None:
        if self.drag_state != DragState.DRAGGING or index == self.dragged_index:
            return
        if self.move_field(self.dragged_index, index):
            self.dragged_index = index

    def drag_end(self) -> None:
        self.drag_state = DragState.IDLE
        self.dragged_index = None

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def set_title(self, title: str) -> None:
        if self._editable():
            self.title = title
            self._changed()

    def set_description(self, description: str) -> None:
        if self._editable():
            self.description = description
            self._changed()

    def set_estimated_time(self, estimated_time: str) -> None:
        """Manual override; replaced by the heuristic on the next field change."""
        if self._editable():
            self.estimated_time = estimated_time
            self._changed()

    # ------------------------------------------------------------------
    # Options (choice fields)
    # ------------------------------------------------------------------

    def add_option(self, field_id: str, label: str = None) -> Optional[BaseField]:
        return self._edit_field(field_id, lambda f: field_ops.add_option(f, label))

    def update_option(self, field_id: str, index: int, label: str) -> Optional[BaseField]:
        return self._edit_field(field_id, lambda f: field_ops.update_option(f, index, label))

    def remove_option(self, field_id: str, index: int) -> Optional[BaseField]:
        return self._edit_field(field_id, lambda f: field_ops.remove_option(f, index))

    def move_option(self, field_id: str, from_index: int, to_index: int) -> Optional[BaseField]:
        return self._edit_field(field_id, lambda f: field_ops.move_option(f, from_index, to_index))

    def problems(self) -> Dict[str, List[str]]:
        """Builder warnings keyed by field id; fields without problems are omitted."""
        found = {}
        for field in self.fields:
            issues = field_problems(field)
            if issues:
                found[field.id] = issues
        return found
