import pytest

from fomi.editor.autosave import AutosaveScheduler
from fomi.editor.canvas import CanvasStatus, DragState, FormCanvas, LAST_FIELD_NOTICE
from fomi.editor.gateway import ErrorKind, GatewayResult
from fomi.forms.fields import parse_field
from fomi.forms.snapshot import FormSnapshot


class FakeGateway:
    def __init__(self, snapshot=None, has_session=True, load_error=None):
        self.has_session = has_session
        self.snapshot = snapshot
        self.load_error = load_error
        self.loads = []
        self.saved = []
        self.created = 0

    async def load_form(self, form_id, preview=False):
        self.loads.append(form_id)
        if self.load_error:
            return GatewayResult.fail(self.load_error)
        return GatewayResult.ok(self.snapshot)

    async def create_form(self):
        self.created += 1
        self.snapshot.id = "form_created"
        return GatewayResult.ok("form_created")

    async def save_form(self, snapshot):
        self.saved.append(snapshot)
        return GatewayResult.ok({}, message="Form saved successfully")


def _stored(*ids):
    fields = [parse_field({"id": i, "type": "TEXT", "question": i.upper()}) for i in ids]
    return FormSnapshot(id="form_1", title="Stored", description="Desc", estimated_time="2-3 minutes", fields=fields)


async def _ready_canvas(*ids, debounce=60.0):
    gateway = FakeGateway(_stored(*ids))
    canvas = FormCanvas("form_1", gateway, AutosaveScheduler(gateway, debounce=debounce))
    assert await canvas.load() == CanvasStatus.READY
    return canvas


def _ids(canvas):
    return [f.id for f in canvas.fields]


@pytest.mark.anyio
async def test_load_hydrates_state():
    canvas = await _ready_canvas("a", "b")
    assert canvas.title == "Stored"
    assert canvas.description == "Desc"
    assert canvas.estimated_time == "2-3 minutes"
    assert _ids(canvas) == ["a", "b"]
    canvas.close()


@pytest.mark.anyio
async def test_without_session_canvas_is_locked():
    gateway = FakeGateway(_stored("a"), has_session=False)
    canvas = FormCanvas("form_1", gateway, AutosaveScheduler(gateway, debounce=60))

    assert await canvas.load() == CanvasStatus.UNAUTHENTICATED
    assert gateway.loads == []
    assert canvas.add_field("TEXT") is None
    assert canvas.fields == []
    result = await canvas.save()
    assert not result.success
    assert gateway.saved == []


@pytest.mark.anyio
async def test_failed_load_is_not_found():
    gateway = FakeGateway(load_error=ErrorKind.NOT_FOUND)
    canvas = FormCanvas("form_missing", gateway)
    assert await canvas.load() == CanvasStatus.NOT_FOUND
    assert canvas.notices[0].message == "Form not found"
    assert canvas.load_error_kind == ErrorKind.NOT_FOUND


@pytest.mark.anyio
async def test_unreachable_server_is_told_apart_from_missing_form():
    gateway = FakeGateway(load_error=ErrorKind.TRANSPORT)
    canvas = FormCanvas("form_1", gateway)
    assert await canvas.load() == CanvasStatus.NOT_FOUND
    assert canvas.load_error_kind == ErrorKind.TRANSPORT


@pytest.mark.anyio
async def test_placeholder_id_creates_form_first():
    gateway = FakeGateway(_stored("a"))
    canvas = FormCanvas("new", gateway, AutosaveScheduler(gateway, debounce=60))
    assert await canvas.load() == CanvasStatus.READY
    assert gateway.created == 1
    assert canvas.form_id == "form_created"
    assert gateway.loads == ["form_created"]


@pytest.mark.anyio
async def test_add_field_appends_and_schedules_autosave():
    canvas = await _ready_canvas("a")
    field = canvas.add_field("CHECKBOX")
    assert _ids(canvas) == ["a", field.id]
    assert field.options == ["Option 1"]
    assert canvas.scheduler.has_pending
    # 15 base + 15 (a) + CHECKBOX with one option 13 = 43s, x1.2 -> 52s
    assert canvas.estimated_time == "< 1 minute"
    canvas.close()
    assert not canvas.scheduler.has_pending


@pytest.mark.anyio
async def test_delete_last_field_is_refused():
    canvas = await _ready_canvas("a")
    assert canvas.delete_field("a") is False
    assert _ids(canvas) == ["a"]
    assert canvas.notices[-1].message == LAST_FIELD_NOTICE

    canvas.dismiss_notice(canvas.notices[-1].id)
    assert canvas.notices == []
    canvas.close()


@pytest.mark.anyio
async def test_delete_field():
    canvas = await _ready_canvas("a", "b")
    assert canvas.delete_field("a") is True
    assert _ids(canvas) == ["b"]
    assert canvas.delete_field("zzz") is False
    canvas.close()


@pytest.mark.anyio
async def test_move_field():
    canvas = await _ready_canvas("A", "B", "C", "D")
    assert canvas.move_field(0, 2) is True
    assert _ids(canvas) == ["B", "C", "A", "D"]

    assert canvas.move_field(1, 1) is False
    assert canvas.move_field(0, 9) is False
    assert _ids(canvas) == ["B", "C", "A", "D"]
    assert canvas.notices
    canvas.close()


@pytest.mark.anyio
async def test_duplicate_field_inserts_after_source():
    canvas = await _ready_canvas("a", "b")
    canvas.update_field("a", required=True, placeholder="Hint")
    copy = canvas.duplicate_field("a")

    assert _ids(canvas) == ["a", copy.id, "b"]
    assert copy.id != "a"
    original = canvas.fields[0]
    assert copy.model_dump(exclude={"id"}) == original.model_dump(exclude={"id"})
    canvas.close()


@pytest.mark.anyio
async def test_update_field():
    canvas = await _ready_canvas("a")
    updated = canvas.update_field("a", question="Full name", minLength=3)
    assert updated.question == "Full name"
    assert canvas.fields[0].min_length == 3

    assert canvas.update_field("missing", question="x") is None

    assert canvas.update_field("a", type="NUMBER") is None
    assert canvas.fields[0].type.value == "TEXT"
    assert "cannot be changed" in canvas.notices[-1].message
    canvas.close()


@pytest.mark.anyio
async def test_drag_moves_live():
    canvas = await _ready_canvas("A", "B", "C", "D")
    canvas.drag_start(0)
    assert canvas.drag_state == DragState.DRAGGING

    canvas.drag_over(1)
    assert _ids(canvas) == ["B", "A", "C", "D"]
    assert canvas.dragged_index == 1

    canvas.drag_over(1)
    assert _ids(canvas) == ["B", "A", "C", "D"]

    canvas.drag_over(3)
    assert _ids(canvas) == ["B", "C", "D", "A"]

    canvas.drag_end()
    assert canvas.drag_state == DragState.IDLE
    assert canvas.dragged_index is None

    canvas.drag_over(0)
    assert _ids(canvas) == ["B", "C", "D", "A"]
    canvas.close()


@pytest.mark.anyio
async def test_manual_estimate_lasts_until_next_field_change():
    canvas = await _ready_canvas("a")
    canvas.set_estimated_time("About an hour")
    assert canvas.estimated_time == "About an hour"
    canvas.add_field("TEXT")
    assert canvas.estimated_time == "< 1 minute"
    canvas.close()


@pytest.mark.anyio
async def test_metadata_edits_reach_autosave():
    canvas = await _ready_canvas("a", debounce=0.01)
    canvas.set_title("Renamed")
    canvas.set_description("New description")
    await canvas.scheduler.wait_idle()

    saved = canvas.gateway.saved
    assert len(saved) == 1
    assert saved[0].title == "Renamed"
    assert saved[0].description == "New description"


@pytest.mark.anyio
async def test_manual_save_goes_through_immediately():
    canvas = await _ready_canvas("a")
    canvas.set_title("Now")
    result = await canvas.save()
    assert result.success
    assert [s.title for s in canvas.gateway.saved] == ["Now"]
    assert not canvas.scheduler.has_pending


def _stored_choice():
    choice = parse_field({"id": "c", "type": "RADIO", "question": "Pick", "options": ["A"]})
    return FormSnapshot(id="form_1", title="Stored", fields=[choice])


async def _choice_canvas():
    gateway = FakeGateway(_stored_choice())
    canvas = FormCanvas("form_1", gateway, AutosaveScheduler(gateway, debounce=60.0))
    assert await canvas.load() == CanvasStatus.READY
    return canvas


@pytest.mark.anyio
async def test_choice_field_keeps_its_last_option():
    canvas = await _choice_canvas()

    assert canvas.update_field("c", options=[]) is None
    assert canvas.fields[0].options == ["A"]
    assert canvas.notices[-1].message == "A choice field needs at least one option"

    assert canvas.remove_option("c", 0) is None
    assert canvas.fields[0].options == ["A"]
    assert len(canvas.notices) == 2
    assert not canvas.scheduler.has_pending
    canvas.close()


@pytest.mark.anyio
async def test_option_edits():
    canvas = await _choice_canvas()
    canvas.add_option("c")
    canvas.add_option("c", "Third")
    assert canvas.fields[0].options == ["A", "Option 2", "Third"]

    canvas.update_option("c", 1, "B")
    canvas.move_option("c", 2, 0)
    assert canvas.fields[0].options == ["Third", "A", "B"]

    canvas.remove_option("c", 1)
    assert canvas.fields[0].options == ["Third", "B"]
    assert canvas.scheduler.has_pending

    assert canvas.update_option("c", 9, "Nope") is None
    assert "out of range" in canvas.notices[-1].message
    canvas.close()


@pytest.mark.anyio
async def test_problems_flag_blank_questions():
    canvas = await _ready_canvas("a", "b")
    assert canvas.problems() == {}

    canvas.update_field("b", question="  ")
    assert canvas.problems() == {"b": ["Question is required"]}

    canvas.add_option("a")
    assert "have no options" in canvas.notices[-1].message
    canvas.close()
