"""Autosave scheduler: debounce coalescing, unchanged skip, forced saves, ordering."""
import asyncio

import pytest

from fomi.editor.autosave import AutosaveScheduler, NO_CHANGES
from fomi.editor.gateway import ErrorKind, GatewayResult
from fomi.forms.fields import new_field
from fomi.forms.snapshot import FormSnapshot

DEBOUNCE = 0.02


class FakeGateway:
    def __init__(self, has_session=True, fail=False, delay=0.0):
        self.has_session = has_session
        self.fail = fail
        self.delay = delay
        self.saved = []
        self.active = 0
        self.max_active = 0

    async def save_form(self, snapshot):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if self.fail:
            return GatewayResult.fail(ErrorKind.TRANSPORT, "Failed to save form")
        self.saved.append(snapshot.title)
        return GatewayResult.ok({"id": snapshot.id}, message="Form saved successfully")


def _snapshot(title="Survey", form_id="form_1"):
    return FormSnapshot(id=form_id, title=title, fields=[new_field("TEXT").model_copy(update={"id": "f1"})])


@pytest.mark.anyio
async def test_burst_of_triggers_sends_only_the_last():
    gateway = FakeGateway()
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    for title in ("a", "ab", "abc"):
        scheduler.trigger_autosave(_snapshot(title))
    assert scheduler.has_pending
    await scheduler.wait_idle()

    assert gateway.saved == ["abc"]
    assert scheduler.last_saved_at is not None
    assert scheduler.last_error is None


@pytest.mark.anyio
async def test_identical_triggers_send_one_save():
    gateway = FakeGateway()
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    scheduler.trigger_autosave(_snapshot())
    scheduler.trigger_autosave(_snapshot())
    await scheduler.wait_idle()
    assert gateway.saved == ["Survey"]

    # unchanged since the last successful save
    scheduler.trigger_autosave(_snapshot())
    await scheduler.wait_idle()
    assert gateway.saved == ["Survey"]


@pytest.mark.anyio
async def test_no_id_or_no_session_is_a_no_op():
    gateway = FakeGateway()
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)
    scheduler.trigger_autosave(_snapshot(form_id=None))
    assert not scheduler.has_pending

    anonymous = AutosaveScheduler(FakeGateway(has_session=False), debounce=DEBOUNCE)
    anonymous.trigger_autosave(_snapshot())
    assert not anonymous.has_pending

    await scheduler.wait_idle()
    assert gateway.saved == []


@pytest.mark.anyio
async def test_unchanged_content_skipped_unless_forced():
    gateway = FakeGateway()
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    first = await scheduler.manual_save(_snapshot())
    assert first.success
    skipped = await scheduler._save(_snapshot(), force=False)
    assert skipped.success
    assert skipped.message == NO_CHANGES

    forced = await scheduler.manual_save(_snapshot())
    assert forced.success
    assert gateway.saved == ["Survey", "Survey"]


@pytest.mark.anyio
async def test_manual_save_cancels_pending_debounce():
    gateway = FakeGateway()
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    scheduler.trigger_autosave(_snapshot("draft"))
    await scheduler.manual_save(_snapshot("final"))
    await scheduler.wait_idle()
    await asyncio.sleep(DEBOUNCE * 2)

    assert gateway.saved == ["final"]


@pytest.mark.anyio
async def test_failure_sets_error_without_retry():
    gateway = FakeGateway(fail=True)
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    result = await scheduler.manual_save(_snapshot())
    assert not result.success
    assert scheduler.last_error == "Failed to save form"
    assert scheduler.last_saved_at is None

    scheduler.clear_error()
    assert scheduler.last_error is None

    # the failed snapshot is not remembered, so an autosave tries again
    gateway.fail = False
    scheduler.trigger_autosave(_snapshot())
    await scheduler.wait_idle()
    assert gateway.saved == ["Survey"]


@pytest.mark.anyio
async def test_saves_never_overlap_and_keep_order():
    gateway = FakeGateway(delay=0.02)
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    await asyncio.gather(
        scheduler.manual_save(_snapshot("one")),
        scheduler.manual_save(_snapshot("two")),
        scheduler.manual_save(_snapshot("three")),
    )

    assert gateway.max_active == 1
    assert gateway.saved == ["one", "two", "three"]


@pytest.mark.anyio
async def test_trigger_during_inflight_save_does_not_cancel_it():
    gateway = FakeGateway(delay=0.05)
    scheduler = AutosaveScheduler(gateway, debounce=0.01)

    scheduler.trigger_autosave(_snapshot("first"))
    await asyncio.sleep(0.03)  # debounce elapsed, save in flight
    scheduler.trigger_autosave(_snapshot("second"))
    await scheduler.wait_idle()

    assert gateway.saved == ["first", "second"]
    assert gateway.max_active == 1


@pytest.mark.anyio
async def test_close_drops_pending_save():
    gateway = FakeGateway()
    scheduler = AutosaveScheduler(gateway, debounce=DEBOUNCE)

    scheduler.trigger_autosave(_snapshot())
    scheduler.close()
    await asyncio.sleep(DEBOUNCE * 3)

    assert not scheduler.has_pending
    assert gateway.saved == []
