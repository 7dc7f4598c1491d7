"""
Autosave Scheduler

Debounces editor mutations into saves. Only the newest snapshot inside the
debounce window is sent, saves run one at a time in the order they were
requested, and a snapshot identical to the last successful save is skipped
unless the save is forced.
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional, Set

from fomi.core.config import settings
from fomi.core.logging import editor_logger
from fomi.editor.gateway import FormGateway, GatewayResult
from fomi.forms.snapshot import FormSnapshot

NO_CHANGES = "No changes to save"


class AutosaveScheduler:
    def __init__(self, gateway: FormGateway, debounce: Optional[float] = None):
        self.gateway = gateway
        self.debounce = settings.AUTOSAVE_DEBOUNCE_SECONDS if debounce is None else debounce

        self.is_saving = False
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._last_serialized: Optional[str] = None
        self._pending: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def trigger_autosave(self, snapshot: FormSnapshot) -> None:
        """(Re)start the debounce window for ``snapshot``."""
        if not snapshot.id or not self.gateway.has_session:
            return
        self._cancel_pending()
        task = asyncio.get_running_loop().create_task(self._debounced(snapshot))
        self._pending = task
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def manual_save(self, snapshot: FormSnapshot) -> GatewayResult:
        self._cancel_pending()
        return await self._save(snapshot, force=True)

    def clear_error(self) -> None:
        self.last_error = None

    def close(self) -> None:
        """Drop the pending autosave without sending it."""
        self._cancel_pending()

    async def wait_idle(self) -> None:
        """Wait for the pending debounce and any save already under way."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def _debounced(self, snapshot: FormSnapshot) -> None:
        await asyncio.sleep(self.debounce)
        # Past the window the save belongs to the queue, not the timer
        if self._pending is asyncio.current_task():
            self._pending = None
        await self._save(snapshot, force=False)

    async def _save(self, snapshot: FormSnapshot, force: bool) -> GatewayResult:
        async with self._lock:
            serialized = snapshot.serialize()
            if not force and serialized == self._last_serialized:
                return GatewayResult.ok(message=NO_CHANGES)

            self.is_saving = True
            self.last_error = None
            try:
                result = await self.gateway.save_form(snapshot)
            finally:
                self.is_saving = False

            if result.success:
                self._last_serialized = serialized
                self.last_saved_at = datetime.now(timezone.utc)
            else:
                self.last_error = result.error
                editor_logger.warning(
                    f"Save failed: {result.error}",
                    form_id=snapshot.id,
                    forced=force,
                )
            return result
