"""Debounced auto-save: collapse bursts of builder edits into one save.

``schedule(form_id, snapshot)`` (re)starts a timer; when it fires the latest
snapshot is persisted. Superseding edits cancel the timer and reschedule.
Saves run one at a time under a lock so an older snapshot never lands after a
newer one from the same saver. A failed save keeps its snapshot so that the
next edit or an explicit ``flush()`` retries it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from app.core.config import settings
from app.services.builder.aggregate import FormSnapshot

logger = logging.getLogger(__name__)

PersistFn = Callable[[str, FormSnapshot], Awaitable[Any]]
ErrorCallback = Callable[[Exception], None]


class SaveStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


class DebouncedSaver:
    """Schedule ``persist(form_id, snapshot)`` after ``delay`` seconds of quiet.

    Usage::

        saver = DebouncedSaver(client.save_snapshot, delay=1.0)
        saver.schedule(form_id, snapshot)   # inside a running event loop
        ...
        await saver.close()                 # flushes a pending save
    """

    def __init__(
        self,
        persist: PersistFn,
        delay: float | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._persist = persist
        self._delay = settings.AUTOSAVE_DEBOUNCE_SECONDS if delay is None else delay
        self._on_error = on_error
        self._pending: tuple[str, FormSnapshot] | None = None
        self._timer: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self.status = SaveStatus.IDLE
        self.last_error: Exception | None = None
        self.save_count = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, form_id: str, snapshot: FormSnapshot) -> None:
        """Replace the pending snapshot and restart the quiet-period timer."""
        self._pending = (form_id, snapshot)
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._save_after_delay())
        self.status = SaveStatus.PENDING

    async def flush(self) -> bool:
        """Save the pending snapshot now. Returns False if the save failed."""
        self._cancel_timer()
        return await self._save_pending()

    async def close(self) -> bool:
        """Flush any pending save before the editing session goes away."""
        saved = await self.flush()
        if self._pending is not None:
            logger.warning(
                "Closing auto-saver for form %s with an unsaved snapshot", self._pending[0]
            )
        return saved

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _save_after_delay(self) -> None:
        await asyncio.sleep(self._delay)
        # Past the quiet period; a new schedule() must not cancel the save itself
        self._timer = None
        await self._save_pending()

    async def _save_pending(self) -> bool:
        async with self._lock:
            if self._pending is None:
                return True
            form_id, snapshot = self._pending
            self.status = SaveStatus.SAVING
            try:
                await self._persist(form_id, snapshot)
            except Exception as exc:
                self.last_error = exc
                self.status = SaveStatus.FAILED
                logger.warning("Auto-save of form %s failed: %s", form_id, exc)
                if self._on_error is not None:
                    try:
                        self._on_error(exc)
                    except Exception:
                        logger.exception("Auto-save error callback failed for form %s", form_id)
                return False

            self.last_error = None
            self.save_count += 1
            if self._pending is not None and self._pending[1] is snapshot:
                self._pending = None
                self.status = SaveStatus.SAVED
            else:
                self.status = SaveStatus.PENDING
            logger.info("Auto-saved form %s (%d questions)", form_id, len(snapshot.questions))
            return True
