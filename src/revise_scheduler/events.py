"""Debounced change handling.

Hosts push raw notifications (a note was saved, a note's checkboxes changed)
into :class:`ChangeScheduler`.  A single dispatcher task drains the queue and
keeps one debounce timer per document, so a burst of keystroke-level saves
collapses into one processing pass once the note has been quiet for
``debounce`` seconds.  When the timer fires the latest event for that note
is handed to a worker; the processor's reentrancy guard drops the pass if a
previous one for the same note is still running.

Notifications arriving while a note is inside its self-write window are
dropped: they are echoes of the scheduler's own write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from revise_scheduler.document import DocumentProcessor
from revise_scheduler.toggles import CheckboxItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    doc_id: str
    #: Structural checkbox metadata; ``None`` for a plain content change
    items: tuple[CheckboxItem, ...] | None = None


class ChangeScheduler:
    def __init__(self, processor: DocumentProcessor, *, debounce: float = 0.35) -> None:
        self.processor = processor
        self.debounce = debounce
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()
        self._pending: dict[str, ChangeEvent] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._workers: set[asyncio.Task[None]] = set()
        self._dispatcher: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Inbound notifications
    # ------------------------------------------------------------------

    def document_changed(self, doc_id: str) -> None:
        self._queue.put_nowait(ChangeEvent(doc_id))

    def checkboxes_changed(self, doc_id: str, items: Iterable[CheckboxItem]) -> None:
        self._queue.put_nowait(ChangeEvent(doc_id, tuple(items)))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the dispatcher; must be called from a running event loop."""
        if self._dispatcher is None:
            self._dispatcher = asyncio.get_running_loop().create_task(self._dispatch())

    async def drain(self) -> None:
        """Wait until every queued notification has been processed."""
        await self._queue.join()
        while self._timers or self._workers:
            if self._workers:
                await asyncio.gather(*self._workers)
            else:
                await asyncio.sleep(max(self.debounce / 4, 0.005))

    async def close(self) -> None:
        """Stop the dispatcher, drop pending notifications, wait for running passes."""
        if self._dispatcher is not None:
            self._queue.put_nowait(None)
            await self._dispatcher
            self._dispatcher = None
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._pending.clear()
        if self._workers:
            await asyncio.gather(*self._workers)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _dispatch(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if event is None:
                    return
                self._coalesce(event)
            finally:
                self._queue.task_done()

    def _coalesce(self, event: ChangeEvent) -> None:
        if self.processor.state.is_suppressed(event.doc_id):
            logger.debug("Ignoring change to %s caused by our own write", event.doc_id)
            return
        self._pending[event.doc_id] = event
        timer = self._timers.pop(event.doc_id, None)
        if timer is not None:
            timer.cancel()
        loop = asyncio.get_running_loop()
        self._timers[event.doc_id] = loop.call_later(self.debounce, self._fire, event.doc_id)

    def _fire(self, doc_id: str) -> None:
        self._timers.pop(doc_id, None)
        event = self._pending.pop(doc_id, None)
        if event is None:
            return
        task = asyncio.get_running_loop().create_task(self._run(event))
        self._workers.add(task)
        task.add_done_callback(self._workers.discard)

    async def _run(self, event: ChangeEvent) -> None:
        if event.items is None:
            await self.processor.process_document(event.doc_id)
        else:
            await self.processor.process_toggles(event.doc_id, list(event.items))
