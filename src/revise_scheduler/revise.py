"""Revise Scheduler plugin.

Wires the document processor and the debounced change scheduler to a host.
The host calls the lifecycle/event hooks and exposes the two commands:

- :meth:`RevisePlugin.scan_current` – "scan & schedule in active file"
- :meth:`RevisePlugin.scan_all`     – "scan & schedule across vault"
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from revise_scheduler.config import SchedulerConfig, load_config
from revise_scheduler.document import DocumentProcessor, RewriteResult
from revise_scheduler.events import ChangeScheduler
from revise_scheduler.host import DocumentStore, LogNotifier, Notifier
from revise_scheduler.plugin import PluginDescriptor
from revise_scheduler.toggles import CheckboxItem

DEFAULT_DESCRIPTOR = PluginDescriptor(
    id="revise-scheduler",
    name="Revise Scheduler",
    version="0.1.0",
    entry="revise_scheduler.revise",
    hooks=[
        "on_load",
        "on_document_opened",
        "on_document_changed",
        "on_checkbox_metadata_changed",
        "on_unload",
    ],
)


class RevisePlugin:
    def __init__(self, descriptor: PluginDescriptor, config: SchedulerConfig | None = None) -> None:
        self.descriptor = descriptor
        self.config = config or load_config(settings=descriptor.settings)
        self.store: DocumentStore | None = None
        self.notifier: Notifier = LogNotifier()
        self.processor: DocumentProcessor | None = None
        self.scheduler: ChangeScheduler | None = None

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_load(
        self,
        store: DocumentStore,
        notifier: Notifier | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.notifier = notifier or LogNotifier()
        self.processor = DocumentProcessor(
            store,
            ladder=self.config.ladder_table,
            clock=clock,
            notifier=self.notifier,
            self_write_grace=self.config.self_write_grace,
        )
        self.scheduler = ChangeScheduler(self.processor, debounce=self.config.debounce)
        self.notifier.notify(f"Revise Scheduler loaded ({self.config.ladder} ladder)")

    def on_document_opened(self, doc_id: str, items: list[CheckboxItem]) -> None:
        """Record the checkbox baseline of a freshly opened document."""
        if self.config.trigger == "checkbox" and self._wants(doc_id):
            self._processor().state.checkboxes.observe(doc_id, items)

    def on_document_changed(self, doc_id: str) -> None:
        if self.config.trigger != "modify" or not self._wants(doc_id):
            return
        scheduler = self._scheduler()
        scheduler.start()
        scheduler.document_changed(doc_id)

    def on_checkbox_metadata_changed(self, doc_id: str, items: list[CheckboxItem]) -> None:
        if self.config.trigger != "checkbox" or not self._wants(doc_id):
            return
        scheduler = self._scheduler()
        scheduler.start()
        scheduler.checkboxes_changed(doc_id, items)

    async def on_unload(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.close()
        if self.processor is not None:
            self.processor.state.clear()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def scan_current(self, doc_id: str | None) -> RewriteResult | None:
        """Process the active document, if there is one."""
        if not doc_id:
            self.notifier.notify("Revise Scheduler: no active document")
            return None
        processor = self._processor()
        if doc_id in processor.state.in_flight:
            self.notifier.notify(f"Revise Scheduler: {doc_id} is already being processed")
            return None
        result = await processor.process_document(doc_id)
        # None here means the failure was already reported
        if result is not None:
            self.notifier.notify(f"Revise Scheduler: scanned {doc_id}")
        return result

    async def scan_all(self) -> int:
        """Process every document in the store; return how many were updated."""
        processor = self._processor()
        doc_ids = processor.store.list_documents(self.config.extension)
        updated = 0
        for doc_id in doc_ids:
            result = await processor.process_document(doc_id)
            if result is not None and result.changed:
                updated += 1
        self.notifier.notify(f"Revise Scheduler: scanned {len(doc_ids)} documents ({updated} updated)")
        return updated

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _wants(self, doc_id: str) -> bool:
        return doc_id.lower().endswith(self.config.extension.lower())

    def _processor(self) -> DocumentProcessor:
        if self.processor is None:
            raise RuntimeError("Plugin not loaded; call on_load first.")
        return self.processor

    def _scheduler(self) -> ChangeScheduler:
        if self.scheduler is None:
            raise RuntimeError("Plugin not loaded; call on_load first.")
        return self.scheduler


def create_plugin(descriptor: PluginDescriptor) -> RevisePlugin:
    return RevisePlugin(descriptor)
