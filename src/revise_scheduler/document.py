"""Apply the scheduling engine across whole documents.

:func:`rewrite_text` is the pure pass over a document's text.
:class:`DocumentProcessor` wraps it with storage I/O, a per-document
reentrancy guard and a short self-write suppression window so the
scheduler's own writes are not mistaken for user edits.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date

from revise_scheduler.engine import NextTask, evaluate
from revise_scheduler.host import DocumentStore, LogNotifier, Notifier
from revise_scheduler.parser import parse_checkbox_items, scheduling_enabled, split_lines
from revise_scheduler.stages import SPACED_LADDER, Ladder
from revise_scheduler.toggles import CheckboxItem, CheckboxTracker

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure rewrite pass
# ---------------------------------------------------------------------------


@dataclass
class RewriteResult:
    text: str
    changed: bool
    scheduled: list[NextTask] = field(default_factory=list)


def rewrite_text(
    text: str,
    today: date,
    ladder: Ladder = SPACED_LADDER,
    only_lines: Iterable[int] | None = None,
) -> RewriteResult:
    """Insert the next occurrence below every completed scheduling task in *text*.

    Parameters
    ----------
    text:
        Full document text.
    today:
        Date used for lines without a ``✅`` completion date.
    ladder:
        Stage table to resolve ``#revise*`` tags against.
    only_lines:
        0-based source line numbers to consider; every line when ``None``.
    """
    if not scheduling_enabled(text):
        return RewriteResult(text, False)

    wanted = set(only_lines) if only_lines is not None else None
    out: list[str] = []
    scheduled: list[NextTask] = []

    for line_no, raw in enumerate(split_lines(text)):
        out.append(raw)
        if wanted is not None and line_no not in wanted:
            continue
        # A CRLF line keeps its "\r"; the generated line gets the same ending.
        line, cr = (raw[:-1], "\r") if raw.endswith("\r") else (raw, "")
        result = evaluate(line, today, ladder)
        if result is None:
            continue
        out[-1] = result.marked_line + cr
        out.append(result.next_line + cr)
        scheduled.append(result)

    if not scheduled:
        return RewriteResult(text, False)
    new_text = "\n".join(out)
    return RewriteResult(new_text, new_text != text, scheduled)


# ---------------------------------------------------------------------------
# Per-document state
# ---------------------------------------------------------------------------


@dataclass
class DocumentState:
    """Process-lifetime bookkeeping, owned by one :class:`DocumentProcessor`."""

    in_flight: set[str] = field(default_factory=set)
    checkboxes: CheckboxTracker = field(default_factory=CheckboxTracker)
    #: doc id -> monotonic deadline until which change events are our own write
    suppressed_until: dict[str, float] = field(default_factory=dict)

    def suppress(self, doc_id: str, seconds: float) -> None:
        self.suppressed_until[doc_id] = time.monotonic() + seconds

    def is_suppressed(self, doc_id: str) -> bool:
        deadline = self.suppressed_until.get(doc_id)
        if deadline is None:
            return False
        if time.monotonic() < deadline:
            return True
        del self.suppressed_until[doc_id]
        return False

    def clear(self) -> None:
        self.in_flight.clear()
        self.checkboxes.clear()
        self.suppressed_until.clear()


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------


class DocumentProcessor:
    """Read, rewrite and write back documents through a :class:`DocumentStore`."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        ladder: Ladder = SPACED_LADDER,
        clock: Callable[[], date] = date.today,
        notifier: Notifier | None = None,
        state: DocumentState | None = None,
        self_write_grace: float = 0.05,
    ) -> None:
        self.store = store
        self.ladder = ladder
        self.clock = clock
        self.notifier = notifier or LogNotifier()
        self.state = state or DocumentState()
        self.self_write_grace = self_write_grace

    async def process_document(
        self, doc_id: str, only_lines: Iterable[int] | None = None
    ) -> RewriteResult | None:
        """Rewrite *doc_id* in place.

        Returns ``None`` when another pass over the same document is already
        running, or when reading/writing failed (the failure is logged and
        reported through the notifier; the document is left untouched).
        """
        # Check-and-set with no await in between.
        if doc_id in self.state.in_flight:
            logger.debug("Skipping %s: already being processed", doc_id)
            return None
        self.state.in_flight.add(doc_id)
        try:
            text = await self.store.read(doc_id)
            result = rewrite_text(text, self.clock(), self.ladder, only_lines)
            if result.changed:
                self.state.suppress(doc_id, self.self_write_grace)
                await self.store.write(doc_id, result.text)
                self.state.suppress(doc_id, self.self_write_grace)
                self._rebaseline(doc_id, result.text)
                logger.info("Scheduled %d follow-up task(s) in %s", len(result.scheduled), doc_id)
                self.notifier.notify(
                    f"Revise Scheduler: created {len(result.scheduled)} follow-up task(s) in {doc_id}"
                )
            return result
        except (OSError, UnicodeError):
            logger.exception("Revise Scheduler failed to process %s", doc_id)
            self.notifier.notify(f"Revise Scheduler: could not update {doc_id}")
            return None
        finally:
            self.state.in_flight.discard(doc_id)

    async def process_toggles(self, doc_id: str, items: list[CheckboxItem]) -> RewriteResult | None:
        """Rewrite only the lines whose checkbox was just ticked.

        The first report for a document only records a baseline.
        """
        lines = self.state.checkboxes.observe(doc_id, items)
        if not lines:
            return None
        return await self.process_document(doc_id, only_lines=lines)

    def _rebaseline(self, doc_id: str, text: str) -> None:
        # Inserted lines shift every checkbox below them.
        if doc_id in self.state.checkboxes.snapshots:
            self.state.checkboxes.observe(doc_id, parse_checkbox_items(text))
