"""Host collaborators: document storage and user notifications.

The scheduler never talks to an editor directly.  Whatever hosts it (the
CLI watcher, the marimo app, an editor bridge) supplies a
:class:`DocumentStore` for whole-file text I/O and a :class:`Notifier` for
user-facing messages.  :class:`FileSystemVault` is the store for a vault
directory on disk.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from revise_scheduler.parser import parse_checkbox_items
from revise_scheduler.toggles import CheckboxItem

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentStore(Protocol):
    """Whole-document text storage keyed by document id."""

    async def read(self, doc_id: str) -> str:
        """Return the full text of *doc_id*."""
        ...

    async def write(self, doc_id: str, text: str) -> None:
        """Overwrite *doc_id* with *text*."""
        ...

    def list_documents(self, extension: str = ".md") -> list[str]:
        """Return the ids of every document ending in *extension*."""
        ...


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


# ---------------------------------------------------------------------------
# Notifiers
# ---------------------------------------------------------------------------


class LogNotifier:
    """Send notices to the ``revise_scheduler`` logger."""

    def __init__(self, name: str = "revise_scheduler") -> None:
        self._log = logging.getLogger(name)

    def notify(self, message: str) -> None:
        self._log.info(message)


class CollectingNotifier:
    """Keep notices in memory (UI panels and tests read them back)."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)

    @property
    def last(self) -> str | None:
        return self.messages[-1] if self.messages else None


# ---------------------------------------------------------------------------
# Filesystem vault
# ---------------------------------------------------------------------------


class FileSystemVault:
    """A vault directory of text notes; ids are POSIX paths relative to the root."""

    def __init__(self, vault_dir: Path) -> None:
        self.vault_dir = Path(vault_dir)
        self._mtimes: dict[str, int] = {}
        self._primed = False

    def path_for(self, doc_id: str) -> Path:
        return self.vault_dir / doc_id

    def doc_id_for(self, path: Path) -> str:
        return Path(path).resolve().relative_to(self.vault_dir.resolve()).as_posix()

    async def read(self, doc_id: str) -> str:
        return await asyncio.to_thread(self._read, doc_id)

    async def write(self, doc_id: str, text: str) -> None:
        await asyncio.to_thread(self._write, doc_id, text)

    def _read(self, doc_id: str) -> str:
        # newline="" keeps "\r\n" intact so rewrites preserve line endings
        with self.path_for(doc_id).open(encoding="utf-8", newline="") as fh:
            return fh.read()

    def _write(self, doc_id: str, text: str) -> None:
        path = self.path_for(doc_id)
        with path.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        self._mtimes[doc_id] = path.stat().st_mtime_ns

    def list_documents(self, extension: str = ".md") -> list[str]:
        ext = extension.lower()
        return [
            path.relative_to(self.vault_dir).as_posix()
            for path in sorted(self.vault_dir.glob("**/*"))
            if path.is_file() and path.name.lower().endswith(ext)
        ]

    def checkbox_items(self, doc_id: str) -> list[CheckboxItem]:
        """Structural checklist metadata for *doc_id*, read straight from disk."""
        return parse_checkbox_items(self._read(doc_id))

    def poll_changes(self, extension: str = ".md") -> list[str]:
        """Return ids whose modification time changed since the previous poll.

        The first poll records every document and reports nothing.
        """
        first = not self._primed
        self._primed = True
        changed: list[str] = []
        seen: set[str] = set()
        for doc_id in self.list_documents(extension):
            seen.add(doc_id)
            try:
                mtime = self.path_for(doc_id).stat().st_mtime_ns
            except OSError:
                logger.warning("Cannot stat %s", doc_id)
                continue
            if self._mtimes.get(doc_id) != mtime:
                self._mtimes[doc_id] = mtime
                if not first:
                    changed.append(doc_id)
        for gone in set(self._mtimes) - seen:
            del self._mtimes[gone]
        return changed
