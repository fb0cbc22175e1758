"""Shared fixtures for revise_scheduler tests.

``MemoryStore`` is an in-memory :class:`~revise_scheduler.host.DocumentStore`
that counts reads and writes and can be told to fail, so processor and
scheduler tests run without touching disk.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from revise_scheduler.host import CollectingNotifier

FIXED_TODAY = date(2023, 6, 1)


class MemoryStore:
    def __init__(self, docs: dict[str, str] | None = None, *, read_delay: float = 0.0) -> None:
        self.docs = dict(docs or {})
        self.read_delay = read_delay
        self.reads: list[str] = []
        self.writes: list[tuple[str, str]] = []
        self.fail_reads = False
        self.fail_writes = False

    async def read(self, doc_id: str) -> str:
        self.reads.append(doc_id)
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if self.fail_reads:
            raise PermissionError(doc_id)
        try:
            return self.docs[doc_id]
        except KeyError:
            raise FileNotFoundError(doc_id) from None

    async def write(self, doc_id: str, text: str) -> None:
        if self.fail_writes:
            raise OSError(f"disk full: {doc_id}")
        self.writes.append((doc_id, text))
        self.docs[doc_id] = text

    def list_documents(self, extension: str = ".md") -> list[str]:
        return sorted(d for d in self.docs if d.lower().endswith(extension.lower()))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def today():
    return lambda: FIXED_TODAY
