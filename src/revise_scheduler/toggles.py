"""Checkbox toggle detection.

Hosts report the checklist items of a document after every edit.  The
tracker keeps the last known state per ``line:col`` position and reports the
lines that went from unchecked to checked since the previous report, so only
those lines need rewriting.  The first report for a document is a baseline:
items that were already checked when the document was opened are not new
completions.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CheckboxItem:
    line: int
    col: int
    checked: bool | None = None
    #: Single-character task state (``"x"``, ``" "``, ``"/"``…) when ``checked`` is unknown
    task: str | None = None

    @property
    def key(self) -> str:
        return f"{self.line}:{self.col}"

    @property
    def is_checked(self) -> bool:
        if isinstance(self.checked, bool):
            return self.checked
        return (self.task or "").lower() == "x"


@dataclass
class CheckboxTracker:
    snapshots: dict[str, dict[str, bool]] = field(default_factory=dict)

    def observe(self, doc_id: str, items: list[CheckboxItem]) -> list[int] | None:
        """Record *items* for *doc_id*; return newly checked line numbers.

        Returns ``None`` on the first observation of a document.
        """
        current = {item.key: item.is_checked for item in items}
        previous = self.snapshots.get(doc_id)
        self.snapshots[doc_id] = current
        if previous is None:
            return None

        lines: set[int] = set()
        for item in items:
            if item.is_checked and not previous.get(item.key, False):
                lines.add(item.line)
        return sorted(lines)

    def clear(self) -> None:
        self.snapshots.clear()
