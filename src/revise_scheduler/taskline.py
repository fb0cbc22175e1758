"""Task-line tokenizer.

A checklist line is decomposed once into its checkbox prefix, the tokens
the scheduler cares about, and the trailing block reference::

    "  - [x] Read ch. 3 #revise_7 📅 2024-03-01 ✅ 2024-03-02 ^ch3"
     └─ prefix ─┘└ text ┘└ stage ┘└─── due ───┘└── done ───┘└ block ┘

Recognised tokens (matched anywhere in the body, case-insensitive for tags)
---------------------------------------------------------------------------
- stage tags taken from a :class:`~revise_scheduler.stages.Ladder`
- ``#repeat_<N>`` fixed-interval tags
- ``📅 YYYY-MM-DD`` / ``⏳ YYYY-MM-DD`` due dates (the glyphs are interchangeable)
- ``➕ YYYY-MM-DD`` creation date
- ``✅ YYYY-MM-DD`` completion date
- ``#nextscheduled`` sentinel

Tags only match as whole tags: they must start the line or follow
whitespace, and must not run on into further tag characters, so
``#revise_70`` and ``#revise-notes`` are not ``#revise``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache

from revise_scheduler.stages import Ladder

DUE_MARKERS = ("📅", "⏳")
CREATED_MARKER = "➕"
DONE_MARKER = "✅"
SENTINEL = "#nextscheduled"

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_TAG_HEAD = r"(?<!\S)"
_TAG_TAIL = r"(?![\w/-])"
# Glyph, optional emoji variation selector, optional spaces, ISO date
_DATE = r"\ufe0f?\s*(\d{4}-\d{2}-\d{2})"

# "- [x] " or "12. [ ] "; only the state character varies
_CHECKBOX_RE = re.compile(r"^(?P<lead>\s*(?:-|\d+\.)\s*\[)(?P<state>[^\]])(?P<trail>\]\s+)")
_DUE_RE = re.compile(rf"(?:{'|'.join(DUE_MARKERS)}){_DATE}")
_CREATED_RE = re.compile(rf"{CREATED_MARKER}{_DATE}")
_DONE_RE = re.compile(rf"{DONE_MARKER}{_DATE}")
# At most nine digits: any longer count overflows a timedelta anyway
_REPEAT_RE = re.compile(rf"{_TAG_HEAD}#repeat_(\d{{1,9}}){_TAG_TAIL}", re.IGNORECASE)
_SENTINEL_RE = re.compile(rf"{_TAG_HEAD}{SENTINEL}{_TAG_TAIL}", re.IGNORECASE)
# Obsidian block reference; must stay the last token on its line
_BLOCK_REF_RE = re.compile(r"\s\^([A-Za-z0-9-]+)\s*$")


@lru_cache(maxsize=None)
def _stage_pattern(tags: tuple[str, ...]) -> re.Pattern[str]:
    if not tags:
        return re.compile(r"(?!)")
    alternation = "|".join(re.escape(t) for t in sorted(tags, key=len, reverse=True))
    return re.compile(rf"{_TAG_HEAD}(?:{alternation}){_TAG_TAIL}", re.IGNORECASE)


def stage_pattern(ladder: Ladder) -> re.Pattern[str]:
    """Return the compiled tag matcher for *ladder*'s stage tags."""
    return _stage_pattern(tuple(ladder.tags))


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Token:
    kind: str    # stage | repeat | due | created | done | sentinel
    text: str    # literal text as it appears in the line
    start: int   # offsets into TaskLine.body
    end: int
    value: str   # tag, repeat count or ISO date


@dataclass
class TaskLine:
    """Structured view of a single checklist line."""

    raw: str
    lead: str
    state: str
    trail: str
    body: str
    tokens: list[Token] = field(default_factory=list)
    block_id: str | None = None
    #: Index in ``raw`` where the block reference (with its leading space) starts
    block_start: int | None = None

    @property
    def checked(self) -> bool:
        return self.state.lower() == "x"

    @property
    def open_prefix(self) -> str:
        return f"{self.lead} {self.trail}"

    @property
    def has_sentinel(self) -> bool:
        return any(t.kind == "sentinel" for t in self.tokens)

    def values(self, kind: str) -> list[str]:
        return [t.value for t in self.tokens if t.kind == kind]

    @property
    def completion_date(self) -> date | None:
        """First ``✅`` date on the line, or ``None`` when absent or not a real date."""
        for value in self.values("done"):
            try:
                return date.fromisoformat(value)
            except ValueError:
                continue
        return None

    @property
    def text(self) -> str:
        """Body with every recognised token removed, whitespace trimmed."""
        pieces: list[str] = []
        pos = 0
        for token in self.tokens:
            pieces.append(self.body[pos : token.start].rstrip())
            pos = token.end
        pieces.append(self.body[pos:])
        return "".join(pieces).strip()


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def parse_task_line(line: str, ladder: Ladder) -> TaskLine | None:
    """Decompose *line*; ``None`` when it is not a ``-``/``N.`` checkbox item."""
    m = _CHECKBOX_RE.match(line)
    if not m:
        return None

    end = len(line)
    block_id: str | None = None
    block_start: int | None = None
    ref = _BLOCK_REF_RE.search(line, m.end() - 1)
    if ref:
        block_id = ref.group(1)
        block_start = ref.start()
        end = block_start

    body = line[m.end() : end] if end > m.end() else ""
    tokens: list[Token] = []
    scanners: list[tuple[str, re.Pattern[str]]] = [
        ("stage", stage_pattern(ladder)),
        ("repeat", _REPEAT_RE),
        ("due", _DUE_RE),
        ("created", _CREATED_RE),
        ("done", _DONE_RE),
        ("sentinel", _SENTINEL_RE),
    ]
    for kind, pattern in scanners:
        for tm in pattern.finditer(body):
            value = tm.group(1) if pattern.groups else tm.group(0)
            tokens.append(Token(kind, tm.group(0), tm.start(), tm.end(), value))
    tokens.sort(key=lambda t: t.start)

    return TaskLine(
        raw=line,
        lead=m.group("lead"),
        state=m.group("state"),
        trail=m.group("trail"),
        body=body,
        tokens=tokens,
        block_id=block_id,
        block_start=block_start,
    )
