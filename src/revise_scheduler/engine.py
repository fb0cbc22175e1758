"""Scheduling engine: decide whether a completed line spawns its next occurrence.

:func:`evaluate` is pure.  It never reads the clock, never touches a file and
never raises for lines it does not apply to; it simply returns ``None``.

Rules
-----
- Only checked ``- [x]`` / ``N. [x]`` items are eligible, and only while they
  do not yet carry ``#nextscheduled``.
- Ladder tags win over ``#repeat_N``.  When several ladder tags appear on the
  same line the longest one is used, so ``#revise_90`` is never read as
  ``#revise``.
- The next due date counts from the line's ``✅`` completion date, falling back
  to *today*.
- The generated line is an open task with the old scheduling tags and every
  due/created/done date removed, followed by exactly one due date and the
  next tag.  A block reference stays on the completed line only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from revise_scheduler.stages import SPACED_LADDER, Ladder
from revise_scheduler.taskline import SENTINEL, TaskLine, parse_task_line


@dataclass(frozen=True)
class NextTask:
    marked_line: str   # completed line with the sentinel added
    next_line: str     # freshly generated open task
    stage_tag: str     # tag that triggered the reschedule
    next_tag: str
    due: date

    def as_pair(self) -> tuple[str, str]:
        return self.marked_line, self.next_line


def resolve_schedule(task: TaskLine, ladder: Ladder) -> tuple[str, str, int] | None:
    """Return ``(current_tag, next_tag, plus_days)`` for *task*, or ``None``."""
    stage_tags = task.values("stage")
    if stage_tags:
        # Longest literal wins; sorted() is stable so ties keep the first match.
        found = sorted(stage_tags, key=len, reverse=True)[0]
        stage = ladder.get(found)
        if stage is None or stage.terminal:
            return None
        return ladder.canonical(found), stage.next_tag, stage.plus_days

    for raw in task.values("repeat"):
        days = int(raw)
        if days > 0:
            tag = f"#repeat_{days}"
            return tag, tag, days
    return None


def mark_scheduled(task: TaskLine) -> str:
    """Add the sentinel to the completed line, keeping a block reference last."""
    if task.has_sentinel:
        return task.raw
    if task.block_start is not None:
        return f"{task.raw[: task.block_start].rstrip()} {SENTINEL}{task.raw[task.block_start :]}"
    return f"{task.raw.rstrip()} {SENTINEL}"


def build_next_line(task: TaskLine, next_tag: str, due: date, due_marker: str) -> str:
    head = f"{task.open_prefix}{task.text}".rstrip()
    return f"{head} {due_marker} {due.isoformat()} {next_tag}"


def evaluate(line: str, today: date, ladder: Ladder = SPACED_LADDER) -> NextTask | None:
    """Return the rescheduling result for *line*, or ``None`` when it does not apply."""
    task = parse_task_line(line, ladder)
    if task is None or not task.checked or task.has_sentinel:
        return None

    schedule = resolve_schedule(task, ladder)
    if schedule is None:
        return None
    stage_tag, next_tag, plus_days = schedule

    base = task.completion_date or today
    try:
        due = base + timedelta(days=plus_days)
    except OverflowError:
        return None

    return NextTask(
        marked_line=mark_scheduled(task),
        next_line=build_next_line(task, next_tag, due, ladder.due_marker),
        stage_tag=stage_tag,
        next_tag=next_tag,
        due=due,
    )
