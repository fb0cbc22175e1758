"""Revise Scheduler: spaced-repetition follow-ups for markdown task lists."""

from revise_scheduler.document import DocumentProcessor, rewrite_text
from revise_scheduler.engine import NextTask, evaluate
from revise_scheduler.stages import CLASSIC_LADDER, SPACED_LADDER, Ladder, Stage
from revise_scheduler.taskline import SENTINEL, parse_task_line

__all__ = [
    "evaluate",
    "NextTask",
    "rewrite_text",
    "DocumentProcessor",
    "Ladder",
    "Stage",
    "SPACED_LADDER",
    "CLASSIC_LADDER",
    "SENTINEL",
    "parse_task_line",
]
