"""YAML front-matter and checkbox-item parser."""

from __future__ import annotations

import re
from typing import Any

import yaml

from revise_scheduler.toggles import CheckboxItem

# YAML front-matter block
_FRONTMATTER_RE = re.compile(r"^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)", re.DOTALL)
# Any markdown list item with a task checkbox: "- [ ]", "* [x]", "3. [/]", "4) [-]"
_CHECKBOX_ITEM_RE = re.compile(r"^(\s*)(?:[-*+]|\d+[.)])\s+\[(.)\]")
# Code fences
_FENCE_RE = re.compile(r"^\s*(```|~~~)")

#: Front-matter key that switches the scheduler off for a single note
OPT_OUT_KEY = "revise-scheduler"


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front-matter from body text.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty when there
    is no front-matter block.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, content[match.end() :]


def scheduling_enabled(content: str) -> bool:
    """``False`` when the note's front matter sets ``revise-scheduler: false``."""
    meta, _ = parse_frontmatter(content)
    return meta.get(OPT_OUT_KEY, True) is not False


def split_lines(content: str) -> list[str]:
    r"""Split *content* on ``\n`` only.

    Each line keeps its own trailing ``\r``, so documents with mixed endings
    round-trip through ``"\n".join()``.  Unlike ``str.splitlines`` this never
    breaks on form feeds or Unicode line separators, so line numbers agree
    with what the editor reports.
    """
    return content.split("\n")


def parse_checkbox_items(content: str) -> list[CheckboxItem]:
    """Return every task checkbox in *content* with its 0-based line and column.

    Lines inside the front-matter block or a fenced code block are skipped.
    """
    match = _FRONTMATTER_RE.match(content)
    skip_until = content[: match.end()].count("\n") if match else 0

    items: list[CheckboxItem] = []
    in_code_block = False
    for line_no, line in enumerate(split_lines(content)):
        if line_no < skip_until:
            continue
        if _FENCE_RE.match(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        m = _CHECKBOX_ITEM_RE.match(line)
        if m:
            items.append(CheckboxItem(line=line_no, col=len(m.group(1)), task=m.group(2)))
    return items
