"""Spaced-repetition ladders.

A ladder maps a scheduling tag to the stage that follows it::

    #revise     -> +7d   -> #revise_7
    #revise_7   -> +30d  -> #revise_30
    #revise_30  -> +90d  -> #revise_90
    #revise_90  -> +365d -> #revise_365
    #revise_365 -> +365d -> #revise_365   (repeats yearly)

Two presets ship with the package.  ``spaced`` (the default) ends in the
yearly self-loop above; ``classic`` stops after ``#revise_90`` and never
schedules a follow-up for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Stage:
    next_tag: str | None
    plus_days: int | None

    @property
    def terminal(self) -> bool:
        return self.next_tag is None


@dataclass(frozen=True)
class Ladder:
    """A named stage table plus the glyph used for generated due dates."""

    name: str
    stages: dict[str, Stage] = field(default_factory=dict)
    due_marker: str = "⏳"

    def __post_init__(self) -> None:
        for tag, stage in self.stages.items():
            if not tag.startswith("#"):
                raise ValueError(f"Ladder {self.name!r}: tag {tag!r} must start with '#'")
            if stage.terminal:
                continue
            if stage.plus_days is None or stage.plus_days <= 0:
                raise ValueError(f"Ladder {self.name!r}: {tag} must advance by a positive number of days")
            if stage.next_tag not in self.stages:
                raise ValueError(f"Ladder {self.name!r}: {tag} points at unknown stage {stage.next_tag}")

    @property
    def tags(self) -> list[str]:
        return list(self.stages)

    def canonical(self, tag: str) -> str | None:
        """Return the ladder key matching *tag* case-insensitively."""
        lowered = tag.lower()
        for key in self.stages:
            if key.lower() == lowered:
                return key
        return None

    def get(self, tag: str) -> Stage | None:
        key = self.canonical(tag)
        return self.stages[key] if key is not None else None


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

SPACED_LADDER = Ladder(
    name="spaced",
    stages={
        "#revise": Stage("#revise_7", 7),
        "#revise_7": Stage("#revise_30", 30),
        "#revise_30": Stage("#revise_90", 90),
        "#revise_90": Stage("#revise_365", 365),
        "#revise_365": Stage("#revise_365", 365),
    },
    due_marker="⏳",
)

CLASSIC_LADDER = Ladder(
    name="classic",
    stages={
        "#revise": Stage("#revise_7", 7),
        "#revise_7": Stage("#revise_30", 30),
        "#revise_30": Stage("#revise_90", 90),
        "#revise_90": Stage(None, None),
    },
    due_marker="📅",
)

LADDERS: dict[str, Ladder] = {
    SPACED_LADDER.name: SPACED_LADDER,
    CLASSIC_LADDER.name: CLASSIC_LADDER,
}


def get_ladder(name: str) -> Ladder:
    try:
        return LADDERS[name.lower()]
    except KeyError:
        known = ", ".join(sorted(LADDERS))
        raise KeyError(f"Unknown ladder {name!r} (expected one of: {known})") from None
