"""Narrative phase progression.

The story moves through a fixed arc:

    CHARACTER_CREATION → HOOK → CONFLICT → RESOLUTION → EPILOGUE

The narrator flags when the current phase's goal has been met. Completing
RESOLUTION ends the story even though EPILOGUE is still defined after it;
the climax is the dramatic end, anything after it is narrated wrap-up.
"""

from __future__ import annotations

from typing import NamedTuple

from rpg_adventure.models import NarrativePhase

PHASES: tuple[NarrativePhase, ...] = (
    "CHARACTER_CREATION",
    "HOOK",
    "CONFLICT",
    "RESOLUTION",
    "EPILOGUE",
)

FINAL_PHASE: NarrativePhase = "RESOLUTION"


class PhaseAdvance(NamedTuple):
    next: NarrativePhase
    story_ended: bool


def advance(current: NarrativePhase, complete: bool) -> PhaseAdvance:
    """Return the phase after this turn and whether the story is over."""
    if not complete:
        return PhaseAdvance(current, False)
    index = PHASES.index(current)
    following = PHASES[index + 1] if index < len(PHASES) - 1 else current
    return PhaseAdvance(following, current == FINAL_PHASE)
