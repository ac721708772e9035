"""d20 skill checks.

A check rolls one d20, adds the ability modifier and compares the total
against the difficulty class:

    modifier = floor((score - 10) / 2)
    success  = roll + modifier >= dc

Randomness is injected as a `random.Random` so callers can seed it.
"""

from __future__ import annotations

import random

from rpg_adventure.models import CheckResult

DIE_SIDES = 20


def modifier(score: int) -> int:
    """Ability modifier for a score. Floors toward negative infinity (8 → -1, 9 → -1)."""
    return (score - 10) // 2


def resolve(stat_score: int, dc: int, rng: random.Random | None = None) -> CheckResult:
    """Roll a d20 for the given ability score against a difficulty class."""
    roll = (rng or random).randint(1, DIE_SIDES)
    mod = modifier(stat_score)
    total = roll + mod
    return CheckResult(
        roll=roll,
        modifier=mod,
        total=total,
        outcome="success" if total >= dc else "fail",
    )
