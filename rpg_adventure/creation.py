"""Character creation.

The narrator offers a scene, art styles, a stat array and race/class/weapon
lists once per session. The player then assigns each stat-array value to
exactly one ability and builds their character from the offered options.
"""

from __future__ import annotations

import logging
from collections import Counter

from rpg_adventure.contract import extract_json, validate_creation_options
from rpg_adventure.llm import LLM
from rpg_adventure.models import STAT_NAMES, Character, CreationOptions, Stats
from rpg_adventure.prompts import PromptConfig

logger = logging.getLogger(__name__)


class CharacterError(ValueError):
    """Raised when a character does not fit the offered creation options."""


async def fetch_creation_options(llm: LLM, prompts: PromptConfig) -> CreationOptions:
    """Ask the narrator for this session's character-creation options."""
    cc = prompts.character_creation
    generation = await llm(
        "character_creation",
        cc.prompt,
        system_instruction=cc.system_instruction,
        schema=cc.schema_,
    )
    options = validate_creation_options(extract_json(generation.text))
    logger.info(
        "Creation options: %d styles, %d races, %d classes, %d weapons",
        len(options.style_options), len(options.races),
        len(options.classes), len(options.weapons),
    )
    return options


def build_character(
    options: CreationOptions,
    *,
    name: str,
    gender: str,
    race: str,
    char_class: str,
    weapon: str,
    description: str,
    stats: dict[str, int],
) -> Character:
    """Assemble a Character, checking it against the offered options.

    Race, class and weapon must be among the offered choices, and the six
    abilities must use the stat array values exactly once each.
    """
    if not name.strip():
        raise CharacterError("Character needs a name")
    for label, value, offered in (
        ("race", race, options.races),
        ("class", char_class, options.classes),
        ("weapon", weapon, options.weapons),
    ):
        if value not in offered:
            raise CharacterError(f"Unknown {label} {value!r}")

    missing = [s for s in STAT_NAMES if s not in stats]
    if missing:
        raise CharacterError(f"Unassigned abilities: {', '.join(missing)}")
    extra = sorted(set(stats) - set(STAT_NAMES))
    if extra:
        raise CharacterError(f"Unknown abilities: {', '.join(extra)}")
    if Counter(stats.values()) != Counter(options.stat_array):
        raise CharacterError("Ability scores must use each stat array value exactly once")

    return Character(
        name=name.strip(),
        gender=gender,
        race=race,
        char_class=char_class,
        weapon=weapon,
        description=description,
        stats=Stats(**stats),
    )
