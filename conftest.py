import json

import pytest

from rpg_adventure.models import ApiMetadata, Character, GameState, Generation, Stats
from rpg_adventure.prompts import load_prompts


class StubLLM:
    """Replays canned replies in order and records every call.

    A reply may be a string, a JSON-serialisable object, or an exception
    instance (raised instead of returned).
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []  # list of dicts: stage, prompt, system_instruction, schema

    async def __call__(self, stage, prompt, *, system_instruction=None, schema=None):
        self.calls.append({
            "stage": stage,
            "prompt": prompt,
            "system_instruction": system_instruction,
            "schema": schema,
        })
        if not self.replies:
            raise AssertionError(f"Unexpected LLM call for stage {stage!r}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return Generation(
            text=text,
            metadata=ApiMetadata(finish_reason="STOP", original_prompt=prompt),
        )

    @property
    def call_count(self):
        return len(self.calls)

    def prompt(self, index):
        return self.calls[index]["prompt"]


class FixedRolls:
    """Stand-in for random.Random that returns predetermined d20 rolls."""

    def __init__(self, *rolls):
        self.rolls = list(rolls)

    def randint(self, a, b):
        roll = self.rolls.pop(0)
        assert a <= roll <= b
        return roll


def turn_payload(scene="You stand in a dim corridor.", **overrides):
    """A valid narration payload; keyword arguments replace fields."""
    payload = {
        "scene_description": scene,
        "options": [
            {"text": "Open the door", "action_id": "open_door", "check": None},
            {"text": "Pick the lock", "action_id": "pick_lock", "check": {"stat": "DEX", "dc": 14}},
        ],
        "beat_complete": False,
        "player_dead": False,
        "visual_lore_updates": [],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def prompts():
    return load_prompts()


@pytest.fixture
def character():
    return Character(
        name="Aldric",
        gender="male",
        race="Human",
        char_class="Rogue",
        weapon="Twin daggers",
        description="a patched grey cloak",
        stats=Stats(STR=10, DEX=16, CON=12, INT=13, WIS=8, CHA=14),
    )


@pytest.fixture
def state(character):
    return GameState(character=character, art_style="ink and watercolour")
