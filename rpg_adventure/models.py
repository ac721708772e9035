"""Core domain models.

Every engine stage and API route operates on these types. Pydantic is used
for validation and serialisation at every data boundary; the aggregate
GameState is frozen so a turn can only replace it wholesale.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Stat = Literal["STR", "DEX", "CON", "INT", "WIS", "CHA"]

STAT_NAMES: tuple[Stat, ...] = ("STR", "DEX", "CON", "INT", "WIS", "CHA")

NarrativePhase = Literal[
    "CHARACTER_CREATION",
    "HOOK",
    "CONFLICT",
    "RESOLUTION",
    "EPILOGUE",
]

CheckOutcome = Literal["success", "fail"]

# Reserved action ids
START_GAME = "start_game"
CUSTOM_ACTION = "custom_action"


class Stats(BaseModel):
    """The six ability scores, nominally 3–18."""

    model_config = ConfigDict(frozen=True)

    STR: int
    DEX: int
    CON: int
    INT: int
    WIS: int
    CHA: int

    def score(self, stat: Stat) -> int:
        return getattr(self, stat)


class Character(BaseModel):
    """The player character. Never changes once the adventure starts."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    gender: str
    race: str
    char_class: str = Field(alias="class")
    weapon: str
    description: str
    stats: Stats

    def summary(self) -> str:
        """One-line description handed to the narrator."""
        return (
            f"Name: {self.name}, Gender: {self.gender}, Race: {self.race}, "
            f"Class: {self.char_class}, Weapon: {self.weapon}. "
            f"Description: {self.description}. Stats: {self.stats.model_dump_json()}"
        )

    def portrait(self) -> str:
        """Short visual description handed to the scene illustrator."""
        return (
            f"{self.gender} {self.race} {self.char_class} named {self.name}, "
            f"wearing {self.description}, wielding a {self.weapon}"
        )


class GameState(BaseModel):
    """Aggregate root for one adventure.

    Frozen: the turn orchestrator produces a new instance per applied turn.
    """

    model_config = ConfigDict(frozen=True)

    character: Character
    art_style: str
    inventory: tuple[str, ...] = ()
    story_log: tuple[str, ...] = ()
    current_phase: NarrativePhase = "HOOK"
    lore: str = ""


class Action(BaseModel):
    """What the player asked for this turn."""

    model_config = ConfigDict(frozen=True)

    action_id: str
    custom_action: str | None = None

    @property
    def is_custom(self) -> bool:
        return self.action_id == CUSTOM_ACTION and bool(self.custom_action)


class DiceCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    stat: Stat
    dc: int


class TurnOption(BaseModel):
    """One choice offered to the player, optionally gated by a check."""

    model_config = ConfigDict(frozen=True)

    text: str
    action_id: str
    check: DiceCheck | None = None


class TurnResponse(BaseModel):
    """The validated structured response of one narration call."""

    model_config = ConfigDict(frozen=True)

    scene_description: str
    options: tuple[TurnOption, ...] = ()
    beat_complete: bool
    player_dead: bool
    required_check: DiceCheck | None = None
    visual_lore_updates: tuple[str, ...] = ()


class CheckResult(BaseModel):
    """A resolved d20 skill check."""

    model_config = ConfigDict(frozen=True)

    roll: int
    modifier: int
    total: int
    outcome: CheckOutcome


class CreationOptions(BaseModel):
    """Choices offered on the character-creation screen."""

    scene: str
    style_options: list[str]
    stat_array: list[int]
    races: list[str]
    classes: list[str]
    weapons: list[str]


class ApiMetadata(BaseModel):
    """What the generation service reported about a call."""

    usage_metadata: dict[str, Any] = Field(default_factory=dict)
    finish_reason: str | None = None
    safety_ratings: list[dict[str, Any]] = Field(default_factory=list)
    original_prompt: str = ""


class Generation(BaseModel):
    """Raw output of a generation call: the text plus call metadata."""

    text: str
    metadata: ApiMetadata = Field(default_factory=ApiMetadata)
