"""Prompt configuration and Handlebars rendering.

All prompt text lives in a JSON file (bundled as prompts.json) loaded into
a PromptConfig and passed explicitly to the engine. Templates are
Handlebars, rendered with pybars.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pybars
from pydantic import BaseModel, Field, ValidationError

DEFAULT_PROMPTS_PATH = Path(__file__).parent / "prompts.json"

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Configuration ────────────────────────────────────────


class GameTurnPrompts(BaseModel):
    system_instruction: str
    prompt_template: str
    beat_goals: dict[str, str] = Field(default_factory=dict)
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    opening_action: str
    custom_action: str
    custom_action_outcome: str
    scripted_action: str
    scripted_action_outcome: str
    empty_log: str = "This is the very beginning of the story."
    default_goal: str = "Continue the story."


class CharacterCreationPrompts(BaseModel):
    system_instruction: str
    prompt: str
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")


class VisualizationPrompts(BaseModel):
    prompt_template: str
    empty_lore: str = "No specific lore yet."


class DemystifierPrompts(BaseModel):
    system_instruction: str
    prompt_template: str


class PromptConfig(BaseModel):
    game_turn: GameTurnPrompts
    character_creation: CharacterCreationPrompts
    visualization: VisualizationPrompts
    demystifier: DemystifierPrompts

    def beat_goal(self, phase: str) -> str:
        return self.game_turn.beat_goals.get(phase) or self.game_turn.default_goal


def load_prompts(path: Path | None = None) -> PromptConfig:
    """Read a prompt configuration file. Defaults to the bundled prompts.json."""
    path = path or DEFAULT_PROMPTS_PATH
    try:
        return PromptConfig.model_validate(json.loads(path.read_text()))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise PromptError(f"Cannot load prompts from {path}: {e}") from e


# ── Rendering ────────────────────────────────────────────


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e
