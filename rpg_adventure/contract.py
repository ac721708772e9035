"""Structural validation of generation payloads.

Every payload returned by the generation service is re-checked here before
the engine trusts it, even when the upstream call was schema-constrained.
A payload either validates completely or raises ContractError naming the
first offending field; nothing is partially adopted.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, StrictBool, StrictInt, StrictStr, ValidationError

from rpg_adventure.models import CreationOptions, Stat, TurnResponse

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)


class ContractError(ValueError):
    """Raised when a payload is missing a field or a field has the wrong type."""

    def __init__(self, field: str, detail: str = "") -> None:
        self.field = field
        self.detail = detail
        message = f"Invalid payload field {field!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Wire shapes: strict scalars so "true" or 1 never pass as a boolean
# ---------------------------------------------------------------------------

class _CheckPayload(BaseModel):
    stat: Stat
    dc: StrictInt


class _OptionPayload(BaseModel):
    text: StrictStr
    action_id: StrictStr
    check: _CheckPayload | None = None


class _TurnPayload(BaseModel):
    scene_description: StrictStr
    options: list[_OptionPayload]
    beat_complete: StrictBool
    player_dead: StrictBool
    required_check: _CheckPayload | None = None
    visual_lore_updates: list[StrictStr]


class _CreationPayload(BaseModel):
    scene: StrictStr
    style_options: list[StrictStr]
    stat_array: list[StrictInt]
    races: list[StrictStr]
    classes: list[StrictStr]
    weapons: list[StrictStr]


def _first_error(e: ValidationError) -> ContractError:
    err = e.errors()[0]
    field = ".".join(str(part) for part in err["loc"]) or "payload"
    return ContractError(field, err["msg"])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_json(text: str) -> Any:
    """Parse a model reply as JSON, unwrapping a ```json fenced block if present."""
    match = _FENCED_JSON.search(text)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError as e:
            logger.warning("Fenced JSON block did not parse, trying whole reply: %s", e)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ContractError("payload", f"not valid JSON ({e})") from e


def validate_turn_response(payload: Any) -> TurnResponse:
    """Check a narration payload and return it as a TurnResponse."""
    if not isinstance(payload, dict):
        raise ContractError("payload", f"expected an object, got {type(payload).__name__}")
    try:
        wire = _TurnPayload.model_validate(payload)
    except ValidationError as e:
        raise _first_error(e) from e
    if not wire.scene_description.strip():
        raise ContractError("scene_description", "must not be empty")
    return TurnResponse.model_validate(wire.model_dump())


def validate_creation_options(payload: Any) -> CreationOptions:
    """Check a character-creation payload and return it as CreationOptions."""
    if not isinstance(payload, dict):
        raise ContractError("payload", f"expected an object, got {type(payload).__name__}")
    try:
        wire = _CreationPayload.model_validate(payload)
    except ValidationError as e:
        raise _first_error(e) from e
    if not wire.scene.strip():
        raise ContractError("scene", "must not be empty")
    return CreationOptions.model_validate(wire.model_dump())
