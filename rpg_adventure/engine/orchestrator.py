"""Turn orchestrator — resolves one player action end-to-end.

Turn flow:
  1. Refuse the turn if the adventure is over, the character is dead, or
     another turn is still in flight.
  2. requesting_narration — build the prompt (phase, phase goal, character,
     last five log entries, action description) and call the narrator.
  3. Extract and validate the structured reply.
  4. auto_resolving_check — if the reply asks for a skill check and no
     outcome is known yet, roll it against the character's ability score,
     pause briefly, and go back to 2 with the outcome. This happens at most
     once; a reply that asks for a check when the outcome is already known
     is a contract violation.
  5. applying_result — append the scene to the log, advance the phase, merge
     the lore, and return the new GameState in a single swap.
  6. Report the resulting status: player_dead, adventure_over or idle.

Any transport or contract failure propagates to the caller before step 5,
so the caller's GameState is never partially updated.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Literal

from pydantic import BaseModel

from rpg_adventure import dice
from rpg_adventure.contract import ContractError, extract_json, validate_turn_response
from rpg_adventure.llm import LLM
from rpg_adventure.lore import merge_lore
from rpg_adventure.models import (
    START_GAME,
    Action,
    ApiMetadata,
    CheckOutcome,
    CheckResult,
    GameState,
    TurnResponse,
)
from rpg_adventure.phases import PhaseAdvance, advance
from rpg_adventure.prompts import PromptConfig, render_prompt

logger = logging.getLogger(__name__)

SessionStatus = Literal["idle", "in_flight", "player_dead", "adventure_over"]
TurnStage = Literal[
    "awaiting_action",
    "requesting_narration",
    "auto_resolving_check",
    "applying_result",
    "idle",
]

TERMINAL_STATUSES: tuple[SessionStatus, ...] = ("player_dead", "adventure_over")

CONTEXT_ENTRIES = 5
LOG_SEPARATOR = "\n---\n"


# ---------------------------------------------------------------------------
# Errors and results
# ---------------------------------------------------------------------------

class TurnRejected(RuntimeError):
    """The session cannot accept an action right now."""


class TerminalStateError(TurnRejected):
    """Action attempted after the character died or the story ended."""


class TurnInFlightError(TurnRejected):
    """Action attempted while the previous turn is still being narrated."""


class TurnResult(BaseModel):
    state: GameState
    response: TurnResponse
    check: CheckResult | None = None
    status: SessionStatus
    story_ended: bool = False
    metadata: ApiMetadata


def ensure_accepting(status: SessionStatus) -> None:
    """Raise TurnRejected unless a new action may start in this status."""
    if status == "in_flight":
        raise TurnInFlightError("A turn is already being narrated")
    if status == "player_dead":
        raise TerminalStateError("The character is dead")
    if status == "adventure_over":
        raise TerminalStateError("The adventure is over")


# ---------------------------------------------------------------------------
# Prompt building
# ---------------------------------------------------------------------------

def is_opening_turn(state: GameState, action: Action) -> bool:
    return action.action_id == START_GAME or not state.story_log


def describe_action(
    action: Action,
    prompts: PromptConfig,
    dice_result: CheckOutcome | None = None,
    opening: bool = False,
) -> str:
    """Phrase the player's action for the narrator."""
    gt = prompts.game_turn
    if opening:
        return gt.opening_action
    ctx = {
        "action_id": action.action_id,
        "custom_action": action.custom_action or "",
        "dice_result": dice_result or "",
    }
    if action.is_custom:
        template = gt.custom_action_outcome if dice_result else gt.custom_action
        return render_prompt(template, ctx)
    text = render_prompt(gt.scripted_action, ctx)
    if dice_result:
        text += render_prompt(gt.scripted_action_outcome, ctx)
    return text


def build_prompt(
    state: GameState,
    action: Action,
    prompts: PromptConfig,
    dice_result: CheckOutcome | None = None,
) -> str:
    recent = state.story_log[-CONTEXT_ENTRIES:]
    return render_prompt(prompts.game_turn.prompt_template, {
        "current_beat": state.current_phase,
        "beat_goal": prompts.beat_goal(state.current_phase),
        "character_string": state.character.summary(),
        "story_log_string": LOG_SEPARATOR.join(recent) or prompts.game_turn.empty_log,
        "action_string": describe_action(
            action, prompts, dice_result, opening=is_opening_turn(state, action)
        ),
    })


# ---------------------------------------------------------------------------
# Applying a response
# ---------------------------------------------------------------------------

def apply_response(state: GameState, response: TurnResponse) -> tuple[GameState, PhaseAdvance]:
    """Fold a validated response into a new GameState."""
    progress = advance(state.current_phase, response.beat_complete)
    new_state = state.model_copy(update={
        "story_log": (*state.story_log, response.scene_description),
        "current_phase": progress.next,
        "lore": merge_lore(state.lore, response.visual_lore_updates),
    })
    return new_state, progress


def _resulting_status(response: TurnResponse, progress: PhaseAdvance) -> SessionStatus:
    if response.player_dead:
        return "player_dead"
    if progress.story_ended:
        return "adventure_over"
    return "idle"


# ---------------------------------------------------------------------------
# Turn
# ---------------------------------------------------------------------------

async def take_turn(
    state: GameState,
    action: Action,
    *,
    llm: LLM,
    prompts: PromptConfig,
    dice_result: CheckOutcome | None = None,
    status: SessionStatus = "idle",
    rng: random.Random | None = None,
    check_pause: float = 2.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TurnResult:
    """Execute one player turn and return the resulting state and status."""
    ensure_accepting(status)

    stage: TurnStage = "awaiting_action"
    logger.debug("turn stage=%s phase=%s action=%s", stage, state.current_phase, action.action_id)
    outcome = dice_result
    check: CheckResult | None = None
    gt = prompts.game_turn

    while True:
        stage = "requesting_narration"
        prompt = build_prompt(state, action, prompts, outcome)
        logger.debug("turn stage=%s action=%s outcome=%s", stage, action.action_id, outcome)
        generation = await llm(
            "game_turn", prompt,
            system_instruction=gt.system_instruction,
            schema=gt.schema_,
        )
        response = validate_turn_response(extract_json(generation.text))

        required = response.required_check
        if required is None:
            break
        if outcome is not None:
            raise ContractError(
                "required_check", "skill check requested after its outcome was already given"
            )

        stage = "auto_resolving_check"
        check = dice.resolve(state.character.stats.score(required.stat), required.dc, rng)
        logger.info(
            "Auto-resolved %s check DC %d: rolled %d%+d = %d, %s",
            required.stat, required.dc, check.roll, check.modifier, check.total, check.outcome,
        )
        await sleep(check_pause)
        outcome = check.outcome

    stage = "applying_result"
    new_state, progress = apply_response(state, response)
    result_status = _resulting_status(response, progress)
    logger.info(
        "turn stage=%s phase=%s→%s status=%s log=%d",
        stage, state.current_phase, new_state.current_phase,
        result_status, len(new_state.story_log),
    )
    return TurnResult(
        state=new_state,
        response=response,
        check=check,
        status=result_status,
        story_ended=progress.story_ended,
        metadata=generation.metadata,
    )
