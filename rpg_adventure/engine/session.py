"""One player's adventure: state ownership, lifecycle flags and media follow-ups.

AdventureSession is the boundary the UI talks to. It owns the GameState,
allows a single turn in flight, turns every narration failure into one
player-facing message (details go to the log), and starts the scene
illustration as a background task once a turn has been applied.
"""

from __future__ import annotations

import asyncio
import logging
import random

from pydantic import BaseModel

from rpg_adventure.contract import ContractError
from rpg_adventure.engine.orchestrator import (
    SessionStatus,
    TurnRejected,
    ensure_accepting,
    take_turn,
)
from rpg_adventure.llm import LLM, TransportError
from rpg_adventure.media import MediaError, NarrationAudio, SceneRenderer, SpeechSynthesizer
from rpg_adventure.models import (
    START_GAME,
    Action,
    ApiMetadata,
    Character,
    CheckOutcome,
    CheckResult,
    GameState,
    TurnResponse,
)
from rpg_adventure.prompts import PromptConfig, PromptError

logger = logging.getLogger(__name__)

NARRATION_FAILED = "The connection to the ethereal plane was lost. Please try again."


class TurnReport(BaseModel):
    """What the UI gets back from a turn."""

    state: GameState
    status: SessionStatus
    response: TurnResponse | None = None
    check: CheckResult | None = None
    rejected: bool = False
    error: str | None = None


class AdventureSession:
    def __init__(
        self,
        character: Character,
        art_style: str,
        *,
        llm: LLM,
        prompts: PromptConfig,
        renderer: SceneRenderer | None = None,
        speech: SpeechSynthesizer | None = None,
        rng: random.Random | None = None,
        check_pause: float = 2.0,
    ) -> None:
        self._state = GameState(character=character, art_style=art_style)
        self._status: SessionStatus = "idle"
        self._in_flight = False
        self._llm = llm
        self._prompts = prompts
        self._renderer = renderer
        self._rng = rng
        self._check_pause = check_pause
        self._image_task: asyncio.Task | None = None

        self.audio = NarrationAudio(speech) if speech is not None else None
        self.last_response: TurnResponse | None = None
        self.last_check: CheckResult | None = None
        self.last_metadata: ApiMetadata | None = None
        self.error: str | None = None
        self.scene_image: str | None = None
        self.image_error: str | None = None

    # ── Read-only view ───────────────────────────────────

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return "in_flight" if self._in_flight else self._status

    @property
    def is_player_dead(self) -> bool:
        return self._status == "player_dead"

    @property
    def is_adventure_over(self) -> bool:
        return self._status == "adventure_over"

    @property
    def is_in_flight(self) -> bool:
        return self._in_flight

    # ── Turns ────────────────────────────────────────────

    async def start(self) -> TurnReport:
        """Narrate the opening scene."""
        return await self.take_turn(Action(action_id=START_GAME))

    async def take_turn(self, action: Action, dice_result: CheckOutcome | None = None) -> TurnReport:
        """Resolve one action. Never raises for narration failures or rejections."""
        try:
            ensure_accepting(self.status)
        except TurnRejected as e:
            logger.info("Turn rejected (%s): %s", self.status, e)
            return TurnReport(state=self._state, status=self.status, rejected=True, error=str(e))

        self._in_flight = True
        self.error = None
        self._clear_scene_media()
        try:
            result = await take_turn(
                self._state, action,
                llm=self._llm,
                prompts=self._prompts,
                dice_result=dice_result,
                rng=self._rng,
                check_pause=self._check_pause,
            )
        except (TransportError, ContractError, PromptError) as e:
            logger.warning("Narration failed, state unchanged: %s", e)
            self.error = NARRATION_FAILED
            return TurnReport(state=self._state, status=self._status, error=NARRATION_FAILED)
        finally:
            self._in_flight = False

        self._state = result.state
        self._status = result.status
        self.last_response = result.response
        self.last_check = result.check
        self.last_metadata = result.metadata
        self._schedule_scene_image(result.state)
        return TurnReport(
            state=result.state,
            status=result.status,
            response=result.response,
            check=result.check,
        )

    # ── Scene illustration ───────────────────────────────

    def _clear_scene_media(self) -> None:
        if self._image_task is not None and not self._image_task.done():
            self._image_task.cancel()
        self._image_task = None
        self.scene_image = None
        self.image_error = None
        if self.audio is not None:
            self.audio.stop()

    def _schedule_scene_image(self, state: GameState) -> None:
        if self._renderer is None:
            return
        self._image_task = asyncio.create_task(self._render_scene(state))

    async def _render_scene(self, state: GameState) -> None:
        scene = state.story_log[-1]
        try:
            image = await self._renderer.render_scene(
                scene, state.character, state.art_style, state.lore
            )
        except MediaError as e:
            logger.warning("Scene illustration failed: %s", e)
            if self._state is state:
                self.image_error = str(e)
            return
        if self._state is state:
            self.scene_image = image
        else:
            logger.debug("Discarding illustration of a superseded scene")

    async def wait_for_scene_image(self) -> str | None:
        """Wait for the current scene's illustration, if one is being drawn."""
        task = self._image_task
        if task is not None:
            # a new turn may cancel the task while we wait
            await asyncio.wait({task})
        return self.scene_image

    def close(self) -> None:
        """Drop pending media work; the session is being discarded."""
        self._clear_scene_media()

    # ── Narration audio ──────────────────────────────────

    async def narrate(self) -> str | None:
        """Synthesize narration for the current scene. Returns base64 audio or None."""
        if self.audio is None:
            raise MediaError("Narration audio is not configured")
        if not self._state.story_log:
            return None
        return await self.audio.play(self._state.story_log[-1])
