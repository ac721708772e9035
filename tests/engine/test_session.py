"""Tests for AdventureSession — lifecycle flags, in-flight guard, error folding, media follow-ups."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import FixedRolls, StubLLM, turn_payload
from rpg_adventure.engine import NARRATION_FAILED, AdventureSession
from rpg_adventure.llm import GeminiClient, GeminiLLM, TransportError
from rpg_adventure.media import MediaError
from rpg_adventure.models import Action


def _session(character, prompts, *replies, **kwargs):
    kwargs.setdefault("check_pause", 0)
    return AdventureSession(character, "ink", llm=StubLLM(*replies), prompts=prompts, **kwargs)


def _renderer(result="data:image/png;base64,QUJD"):
    renderer = MagicMock()
    if isinstance(result, Exception):
        renderer.render_scene = AsyncMock(side_effect=result)
    else:
        renderer.render_scene = AsyncMock(return_value=result)
    return renderer


class TestTurns:
    async def test_start_narrates_opening(self, character, prompts) -> None:
        session = _session(character, prompts, turn_payload("A misty pier."))
        report = await session.start()

        assert report.error is None
        assert report.rejected is False
        assert session.state.story_log == ("A misty pier.",)
        assert session.state.current_phase == "HOOK"
        assert session.status == "idle"
        assert session.last_response.scene_description == "A misty pier."
        assert session.last_metadata is not None

    async def test_log_gains_one_entry_per_turn_with_auto_check(self, character, prompts) -> None:
        session = _session(
            character, prompts,
            turn_payload("A misty pier."),
            turn_payload("You try to leap aboard...", options=[],
                         required_check={"stat": "DEX", "dc": 15}),
            turn_payload("You land on the deck."),
            rng=FixedRolls(19),
        )
        await session.start()
        report = await session.take_turn(
            Action(action_id="custom_action", custom_action="leap onto the boat")
        )

        assert session.state.story_log == ("A misty pier.", "You land on the deck.")
        assert report.check.outcome == "success"
        assert session.last_check == report.check

    async def test_player_death_blocks_further_turns(self, character, prompts) -> None:
        session = _session(
            character, prompts,
            turn_payload("A misty pier."),
            turn_payload("The kraken drags you under.", player_dead=True),
        )
        await session.start()
        await session.take_turn(Action(action_id="swim"))
        assert session.is_player_dead
        assert session.status == "player_dead"

        frozen = session.state
        report = await session.take_turn(Action(action_id="swim"))
        assert report.rejected is True
        assert report.state is frozen
        assert session.state is frozen
        assert session._llm.call_count == 2

    async def test_adventure_over_blocks_further_turns(self, character, prompts) -> None:
        session = _session(
            character, prompts,
            turn_payload("Opening.", beat_complete=True),
            turn_payload("Conflict done.", beat_complete=True),
            turn_payload("The curse is lifted.", beat_complete=True),
        )
        await session.start()
        await session.take_turn(Action(action_id="fight"))
        assert session.state.current_phase == "RESOLUTION"
        assert not session.is_adventure_over

        await session.take_turn(Action(action_id="finish"))
        assert session.is_adventure_over
        assert session.state.current_phase == "EPILOGUE"

        report = await session.take_turn(Action(action_id="more"))
        assert report.rejected is True
        assert len(session.state.story_log) == 3

    async def test_transport_failure_keeps_state_and_allows_retry(self, character, prompts) -> None:
        session = _session(
            character, prompts,
            turn_payload("A misty pier."),
            TransportError("Generation backend returned HTTP 503"),
            turn_payload("You board the ship."),
        )
        await session.start()
        before = session.state

        report = await session.take_turn(Action(action_id="board"))
        assert report.error == NARRATION_FAILED
        assert report.rejected is False
        assert session.error == NARRATION_FAILED
        assert session.state is before
        assert session.status == "idle"

        report = await session.take_turn(Action(action_id="board"))
        assert report.error is None
        assert session.error is None
        assert session.state.story_log[-1] == "You board the ship."

    async def test_dropped_connection_reported_as_narration_failure(self, character, prompts) -> None:
        llm = GeminiLLM(GeminiClient(api_key="secret"))
        session = AdventureSession(character, "ink", llm=llm, prompts=prompts, check_pause=0)
        mock_post = AsyncMock(side_effect=httpx.ReadError("connection reset"))
        with patch("httpx.AsyncClient.post", mock_post):
            report = await session.start()
        assert report.error == NARRATION_FAILED
        assert session.state.story_log == ()
        assert session.status == "idle"

    async def test_contract_failure_reported_as_narration_failure(self, character, prompts) -> None:
        bad = turn_payload()
        del bad["scene_description"]
        session = _session(character, prompts, bad)
        report = await session.start()
        assert report.error == NARRATION_FAILED
        assert session.state.story_log == ()

    async def test_second_turn_rejected_while_in_flight(self, character, prompts) -> None:
        release = asyncio.Event()

        class SlowLLM(StubLLM):
            async def __call__(self, *args, **kwargs):
                await release.wait()
                return await super().__call__(*args, **kwargs)

        session = AdventureSession(
            character, "ink", llm=SlowLLM(turn_payload("Opening.")), prompts=prompts,
        )
        first = asyncio.create_task(session.start())
        await asyncio.sleep(0)
        assert session.is_in_flight
        assert session.status == "in_flight"

        second = await session.take_turn(Action(action_id="look"))
        assert second.rejected is True
        assert second.status == "in_flight"

        release.set()
        report = await first
        assert report.error is None
        assert not session.is_in_flight
        assert session.state.story_log == ("Opening.",)


class TestSceneImage:
    async def test_image_rendered_after_turn(self, character, prompts) -> None:
        renderer = _renderer()
        session = _session(
            character, prompts, turn_payload("A misty pier.", visual_lore_updates=["Red moon"]),
            renderer=renderer,
        )
        await session.start()
        assert await session.wait_for_scene_image() == "data:image/png;base64,QUJD"
        scene, char, style, lore = renderer.render_scene.call_args[0]
        assert scene == "A misty pier."
        assert char == character
        assert style == "ink"
        assert lore == "Red moon"

    async def test_image_failure_is_soft(self, character, prompts) -> None:
        renderer = _renderer(MediaError("Image generation failed: blocked"))
        session = _session(character, prompts, turn_payload("A misty pier."), renderer=renderer)
        report = await session.start()
        assert await session.wait_for_scene_image() is None
        assert session.image_error == "Image generation failed: blocked"
        assert report.error is None
        assert session.state.story_log == ("A misty pier.",)

    async def test_new_turn_clears_previous_image(self, character, prompts) -> None:
        session = _session(
            character, prompts, turn_payload("One."), turn_payload("Two."),
            renderer=_renderer(),
        )
        await session.start()
        await session.wait_for_scene_image()
        assert session.scene_image is not None

        release = asyncio.Event()

        async def slow_render(*args):
            await release.wait()
            return "data:image/png;base64,TkVX"

        session._renderer.render_scene = slow_render
        await session.take_turn(Action(action_id="next"))
        assert session.scene_image is None
        release.set()
        assert await session.wait_for_scene_image() == "data:image/png;base64,TkVX"

    async def test_waiter_survives_new_turn_cancelling_image(self, character, prompts) -> None:
        never = asyncio.Event()
        renders = []

        async def render(scene, *args):
            renders.append(scene)
            if scene == "One.":
                await never.wait()
            return "data:image/png;base64,VFdP"

        renderer = MagicMock()
        renderer.render_scene = render
        session = _session(character, prompts, turn_payload("One."), turn_payload("Two."),
                           renderer=renderer)
        await session.start()
        waiter = asyncio.create_task(session.wait_for_scene_image())
        await asyncio.sleep(0)

        await session.take_turn(Action(action_id="next"))
        assert await waiter in (None, "data:image/png;base64,VFdP")
        assert await session.wait_for_scene_image() == "data:image/png;base64,VFdP"
        assert renders == ["One.", "Two."]

    async def test_close_cancels_pending_image(self, character, prompts) -> None:
        never = asyncio.Event()

        async def render(*args):
            await never.wait()

        renderer = MagicMock()
        renderer.render_scene = render
        session = _session(character, prompts, turn_payload("One."), renderer=renderer)
        await session.start()
        task = session._image_task

        session.close()
        await asyncio.wait({task})
        assert task.cancelled()
        assert await session.wait_for_scene_image() is None

    async def test_no_renderer_no_image(self, character, prompts) -> None:
        session = _session(character, prompts, turn_payload("One."))
        await session.start()
        assert await session.wait_for_scene_image() is None


class TestNarration:
    async def test_narrate_current_scene(self, character, prompts) -> None:
        speech = MagicMock()
        speech.synthesize = AsyncMock(return_value="UENN")
        session = _session(character, prompts, turn_payload("One."), speech=speech)
        await session.start()

        assert await session.narrate() == "UENN"
        speech.synthesize.assert_awaited_once_with("One.")
        assert session.audio.state == "playing"

    async def test_new_turn_stops_narration(self, character, prompts) -> None:
        speech = MagicMock()
        speech.synthesize = AsyncMock(return_value="UENN")
        session = _session(character, prompts, turn_payload("One."), turn_payload("Two."),
                           speech=speech)
        await session.start()
        await session.narrate()
        await session.take_turn(Action(action_id="next"))
        assert session.audio.state == "idle"

    async def test_narrate_without_speech_configured(self, character, prompts) -> None:
        session = _session(character, prompts, turn_payload("One."))
        await session.start()
        with pytest.raises(MediaError):
            await session.narrate()
