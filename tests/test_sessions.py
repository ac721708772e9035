"""Tests for backend.sessions — runtime set-up and the in-memory session registry."""

import asyncio
from unittest.mock import MagicMock

from backend import sessions
from conftest import StubLLM, turn_payload
from rpg_adventure.config import Settings


def _slow_renderer(started: list) -> MagicMock:
    async def render(*args):
        started.append(args[0])
        await asyncio.Event().wait()

    renderer = MagicMock()
    renderer.render_scene = render
    return renderer


async def test_delete_cancels_pending_image(character) -> None:
    started = []
    sessions.init_runtime(
        Settings(check_pause_seconds=0),
        llm=StubLLM(turn_payload("A misty pier.")),
        renderer=_slow_renderer(started),
    )
    session_id, session = sessions.create_session(character, "ink")
    await session.start()
    task = session._image_task
    await asyncio.sleep(0)
    assert started == ["A misty pier."]

    assert sessions.delete_session(session_id) is True
    await asyncio.wait({task})
    assert task.cancelled()
    assert sessions.get_session(session_id) is None


async def test_delete_unknown_session() -> None:
    sessions.init_runtime(Settings(), llm=StubLLM())
    assert sessions.delete_session("missing") is False


async def test_init_runtime_drops_existing_sessions(character) -> None:
    sessions.init_runtime(Settings(check_pause_seconds=0), llm=StubLLM(turn_payload("One.")),
                          renderer=_slow_renderer([]))
    session_id, session = sessions.create_session(character, "ink")
    await session.start()
    task = session._image_task

    sessions.init_runtime(Settings(), llm=StubLLM())
    await asyncio.wait({task})
    assert task.cancelled()
    assert sessions.get_session(session_id) is None
