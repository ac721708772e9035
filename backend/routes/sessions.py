"""Adventure session endpoints: create, snapshot, turns, scene image, narration, demystifier."""

import logging

from fastapi import APIRouter, HTTPException

from backend import sessions
from rpg_adventure.contract import ContractError
from rpg_adventure.creation import CharacterError, build_character
from rpg_adventure.demystify import demystify
from rpg_adventure.engine import AdventureSession, TurnReport
from rpg_adventure.llm import TransportError
from rpg_adventure.media import MediaError
from rpg_adventure.models import Action
from rpg_adventure.prompts import PromptError

from .models import CreateSessionBody, TurnBody
from .settings import CREATION_FAILED

logger = logging.getLogger(__name__)

router = APIRouter()


def _get(session_id: str) -> AdventureSession:
    session = sessions.get_session(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


def _snapshot(session_id: str, session: AdventureSession) -> dict:
    return {
        "id": session_id,
        "state": session.state.model_dump(by_alias=True),
        "status": session.status,
        "is_player_dead": session.is_player_dead,
        "is_adventure_over": session.is_adventure_over,
        "response": session.last_response.model_dump() if session.last_response else None,
        "check": session.last_check.model_dump() if session.last_check else None,
        "error": session.error,
        "scene_image": session.scene_image,
        "image_error": session.image_error,
    }


def _report(session_id: str, report: TurnReport) -> dict:
    if report.rejected:
        raise HTTPException(409, report.error)
    if report.error:
        raise HTTPException(502, report.error)
    body = report.model_dump(by_alias=True)
    body["id"] = session_id
    return body


@router.post("/sessions", status_code=201)
async def create_session(body: CreateSessionBody):
    """Create a character, start a session and narrate the opening scene."""
    try:
        options = await sessions.get_creation_options()
    except (TransportError, ContractError) as e:
        logger.warning("Creation options unavailable: %s", e)
        raise HTTPException(502, CREATION_FAILED)

    c = body.character
    try:
        character = build_character(
            options,
            name=c.name, gender=c.gender, race=c.race, char_class=c.char_class,
            weapon=c.weapon, description=c.description, stats=c.stats,
        )
    except CharacterError as e:
        raise HTTPException(400, str(e))

    session_id, session = sessions.create_session(character, body.art_style)
    report = await session.start()
    if report.error:
        # keep the session so the opening turn can be retried
        raise HTTPException(502, {"id": session_id, "error": report.error})
    return _report(session_id, report)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Current state snapshot, lifecycle flags and the last narrated response."""
    return _snapshot(session_id, _get(session_id))


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    if not sessions.delete_session(session_id):
        raise HTTPException(404, "Session not found")
    return {"ok": True}


@router.post("/sessions/{session_id}/turn")
async def take_turn(session_id: str, body: TurnBody):
    """Resolve one player action (scripted option or custom free text)."""
    session = _get(session_id)
    action = Action(action_id=body.action_id, custom_action=body.custom_action)
    report = await session.take_turn(action, dice_result=body.dice_result)
    return _report(session_id, report)


@router.get("/sessions/{session_id}/scene-image")
async def scene_image(session_id: str):
    """Wait for the current scene's illustration."""
    session = _get(session_id)
    image = await session.wait_for_scene_image()
    return {"image": image, "error": session.image_error}


@router.post("/sessions/{session_id}/narration")
async def narrate(session_id: str):
    """Synthesize narration audio for the current scene."""
    session = _get(session_id)
    try:
        audio = await session.narrate()
    except MediaError as e:
        raise HTTPException(501, str(e))
    return {"audio": audio, "state": session.audio.state, "error": session.audio.error}


@router.post("/sessions/{session_id}/narration/{command}")
async def control_narration(session_id: str, command: str):
    """Pause, resume or stop the narration clip."""
    session = _get(session_id)
    if session.audio is None:
        raise HTTPException(501, "Narration audio is not configured")
    controls = {
        "pause": session.audio.pause,
        "resume": session.audio.resume,
        "stop": session.audio.stop,
    }
    if command not in controls:
        raise HTTPException(404, f"Unknown narration command {command!r}")
    controls[command]()
    return {"state": session.audio.state}


@router.post("/sessions/{session_id}/demystify")
async def demystify_last_call(session_id: str):
    """Explain the last narration call in plain language."""
    session = _get(session_id)
    if session.last_metadata is None:
        raise HTTPException(409, "No narration call to explain yet")
    rt = sessions.runtime()
    try:
        report = await demystify(session.last_metadata, rt.llm, rt.prompts)
    except (TransportError, PromptError) as e:
        logger.warning("Demystifier failed: %s", e)
        raise HTTPException(
            502,
            "Failed to generate the demystification report. The mystic energies are weak.",
        )
    return {"report": report}
