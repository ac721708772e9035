"""Health check and character-creation options endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from backend import sessions
from rpg_adventure.contract import ContractError
from rpg_adventure.llm import TransportError

logger = logging.getLogger(__name__)

router = APIRouter()

CREATION_FAILED = (
    "Failed to retrieve character creation data from the arcane ether. "
    "Please refresh and try again."
)


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok", "demo": sessions.is_scripted()}


@router.get("/creation-options")
async def creation_options():
    """Scene, art styles, stat array, races, classes and weapons for character creation."""
    try:
        return await sessions.get_creation_options()
    except (TransportError, ContractError) as e:
        logger.warning("Creation options unavailable: %s", e)
        raise HTTPException(502, CREATION_FAILED)
