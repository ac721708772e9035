"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, character-creation options) and sessions
(create, snapshot, turn, scene image, narration audio, demystifier).
"""

from fastapi import APIRouter

from .sessions import router as sessions_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(sessions_router)
