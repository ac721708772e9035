import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from backend import sessions
from backend.routes import router
from rpg_adventure.config import Settings, load_settings

STATIC_DIR = Path(__file__).parent / "static"


def create_app(settings: Settings | None = None, **runtime_overrides) -> FastAPI:
    """Build the API app. Keyword overrides (llm, renderer, speech, rng) go to init_runtime()."""
    sessions.init_runtime(settings or load_settings(), **runtime_overrides)

    app = FastAPI(title="RPG Adventure")
    app.include_router(router, prefix="/api")

    if STATIC_DIR.exists() and not os.getenv("VITE_DEV", ""):
        # Serve static assets (JS, CSS, etc.)
        app.mount("/assets", StaticFiles(directory=STATIC_DIR / "assets"), name="assets")

        # SPA fallback: all non-API routes serve index.html
        @app.get("/{path:path}")
        async def spa_fallback(path: str):
            return FileResponse(STATIC_DIR / "index.html")

    return app


# Default app instance for uvicorn (settings from environment / .env)
app = create_app()
