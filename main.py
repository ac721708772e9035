"""RPG Adventure — dev launcher. Starts the API server in watch mode."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = int(os.getenv("BACKEND_PORT", "13013"))


def main():
    parser = argparse.ArgumentParser(description="RPG Adventure dev launcher")
    parser.add_argument("--demo", action="store_true",
                        help="Replay the scripted demo adventure instead of calling Gemini")
    parser.add_argument("--prompts", type=Path, default=None,
                        help="Prompt configuration file (default: bundled prompts.json)")
    parser.add_argument("--log-level", default="info",
                        choices=["critical", "error", "warning", "info", "debug"])
    args = parser.parse_args()

    # The app reads its settings from the environment when uvicorn imports it
    if args.demo:
        os.environ["DEMO_MODE"] = "1"
    if args.prompts:
        os.environ["PROMPTS_PATH"] = str(args.prompts.resolve())

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    uvicorn.run(
        "backend.app:app",
        host=HOST,
        port=BACKEND_PORT,
        reload=True,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
