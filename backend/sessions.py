"""In-memory adventure sessions and the shared runtime they are built from.

Sessions live only as long as the process. The runtime (settings, prompt
configuration, LLM and media clients) is set once by init_runtime() at
app start-up; tests call it with stub clients.

    init_runtime(settings, llm=..., renderer=..., speech=...)
    create_session(character, art_style) → (id, AdventureSession)
    get_session(id) / delete_session(id)
"""

import logging
import random
import uuid
from dataclasses import dataclass

from rpg_adventure.config import Settings
from rpg_adventure.creation import fetch_creation_options
from rpg_adventure.engine import AdventureSession
from rpg_adventure.llm import LLM, GeminiClient, GeminiLLM, ScriptedLLM
from rpg_adventure.media import GeminiImageRenderer, GeminiSpeech, SceneRenderer, SpeechSynthesizer
from rpg_adventure.models import Character, CreationOptions
from rpg_adventure.prompts import PromptConfig, load_prompts

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    prompts: PromptConfig
    llm: LLM
    renderer: SceneRenderer | None = None
    speech: SpeechSynthesizer | None = None
    rng: random.Random | None = None
    creation_options: CreationOptions | None = None


_runtime: Runtime | None = None
_sessions: dict[str, AdventureSession] = {}


def init_runtime(
    settings: Settings,
    llm: LLM | None = None,
    renderer: SceneRenderer | None = None,
    speech: SpeechSynthesizer | None = None,
    rng: random.Random | None = None,
) -> Runtime:
    """Build the shared runtime and drop any existing sessions.

    Without an explicit llm: demo mode replays the bundled demo script;
    otherwise Gemini clients are created from the settings.
    """
    global _runtime
    prompts = load_prompts(settings.prompts_path)

    if llm is None:
        if settings.demo_mode:
            from backend.demo import demo_llm
            llm = demo_llm()
        else:
            if not settings.gemini_api_key:
                logger.warning("GEMINI_API_KEY is not set; generation calls will be rejected")
            client = GeminiClient(
                settings.gemini_api_key,
                base_url=settings.gemini_base_url,
                timeout=settings.llm_timeout,
            )
            llm = GeminiLLM(client, model=settings.text_model)
            renderer = renderer or GeminiImageRenderer(
                client, prompts.visualization, model=settings.image_model
            )
            speech = speech or GeminiSpeech(
                client, model=settings.tts_model, voice=settings.tts_voice
            )

    _runtime = Runtime(
        settings=settings, prompts=prompts, llm=llm,
        renderer=renderer, speech=speech, rng=rng,
    )
    for session in _sessions.values():
        session.close()
    _sessions.clear()
    logger.info("Runtime ready (llm=%s, demo=%s)", type(llm).__name__, settings.demo_mode)
    return _runtime


def runtime() -> Runtime:
    if _runtime is None:
        raise RuntimeError("Runtime not initialised; call init_runtime() first")
    return _runtime


def create_session(character: Character, art_style: str) -> tuple[str, AdventureSession]:
    rt = runtime()
    session = AdventureSession(
        character, art_style,
        llm=rt.llm,
        prompts=rt.prompts,
        renderer=rt.renderer,
        speech=rt.speech,
        rng=rt.rng,
        check_pause=rt.settings.check_pause_seconds,
    )
    session_id = uuid.uuid4().hex
    _sessions[session_id] = session
    logger.info("Session %s created for %s", session_id, character.name)
    return session_id, session


def get_session(session_id: str) -> AdventureSession | None:
    return _sessions.get(session_id)


def delete_session(session_id: str) -> bool:
    session = _sessions.pop(session_id, None)
    if session is None:
        return False
    session.close()
    logger.info("Session %s deleted", session_id)
    return True


def is_scripted() -> bool:
    return isinstance(runtime().llm, ScriptedLLM)


async def get_creation_options() -> CreationOptions:
    """Character-creation options, fetched from the narrator once per runtime."""
    rt = runtime()
    if rt.creation_options is None:
        rt.creation_options = await fetch_creation_options(rt.llm, rt.prompts)
    return rt.creation_options
