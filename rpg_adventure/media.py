"""Scene illustration and narration audio.

Both are follow-ups to a narrated turn and never affect game state. Every
failure surfaces as MediaError carrying a message that can be shown to the
player as-is.

    GeminiImageRenderer — scene text + character + art style + lore → PNG data URL
    GeminiSpeech        — scene text → base64 PCM audio (24 kHz mono)
    NarrationAudio      — idle/loading/playing/paused lifecycle around GeminiSpeech
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

from rpg_adventure.llm import GeminiClient, TransportError, candidate_parts, first_candidate
from rpg_adventure.models import Character
from rpg_adventure.prompts import PromptError, VisualizationPrompts, render_prompt

logger = logging.getLogger(__name__)

AudioState = Literal["idle", "loading", "playing", "paused"]

SPEECH_SAMPLE_RATE = 24000
VOICE_FALTERED = "The storyteller's voice faltered."


class MediaError(RuntimeError):
    """Raised when an image or audio clip cannot be produced."""


class SceneRenderer(Protocol):
    async def render_scene(
        self, scene: str, character: Character, art_style: str, lore: str
    ) -> str: ...


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str) -> str: ...


def _inline_data(data: dict, what: str) -> str:
    candidate = first_candidate(data)
    if candidate is None:
        raise MediaError(f"{what} failed: No response candidate found.")
    if candidate.get("finishReason") == "SAFETY":
        raise MediaError(
            f"{what} failed: The request was blocked for safety reasons. "
            "Please try a different description."
        )
    for part in candidate_parts(candidate):
        inline = part.get("inlineData") or {}
        if inline.get("data"):
            return inline["data"]
    raise MediaError(f"{what} failed: No data returned in the response.")


# ---------------------------------------------------------------------------
# Scene illustration
# ---------------------------------------------------------------------------

class GeminiImageRenderer:
    def __init__(
        self,
        client: GeminiClient,
        prompts: VisualizationPrompts,
        model: str = "gemini-2.5-flash-image",
    ) -> None:
        self._client = client
        self._prompts = prompts
        self._model = model

    def build_prompt(self, scene: str, character: Character, art_style: str, lore: str) -> str:
        try:
            return render_prompt(self._prompts.prompt_template, {
                "character_description": character.portrait(),
                "scene_description": scene,
                "art_style": art_style,
                "visual_lore": lore or self._prompts.empty_lore,
            })
        except PromptError as e:
            raise MediaError(f"Image generation failed: {e}") from e

    async def render_scene(
        self, scene: str, character: Character, art_style: str, lore: str
    ) -> str:
        """Illustrate a scene and return it as a data: URL."""
        body = {
            "contents": [{"parts": [{"text": self.build_prompt(scene, character, art_style, lore)}]}],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }
        try:
            data = await self._client.generate_content("visualization", self._model, body)
        except TransportError as e:
            raise MediaError(f"Image generation failed: {e}") from e
        return f"data:image/png;base64,{_inline_data(data, 'Image generation')}"


# ---------------------------------------------------------------------------
# Narration audio
# ---------------------------------------------------------------------------

class GeminiSpeech:
    def __init__(
        self,
        client: GeminiClient,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str = "Charon",
    ) -> None:
        self._client = client
        self._model = model
        self._voice = voice

    async def synthesize(self, text: str) -> str:
        """Speak `text` and return base64-encoded 16-bit PCM at 24 kHz."""
        body = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self._voice}},
                },
            },
        }
        try:
            data = await self._client.generate_content("speech", self._model, body)
        except TransportError as e:
            raise MediaError(f"Speech generation failed: {e}") from e
        return _inline_data(data, "Speech generation")


class NarrationAudio:
    """Narration clip for the current scene, with a play/pause/resume/stop lifecycle.

    Playback itself belongs to the UI; this tracks which clip is loaded and
    what state the player has put it in. A failed synthesis leaves the
    lifecycle idle with `error` set.
    """

    def __init__(self, speech: SpeechSynthesizer) -> None:
        self._speech = speech
        self.state: AudioState = "idle"
        self.audio: str | None = None
        self.error: str | None = None
        self._scene: str | None = None

    async def play(self, scene: str) -> str | None:
        self.stop()
        self.state = "loading"
        self._scene = scene
        try:
            audio = await self._speech.synthesize(scene)
        except MediaError as e:
            logger.warning("Narration audio failed: %s", e)
            self.state = "idle"
            self._scene = None
            self.error = VOICE_FALTERED
            return None
        if self._scene != scene:
            # stopped or replaced while loading
            return None
        self.audio = audio
        self.state = "playing"
        return audio

    def pause(self) -> None:
        if self.state == "playing":
            self.state = "paused"

    def resume(self) -> None:
        if self.state == "paused":
            self.state = "playing"

    def stop(self) -> None:
        self.state = "idle"
        self.audio = None
        self.error = None
        self._scene = None
