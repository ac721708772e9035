"""Plain-language report on what happened in a generation call."""

from __future__ import annotations

import json

from rpg_adventure.llm import LLM
from rpg_adventure.models import ApiMetadata
from rpg_adventure.prompts import PromptConfig, render_prompt


async def demystify(metadata: ApiMetadata, llm: LLM, prompts: PromptConfig) -> str:
    """Ask the model to explain the prompt, token usage, finish reason and safety ratings."""
    dm = prompts.demystifier
    prompt = render_prompt(dm.prompt_template, {
        "original_prompt": metadata.original_prompt,
        "usage_metadata": json.dumps(metadata.usage_metadata, indent=2),
        "finish_reason": metadata.finish_reason or "UNKNOWN",
        "safety_ratings": json.dumps(metadata.safety_ratings, indent=2),
    })
    generation = await llm("demystifier", prompt, system_instruction=dm.system_instruction)
    return generation.text
