"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field

from rpg_adventure.models import CheckOutcome


class CreateCharacterBody(BaseModel):
    name: str
    gender: str
    race: str
    char_class: str = Field(alias="class")
    weapon: str
    description: str = ""
    stats: dict[str, int]


class CreateSessionBody(BaseModel):
    character: CreateCharacterBody
    art_style: str


class TurnBody(BaseModel):
    action_id: str
    custom_action: str | None = None
    dice_result: CheckOutcome | None = None
