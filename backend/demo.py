"""Scripted narrator replies for demo mode (DEMO_MODE=1 or --demo).

Runs a short adventure end-to-end without an API key: creation options, an
opening scene, a custom action that needs a DEX check, and a climax that
completes the RESOLUTION beat.
"""

from rpg_adventure.llm import ScriptedLLM

CREATION_OPTIONS = {
    "scene": "Rain hammers the slate roofs of Greywater as a stranger steps "
    "into the lamplight of the Drowned Lantern inn. Whoever you were before "
    "tonight, the road has brought you here for a reason.",
    "style_options": [
        "moody oil painting",
        "ink and watercolour storybook",
        "gritty comic book",
        "stained glass",
    ],
    "stat_array": [15, 14, 13, 12, 10, 8],
    "races": ["Human", "Elf", "Dwarf", "Halfling", "Half-Orc", "Tiefling"],
    "classes": ["Fighter", "Rogue", "Wizard", "Cleric", "Ranger", "Bard"],
    "weapons": ["Longsword", "Twin daggers", "Oak staff", "Warhammer", "Longbow", "Rapier"],
}

GAME_TURNS = [
    {
        "scene_description": "The Drowned Lantern is half empty. By the hearth a "
        "cloaked ferryman stares at you, then slides a brass key across the table: "
        "'The lighthouse keeper is missing. Nobody else will go.'",
        "options": [
            {"text": "Take the key and head for the lighthouse", "action_id": "go_lighthouse", "check": None},
            {"text": "Press the ferryman for details", "action_id": "question_ferryman", "check": {"stat": "CHA", "dc": 12}},
            {"text": "Search the inn for other witnesses", "action_id": "search_inn", "check": None},
        ],
        "beat_complete": True,
        "player_dead": False,
        "visual_lore_updates": ["cloaked ferryman with a brass key", "the Drowned Lantern inn"],
    },
    {
        "scene_description": "You reach for the rusted lighthouse door...",
        "options": [],
        "beat_complete": False,
        "player_dead": False,
        "required_check": {"stat": "DEX", "dc": 12},
        "visual_lore_updates": [],
    },
    {
        "scene_description": "The door gives way. Inside, salt-crusted stairs spiral "
        "up toward a pulsing green light, and something heavy drags itself across "
        "the floor above.",
        "options": [
            {"text": "Climb the stairs", "action_id": "climb", "check": {"stat": "CON", "dc": 13}},
            {"text": "Call out to the keeper", "action_id": "call_out", "check": None},
            {"text": "Douse your lantern and listen", "action_id": "listen", "check": {"stat": "WIS", "dc": 11}},
        ],
        "beat_complete": True,
        "player_dead": False,
        "visual_lore_updates": ["lighthouse with a pulsing green light"],
    },
    {
        "scene_description": "At the top of the tower the keeper, half-drowned and "
        "wild-eyed, clutches the lamp's green heart. You wrench it free and hurl it "
        "into the sea; the light dies and the keeper collapses, himself again.",
        "options": [
            {"text": "Carry the keeper back to Greywater", "action_id": "return", "check": None},
        ],
        "beat_complete": True,
        "player_dead": False,
        "visual_lore_updates": ["the lighthouse keeper"],
    },
]

DEMYSTIFIER_REPORT = (
    "**What was sent**\n"
    "- The prompt combined the current narrative beat, your character sheet, "
    "the last few scenes and your action.\n\n"
    "**Finish reason**\n"
    "- `STOP` means the model finished its answer normally."
)


def demo_llm() -> ScriptedLLM:
    return ScriptedLLM({
        "character_creation": [CREATION_OPTIONS],
        "game_turn": GAME_TURNS,
        "demystifier": [DEMYSTIFIER_REPORT],
    })
