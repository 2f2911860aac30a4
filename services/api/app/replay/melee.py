"""Melee game tables used when presenting replay data.

Character ids are character-select-screen (CSS) ids, the ids stored in a replay's
game-start block. Stage ids are the internal stage ids from the same block.
Action-state ranges classify a player's post-frame state for stats computation.
"""

FRAMES_PER_SECOND = 60
FRAMES_PER_MINUTE = 3600

# Frame indices as numbered in replay files
FIRST_FRAME = -123
FIRST_PLAYABLE_FRAME = -39

CHARACTER_NAMES = {
    0: "Captain Falcon",
    1: "Donkey Kong",
    2: "Fox",
    3: "Mr. Game & Watch",
    4: "Kirby",
    5: "Bowser",
    6: "Link",
    7: "Luigi",
    8: "Mario",
    9: "Marth",
    10: "Mewtwo",
    11: "Ness",
    12: "Peach",
    13: "Pikachu",
    14: "Ice Climbers",
    15: "Jigglypuff",
    16: "Samus",
    17: "Yoshi",
    18: "Zelda",
    19: "Sheik",
    20: "Falco",
    21: "Young Link",
    22: "Dr. Mario",
    23: "Roy",
    24: "Pichu",
    25: "Ganondorf",
    26: "Master Hand",
    27: "Wireframe (Male)",
    28: "Wireframe (Female)",
    29: "Giga Bowser",
    30: "Crazy Hand",
    31: "Sandbag",
    32: "Popo",
}

STAGE_NAMES = {
    2: "Fountain of Dreams",
    3: "Pokémon Stadium",
    4: "Princess Peach's Castle",
    5: "Kongo Jungle",
    6: "Brinstar",
    7: "Corneria",
    8: "Yoshi's Story",
    9: "Onett",
    10: "Mute City",
    11: "Rainbow Cruise",
    12: "Jungle Japes",
    13: "Great Bay",
    14: "Hyrule Temple",
    15: "Brinstar Depths",
    16: "Yoshi's Island",
    17: "Green Greens",
    18: "Fourside",
    19: "Mushroom Kingdom I",
    20: "Mushroom Kingdom II",
    22: "Venom",
    23: "Poké Floats",
    24: "Big Blue",
    25: "Icicle Mountain",
    26: "Icetop",
    27: "Flat Zone",
    28: "Dream Land N64",
    29: "Yoshi's Island N64",
    30: "Kongo Jungle N64",
    31: "Battlefield",
    32: "Final Destination",
}


def character_name(character_id) -> str:
    """Display name for a CSS character id ("Unknown Character" if unmapped)."""
    if character_id is None:
        return "Unknown Character"
    return CHARACTER_NAMES.get(int(character_id), "Unknown Character")


def stage_name(stage_id) -> str:
    """Display name for a stage id ("Unknown Stage" if unmapped)."""
    if stage_id is None:
        return "Unknown Stage"
    return STAGE_NAMES.get(int(stage_id), "Unknown Stage")


# Action state ranges (inclusive)
DYING_START, DYING_END = 0x00, 0x0A
GROUNDED_CONTROL_START, GROUNDED_CONTROL_END = 0x0E, 0x18
DAMAGE_FALL = 0x26
SQUAT_START, SQUAT_END = 0x27, 0x29
GROUND_ATTACK_START, GROUND_ATTACK_END = 0x2C, 0x40
DAMAGE_START, DAMAGE_END = 0x4B, 0x5B
JAB_RESET_UP = 0xB9
JAB_RESET_DOWN = 0xC1
GRAB = 0xD4
CAPTURE_START, CAPTURE_END = 0xDF, 0xE8
COMMAND_GRAB_RANGE1_START, COMMAND_GRAB_RANGE1_END = 0x10A, 0x130
COMMAND_GRAB_RANGE2_START, COMMAND_GRAB_RANGE2_END = 0x147, 0x152
BARREL_WAIT = 0x125


def is_dead(state: int) -> bool:
    return DYING_START <= state <= DYING_END


def is_damaged(state: int) -> bool:
    return (
        DAMAGE_START <= state <= DAMAGE_END
        or state in (DAMAGE_FALL, JAB_RESET_UP, JAB_RESET_DOWN)
    )


def is_grabbed(state: int) -> bool:
    return CAPTURE_START <= state <= CAPTURE_END


def is_command_grabbed(state: int) -> bool:
    in_range = (
        COMMAND_GRAB_RANGE1_START <= state <= COMMAND_GRAB_RANGE1_END
        or COMMAND_GRAB_RANGE2_START <= state <= COMMAND_GRAB_RANGE2_END
    )
    return in_range and state != BARREL_WAIT


def is_in_control(state: int) -> bool:
    """True when the player is acting freely (used to end a punish)."""
    ground = GROUNDED_CONTROL_START <= state <= GROUNDED_CONTROL_END
    squat = SQUAT_START <= state <= SQUAT_END
    ground_attack = GROUND_ATTACK_START < state <= GROUND_ATTACK_END
    return ground or squat or ground_attack or state == GRAB
