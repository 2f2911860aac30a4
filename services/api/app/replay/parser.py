"""Replay decoding: `.slp` file -> ReplayData JSON.

Decoding the binary replay format is delegated to `py-slippi` (`slippi.Game`).
This module only reshapes the decoded game into the JSON transport type consumed
by the browser and the analysis endpoints:

    {"metadata": {...}, "settings": {...}, "stats": {...}}

Attribute access on the decoded objects goes through `getattr` with defaults:
older replay versions omit some fields (netplay names, state age, triggers).
"""

import logging
import os
from datetime import datetime

from slippi import Game

from .melee import character_name, stage_name
from .stats import PlayerFrame, compute_stats

logger = logging.getLogger(__name__)


class ReplayParseError(Exception):
    """Raised when a replay file cannot be decoded."""


def _int_or_none(value):
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _enum_text(value):
    """Lower-case text for an enum member (or plain value)."""
    if value is None:
        return None
    name = getattr(value, "value", value)
    if isinstance(name, str):
        return name
    return str(getattr(value, "name", value)).lower()


def _netplay(meta_player):
    netplay = getattr(meta_player, "netplay", None) if meta_player is not None else None
    return {
        "netplay": getattr(netplay, "name", None) or "",
        "code": getattr(netplay, "code", None) or "",
    }


def build_metadata(game) -> dict:
    """Metadata block: start time, last frame, platform and per-player names."""
    metadata = getattr(game, "metadata", None)
    frames = getattr(game, "frames", None) or []

    start_at = getattr(metadata, "date", None)
    if isinstance(start_at, datetime):
        start_at = start_at.isoformat()

    if frames:
        last_frame = frames[-1].index
    else:
        last_frame = _int_or_none(getattr(metadata, "duration", None))

    players = {}
    for idx, meta_player in enumerate(getattr(metadata, "players", None) or ()):
        if meta_player is None:
            continue
        characters = getattr(meta_player, "characters", None) or {}
        players[str(idx)] = {
            "names": _netplay(meta_player),
            "characters": {str(_int_or_none(c)): n for c, n in characters.items()},
        }

    return {
        "startAt": start_at,
        "lastFrame": last_frame,
        "playedOn": _enum_text(getattr(metadata, "platform", None)),
        "players": players,
    }


def build_settings(game, metadata: dict) -> dict:
    """Settings block: stage and the players present at game start."""
    start = game.start
    stage_id = _int_or_none(getattr(start, "stage", None))

    players = []
    for idx, player in enumerate(getattr(start, "players", None) or ()):
        if player is None:
            continue
        character_id = _int_or_none(getattr(player, "character", None))
        names = metadata["players"].get(str(idx), {}).get("names", {})
        display_name = names.get("netplay") or getattr(player, "tag", None) or ""
        players.append({
            "playerIndex": idx,
            "port": idx + 1,
            "characterId": character_id,
            "characterName": character_name(character_id),
            "characterColor": _int_or_none(getattr(player, "costume", None)),
            "displayName": display_name,
            "connectCode": names.get("code", ""),
            "type": _enum_text(getattr(player, "type", None)),
            "teamId": _int_or_none(getattr(player, "team", None)),
        })

    return {
        "stageId": stage_id,
        "stageName": stage_name(stage_id),
        "isTeams": bool(getattr(start, "is_teams", False)),
        "players": players,
    }


def _player_frame(frame_index: int, data) -> PlayerFrame | None:
    pre = getattr(data, "pre", None)
    post = getattr(data, "post", None)
    if post is None:
        return None

    buttons = getattr(getattr(pre, "buttons", None), "physical", 0) if pre is not None else 0
    joystick = getattr(pre, "joystick", None)
    cstick = getattr(pre, "cstick", None)
    triggers = getattr(getattr(pre, "triggers", None), "physical", None)

    return PlayerFrame(
        frame=frame_index,
        state=_int_or_none(getattr(post, "state", None)) or 0,
        percent=float(getattr(post, "damage", 0.0) or 0.0),
        stocks=_int_or_none(getattr(post, "stocks", None)) or 0,
        last_attack_landed=_int_or_none(getattr(post, "last_attack_landed", None)),
        state_age=getattr(post, "state_age", None),
        buttons=int(buttons or 0),
        joystick=(getattr(joystick, "x", 0.0), getattr(joystick, "y", 0.0)),
        cstick=(getattr(cstick, "x", 0.0), getattr(cstick, "y", 0.0)),
        l_trigger=getattr(triggers, "l", 0.0) or 0.0,
        r_trigger=getattr(triggers, "r", 0.0) or 0.0,
    )


def extract_frames(game, player_indices) -> list[dict[int, PlayerFrame]]:
    """Flatten decoded frames into `{player_index: PlayerFrame}` mappings.

    Only the leader of each port is used (Ice Climbers' follower is ignored).
    """
    out = []
    for frame in getattr(game, "frames", None) or []:
        ports = getattr(frame, "ports", None) or ()
        row = {}
        for idx in player_indices:
            port = ports[idx] if idx < len(ports) else None
            if port is None:
                continue
            pf = _player_frame(frame.index, getattr(port, "leader", None))
            if pf is not None:
                row[idx] = pf
        out.append(row)
    return out


def game_to_replay_data(game) -> dict:
    """Convert a decoded game into the ReplayData transport type."""
    metadata = build_metadata(game)
    settings = build_settings(game, metadata)
    indices = [p["playerIndex"] for p in settings["players"]]

    stats = compute_stats(extract_frames(game, indices), indices, last_frame=metadata["lastFrame"])
    stats["gameComplete"] = getattr(game, "end", None) is not None

    return {"metadata": metadata, "settings": settings, "stats": stats}


def parse_replay_file(path) -> dict:
    """Decode the replay at `path` and return its ReplayData.

    Raises:
        ReplayParseError: If the file cannot be decoded.
    """
    try:
        game = Game(os.fspath(path))
    except Exception as e:
        raise ReplayParseError(f"could not decode replay {os.path.basename(os.fspath(path))}: {e}") from e

    if getattr(game, "start", None) is None:
        raise ReplayParseError("replay has no game start block")

    try:
        data = game_to_replay_data(game)
    except (AttributeError, TypeError, ValueError, IndexError) as e:
        raise ReplayParseError(f"unexpected replay structure: {e}") from e
    logger.debug(
        "parsed replay %s: %d players, last frame %s",
        os.path.basename(os.fspath(path)),
        len(data["settings"]["players"]),
        data["metadata"]["lastFrame"],
    )
    return data
