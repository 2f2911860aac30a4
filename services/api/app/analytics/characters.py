"""Per-character breakdown of results and performance ratios."""

import pandas as pd

from ..replay.melee import character_name
from .common import (
    find_player_index,
    loser_index,
    nonzero_or_nan,
    overall_for,
    player_indices,
    settings_player,
    sort_rows,
    stat_value,
)

CHARACTER_COLUMNS = (
    "characterId",
    "characterName",
    "totalGames",
    "wins",
    "losses",
    "winRate",
    "averageDamagePerOpening",
    "averageOpeningsPerKill",
    "averageInputsPerMinute",
)


def _player_game_rows(replays: list[dict], selected_player: str | None) -> list[dict]:
    rows = []
    for replay in replays:
        if selected_player is not None:
            idx = find_player_index(replay, selected_player)
            if idx is None:
                continue
            indices = [idx]
        else:
            indices = player_indices(replay)

        loser = loser_index(replay)
        if loser is None:
            continue

        for idx in indices:
            player = settings_player(replay, idx) or {}
            character_id = player.get("characterId")
            stats = overall_for(replay, idx)
            if character_id is None or stats is None:
                continue
            rows.append({
                "characterId": int(character_id),
                "win": idx != loser,
                "damagePerOpening": nonzero_or_nan(stat_value(stats, "damagePerOpening")),
                "openingsPerKill": nonzero_or_nan(stat_value(stats, "openingsPerKill")),
                "inputsPerMinute": nonzero_or_nan(stat_value(stats, "inputsPerMinute")),
            })
    return rows


def character_breakdown(
    replays: list[dict],
    selected_player: str | None = None,
    sort_by: str = "totalGames",
    sort_dir: str = "desc",
) -> list[dict]:
    """Aggregate wins/losses and average ratios per character played.

    When `selected_player` is given only that player's games count; otherwise
    every player of every game is included.

    Averages:
        - damage per opening and openings per kill are averaged over the games
          where the ratio is present and non-zero;
        - inputs per minute is summed over games with a value and divided by
          the character's total games.

    Args:
        replays: ReplayData objects.
        selected_player: Player identity (connect code) or None for everyone.
        sort_by: Column in `CHARACTER_COLUMNS`.
        sort_dir: "asc" or "desc".

    Returns:
        list[dict]: One row per character, sorted.
    """
    rows = _player_game_rows(replays, selected_player)
    if not rows:
        return []

    df = pd.DataFrame(rows)
    grouped = df.groupby("characterId", sort=False).agg(
        totalGames=("win", "size"),
        wins=("win", "sum"),
        dpoTotal=("damagePerOpening", "sum"),
        dpoCount=("damagePerOpening", "count"),
        opkTotal=("openingsPerKill", "sum"),
        opkCount=("openingsPerKill", "count"),
        ipmTotal=("inputsPerMinute", "sum"),
    )

    out = []
    for character_id, g in grouped.iterrows():
        total = int(g["totalGames"])
        wins = int(g["wins"])
        dpo_count = int(g["dpoCount"])
        opk_count = int(g["opkCount"])
        out.append({
            "characterId": int(character_id),
            "characterName": character_name(character_id),
            "totalGames": total,
            "wins": wins,
            "losses": total - wins,
            "winRate": wins / total * 100 if total > 0 else 0,
            "averageDamagePerOpening": float(g["dpoTotal"]) / dpo_count if dpo_count > 0 else 0,
            "averageOpeningsPerKill": float(g["opkTotal"]) / opk_count if opk_count > 0 else 0,
            "averageInputsPerMinute": float(g["ipmTotal"]) / total if total > 0 else 0,
        })

    return sort_rows(out, sort_by, sort_dir)
