"""Character-vs-character matchup analysis for two-player games."""

import pandas as pd

from ..replay.melee import character_name
from .common import (
    find_player_index,
    loser_index,
    overall_for,
    settings_player,
    settings_players,
    sort_rows,
)

MATCHUP_COLUMNS = (
    "characterId",
    "characterName",
    "opponentCharacterId",
    "opponentCharacterName",
    "totalGames",
    "wins",
    "losses",
    "winRate",
    "averageDamageDealt",
    "averageDamageTaken",
    "damageRatio",
)


def available_characters(replays: list[dict], selected_player: str | None = None) -> list[dict]:
    """Characters to offer as a filter, sorted by name.

    With a selected player, only the characters that player used; otherwise every
    character seen.
    """
    ids = set()
    for replay in replays:
        if selected_player is not None:
            idx = find_player_index(replay, selected_player)
            if idx is None:
                continue
            character_id = (settings_player(replay, idx) or {}).get("characterId")
            if character_id is not None:
                ids.add(int(character_id))
        else:
            for player in settings_players(replay):
                if player.get("characterId") is not None:
                    ids.add(int(player["characterId"]))

    return sorted(
        ({"id": cid, "name": character_name(cid)} for cid in ids),
        key=lambda c: c["name"],
    )


def _pick_sides(replay: dict, selected_player: str | None, selected_character: int | None):
    """Return `(player_index, opponent_index)` for a game, or None to skip it."""
    players = settings_players(replay)
    if len(players) != 2:
        return None

    if selected_player is not None:
        idx = find_player_index(replay, selected_player)
        if idx is None:
            return None
    elif selected_character is not None:
        idx = next(
            (p["playerIndex"] for p in players if p.get("characterId") == selected_character),
            None,
        )
        if idx is None:
            return None
    else:
        return None

    opponent = next(p["playerIndex"] for p in players if p["playerIndex"] != idx)
    return idx, opponent


def matchup_analysis(
    replays: list[dict],
    selected_player: str | None = None,
    selected_character: int | None = None,
    sort_by: str = "totalGames",
    sort_dir: str = "desc",
) -> list[dict]:
    """Aggregate results per (own character, opponent character).

    Only two-player games are considered. The "own" side is the selected player
    or, when no player is selected, the first player on `selected_character`.
    With neither selected there is nothing to compare and the result is empty.

    Damage dealt/taken are the two players' `totalDamage`; the damage ratio is
    dealt over taken (0 when nothing was taken).
    """
    rows = []
    for replay in replays:
        sides = _pick_sides(replay, selected_player, selected_character)
        if sides is None:
            continue
        idx, opp = sides

        character_id = (settings_player(replay, idx) or {}).get("characterId")
        opponent_character_id = (settings_player(replay, opp) or {}).get("characterId")
        if character_id is None or opponent_character_id is None:
            continue
        if selected_character is not None and character_id != selected_character:
            continue

        player_stats = overall_for(replay, idx)
        opponent_stats = overall_for(replay, opp)
        loser = loser_index(replay)
        if player_stats is None or opponent_stats is None or loser is None:
            continue

        rows.append({
            "characterId": int(character_id),
            "opponentCharacterId": int(opponent_character_id),
            "win": idx != loser,
            "damageDealt": float(player_stats.get("totalDamage") or 0),
            "damageTaken": float(opponent_stats.get("totalDamage") or 0),
        })

    if not rows:
        return []

    df = pd.DataFrame(rows)
    grouped = df.groupby(["characterId", "opponentCharacterId"], sort=False).agg(
        totalGames=("win", "size"),
        wins=("win", "sum"),
        damageDealt=("damageDealt", "sum"),
        damageTaken=("damageTaken", "sum"),
    )

    out = []
    for (character_id, opponent_character_id), g in grouped.iterrows():
        total = int(g["totalGames"])
        wins = int(g["wins"])
        dealt = float(g["damageDealt"])
        taken = float(g["damageTaken"])
        out.append({
            "characterId": int(character_id),
            "characterName": character_name(character_id),
            "opponentCharacterId": int(opponent_character_id),
            "opponentCharacterName": character_name(opponent_character_id),
            "totalGames": total,
            "wins": wins,
            "losses": total - wins,
            "winRate": wins / total * 100 if total > 0 else 0,
            "averageDamageDealt": dealt / total if total > 0 else 0,
            "averageDamageTaken": taken / total if total > 0 else 0,
            "damageRatio": dealt / taken if taken > 0 else 0,
        })

    return sort_rows(out, sort_by, sort_dir)
