"""Shared helpers for aggregating lists of ReplayData.

ReplayData arrives as plain JSON (dicts/lists) from the browser, so lookups here
are tolerant: metadata players may be keyed by "0"/0 or stored as a list, and any
block may be missing on partially parsed games.
"""

import math

# Per-player stats that can be plotted or summarized, with display labels
SCATTER_STAT_LABELS = {
    "conversionCount": "Conversion Count",
    "counterHitRatio": "Counter Hit Ratio",
    "damagePerOpening": "Damage Per Opening",
    "digitalInputsPerMinute": "Digital Inputs Per Minute",
    "inputsPerMinute": "Inputs Per Minute",
    "neutralWinRatio": "Neutral Win Ratio",
    "openingsPerKill": "Openings Per Kill",
    "playerIndex": "Player Index",
    "successfulConversions": "Successful Conversions",
    "totalDamage": "Total Damage",
}

SORT_DIRECTIONS = ("asc", "desc")


def settings_players(replay: dict) -> list[dict]:
    return (replay.get("settings") or {}).get("players") or []


def player_indices(replay: dict) -> list[int]:
    return [p["playerIndex"] for p in settings_players(replay) if p.get("playerIndex") is not None]


def settings_player(replay: dict, player_index: int) -> dict | None:
    for p in settings_players(replay):
        if p.get("playerIndex") == player_index:
            return p
    return None


def metadata_player(replay: dict, player_index: int) -> dict:
    players = (replay.get("metadata") or {}).get("players") or {}
    if isinstance(players, list):
        if 0 <= player_index < len(players):
            return players[player_index] or {}
        return {}
    return players.get(str(player_index)) or players.get(player_index) or {}


def player_identity(replay: dict, player_index: int) -> str:
    """Identify a player across games.

    Connect code first, then netplay name, then in-game display name, then the port.
    """
    names = metadata_player(replay, player_index).get("names") or {}
    if names.get("code"):
        return names["code"]
    if names.get("netplay"):
        return names["netplay"]
    player = settings_player(replay, player_index) or {}
    if player.get("displayName"):
        return player["displayName"]
    return f"Port {player_index + 1}"


def find_player_index(replay: dict, identity: str) -> int | None:
    for idx in player_indices(replay):
        if player_identity(replay, idx) == identity:
            return idx
    return None


def loser_index(replay: dict) -> int | None:
    """Player index of the loser: the owner of the last recorded stock.

    Returns None when the game has no stocks (outcome undecided).
    """
    stocks = (replay.get("stats") or {}).get("stocks") or []
    if not stocks:
        return None
    return stocks[-1].get("playerIndex")


def overall_for(replay: dict, player_index: int) -> dict | None:
    for entry in (replay.get("stats") or {}).get("overall") or []:
        if entry.get("playerIndex") == player_index:
            return entry
    return None


def stat_value(entry: dict, key: str) -> float | None:
    """Numeric value of a stat; ratio objects contribute their `ratio`."""
    value = entry.get(key)
    if isinstance(value, dict):
        value = value.get("ratio")
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value


def nonzero_or_nan(value: float | None) -> float:
    """NaN for missing or zero values, so pandas sum/count skip them."""
    return value if value else math.nan


def sort_rows(rows: list[dict], sort_by: str, sort_dir: str) -> list[dict]:
    """Sort result rows by a column; numbers numerically, anything else as text.

    Ties keep their original order in both directions.
    """
    def key(row):
        value = row.get(sort_by)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (0, value, "")
        return (1, 0, str(value))

    return sorted(rows, key=key, reverse=(sort_dir == "desc"))


def clean_number(value):
    """Convert numpy/pandas scalars to plain Python numbers (NaN -> None)."""
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value
