"""Player frequency, scatterplot data, performance summaries and game details."""

from collections import Counter

import pandas as pd

from ..replay.melee import FRAMES_PER_SECOND, character_name, stage_name
from .common import (
    SCATTER_STAT_LABELS,
    clean_number,
    find_player_index,
    loser_index,
    overall_for,
    player_identity,
    player_indices,
    settings_players,
    stat_value,
)


def player_frequency(replays: list[dict]) -> list[dict]:
    """Games per player, most frequent first (first-seen order on ties)."""
    counts = Counter()
    for replay in replays:
        for idx in player_indices(replay):
            counts[player_identity(replay, idx)] += 1
    # Counter preserves insertion order and sorted() is stable
    ordered = sorted(counts.items(), key=lambda kv: -kv[1])
    return [{"player": name, "games": games} for name, games in ordered]


def default_player(replays: list[dict]) -> str | None:
    """The player to preselect: whoever appears in the most games."""
    freq = player_frequency(replays)
    return freq[0]["player"] if freq else None


def _selected_games(replays: list[dict], selected_player: str | None):
    """Yield `(replay, [player indices], loser)` for games with a decided outcome."""
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
        yield replay, indices, loser


def scatter_points(
    replays: list[dict],
    x_axis: str,
    y_axis: str,
    selected_player: str | None = None,
) -> dict:
    """Win and loss point sets for a two-stat scatterplot.

    Each point is one player's game. With a selected player only their games are
    plotted; otherwise every player of every game. Points with a missing value on
    either axis are skipped.
    """
    wins = []
    losses = []
    for replay, indices, loser in _selected_games(replays, selected_player):
        for idx in indices:
            entry = overall_for(replay, idx)
            if entry is None:
                continue
            x = stat_value(entry, x_axis)
            y = stat_value(entry, y_axis)
            if x is None or y is None:
                continue
            (losses if idx == loser else wins).append({"x": x, "y": y})

    return {
        "title": f"Player Stats: {selected_player or 'All Players'}",
        "xAxis": x_axis,
        "yAxis": y_axis,
        "xLabel": SCATTER_STAT_LABELS[x_axis],
        "yLabel": SCATTER_STAT_LABELS[y_axis],
        "wins": wins,
        "losses": losses,
    }


def _describe(series: pd.Series) -> dict:
    values = series.dropna()
    if values.empty:
        return {"count": 0, "mean": None, "median": None}
    return {
        "count": int(values.count()),
        "mean": clean_number(values.mean()),
        "median": clean_number(values.median()),
    }


def performance_summary(replays: list[dict], selected_player: str | None = None) -> dict:
    """Mean and median of every plottable stat, overall and split by result.

    Returns:
        dict: `{"games", "wins", "losses", "winRate", "stats": {key: {"label",
        "all", "wins", "losses"}}}` where each bucket has `count`, `mean`, `median`.
    """
    rows = []
    for replay, indices, loser in _selected_games(replays, selected_player):
        for idx in indices:
            entry = overall_for(replay, idx)
            if entry is None:
                continue
            row = {"win": idx != loser}
            for key in SCATTER_STAT_LABELS:
                row[key] = stat_value(entry, key)
            rows.append(row)

    columns = ["win", *SCATTER_STAT_LABELS]
    df = pd.DataFrame(rows, columns=columns).astype({k: "float64" for k in SCATTER_STAT_LABELS})
    outcome = df["win"].astype(bool)
    won = df[outcome]
    lost = df[~outcome]

    games = len(df)
    return {
        "player": selected_player,
        "games": games,
        "wins": len(won),
        "losses": len(lost),
        "winRate": len(won) / games * 100 if games else 0,
        "stats": {
            key: {
                "label": label,
                "all": _describe(df[key]),
                "wins": _describe(won[key]),
                "losses": _describe(lost[key]),
            }
            for key, label in SCATTER_STAT_LABELS.items()
        },
    }


def replay_details(replay: dict) -> dict:
    """Game info card: date, stage, duration and per-player stocks taken."""
    metadata = replay.get("metadata") or {}
    settings = replay.get("settings") or {}
    conversions = (replay.get("stats") or {}).get("conversions") or []
    last_frame = metadata.get("lastFrame")

    players = []
    for player in settings_players(replay):
        idx = player.get("playerIndex")
        if idx is None:
            continue
        stocks_taken = sum(
            1 for c in conversions
            if c.get("moves") and c.get("playerIndex") == idx and c.get("didKill")
        )
        players.append({
            "playerIndex": idx,
            "player": player_identity(replay, idx),
            "displayName": player.get("displayName") or "",
            "characterId": player.get("characterId"),
            "characterName": character_name(player.get("characterId")),
            "stocksTaken": stocks_taken,
        })

    return {
        "startAt": metadata.get("startAt"),
        "stageId": settings.get("stageId"),
        "stageName": stage_name(settings.get("stageId")),
        "durationSeconds": int(last_frame // FRAMES_PER_SECOND) if last_frame is not None else None,
        "players": players,
    }
