"""Aggregation routes over already parsed replays.

The browser keeps the parsed ReplayData list and posts it back with its current
selections; these endpoints return the tables and chart series the viewer renders:
player list, character breakdown, matchup analysis, scatterplot, performance
summary and per-game details.

All endpoints are pure functions of the request body; nothing is stored.
"""

from fastapi import APIRouter, HTTPException

from ..analytics.characters import CHARACTER_COLUMNS, character_breakdown
from ..analytics.common import SCATTER_STAT_LABELS, SORT_DIRECTIONS
from ..analytics.matchups import MATCHUP_COLUMNS, available_characters, matchup_analysis
from ..analytics.summary import (
    default_player,
    performance_summary,
    player_frequency,
    replay_details,
    scatter_points,
)
from ..schemas import AnalysisRequest, MatchupRequest, ScatterRequest, SortedAnalysisRequest

router = APIRouter(prefix="/analysis", tags=["analysis"])


def _check_sort(body: SortedAnalysisRequest, columns) -> None:
    if body.sort_by not in columns:
        raise HTTPException(status_code=400, detail=f"Unknown sort column: {body.sort_by}")
    if body.sort_dir not in SORT_DIRECTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown sort direction: {body.sort_dir}")


@router.post("/players")
def players(body: AnalysisRequest):
    """Players seen across the replays, most frequent first, plus the default pick."""
    return {
        "replayCount": len(body.replays),
        "players": player_frequency(body.replays),
        "defaultPlayer": default_player(body.replays),
    }


@router.post("/characters")
def characters(body: SortedAnalysisRequest):
    """Per-character results for the selected player (or everyone).

    Raises:
        HTTPException: 400 for an unknown sort column or direction.
    """
    _check_sort(body, CHARACTER_COLUMNS)
    return {
        "characters": character_breakdown(
            body.replays, body.selected_player, body.sort_by, body.sort_dir
        ),
    }


@router.post("/matchups")
def matchups(body: MatchupRequest):
    """Matchup table plus the characters available to filter on.

    Raises:
        HTTPException: 400 for an unknown sort column or direction.
    """
    _check_sort(body, MATCHUP_COLUMNS)
    return {
        "characters": available_characters(body.replays, body.selected_player),
        "matchups": matchup_analysis(
            body.replays,
            body.selected_player,
            body.selected_character,
            body.sort_by,
            body.sort_dir,
        ),
    }


@router.post("/scatter")
def scatter(body: ScatterRequest):
    """Win/loss point series for two stats.

    Raises:
        HTTPException: 400 if either axis is not a plottable stat.
    """
    for axis in (body.x_axis, body.y_axis):
        if axis not in SCATTER_STAT_LABELS:
            raise HTTPException(status_code=400, detail=f"Unknown stat: {axis}")
    return scatter_points(body.replays, body.x_axis, body.y_axis, body.selected_player)


@router.post("/summary")
def summary(body: AnalysisRequest):
    """Mean/median of each stat across all, won and lost games."""
    return performance_summary(body.replays, body.selected_player)


@router.post("/details")
def details(body: AnalysisRequest):
    """Game info card for every replay, in request order."""
    return {"details": [replay_details(r) for r in body.replays]}
