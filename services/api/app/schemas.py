"""API request schemas.

The analysis endpoints accept the ReplayData objects previously returned by the
upload endpoints, plus the viewer's current selections. Field aliases keep the
camelCase names used by the browser (`selectedPlayer`, `sortBy`, ...).

ReplayData itself is passed through as plain dicts: its shape is owned by the
replay parser and the analytics helpers read it defensively.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisRequest(BaseModel):
    """Replays to aggregate and, optionally, the player to focus on."""

    model_config = ConfigDict(populate_by_name=True)

    replays: list[dict[str, Any]] = Field(default_factory=list)
    selected_player: str | None = Field(default=None, alias="selectedPlayer")

    @field_validator("selected_player")
    @classmethod
    def _blank_means_everyone(cls, v: str | None) -> str | None:
        # the player dropdown sends "" for "All Players"
        return v or None


class SortedAnalysisRequest(AnalysisRequest):
    sort_by: str = Field(default="totalGames", alias="sortBy")
    sort_dir: str = Field(default="desc", alias="sortDir")


class MatchupRequest(SortedAnalysisRequest):
    selected_character: int | None = Field(default=None, alias="selectedCharacter")


class ScatterRequest(AnalysisRequest):
    x_axis: str = Field(alias="xAxis")
    y_axis: str = Field(alias="yAxis")
