"""Tests for the analytics helpers over parsed replays.

Uses the `replays` fixture: AAA#1 beats BBB#2 (Fox vs Falco), loses to CCC#3
(Fox vs Marth) and beats BBB#2 again (Falco vs Fox).
"""

import pytest

from services.api.app.analytics.characters import character_breakdown
from services.api.app.analytics.common import (
    loser_index,
    player_identity,
    sort_rows,
    stat_value,
)
from services.api.app.analytics.matchups import available_characters, matchup_analysis
from services.api.app.analytics.summary import (
    default_player,
    performance_summary,
    player_frequency,
    replay_details,
    scatter_points,
)

FOX, MARTH, FALCO = 2, 9, 20


class TestCommon:
    def test_player_identity_fallbacks(self, replay_factory) -> None:
        replay = replay_factory(
            [{"code": "AAA#1", "character": FOX}, {"code": "BBB#2", "character": FALCO}],
            loser=0,
        )
        assert player_identity(replay, 0) == "AAA#1"

        replay["metadata"]["players"]["0"]["names"]["code"] = ""
        assert player_identity(replay, 0) == "AAA"

        replay["metadata"]["players"] = {}
        assert player_identity(replay, 1) == "BBB"

        replay["settings"]["players"][1]["displayName"] = ""
        assert player_identity(replay, 1) == "Port 2"

    def test_metadata_players_as_list(self, replay_factory) -> None:
        replay = replay_factory([{"code": "AAA#1", "character": FOX}], loser=None)
        replay["metadata"]["players"] = [{"names": {"code": "LIST#9"}}]

        assert player_identity(replay, 0) == "LIST#9"

    def test_loser_is_owner_of_last_stock(self, replay_factory) -> None:
        players = [{"code": "AAA#1", "character": FOX}, {"code": "BBB#2", "character": FALCO}]

        assert loser_index(replay_factory(players, loser=1)) == 1
        assert loser_index(replay_factory(players, loser=None)) is None

    def test_stat_value(self) -> None:
        entry = {"totalDamage": 42, "openingsPerKill": {"ratio": 3.5}, "inputsPerMinute": {"ratio": None}}

        assert stat_value(entry, "totalDamage") == 42.0
        assert stat_value(entry, "openingsPerKill") == 3.5
        assert stat_value(entry, "inputsPerMinute") is None
        assert stat_value(entry, "missing") is None

    def test_sort_rows_is_stable(self) -> None:
        rows = [{"n": "a", "v": 1}, {"n": "b", "v": 2}, {"n": "c", "v": 1}]

        assert [r["n"] for r in sort_rows(rows, "v", "asc")] == ["a", "c", "b"]
        assert [r["n"] for r in sort_rows(rows, "v", "desc")] == ["b", "a", "c"]
        assert [r["n"] for r in sort_rows(rows, "n", "desc")] == ["c", "b", "a"]


class TestCharacterBreakdown:
    def test_selected_player(self, replays) -> None:
        fox, falco = character_breakdown(replays, "AAA#1")

        assert fox["characterName"] == "Fox"
        assert (fox["totalGames"], fox["wins"], fox["losses"]) == (2, 1, 1)
        assert fox["winRate"] == 50.0
        # the zero damage-per-opening game does not count towards the average
        assert fox["averageDamagePerOpening"] == 20.0
        assert fox["averageOpeningsPerKill"] == 3.0
        assert fox["averageInputsPerMinute"] == 250.0

        assert falco["characterName"] == "Falco"
        assert (falco["totalGames"], falco["wins"]) == (1, 1)
        assert falco["averageOpeningsPerKill"] == 0
        assert falco["averageInputsPerMinute"] == 0

    def test_all_players(self, replays) -> None:
        rows = {r["characterName"]: r for r in character_breakdown(replays)}

        assert rows["Fox"]["totalGames"] == 3
        assert rows["Falco"]["totalGames"] == 2
        assert rows["Marth"]["wins"] == 1

    def test_sorting(self, replays) -> None:
        rows = character_breakdown(replays, "AAA#1", sort_by="characterName", sort_dir="asc")

        assert [r["characterName"] for r in rows] == ["Falco", "Fox"]

    def test_games_without_stocks_are_skipped(self, replay_factory) -> None:
        replay = replay_factory(
            [{"code": "AAA#1", "character": FOX}, {"code": "BBB#2", "character": FALCO}],
            loser=None,
        )

        assert character_breakdown([replay]) == []


class TestMatchups:
    def test_selected_player(self, replays) -> None:
        rows = matchup_analysis(replays, "AAA#1", sort_by="opponentCharacterName", sort_dir="asc")

        assert [(r["characterName"], r["opponentCharacterName"]) for r in rows] == [
            ("Fox", "Falco"),
            ("Falco", "Fox"),
            ("Fox", "Marth"),
        ]
        fox_falco = rows[0]
        assert fox_falco["wins"] == 1
        assert fox_falco["averageDamageDealt"] == 100.0
        assert fox_falco["averageDamageTaken"] == 50.0
        assert fox_falco["damageRatio"] == 2.0

    def test_selected_character_without_player(self, replays) -> None:
        rows = matchup_analysis(replays, selected_character=FOX)
        by_opponent = {r["opponentCharacterName"]: r for r in rows}

        assert by_opponent["Falco"]["totalGames"] == 2
        assert by_opponent["Falco"]["wins"] == 1
        assert by_opponent["Marth"]["losses"] == 1

    def test_nothing_selected(self, replays) -> None:
        assert matchup_analysis(replays) == []

    def test_skips_games_with_more_than_two_players(self, replay_factory) -> None:
        replay = replay_factory(
            [
                {"code": "AAA#1", "character": FOX},
                {"code": "BBB#2", "character": FALCO},
                {"code": "CCC#3", "character": MARTH},
            ],
            loser=2,
        )

        assert matchup_analysis([replay], "AAA#1") == []

    def test_available_characters(self, replays) -> None:
        assert available_characters(replays, "AAA#1") == [
            {"id": FALCO, "name": "Falco"},
            {"id": FOX, "name": "Fox"},
        ]
        assert [c["name"] for c in available_characters(replays)] == ["Falco", "Fox", "Marth"]


class TestSummary:
    def test_player_frequency(self, replays) -> None:
        assert player_frequency(replays) == [
            {"player": "AAA#1", "games": 3},
            {"player": "BBB#2", "games": 2},
            {"player": "CCC#3", "games": 1},
        ]
        assert default_player(replays) == "AAA#1"
        assert default_player([]) is None

    def test_scatter_points(self, replays) -> None:
        out = scatter_points(replays, "totalDamage", "inputsPerMinute", "AAA#1")

        assert out["title"] == "Player Stats: AAA#1"
        assert out["xLabel"] == "Total Damage"
        assert out["yLabel"] == "Inputs Per Minute"
        # third game has no inputs-per-minute value
        assert out["wins"] == [{"x": 100.0, "y": 300.0}]
        assert out["losses"] == [{"x": 40.0, "y": 200.0}]

    def test_scatter_all_players(self, replays) -> None:
        out = scatter_points(replays, "totalDamage", "conversionCount")

        assert out["title"] == "Player Stats: All Players"
        assert len(out["wins"]) == 3
        assert len(out["losses"]) == 3

    def test_performance_summary(self, replays) -> None:
        out = performance_summary(replays, "AAA#1")

        assert (out["games"], out["wins"], out["losses"]) == (3, 2, 1)
        assert out["winRate"] == pytest.approx(66.666, rel=1e-3)
        ipm = out["stats"]["inputsPerMinute"]
        assert ipm["label"] == "Inputs Per Minute"
        assert ipm["all"] == {"count": 2, "mean": 250.0, "median": 250.0}
        assert ipm["wins"] == {"count": 1, "mean": 300.0, "median": 300.0}
        assert ipm["losses"] == {"count": 1, "mean": 200.0, "median": 200.0}
        assert out["stats"]["neutralWinRatio"]["all"] == {"count": 0, "mean": None, "median": None}

    def test_performance_summary_empty(self) -> None:
        out = performance_summary([], "AAA#1")

        assert out["games"] == 0
        assert out["winRate"] == 0
        assert out["stats"]["totalDamage"]["all"]["count"] == 0

    def test_replay_details(self, replay_factory) -> None:
        conversions = [
            {"playerIndex": 0, "moves": [{"damage": 10}], "didKill": True},
            {"playerIndex": 0, "moves": [], "didKill": True},
            {"playerIndex": 1, "moves": [{"damage": 5}], "didKill": False},
        ]
        replay = replay_factory(
            [{"code": "AAA#1", "character": FOX}, {"code": "BBB#2", "character": FALCO}],
            loser=1,
            last_frame=5430,
            conversions=conversions,
        )

        out = replay_details(replay)

        assert out["stageName"] == "Battlefield"
        assert out["durationSeconds"] == 90
        assert out["startAt"] == "2023-05-01T18:30:00+00:00"
        assert [(p["player"], p["characterName"], p["stocksTaken"]) for p in out["players"]] == [
            ("AAA#1", "Fox", 1),
            ("BBB#2", "Falco", 0),
        ]

    def test_replay_details_skips_players_without_index(self, replay_factory) -> None:
        replay = replay_factory(
            [{"code": "AAA#1", "character": FOX}, {"code": "BBB#2", "character": FALCO}],
            loser=1,
        )
        replay["metadata"]["players"] = [{"names": {"code": "AAA#1"}}, {"names": {"code": "BBB#2"}}]
        del replay["settings"]["players"][1]["playerIndex"]

        out = replay_details(replay)

        assert [p["player"] for p in out["players"]] == ["AAA#1"]
