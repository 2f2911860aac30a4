"""Shared fixtures for the replay API tests.

`replay_factory` builds ReplayData dicts shaped like the parser's output, with
only the fields the analytics read. `fake_parser` replaces the py-slippi backed
parser so route and upload tests do not need real `.slp` files: a replay whose
bytes are `b"bad"` fails to decode, anything else parses.
"""

import pytest
from fastapi.testclient import TestClient

from services.api.app.main import app
from services.api.app.replay import parser
from services.api.app.settings import Settings, get_settings


def _ratio(value):
    return {"count": 0, "total": 0, "ratio": value}


@pytest.fixture
def replay_factory():
    """Return `make(players, loser, ...)` building a ReplayData dict.

    Each player is a dict with `code`, `character` and optional stat values
    (`totalDamage`, `damagePerOpening`, `openingsPerKill`, `inputsPerMinute`).
    `loser` is the player index owning the last stock, or None for no stocks.
    """

    def make(players, loser, stage_id=31, last_frame=3600, conversions=None):
        meta_players = {}
        settings_players = []
        overall = []
        for idx, p in enumerate(players):
            code = p["code"]
            meta_players[str(idx)] = {"names": {"netplay": code.split("#")[0], "code": code}}
            settings_players.append({
                "playerIndex": idx,
                "port": idx + 1,
                "characterId": p["character"],
                "displayName": code.split("#")[0],
                "connectCode": code,
            })
            overall.append({
                "playerIndex": idx,
                "totalDamage": p.get("totalDamage", 0),
                "conversionCount": p.get("conversionCount", 0),
                "damagePerOpening": _ratio(p.get("damagePerOpening")),
                "openingsPerKill": _ratio(p.get("openingsPerKill")),
                "inputsPerMinute": _ratio(p.get("inputsPerMinute")),
                "neutralWinRatio": _ratio(p.get("neutralWinRatio")),
            })

        stocks = []
        if loser is not None:
            stocks = [
                {"playerIndex": idx, "startFrame": -123, "endFrame": 100}
                for idx in range(len(players))
                if idx != loser
            ]
            stocks.append({"playerIndex": loser, "startFrame": 200, "endFrame": 300})

        return {
            "metadata": {
                "startAt": "2023-05-01T18:30:00+00:00",
                "lastFrame": last_frame,
                "playedOn": "dolphin",
                "players": meta_players,
            },
            "settings": {"stageId": stage_id, "isTeams": False, "players": settings_players},
            "stats": {"stocks": stocks, "conversions": conversions or [], "overall": overall},
        }

    return make


@pytest.fixture
def replays(replay_factory):
    """Three games for AAA#1 (Fox, Fox, Falco) against two opponents."""
    return [
        replay_factory(
            [
                {"code": "AAA#1", "character": 2, "totalDamage": 100, "damagePerOpening": 20,
                 "openingsPerKill": 4, "inputsPerMinute": 300},
                {"code": "BBB#2", "character": 20, "totalDamage": 50},
            ],
            loser=1,
        ),
        replay_factory(
            [
                {"code": "AAA#1", "character": 2, "totalDamage": 40, "damagePerOpening": 0,
                 "openingsPerKill": 2, "inputsPerMinute": 200},
                {"code": "CCC#3", "character": 9, "totalDamage": 80},
            ],
            loser=0,
        ),
        replay_factory(
            [
                {"code": "AAA#1", "character": 20, "totalDamage": 60, "damagePerOpening": 30},
                {"code": "BBB#2", "character": 2, "totalDamage": 30},
            ],
            loser=1,
        ),
    ]


@pytest.fixture
def fake_parser(monkeypatch):
    """Replace the replay decoder; returns the list of paths it was given."""
    seen = []

    def fake_parse(path):
        seen.append(path)
        with open(path, "rb") as f:
            data = f.read()
        if data == b"bad":
            raise parser.ReplayParseError("corrupt replay")
        return {"metadata": {"lastFrame": len(data)}, "settings": {"players": []}, "stats": {}}

    monkeypatch.setattr(parser, "parse_replay_file", fake_parse)
    return seen


@pytest.fixture
def settings(tmp_path):
    return Settings(
        sample_data_dir=tmp_path,
        max_files=3,
        max_upload_bytes=1024 * 1024,
        log_json=False,
    )


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
