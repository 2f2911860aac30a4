"""Frame-derived match statistics.

The replay library decodes raw frames; this module reduces those frames to the
statistics the viewer displays: stocks, conversions (punishes), input counts and
the per-player "overall" block of ratios.

Frames are passed in as a sequence (oldest first) of `{player_index: PlayerFrame}`
mappings, which keeps the rules here independent from the decoder's object model.
`parser.py` builds that sequence from a decoded game.
"""

import itertools
from dataclasses import dataclass
from typing import Mapping, Sequence

from .melee import (
    FIRST_FRAME,
    FIRST_PLAYABLE_FRAME,
    FRAMES_PER_MINUTE,
    is_command_grabbed,
    is_damaged,
    is_dead,
    is_grabbed,
    is_in_control,
)

# frames a victim must be in control before a punish is considered over
PUNISH_RESET_FRAMES = 45

JOYSTICK_THRESHOLD = 0.2875
TRIGGER_THRESHOLD = 0.3
BUTTON_MASK = 0xFFF

NEUTRAL_WIN = "neutral-win"
COUNTER_ATTACK = "counter-attack"
TRADE = "trade"


@dataclass
class PlayerFrame:
    """Post-frame state (plus pre-frame inputs) for one player on one frame."""

    frame: int
    state: int
    percent: float
    stocks: int
    last_attack_landed: int | None = None
    state_age: float | None = None
    buttons: int = 0
    joystick: tuple[float, float] = (0.0, 0.0)
    cstick: tuple[float, float] = (0.0, 0.0)
    l_trigger: float = 0.0
    r_trigger: float = 0.0


Frames = Sequence[Mapping[int, PlayerFrame]]


def ratio(count: float, total: float) -> dict:
    """Ratio object as exposed on the wire (`ratio` is None when `total` is 0)."""
    return {"count": count, "total": total, "ratio": count / total if total else None}


def _did_lose_stock(frame: PlayerFrame, prev: PlayerFrame) -> bool:
    return prev.stocks - frame.stocks > 0


def compute_stocks(frames: Frames, player_indices: Sequence[int]) -> list[dict]:
    """Split each player's game into stocks, in the order they start."""
    stocks = []
    open_stock: dict[int, dict | None] = {}
    prev: dict[int, PlayerFrame] = {}

    for frame in frames:
        for idx in player_indices:
            pf = frame.get(idx)
            if pf is None:
                continue
            prev_pf = prev.get(idx)
            stock = open_stock.get(idx)

            if stock is None:
                if not is_dead(pf.state):
                    stock = {
                        "playerIndex": idx,
                        "startFrame": pf.frame,
                        "endFrame": None,
                        "startPercent": 0.0,
                        "endPercent": None,
                        "currentPercent": 0.0,
                        "count": pf.stocks,
                        "deathAnimation": None,
                    }
                    stocks.append(stock)
                    open_stock[idx] = stock
            elif prev_pf is not None and _did_lose_stock(pf, prev_pf):
                stock["endFrame"] = pf.frame
                stock["endPercent"] = prev_pf.percent
                stock["deathAnimation"] = pf.state
                open_stock[idx] = None
            else:
                stock["currentPercent"] = pf.percent

            prev[idx] = pf

    return stocks


@dataclass
class _PunishState:
    conversion: dict | None = None
    move: dict | None = None
    reset_counter: int = 0
    last_hit_animation: int | None = None


def compute_conversions(frames: Frames, player_indices: Sequence[int]) -> list[dict]:
    """Detect conversions: sequences of hits by one player on another.

    A conversion's `playerIndex` is the attacker and `opponentIndex` the victim.
    Opening types are assigned once every conversion is known.
    """
    pairs = [(a, v) for a in player_indices for v in player_indices if a != v]
    states = {pair: _PunishState() for pair in pairs}
    conversions: list[dict] = []
    prev: dict[int, PlayerFrame] = {}

    for frame in frames:
        for attacker, victim in pairs:
            att = frame.get(attacker)
            vic = frame.get(victim)
            if att is None or vic is None:
                continue
            st = states[(attacker, victim)]
            prev_att = prev.get(attacker)
            prev_vic = prev.get(victim)

            # a repeated move (e.g. jab, jab) restarts the animation counter
            if prev_att is not None:
                action_changed = att.state != st.last_hit_animation
                counter_reset = (
                    att.state_age is not None
                    and prev_att.state_age is not None
                    and att.state_age < prev_att.state_age
                )
                if action_changed or counter_reset:
                    st.last_hit_animation = None

            punished = is_damaged(vic.state) or is_grabbed(vic.state) or is_command_grabbed(vic.state)
            damage_taken = vic.percent - prev_vic.percent if prev_vic is not None else 0.0

            if punished:
                if st.conversion is None:
                    st.conversion = {
                        "playerIndex": attacker,
                        "opponentIndex": victim,
                        "startFrame": att.frame,
                        "endFrame": None,
                        "startPercent": prev_vic.percent if prev_vic is not None else 0.0,
                        "currentPercent": vic.percent,
                        "endPercent": None,
                        "moves": [],
                        "didKill": False,
                        "openingType": None,
                    }
                    conversions.append(st.conversion)

                if damage_taken > 0:
                    if st.last_hit_animation is None:
                        st.move = {
                            "playerIndex": attacker,
                            "frame": att.frame,
                            "moveId": att.last_attack_landed,
                            "hitCount": 0,
                            "damage": 0.0,
                        }
                        st.conversion["moves"].append(st.move)
                    if st.move is not None:
                        st.move["hitCount"] += 1
                        st.move["damage"] += damage_taken
                    st.last_hit_animation = prev_att.state if prev_att is not None else att.state

            if st.conversion is None:
                continue

            lost_stock = prev_vic is not None and _did_lose_stock(vic, prev_vic)
            if not lost_stock:
                st.conversion["currentPercent"] = vic.percent

            if punished:
                st.reset_counter = 0
            if st.reset_counter > 0 or is_in_control(vic.state):
                st.reset_counter += 1

            terminate = False
            if lost_stock:
                st.conversion["didKill"] = True
                terminate = True
            if st.reset_counter > PUNISH_RESET_FRAMES:
                terminate = True

            if terminate:
                st.conversion["endFrame"] = att.frame
                st.conversion["endPercent"] = prev_vic.percent if prev_vic is not None else 0.0
                st.conversion = None
                st.move = None
                st.reset_counter = 0

        for idx in player_indices:
            if idx in frame:
                prev[idx] = frame[idx]

    assign_opening_types(conversions)
    return conversions


def assign_opening_types(conversions: list[dict]) -> None:
    """Label each conversion as a neutral win, counter-attack or trade (in place).

    Conversions starting on the same frame are trades. Otherwise a conversion is a
    counter-attack when its attacker was being punished by a conversion that had
    not ended before this one started.
    """
    last_end_by_victim: dict[int, int | None] = {}
    ordered = sorted(conversions, key=lambda c: c["startFrame"])
    for _, group in itertools.groupby(ordered, key=lambda c: c["startFrame"]):
        group = list(group)
        is_trade = len(group) >= 2
        for conv in group:
            last_end_by_victim[conv["opponentIndex"]] = conv["endFrame"]
            if is_trade:
                conv["openingType"] = TRADE
                continue
            opp_end = last_end_by_victim.get(conv["playerIndex"])
            is_counter = opp_end is not None and opp_end > conv["startFrame"]
            conv["openingType"] = COUNTER_ATTACK if is_counter else NEUTRAL_WIN


def joystick_region(x: float, y: float) -> int:
    """Map a stick position to one of 8 regions (1-8) or the dead zone (0)."""
    t = JOYSTICK_THRESHOLD
    if x >= t and y >= t:
        return 1  # NE
    if x >= t and y <= -t:
        return 2  # SE
    if x <= -t and y <= -t:
        return 3  # SW
    if x <= -t and y >= t:
        return 4  # NW
    if y >= t:
        return 5  # N
    if x >= t:
        return 6  # E
    if y <= -t:
        return 7  # S
    if x <= -t:
        return 8  # W
    return 0


def compute_inputs(frames: Frames, player_indices: Sequence[int]) -> dict[int, dict]:
    """Count player inputs from the first playable frame onward."""
    counts = {
        idx: {"buttons": 0, "triggers": 0, "joystick": 0, "cstick": 0, "total": 0}
        for idx in player_indices
    }
    prev: dict[int, PlayerFrame] = {}

    for frame in frames:
        for idx in player_indices:
            pf = frame.get(idx)
            if pf is None:
                continue
            prev_pf = prev.get(idx)
            prev[idx] = pf
            if prev_pf is None or pf.frame < FIRST_PLAYABLE_FRAME:
                continue

            c = counts[idx]
            presses = bin(~prev_pf.buttons & pf.buttons & BUTTON_MASK).count("1")
            c["buttons"] += presses
            c["total"] += presses

            region = joystick_region(*pf.joystick)
            if region != 0 and region != joystick_region(*prev_pf.joystick):
                c["joystick"] += 1
                c["total"] += 1

            region = joystick_region(*pf.cstick)
            if region != 0 and region != joystick_region(*prev_pf.cstick):
                c["cstick"] += 1
                c["total"] += 1

            for cur, old in ((pf.l_trigger, prev_pf.l_trigger), (pf.r_trigger, prev_pf.r_trigger)):
                if old < TRIGGER_THRESHOLD <= cur:
                    c["triggers"] += 1
                    c["total"] += 1

    return counts


def compute_overall(
    player_indices: Sequence[int],
    conversions: list[dict],
    stocks: list[dict],
    inputs: dict[int, dict],
    playable_frame_count: int,
) -> list[dict]:
    """Build the per-player "overall" block from already computed pieces."""
    minutes = playable_frame_count / FRAMES_PER_MINUTE
    overall = []

    # a conversion belongs to whoever landed its first move; move-less ones (a grab
    # released without a pummel) count for nobody
    by_player: dict[int, list[dict]] = {}
    for c in conversions:
        if c["moves"]:
            by_player.setdefault(c["moves"][0]["playerIndex"], []).append(c)

    for idx in player_indices:
        opponents = [o for o in player_indices if o != idx]
        own = by_player.get(idx, [])
        against = [c for o in opponents for c in by_player.get(o, [])]

        conversion_count = len(own)
        successful = sum(1 for c in own if len(c["moves"]) > 1)
        total_damage = sum(m["damage"] for c in own for m in c["moves"] if m["playerIndex"] == idx)
        kill_count = sum(
            1 for s in stocks if s["playerIndex"] in opponents and s["endFrame"] is not None
        )

        def _opening_ratio(kind):
            mine = sum(1 for c in own if c["openingType"] == kind)
            theirs = sum(1 for c in against if c["openingType"] == kind)
            return ratio(mine, mine + theirs)

        input_counts = inputs.get(idx) or {"buttons": 0, "triggers": 0, "joystick": 0, "cstick": 0, "total": 0}

        overall.append({
            "playerIndex": idx,
            "opponentIndex": opponents[0] if len(opponents) == 1 else None,
            "inputCounts": input_counts,
            "conversionCount": conversion_count,
            "totalDamage": total_damage,
            "killCount": kill_count,
            "successfulConversions": ratio(successful, conversion_count),
            "inputsPerMinute": ratio(input_counts["total"], minutes),
            "digitalInputsPerMinute": ratio(input_counts["buttons"], minutes),
            "openingsPerKill": ratio(conversion_count, kill_count),
            "damagePerOpening": ratio(total_damage, conversion_count),
            "neutralWinRatio": _opening_ratio(NEUTRAL_WIN),
            "counterHitRatio": _opening_ratio(COUNTER_ATTACK),
        })

    return overall


def compute_stats(frames: Frames, player_indices: Sequence[int], last_frame: int | None = None) -> dict:
    """Compute the full stats block for a game.

    Args:
        frames: Per-frame player states, oldest first.
        player_indices: Player indices (port - 1) present in the game.
        last_frame: Last frame number; inferred from `frames` when omitted.

    Returns:
        dict: `stocks`, `conversions`, `overall`, `lastFrameNumber` and
        `playableFrameCount`.
    """
    if last_frame is None:
        last_frame = max(
            (pf.frame for frame in frames for pf in frame.values()),
            default=FIRST_FRAME,
        )
    playable = max(0, last_frame - FIRST_PLAYABLE_FRAME)

    stocks = compute_stocks(frames, player_indices)
    conversions = compute_conversions(frames, player_indices)
    inputs = compute_inputs(frames, player_indices)

    return {
        "lastFrameNumber": last_frame,
        "playableFrameCount": playable,
        "stocks": stocks,
        "conversions": conversions,
        "overall": compute_overall(player_indices, conversions, stocks, inputs, playable),
    }
