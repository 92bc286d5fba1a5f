# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""RebirthLedger -- persistent prestige levels unlocked by wave milestones.

Milestones:
    wave  50 -> rebirth 1  JUNIOR DEV
    wave 100 -> rebirth 2  MID-LEVEL
    wave 150 -> rebirth 3  SENIOR DEV
    wave 200 -> rebirth 4  TECH LEAD
    wave 250 -> rebirth 5  ARCHITECT

Bonuses per rebirth level:
    all stats        +5%
    XP gain          +10%
    starting weapons +1 (max 3)

The pure functions operate on an explicit RebirthState.  RebirthLedger
binds them to a KeyValueStore so callers can load/perform/save in one
step.  A corrupt stored record loads as the zero state.
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, replace
from typing import Any

from engine.persistence import (
    REBIRTH_KEY,
    KeyValueStore,
    read_or_default,
    save_json,
)

logger = logging.getLogger("engine.rebirth")

MAX_REBIRTH_LEVEL = 5
ALL_STATS_BONUS = 0.05
XP_GAIN_BONUS = 0.10
STARTING_WEAPONS_PER_LEVEL = 1
MAX_STARTING_WEAPONS = 3

STARTING_WEAPON_POOL = ("spread", "pierce", "rapid", "homing", "bounce", "aoe", "freeze")


@dataclass(frozen=True)
class Milestone:
    wave: int
    rebirth: int
    name: str


MILESTONES: tuple[Milestone, ...] = (
    Milestone(50, 1, "JUNIOR DEV"),
    Milestone(100, 2, "MID-LEVEL"),
    Milestone(150, 3, "SENIOR DEV"),
    Milestone(200, 4, "TECH LEAD"),
    Milestone(250, 5, "ARCHITECT"),
)

DEFAULT_TITLE = "INTERN"


@dataclass(frozen=True)
class RebirthState:
    rebirth_level: int = 0
    highest_wave: int = 0
    total_rebirths: int = 0
    lifetime_kills: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> RebirthState:
        if not isinstance(data, dict):
            raise ValueError("rebirth state must be an object")
        values = {}
        for name in ("rebirth_level", "highest_wave", "total_rebirths", "lifetime_kills"):
            v = data.get(name, 0)
            if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                raise ValueError(f"{name} must be a non-negative int")
            values[name] = v
        if values["rebirth_level"] > MAX_REBIRTH_LEVEL:
            raise ValueError("rebirth_level out of range")
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


def can_rebirth(current_wave: int, state: RebirthState) -> Milestone | None:
    """Highest milestone reached at *current_wave* that is above the current level."""
    for milestone in reversed(MILESTONES):
        if current_wave >= milestone.wave and milestone.rebirth > state.rebirth_level:
            return milestone
    return None


def perform_rebirth(current_wave: int, kills_this_run: int, state: RebirthState) -> RebirthState:
    """Apply the best available milestone.  Returns *state* unchanged if none qualifies."""
    milestone = can_rebirth(current_wave, state)
    if milestone is None:
        return state
    return replace(
        state,
        rebirth_level=milestone.rebirth,
        total_rebirths=state.total_rebirths + 1,
        lifetime_kills=state.lifetime_kills + max(0, kills_this_run),
        highest_wave=max(state.highest_wave, current_wave),
    )


def all_stats_multiplier(state: RebirthState) -> float:
    return 1 + state.rebirth_level * ALL_STATS_BONUS


def xp_multiplier(state: RebirthState) -> float:
    return 1 + state.rebirth_level * XP_GAIN_BONUS


def starting_weapon_count(state: RebirthState) -> int:
    return min(MAX_STARTING_WEAPONS, state.rebirth_level * STARTING_WEAPONS_PER_LEVEL)


def starting_weapons(state: RebirthState, rng: random.Random | None = None) -> list[str]:
    """Pick distinct starting weapons for a new run."""
    count = starting_weapon_count(state)
    if count == 0:
        return []
    rng = rng or random.Random()
    return rng.sample(STARTING_WEAPON_POOL, min(count, len(STARTING_WEAPON_POOL)))


def rebirth_info(state: RebirthState) -> dict:
    """Display record for the title screen."""
    current = next((m for m in MILESTONES if m.rebirth == state.rebirth_level), None)
    upcoming = next((m for m in MILESTONES if m.rebirth == state.rebirth_level + 1), None)
    return {
        "level": state.rebirth_level,
        "name": current.name if current else DEFAULT_TITLE,
        "next_milestone": asdict(upcoming) if upcoming else None,
        "all_stats_bonus": round(state.rebirth_level * ALL_STATS_BONUS * 100),
        "xp_bonus": round(state.rebirth_level * XP_GAIN_BONUS * 100),
        "starting_weapons": starting_weapon_count(state),
        "total_rebirths": state.total_rebirths,
        "lifetime_kills": state.lifetime_kills,
        "highest_wave": state.highest_wave,
    }


class RebirthLedger:
    """Binds the rebirth rules to persistent storage."""

    def __init__(self, store: KeyValueStore, key: str = REBIRTH_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> RebirthState:
        return read_or_default(self._store, self._key, RebirthState.from_dict, RebirthState)

    def save(self, state: RebirthState) -> None:
        save_json(self._store, self._key, state.to_dict())

    def can_rebirth(self, current_wave: int) -> Milestone | None:
        return can_rebirth(current_wave, self.load())

    def perform_rebirth(self, current_wave: int, kills_this_run: int) -> RebirthState:
        state = self.load()
        new_state = perform_rebirth(current_wave, kills_this_run, state)
        if new_state is not state:
            self.save(new_state)
            logger.info(
                f"Rebirth {state.rebirth_level} -> {new_state.rebirth_level} at wave {current_wave}"
            )
        return new_state

    def record_run(self, wave_reached: int) -> RebirthState:
        """Raise highest_wave after a run that did not rebirth."""
        state = self.load()
        if wave_reached <= state.highest_wave:
            return state
        new_state = replace(state, highest_wave=wave_reached)
        self.save(new_state)
        return new_state
