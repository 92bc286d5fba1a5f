# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""RunModifiers -- run-start mutators that alter global multipliers and flags.

Architecture
------------
One or more modifiers are sampled without replacement when a run starts
(typically one, two after wave 25).  Their effect maps are folded into a
single CombinedEffects record that the combat and wave systems read:

  - numeric effects multiply together (identity 1)
  - boolean effects are OR-ed together (identity False)

So GLASS CANNON (damage x2) plus a hypothetical second x2 damage modifier
gives x4 damage; any vampiric modifier turns vampiric enemies on.

The active modifier ids are persisted so a resumed run keeps them.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, fields
from typing import Iterable, Mapping

from engine.persistence import (
    RUN_MODIFIERS_KEY,
    KeyValueStore,
    read_or_default,
    save_json,
)

logger = logging.getLogger("engine.modifiers")


@dataclass(frozen=True)
class RunModifier:
    """A run-start mutator."""

    id: str
    name: str
    description: str
    effects: Mapping[str, float | bool] | None = None
    color: str = "#ffffff"


@dataclass
class CombinedEffects:
    """Folded effects of all active modifiers."""

    damage_multiplier: float = 1.0
    health_multiplier: float = 1.0
    weapon_duration_mult: float = 1.0
    weapon_drop_rate: float = 1.0
    projectile_count: float = 1.0
    enemy_count_mult: float = 1.0
    wave_length_mult: float = 1.0
    xp_mult: float = 1.0
    vampiric_enemies: bool = False

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


MODIFIERS: dict[str, RunModifier] = {
    "vampiric": RunModifier(
        "vampiric", "VAMPIRIC ENEMIES",
        "Enemies heal 10% of damage dealt",
        {"vampiric_enemies": True},
        color="#ff0044",
    ),
    "glass_cannon": RunModifier(
        "glass_cannon", "GLASS CANNON",
        "2x damage, 50% max health",
        {"damage_multiplier": 2, "health_multiplier": 0.5},
        color="#ff6600",
    ),
    "weapon_frenzy": RunModifier(
        "weapon_frenzy", "WEAPON FRENZY",
        "Weapons 50% shorter, +50% drop rate",
        {"weapon_duration_mult": 0.5, "weapon_drop_rate": 1.5},
        color="#ffaa00",
    ),
    "bullet_hell": RunModifier(
        "bullet_hell", "BULLET HELL",
        "+100% projectiles, +50% enemies",
        {"projectile_count": 2, "enemy_count_mult": 1.5},
        color="#ff00ff",
    ),
    "marathon": RunModifier(
        "marathon", "MARATHON",
        "Waves 50% longer, +25% XP",
        {"wave_length_mult": 1.5, "xp_mult": 1.25},
        color="#00ffaa",
    ),
}


def get_all() -> list[RunModifier]:
    return list(MODIFIERS.values())


def get_by_id(modifier_id: str) -> RunModifier | None:
    return MODIFIERS.get(modifier_id)


def select_modifiers(count: int = 1, rng: random.Random | None = None) -> list[RunModifier]:
    """Sample *count* distinct modifiers (capped at the catalog size)."""
    rng = rng or random.Random()
    available = get_all()
    return rng.sample(available, max(0, min(count, len(available))))


def combined_effects(modifiers: Iterable[RunModifier | None]) -> CombinedEffects:
    """Fold modifier effects: numbers multiply, booleans OR."""
    combined = CombinedEffects()
    known = {f.name for f in fields(combined)}
    for mod in modifiers:
        if mod is None or not mod.effects:
            continue
        for key, value in mod.effects.items():
            if key not in known:
                logger.debug(f"Ignoring unknown effect '{key}' on modifier {mod.id}")
                continue
            if isinstance(value, bool):
                setattr(combined, key, getattr(combined, key) or value)
            else:
                setattr(combined, key, getattr(combined, key) * value)
    return combined


def modifier_count_for_wave(wave: int) -> int:
    return 2 if wave > 25 else 1


@dataclass
class RunModifierSet:
    """The modifiers active for one run, with persistence helpers."""

    modifiers: list[RunModifier] = field(default_factory=list)

    @classmethod
    def roll(cls, count: int = 1, rng: random.Random | None = None) -> RunModifierSet:
        return cls(select_modifiers(count, rng))

    @property
    def ids(self) -> list[str]:
        return [m.id for m in self.modifiers]

    def effects(self) -> CombinedEffects:
        return combined_effects(self.modifiers)

    def save(self, store: KeyValueStore) -> None:
        save_json(store, RUN_MODIFIERS_KEY, self.ids)

    @classmethod
    def load(cls, store: KeyValueStore) -> RunModifierSet:
        def _decode(raw: object) -> RunModifierSet:
            if not isinstance(raw, list):
                raise ValueError("run_modifiers must be a list of ids")
            # Catalog order, unknown ids dropped.
            return cls([m for m in get_all() if m.id in raw])

        return read_or_default(store, RUN_MODIFIERS_KEY, _decode, cls)

    @staticmethod
    def clear(store: KeyValueStore) -> None:
        store.remove(RUN_MODIFIERS_KEY)
