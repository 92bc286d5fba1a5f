# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Static catalogs -- enemy, boss, weapon, and meta-upgrade definitions.

These tables are read-only data consumed by the spawn planner, the combat
resolver, and the rebirth ledger.  Specs are frozen dataclasses; runtime
instances are built from them by the spawner so catalog entries are never
mutated.

Enemy behaviours:
  - chase       -- walks toward the player
  - stationary  -- never moves (hazards, turrets)
  - split       -- spawns two weaker non-splitting children on death
  - fake        -- harmless decoy (0 contact damage)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

BEHAVIORS = frozenset({"chase", "stationary", "split", "fake"})


@dataclass(frozen=True)
class EnemySpec:
    """Catalog entry for a regular enemy type."""

    type_id: str
    base_health: int
    speed: float
    contact_damage: int
    xp_value: int
    wave_min: int = 0
    spawn_weight: int = 1
    behavior: str = "chase"

    def __post_init__(self) -> None:
        if self.base_health <= 0:
            raise ValueError(f"{self.type_id}: base_health must be positive")
        if self.wave_min < 0:
            raise ValueError(f"{self.type_id}: wave_min must be >= 0")
        if self.spawn_weight < 1:
            raise ValueError(f"{self.type_id}: spawn_weight must be >= 1")
        if self.behavior not in BEHAVIORS:
            raise ValueError(f"{self.type_id}: unknown behavior {self.behavior!r}")


@dataclass(frozen=True)
class BossSpec:
    """Catalog entry for a boss tier (or the mini-boss)."""

    type_id: str
    name: str
    base_health: int
    speed: float
    contact_damage: int
    xp_value: int
    wave: int = 0


@dataclass(frozen=True)
class WeaponSpec:
    """Catalog entry for a weapon.  Multipliers are relative to the basic gun."""

    type_id: str
    attack_rate_mult: float
    damage_mult: float
    projectile_count: int
    pierce: bool = False
    special: str | None = None
    melee: bool = False


def _enemies(*specs: EnemySpec) -> dict[str, EnemySpec]:
    return {s.type_id: s for s in specs}


# Insertion order is the spawn pool order.
ENEMY_TYPES: dict[str, EnemySpec] = _enemies(
    EnemySpec("bug", 15, 40, 3, 5, wave_min=0, spawn_weight=3),
    EnemySpec("glitch", 30, 70, 5, 15, wave_min=3, spawn_weight=2),
    EnemySpec("memory-leak", 60, 25, 10, 30, wave_min=5),
    EnemySpec("syntax-error", 12, 100, 2, 10, wave_min=8, spawn_weight=2),
    EnemySpec("infinite-loop", 40, 50, 4, 20, wave_min=12),
    EnemySpec("race-condition", 25, 60, 6, 25, wave_min=15),
    EnemySpec("segfault", 10, 0, 999, 50, wave_min=30, behavior="stationary"),
    EnemySpec("dependency-hell", 80, 30, 6, 80, wave_min=35),
    EnemySpec("stack-overflow", 100, 35, 8, 100, wave_min=25),
    EnemySpec("hallucination", 1, 50, 0, 1, wave_min=20, spawn_weight=2, behavior="fake"),
    EnemySpec("token-overflow", 40, 45, 5, 40, wave_min=25),
    EnemySpec("context-loss", 50, 60, 7, 60, wave_min=30),
    EnemySpec("prompt-injection", 60, 40, 5, 100, wave_min=40),
    EnemySpec("404-not-found", 25, 55, 4, 20, wave_min=18),
    EnemySpec("cors-error", 35, 0, 8, 30, wave_min=22, behavior="stationary"),
    EnemySpec("type-error", 30, 50, 5, 25, wave_min=28),
    EnemySpec("git-conflict", 45, 40, 4, 35, wave_min=32, behavior="split"),
    EnemySpec("overfitting", 50, 65, 6, 45, wave_min=38),
    EnemySpec("mode-collapse", 70, 35, 7, 60, wave_min=45),
)

# Ordered by ascending wave threshold.
BOSS_TYPES: dict[str, BossSpec] = {
    "boss-stackoverflow": BossSpec(
        "boss-stackoverflow", "STACK OVERFLOW", 2000, 30, 15, 500, wave=20,
    ),
    "boss-nullpointer": BossSpec(
        "boss-nullpointer", "NULL POINTER", 3500, 60, 20, 1000, wave=40,
    ),
    "boss-memoryleakprime": BossSpec(
        "boss-memoryleakprime", "MEMORY LEAK PRIME", 5000, 20, 25, 1500, wave=60,
    ),
    "boss-kernelpanic": BossSpec(
        "boss-kernelpanic", "KERNEL PANIC", 8000, 40, 35, 3000, wave=80,
    ),
}

MINI_BOSS = BossSpec("mini-boss", "CORRUPTED DATA", 500, 45, 12, 200)


WEAPON_TYPES: dict[str, WeaponSpec] = {
    "basic": WeaponSpec("basic", 1, 1, 1),
    "spread": WeaponSpec("spread", 1, 0.7, 5),
    "pierce": WeaponSpec("pierce", 0.8, 1.5, 1, pierce=True),
    "orbital": WeaponSpec("orbital", 0, 2, 0, pierce=True),
    "rapid": WeaponSpec("rapid", 3, 0.5, 1),
    "homing": WeaponSpec("homing", 0.7, 1.2, 1, special="homing"),
    "bounce": WeaponSpec("bounce", 1, 0.8, 2, special="bounce"),
    "aoe": WeaponSpec("aoe", 0.5, 0.6, 0, pierce=True, special="aoe"),
    "freeze": WeaponSpec("freeze", 0.8, 0.9, 1, special="freeze"),
    "rmrf": WeaponSpec("rmrf", 0, 0, 0, special="clearAll"),
    "sudo": WeaponSpec("sudo", 2, 3, 1, pierce=True, special="godMode"),
    "forkbomb": WeaponSpec("forkbomb", 1.5, 0.6, 3, special="fork"),
    "sword": WeaponSpec("sword", 1.2, 1.5, 0, melee=True),
    "spear": WeaponSpec("spear", 0.8, 1.2, 0, pierce=True, melee=True),
    "boomerang": WeaponSpec("boomerang", 0.6, 1.0, 1, melee=True),
    "kunai": WeaponSpec("kunai", 2.0, 0.8, 3, melee=True),
}

EVOLVED_WEAPONS: dict[str, WeaponSpec] = {
    "laserbeam": WeaponSpec("laserbeam", 1, 2.5, 1, pierce=True),
    "plasmaorb": WeaponSpec("plasmaorb", 0, 3, 0, pierce=True),
    "chainlightning": WeaponSpec("chainlightning", 2, 1.8, 1),
    "bullethell": WeaponSpec("bullethell", 3, 1.0, 8),
    "ringoffire": WeaponSpec("ringoffire", 0, 2.5, 0, pierce=True),
    "seekingmissile": WeaponSpec("seekingmissile", 0.8, 4, 1, pierce=True, special="homing"),
    "chaosbounce": WeaponSpec("chaosbounce", 1.2, 1.5, 4, special="bounce"),
    "deathaura": WeaponSpec("deathaura", 0.5, 1.5, 0, pierce=True, special="aoe"),
    "icelance": WeaponSpec("icelance", 0.8, 2.0, 1, pierce=True, special="freeze"),
    "swarm": WeaponSpec("swarm", 2.5, 1.0, 4, special="homing"),
    "blizzard": WeaponSpec("blizzard", 0.5, 0.8, 0, pierce=True, special="freeze"),
}

# Keys are unordered ingredient pairs.
EVOLUTION_RECIPES: dict[frozenset[str], str] = {
    frozenset({"spread", "pierce"}): "laserbeam",
    frozenset({"orbital", "rapid"}): "plasmaorb",
    frozenset({"pierce", "rapid"}): "chainlightning",
    frozenset({"spread", "rapid"}): "bullethell",
    frozenset({"orbital", "spread"}): "ringoffire",
    frozenset({"homing", "pierce"}): "seekingmissile",
    frozenset({"bounce", "spread"}): "chaosbounce",
    frozenset({"aoe", "orbital"}): "deathaura",
    frozenset({"freeze", "pierce"}): "icelance",
    frozenset({"homing", "rapid"}): "swarm",
    frozenset({"freeze", "aoe"}): "blizzard",
}


def find_evolution(weapon_a: str, weapon_b: str) -> str | None:
    """Return the evolved weapon id for two held weapons, or None.

    Order does not matter; a weapon never evolves with itself.
    """
    if weapon_a == weapon_b:
        return None
    return EVOLUTION_RECIPES.get(frozenset({weapon_a, weapon_b}))


def get_weapon(type_id: str) -> WeaponSpec | None:
    """Look up a base or evolved weapon by id."""
    return WEAPON_TYPES.get(type_id) or EVOLVED_WEAPONS.get(type_id)


@dataclass(frozen=True)
class MetaUpgradeSpec:
    """A permanent shop upgrade; each level adds ``bonus_per_level`` to a 1.0 multiplier."""

    upgrade_id: str
    bonus_per_level: float
    max_level: int


META_UPGRADES: dict[str, MetaUpgradeSpec] = {
    "damage": MetaUpgradeSpec("damage", 0.10, 10),
    "health": MetaUpgradeSpec("health", 0.10, 10),
    "speed": MetaUpgradeSpec("speed", 0.05, 10),
    "attack_rate": MetaUpgradeSpec("attack_rate", 0.05, 10),
    "crit_chance": MetaUpgradeSpec("crit_chance", 0.15, 3),
}


def meta_bonus(levels: Mapping[str, int], upgrade_id: str) -> float:
    """Multiplier for *upgrade_id* at its purchased level (clamped to the cap).

    Unknown ids and unbought upgrades give 1.0.
    """
    spec = META_UPGRADES.get(upgrade_id)
    if spec is None:
        return 1.0
    level = min(max(0, levels.get(upgrade_id, 0)), spec.max_level)
    return 1.0 + spec.bonus_per_level * level
