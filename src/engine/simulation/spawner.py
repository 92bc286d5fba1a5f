"""SpawnPlanner — weighted spawn pools, boss selection, and health scaling.

Spawn pool
----------
For wave *w* every enemy type with ``wave_min <= w`` is appended to the
pool ``spawn_weight`` times, in catalog order.  A uniform pick from the
pool therefore yields weighted selection.  Negative waves produce an empty
pool; callers treat an empty pool as "nothing left to spawn" rather than
an error.

Scaling
-------
  - enemy health:     1 + min(player_level * 0.05, 2)     (hard cap 3x)
  - boss health:      1 + floor(wave / 20) * 0.5
  - mini-boss health: 1 + floor(wave / 20) * 0.3          (always <= boss)
  - spawn count:      min(base_per_wave + wave * 2, 25)

Boss tiers unlock at waves 20/40/60/80; below 40 the tier-20 boss is used.
"""

from __future__ import annotations

import math
import random
from typing import Mapping

from .catalog import BOSS_TYPES, ENEMY_TYPES, MINI_BOSS, BossSpec, EnemySpec
from .entities import EnemyInstance

MAX_SPAWN_COUNT = 25
MAX_ENEMY_HEALTH_BONUS = 2.0


def build_spawn_pool(wave: int, catalog: Mapping[str, EnemySpec] | None = None) -> list[str]:
    """Return the weighted list of enemy type ids available at *wave*."""
    specs = ENEMY_TYPES if catalog is None else catalog
    pool: list[str] = []
    for type_id, spec in specs.items():
        if wave >= spec.wave_min:
            pool.extend([type_id] * max(1, spec.spawn_weight))
    return pool


def select_boss(wave: int) -> str:
    """Return the highest boss tier unlocked at *wave*."""
    selected = "boss-stackoverflow"
    best_wave = -1
    for type_id, spec in BOSS_TYPES.items():
        if best_wave < spec.wave <= wave:
            selected, best_wave = type_id, spec.wave
    return selected


def boss_health_scale(wave: int) -> float:
    return 1 + (wave // 20) * 0.5


def mini_boss_health_scale(wave: int) -> float:
    return 1 + (wave // 20) * 0.3


def enemy_health_scale(player_level: int) -> float:
    """Health multiplier for regular enemies, capped at 3x."""
    return 1 + min(player_level * 0.05, MAX_ENEMY_HEALTH_BONUS)


def spawn_count(base_per_wave: int, wave: int) -> int:
    return min(base_per_wave + wave * 2, MAX_SPAWN_COUNT)


def is_boss_spawn_wave(wave: int) -> bool:
    """Bosses appear at the start of every 20th wave."""
    return wave > 0 and wave % 20 == 0


def is_mini_boss_spawn_wave(wave: int) -> bool:
    """Mini-bosses appear every 10th wave that is not a boss wave."""
    return wave > 0 and wave % 10 == 0 and not is_boss_spawn_wave(wave)


class SpawnPlanner:
    """Builds enemy instances for a wave.

    The RNG is injected so tests and replays are deterministic.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        catalog: Mapping[str, EnemySpec] | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._catalog = ENEMY_TYPES if catalog is None else catalog
        self._pool_cache: dict[int, list[str]] = {}

    def spawn_pool(self, wave: int) -> list[str]:
        pool = self._pool_cache.get(wave)
        if pool is None:
            pool = build_spawn_pool(wave, self._catalog)
            self._pool_cache[wave] = pool
        return pool

    def pick_enemy_type(self, wave: int) -> str | None:
        """Uniform pick from the weighted pool, or None if the pool is empty."""
        pool = self.spawn_pool(wave)
        if not pool:
            return None
        return pool[self._rng.randrange(len(pool))]

    def create_enemy(
        self,
        type_id: str,
        player_level: int = 1,
        health_mult: float = 1.0,
        speed_mult: float = 1.0,
    ) -> EnemyInstance:
        spec = self._catalog[type_id]
        health = max(1, int(math.floor(spec.base_health * enemy_health_scale(player_level) * health_mult)))
        return EnemyInstance(
            type_id=spec.type_id,
            health=health,
            max_health=health,
            speed=spec.speed * speed_mult,
            contact_damage=spec.contact_damage,
            xp_value=spec.xp_value,
            behavior=spec.behavior,
            can_split=spec.behavior == "split",
        )

    def spawn_enemy(self, wave: int, player_level: int = 1, speed_mult: float = 1.0) -> EnemyInstance | None:
        type_id = self.pick_enemy_type(wave)
        if type_id is None:
            return None
        return self.create_enemy(type_id, player_level, speed_mult=speed_mult)

    def create_boss(self, wave: int) -> EnemyInstance:
        return self._from_boss_spec(BOSS_TYPES[select_boss(wave)], boss_health_scale(wave))

    def create_mini_boss(self, wave: int) -> EnemyInstance:
        return self._from_boss_spec(MINI_BOSS, mini_boss_health_scale(wave))

    @staticmethod
    def _from_boss_spec(spec: BossSpec, scale: float) -> EnemyInstance:
        health = int(math.floor(spec.base_health * scale))
        return EnemyInstance(
            type_id=spec.type_id,
            health=health,
            max_health=health,
            speed=spec.speed,
            contact_damage=spec.contact_damage,
            xp_value=spec.xp_value,
            is_boss=True,
        )
