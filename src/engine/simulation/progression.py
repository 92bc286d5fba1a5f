"""Progression -- XP curve, level-ups, and player stat scaling.

XP curve
--------
``xp_required_for_level(level) = floor(100 * level ** 1.5)``

    level 1 ->   100
    level 4 ->   800
    level 10 -> 3162
    level 25 -> 12500

The curve is positive, strictly increasing, and integer-valued for every
level >= 1.  ``apply_xp`` subtracts thresholds in a loop, so one large XP
grant can jump several levels at once.  Gains are floored before they are
accumulated; no fractional XP is ever stored.

Player stats
------------
Base stats grow linearly with level and are then multiplied by upgrade,
rebirth, run-modifier and shrine bonuses.  Attack interval shrinks with
level (floored at 100ms) and with bonuses (hard floor 50ms).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from engine.comms.event_bus import EventBus

BASE_SPEED = 200
BASE_ATTACK_INTERVAL_MS = 300
BASE_ATTACK_DAMAGE = 25
BASE_MAX_HEALTH = 200

BASE_CRIT_CHANCE = 0.1


def xp_required_for_level(level: int) -> int:
    """XP needed to advance from *level* to *level + 1*."""
    return int(math.floor(100 * math.pow(level, 1.5)))


@dataclass(frozen=True)
class XPResult:
    new_xp: int
    new_level: int
    levels_gained: int


def apply_xp(current_xp: int, current_level: int, gained: float) -> XPResult:
    """Add *gained* XP and resolve any level-ups."""
    xp = current_xp + int(math.floor(gained))
    level = current_level
    while xp >= xp_required_for_level(level):
        xp -= xp_required_for_level(level)
        level += 1
    return XPResult(new_xp=xp, new_level=level, levels_gained=level - current_level)


def crit_chance(crit_upgrade_bonus: float = 1.0) -> float:
    """Base 10% plus whatever the crit upgrade adds on top of 1.0."""
    return BASE_CRIT_CHANCE + (crit_upgrade_bonus - 1)


@dataclass(frozen=True)
class PlayerStats:
    speed: int
    attack_interval_ms: int
    attack_damage: int
    max_health: int


def player_stats(
    level: int,
    *,
    damage: float = 1.0,
    health: float = 1.0,
    speed: float = 1.0,
    attack_rate: float = 1.0,
    rebirth: float = 1.0,
    mod_damage: float = 1.0,
    mod_health: float = 1.0,
    shrine_damage: float = 1.0,
) -> PlayerStats:
    """Compute level-scaled player stats with all multipliers applied."""
    base_speed = BASE_SPEED + level * 8
    base_interval = max(100, BASE_ATTACK_INTERVAL_MS - level * 15)
    base_damage = BASE_ATTACK_DAMAGE + level * 5
    base_health = BASE_MAX_HEALTH + level * 20

    return PlayerStats(
        speed=int(math.floor(base_speed * speed * rebirth)),
        attack_interval_ms=max(50, int(math.floor(base_interval / (attack_rate * rebirth)))),
        attack_damage=int(math.floor(base_damage * damage * rebirth * mod_damage * shrine_damage)),
        max_health=int(math.floor(base_health * health * rebirth * mod_health)),
    )


@dataclass
class PlayerProgress:
    """Per-run XP and level state.

    Created at run start and passed to the systems that award XP.
    Publishes ``xp_gained`` after every grant and one ``level_up`` per
    level crossed.
    """

    xp: int = 0
    level: int = 1
    total_xp: int = 0
    kills: int = 0
    event_bus: EventBus | None = field(default=None, repr=False, compare=False)

    @property
    def xp_to_next(self) -> int:
        return xp_required_for_level(self.level)

    def add_xp(self, amount: float, source: str | None = None) -> int:
        """Grant XP and resolve level-ups.  Returns the floored amount added."""
        gained = max(0, int(math.floor(amount)))
        before = self.level
        result = apply_xp(self.xp, self.level, gained)
        self.xp = result.new_xp
        self.level = result.new_level
        self.total_xp += gained

        if self.event_bus is not None:
            for lvl in range(before + 1, self.level + 1):
                self.event_bus.publish("level_up", {"level": lvl})
            self.event_bus.publish("xp_gained", {
                "amount": gained,
                "total": self.xp,
                "level": self.level,
                "source": source,
            })
        return gained

    def to_dict(self) -> dict:
        return {
            "xp": self.xp,
            "level": self.level,
            "total_xp": self.total_xp,
            "kills": self.kills,
            "xp_to_next": self.xp_to_next,
        }
