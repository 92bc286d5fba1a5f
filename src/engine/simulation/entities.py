# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Runtime entities owned by the arena simulation.

EnemyInstance and PlayerState are mutable snapshots shared with the
presentation layer: it moves them (position) and renders them, the
simulation mutates health and the active flag.  An enemy is deactivated
exactly once, by the combat resolver, when its health drops to zero.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

_instance_ids = itertools.count(1)


def _next_instance_id() -> str:
    return f"enemy-{next(_instance_ids)}"


@dataclass
class EnemyInstance:
    """A live enemy in the arena."""

    type_id: str
    health: int
    max_health: int
    speed: float
    contact_damage: int
    xp_value: int
    behavior: str = "chase"
    can_split: bool = False
    active: bool = True
    is_boss: bool = False
    position: tuple[float, float] = (0.0, 0.0)
    instance_id: str = field(default_factory=_next_instance_id)

    @property
    def alive(self) -> bool:
        return self.active and self.health > 0

    def to_dict(self) -> dict:
        return {
            "instance_id": self.instance_id,
            "type_id": self.type_id,
            "health": self.health,
            "max_health": self.max_health,
            "speed": self.speed,
            "contact_damage": self.contact_damage,
            "xp_value": self.xp_value,
            "behavior": self.behavior,
            "can_split": self.can_split,
            "active": self.active,
            "is_boss": self.is_boss,
            "position": list(self.position),
        }


@dataclass
class Projectile:
    """A player projectile as observed by the combat resolver."""

    damage: int
    pierce: bool = False
    is_fork_bomb: bool = False
    is_child: bool = False
    fork_depth: int = 0
    active: bool = True
    position: tuple[float, float] = (0.0, 0.0)


@dataclass
class PlayerState:
    """Player health snapshot used by contact resolution."""

    health: int
    max_health: int = 0
    active: bool = True
    position: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self) -> None:
        if self.max_health <= 0:
            self.max_health = self.health

    @property
    def dead(self) -> bool:
        return self.health <= 0
