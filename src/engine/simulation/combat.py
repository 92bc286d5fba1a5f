# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""CombatResolver -- applies projectile hits and enemy contact.

Hit pipeline (resolve_hit):
  1. Roll crit: ``rng.random() < crit_chance``; a crit deals exactly 2x.
  2. Subtract damage from the enemy.
  3. Non-pierce projectiles are consumed.
  4. First time health reaches <= 0: the enemy is deactivated, XP is
     awarded as ``floor(xp_value * xp_event_mult * mod_xp_mult)``, and a
     splittable split enemy produces two children.
  5. Fork bombs (root projectiles only, depth < 2) spawn two children at
     70% damage whether or not the enemy died.

Split children:
  health = floor(parent_max_health * 0.4) + 10   (always positive)
  speed  = parent_speed * 1.2
  damage = floor(parent_damage * 0.7)
  xp     = floor(parent_xp * 0.3)                (2 children < parent)
  can_split = False

Contact pipeline (resolve_player_contact):
  Invincible players take nothing.  Otherwise the player loses the
  enemy's contact damage, and a living vampiric enemy heals
  floor(contact_damage * 0.1), capped at its max health.

All decay factors are fixed; they do not vary with difficulty.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field

from .entities import EnemyInstance, PlayerState, Projectile

logger = logging.getLogger("engine.combat")

CRIT_MULTIPLIER = 2
FORK_DAMAGE_DECAY = 0.7
FORK_CHILD_COUNT = 2
MAX_FORK_DEPTH = 2
SPLIT_HEALTH_FACTOR = 0.4
SPLIT_HEALTH_BONUS = 10
SPLIT_SPEED_FACTOR = 1.2
SPLIT_DAMAGE_FACTOR = 0.7
SPLIT_XP_FACTOR = 0.3
SPLIT_CHILD_COUNT = 2
VAMPIRIC_HEAL_FACTOR = 0.1


@dataclass
class HitOutcome:
    """Result of one projectile hitting one enemy."""

    damage_dealt: int
    is_crit: bool
    killed: bool
    xp_awarded: int
    projectile_consumed: bool
    split_children: list[EnemyInstance] = field(default_factory=list)
    fork_children: list[Projectile] = field(default_factory=list)


@dataclass
class ContactOutcome:
    """Result of an enemy touching the player."""

    damage_taken: int
    player_died: bool
    enemy_healed: int


def fork_child_damage(parent_damage: int) -> int:
    return int(math.floor(parent_damage * FORK_DAMAGE_DECAY))


def can_fork(projectile: Projectile) -> bool:
    """Only root fork-bomb projectiles below the depth cap fork."""
    return (
        projectile.is_fork_bomb
        and not projectile.is_child
        and projectile.fork_depth < MAX_FORK_DEPTH
    )


def fork_children(projectile: Projectile) -> list[Projectile]:
    if not can_fork(projectile):
        return []
    damage = fork_child_damage(projectile.damage)
    return [
        Projectile(
            damage=damage,
            pierce=projectile.pierce,
            is_fork_bomb=True,
            is_child=True,
            fork_depth=projectile.fork_depth + 1,
            position=projectile.position,
        )
        for _ in range(FORK_CHILD_COUNT)
    ]


def split_children(parent: EnemyInstance) -> list[EnemyInstance]:
    """Build the two children of a dying split enemy (empty if it cannot split)."""
    if parent.behavior != "split" or not parent.can_split:
        return []
    health = int(math.floor(parent.max_health * SPLIT_HEALTH_FACTOR)) + SPLIT_HEALTH_BONUS
    return [
        EnemyInstance(
            type_id=parent.type_id,
            health=health,
            max_health=health,
            speed=parent.speed * SPLIT_SPEED_FACTOR,
            contact_damage=int(math.floor(parent.contact_damage * SPLIT_DAMAGE_FACTOR)),
            xp_value=int(math.floor(parent.xp_value * SPLIT_XP_FACTOR)),
            behavior=parent.behavior,
            can_split=False,
            position=parent.position,
        )
        for _ in range(SPLIT_CHILD_COUNT)
    ]


def kill_xp(xp_value: int, xp_event_mult: float = 1.0, mod_xp_mult: float = 1.0) -> int:
    return int(math.floor(xp_value * xp_event_mult * mod_xp_mult))


class CombatResolver:
    """Resolves hits and contacts against mutable entity snapshots.

    Stateless apart from the injected RNG; designed to be called from the
    arena tick (single-threaded), so an enemy's death is observed and
    acted upon exactly once via its ``active`` flag.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def resolve_hit(
        self,
        projectile: Projectile,
        enemy: EnemyInstance,
        crit_chance: float = 0.1,
        xp_event_mult: float = 1.0,
        mod_xp_mult: float = 1.0,
    ) -> HitOutcome:
        was_alive = enemy.active and enemy.health > 0

        is_crit = self._rng.random() < crit_chance
        damage = projectile.damage * CRIT_MULTIPLIER if is_crit else projectile.damage
        enemy.health -= damage

        outcome = HitOutcome(
            damage_dealt=damage,
            is_crit=is_crit,
            killed=False,
            xp_awarded=0,
            projectile_consumed=not projectile.pierce,
        )

        if was_alive and enemy.health <= 0:
            enemy.active = False
            outcome.killed = True
            outcome.xp_awarded = kill_xp(enemy.xp_value, xp_event_mult, mod_xp_mult)
            outcome.split_children = split_children(enemy)
            if outcome.split_children:
                logger.debug(f"{enemy.instance_id} split into {len(outcome.split_children)} children")

        outcome.fork_children = fork_children(projectile)
        return outcome

    def resolve_player_contact(
        self,
        player: PlayerState,
        enemy: EnemyInstance,
        invincible: bool = False,
        vampiric_enabled: bool = False,
    ) -> ContactOutcome:
        if invincible:
            return ContactOutcome(damage_taken=0, player_died=False, enemy_healed=0)

        player.health -= enemy.contact_damage

        healed = 0
        if vampiric_enabled and enemy.health > 0:
            heal = int(math.floor(enemy.contact_damage * VAMPIRIC_HEAL_FACTOR))
            before = enemy.health
            enemy.health = min(enemy.health + heal, enemy.max_health)
            healed = max(0, enemy.health - before)

        return ContactOutcome(
            damage_taken=enemy.contact_damage,
            player_died=player.health <= 0,
            enemy_healed=healed,
        )
