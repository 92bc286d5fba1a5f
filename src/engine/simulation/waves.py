# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""WaveController — per-wave lifecycle built on the generic StateMachine.

States:
  SPAWNING  -> issue enemies (one per spawn interval) until spawn_count
               have been issued or the spawn pool is exhausted
  ACTIVE    -> wait until every spawned entity is inactive
  CLEARING  -> settle the wave (immediate)
  COMPLETE  -> award wave XP, publish wave_complete; idle until the
               next start_wave()

Boss cadence: a boss joins at the start of every wave that is a multiple
of 20; a mini-boss on every other multiple of 10.  Bosses count toward
the wave's entity list but not toward spawn_count.

Split children produced while the wave is running are adopted via
adopt() so the wave cannot clear while they are alive.

Wave completion XP uses the reward-wave formula ``(wave - 1) % 20 == 0``
(waves 21, 41, 61, ...), which is deliberately offset from the spawn
cadence above.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

from engine.simulation.entities import EnemyInstance
from engine.simulation.spawner import (
    SpawnPlanner,
    is_boss_spawn_wave,
    is_mini_boss_spawn_wave,
    spawn_count,
)
from engine.simulation.state_machine import State, StateMachine

if TYPE_CHECKING:
    from engine.comms.event_bus import EventBus

logger = logging.getLogger("engine.waves")

BOSS_WAVE_XP_PER_WAVE = 100
NORMAL_WAVE_XP_PER_WAVE = 25
DEFAULT_BASE_PER_WAVE = 5
DEFAULT_SPAWN_INTERVAL_MS = 500


class WavePhase(str, Enum):
    SPAWNING = "spawning"
    ACTIVE = "active"
    CLEARING = "clearing"
    COMPLETE = "complete"


def is_boss_reward_wave(wave: int) -> bool:
    """True for waves 21, 41, 61, ...  Wave 1 is never a boss wave."""
    return wave > 1 and (wave - 1) % 20 == 0


def wave_complete_xp(wave: int, xp_event_mult: float = 1.0, mod_xp_mult: float = 1.0) -> int:
    per_wave = BOSS_WAVE_XP_PER_WAVE if is_boss_reward_wave(wave) else NORMAL_WAVE_XP_PER_WAVE
    return int(math.floor(wave * per_wave * xp_event_mult * mod_xp_mult))


@dataclass(frozen=True)
class WaveSummary:
    wave: int
    xp_awarded: int
    was_boss_wave: bool
    spawned: int


class WaveController:
    """Drives one wave at a time through SPAWNING -> ACTIVE -> CLEARING -> COMPLETE.

    The controller owns the wave's EnemyInstances; the presentation layer
    moves them and reports hits through the arena.  ``on_spawn`` is called
    for every enemy issued so the caller can place it.
    """

    def __init__(
        self,
        planner: SpawnPlanner | None = None,
        event_bus: EventBus | None = None,
        base_per_wave: int = DEFAULT_BASE_PER_WAVE,
        spawn_interval_ms: float = DEFAULT_SPAWN_INTERVAL_MS,
        enemy_count_mult: float = 1.0,
        health_mult: float = 1.0,
        on_spawn: Callable[[EnemyInstance], None] | None = None,
    ) -> None:
        self.planner = planner or SpawnPlanner()
        self._event_bus = event_bus
        self.base_per_wave = base_per_wave
        self.spawn_interval_ms = spawn_interval_ms
        self.enemy_count_mult = enemy_count_mult
        self.health_mult = health_mult
        self._on_spawn = on_spawn

        self.wave = 0
        self.enemies: list[EnemyInstance] = []
        self.target_count = 0
        self.issued = 0
        self.pool_exhausted = False
        self.last_summary: WaveSummary | None = None
        self._last_spawn_at: float | None = None
        self._player_level = 1
        self._speed_mult = 1.0

        self._fsm = self._build_fsm()

    # -- FSM wiring ---------------------------------------------------------

    def _build_fsm(self) -> StateMachine:
        sm = StateMachine(WavePhase.COMPLETE.value)
        sm.add_state(State(WavePhase.SPAWNING.value, on_tick=self._spawn_tick))
        sm.add_state(State(WavePhase.ACTIVE.value))
        sm.add_state(State(WavePhase.CLEARING.value))
        sm.add_state(State(WavePhase.COMPLETE.value, on_enter=self._on_complete))
        sm.add_transition(
            WavePhase.SPAWNING.value, WavePhase.ACTIVE.value,
            lambda ctx: self.spawning_done,
        )
        sm.add_transition(
            WavePhase.ACTIVE.value, WavePhase.CLEARING.value,
            lambda ctx: self.all_inactive,
        )
        sm.add_transition(
            WavePhase.CLEARING.value, WavePhase.COMPLETE.value,
            lambda ctx: True,
        )
        return sm

    @property
    def phase(self) -> WavePhase:
        return WavePhase(self._fsm.current_state)

    @property
    def spawning_done(self) -> bool:
        return self.issued >= self.target_count or self.pool_exhausted

    @property
    def all_inactive(self) -> bool:
        return all(not e.active for e in self.enemies)

    @property
    def alive_count(self) -> int:
        return sum(1 for e in self.enemies if e.active)

    # -- lifecycle ----------------------------------------------------------

    def start_wave(
        self,
        wave: int,
        now: float = 0.0,
        player_level: int = 1,
        speed_mult: float = 1.0,
    ) -> None:
        """Begin *wave*: reset counters, issue any boss, enter SPAWNING."""
        self.wave = wave
        self.enemies = []
        self.issued = 0
        self.pool_exhausted = False
        self.last_summary = None
        self._last_spawn_at = None
        self.target_count = int(math.floor(spawn_count(self.base_per_wave, wave) * self.enemy_count_mult))
        self._player_level = player_level
        self._speed_mult = speed_mult

        if is_boss_spawn_wave(wave):
            self._issue(self.planner.create_boss(wave))
            logger.info(f"Wave {wave}: boss {self.enemies[-1].type_id} spawned")
        elif is_mini_boss_spawn_wave(wave):
            self._issue(self.planner.create_mini_boss(wave))

        self._fsm.force_state(WavePhase.SPAWNING.value, {"now": now})
        logger.debug(f"Wave {wave} started: {self.target_count} enemies planned")

    def adopt(self, children: Iterable[EnemyInstance]) -> None:
        """Attach split children to the running wave."""
        for child in children:
            self._issue(child)

    def tick(
        self,
        now: float,
        xp_event_mult: float = 1.0,
        mod_xp_mult: float = 1.0,
    ) -> WaveSummary | None:
        """Advance the wave.  Returns the summary on the tick the wave completes."""
        if self.phase is WavePhase.COMPLETE:
            return None
        ctx = {"now": now, "xp_event_mult": xp_event_mult, "mod_xp_mult": mod_xp_mult}
        # Settle every transition that is already due within this tick.
        for _ in range(len(WavePhase)):
            if not self._fsm.tick(ctx):
                break
        if self.phase is WavePhase.COMPLETE:
            return self.last_summary
        return None

    # -- state callbacks ----------------------------------------------------

    def _spawn_tick(self, ctx: dict) -> str | None:
        now = ctx.get("now", 0.0)
        if self._last_spawn_at is not None and now - self._last_spawn_at < self.spawn_interval_ms:
            return None
        batch = self.target_count - self.issued if self.spawn_interval_ms <= 0 else 1
        for _ in range(batch):
            enemy = self.planner.spawn_enemy(self.wave, self._player_level, self._speed_mult)
            if enemy is None:
                self.pool_exhausted = True
                logger.warning(f"Wave {self.wave}: spawn pool is empty")
                break
            if self.health_mult != 1.0:
                enemy.health = max(1, int(math.floor(enemy.health * self.health_mult)))
                enemy.max_health = enemy.health
            self._issue(enemy)
            self.issued += 1
        self._last_spawn_at = now
        return WavePhase.ACTIVE.value if self.spawning_done else None

    def _on_complete(self, ctx: dict) -> None:
        if self.wave <= 0:
            return
        xp = wave_complete_xp(
            self.wave,
            ctx.get("xp_event_mult", 1.0),
            ctx.get("mod_xp_mult", 1.0),
        )
        self.last_summary = WaveSummary(
            wave=self.wave,
            xp_awarded=xp,
            was_boss_wave=is_boss_reward_wave(self.wave),
            spawned=len(self.enemies),
        )
        logger.info(f"Wave {self.wave} complete: +{xp} XP")
        if self._event_bus is not None:
            self._event_bus.publish("wave_complete", {
                "wave": self.wave,
                "xp": xp,
                "boss_wave": self.last_summary.was_boss_wave,
            })

    def _issue(self, enemy: EnemyInstance) -> None:
        self.enemies.append(enemy)
        if self._on_spawn is not None:
            self._on_spawn(enemy)
