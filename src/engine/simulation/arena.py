# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""ArenaSession — one run of the arena, wiring every simulation system together.

Created at run start, an ArenaSession owns the run's PlayerProgress,
WaveController, ComboTracker, WorldEventManager, SpatialGrid and the
multipliers injected by the meta upgrades, the active run modifiers and
the rebirth ledger.
The presentation layer drives it:

  every frame        session.tick(now, dt)
  projectile hit     session.projectile_hit(projectile, enemy, now)
  enemy touches us   session.player_contact(enemy)
  relay XP arrives   session.grant_external_xp(amount, source)
  game over / quit   session.end_run()

Events published on the session's EventBus:
  - enemy_damaged:   id, type_id, damage, crit, health
  - enemy_killed:    id, type_id, xp, is_boss, split
  - xp_gained:       amount, total, level, source   (via PlayerProgress)
  - level_up:        level                          (via PlayerProgress)
  - wave_started:    wave, enemies, event
  - wave_complete:   wave, xp, boss_wave            (via WaveController)
  - combo_milestone: threshold, label, color        (via ComboTracker)
  - player_died:     wave, kills, level
  - run_ended:       wave, kills, level, rebirth_level
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass

from engine.comms.event_bus import EventBus
from engine.persistence import KeyValueStore, MemoryStore, ProfileRepository
from engine.simulation.catalog import meta_bonus
from engine.simulation.combat import CombatResolver, ContactOutcome, HitOutcome
from engine.simulation.combo import DEFAULT_DECAY_MS, ComboTracker
from engine.simulation.entities import EnemyInstance, PlayerState, Projectile
from engine.simulation.modifiers import CombinedEffects, RunModifierSet
from engine.simulation.progression import PlayerProgress, PlayerStats, crit_chance, player_stats
from engine.simulation.rebirth import (
    RebirthLedger,
    RebirthState,
    all_stats_multiplier,
    xp_multiplier,
)
from engine.simulation.spatial import SpatialGrid
from engine.simulation.spawner import SpawnPlanner
from engine.simulation.waves import (
    DEFAULT_BASE_PER_WAVE,
    DEFAULT_SPAWN_INTERVAL_MS,
    WavePhase,
    WaveController,
    WaveSummary,
)
from engine.simulation.world_events import WorldEventManager

logger = logging.getLogger("engine.arena")


@dataclass(frozen=True)
class RunResult:
    wave: int
    kills: int
    level: int
    total_xp: int
    best_streak: int
    rebirth: RebirthState
    rebirthed: bool


class ArenaSession:
    """Per-run composition of the simulation systems."""

    def __init__(
        self,
        *,
        event_bus: EventBus | None = None,
        store: KeyValueStore | None = None,
        rng: random.Random | None = None,
        modifiers: RunModifierSet | None = None,
        combo_decay_ms: float = DEFAULT_DECAY_MS,
        base_per_wave: int = DEFAULT_BASE_PER_WAVE,
        spawn_interval_ms: float = DEFAULT_SPAWN_INTERVAL_MS,
        cell_size: float = 100.0,
    ) -> None:
        self.event_bus = event_bus or EventBus()
        self.store = store if store is not None else MemoryStore()
        self._rng = rng or random.Random()

        self.profile = ProfileRepository(self.store)
        self.ledger = RebirthLedger(self.store)
        self.rebirth = self.ledger.load()

        self.modifiers = modifiers or RunModifierSet()
        self.modifiers.save(self.store)
        self.effects: CombinedEffects = self.modifiers.effects()

        self.meta = self.profile.meta_progress()
        self.progress = PlayerProgress(event_bus=self.event_bus)
        self.player = PlayerState(health=self.current_stats().max_health)
        self.crit_chance = crit_chance(meta_bonus(self.meta.levels, "crit_chance"))

        self.combo = ComboTracker(decay_ms=combo_decay_ms, event_bus=self.event_bus)
        self.world_events = WorldEventManager(event_bus=self.event_bus, rng=self._rng)
        self.combat = CombatResolver(self._rng)
        self.grid = SpatialGrid(cell_size)
        self.waves = WaveController(
            SpawnPlanner(self._rng),
            event_bus=self.event_bus,
            base_per_wave=base_per_wave,
            spawn_interval_ms=spawn_interval_ms,
            enemy_count_mult=self.effects.enemy_count_mult,
        )

        self.running = True
        self.player_dead = False
        logger.info(
            f"Run started: rebirth {self.rebirth.rebirth_level}, "
            f"modifiers {self.modifiers.ids or 'none'}"
        )

    # -- derived multipliers -------------------------------------------------

    @property
    def wave(self) -> int:
        return self.waves.wave

    @property
    def rebirth_xp_multiplier(self) -> float:
        return xp_multiplier(self.rebirth)

    @property
    def xp_event_multiplier(self) -> float:
        return self.world_events.active_effects().xp_multiplier

    def current_stats(self) -> PlayerStats:
        """Player stats at the current level with meta, rebirth and modifier bonuses."""
        levels = self.meta.levels
        return player_stats(
            self.progress.level,
            damage=meta_bonus(levels, "damage"),
            health=meta_bonus(levels, "health"),
            speed=meta_bonus(levels, "speed"),
            attack_rate=meta_bonus(levels, "attack_rate"),
            rebirth=all_stats_multiplier(self.rebirth),
            mod_damage=self.effects.damage_multiplier,
            mod_health=self.effects.health_multiplier,
        )

    def enemies(self) -> list[EnemyInstance]:
        return [e for e in self.waves.enemies if e.active]

    def enemies_near(self, pos: tuple[float, float], radius: float) -> list[EnemyInstance]:
        return self.grid.query_radius(pos, radius)

    # -- tick ---------------------------------------------------------------

    def start_next_wave(self, now: float) -> int:
        wave = self.waves.wave + 1
        self.world_events.try_trigger(wave, now)
        self.waves.start_wave(
            wave,
            now=now,
            player_level=self.progress.level,
            speed_mult=self.world_events.active_effects().enemy_speed_mod,
        )
        active = self.world_events.active_event
        self.event_bus.publish("wave_started", {
            "wave": wave,
            "enemies": self.waves.target_count,
            "event": active.id if active else None,
        })
        return wave

    def tick(self, now: float, dt: float = 0.0) -> WaveSummary | None:
        """Advance the run by one frame.  Returns the wave summary when a wave completes."""
        if not self.running:
            return None

        self.combo.check_decay(now)
        self.world_events.tick(now)

        if self.waves.phase is WavePhase.COMPLETE:
            self.start_next_wave(now)

        summary = self.waves.tick(
            now,
            xp_event_mult=self.xp_event_multiplier,
            mod_xp_mult=self.effects.xp_mult,
        )
        self.grid.rebuild(self.waves.enemies)

        if summary is not None and summary.xp_awarded > 0:
            self.progress.add_xp(summary.xp_awarded * self.rebirth_xp_multiplier, source="wave")
        return summary

    # -- combat -------------------------------------------------------------

    def projectile_hit(self, projectile: Projectile, enemy: EnemyInstance, now: float) -> HitOutcome:
        outcome = self.combat.resolve_hit(
            projectile,
            enemy,
            crit_chance=self.crit_chance,
            xp_event_mult=self.xp_event_multiplier,
            mod_xp_mult=self.effects.xp_mult,
        )
        self.event_bus.publish("enemy_damaged", {
            "id": enemy.instance_id,
            "type_id": enemy.type_id,
            "damage": outcome.damage_dealt,
            "crit": outcome.is_crit,
            "health": max(0, enemy.health),
        })

        if outcome.killed:
            self.progress.kills += 1
            self.combo.register_kill(now)
            for child in outcome.split_children:
                child.position = enemy.position
            self.waves.adopt(outcome.split_children)
            self.event_bus.publish("enemy_killed", {
                "id": enemy.instance_id,
                "type_id": enemy.type_id,
                "xp": outcome.xp_awarded,
                "is_boss": enemy.is_boss,
                "split": len(outcome.split_children),
            })
            if outcome.xp_awarded > 0:
                self.progress.add_xp(outcome.xp_awarded * self.rebirth_xp_multiplier, source="kill")
        return outcome

    def player_contact(self, enemy: EnemyInstance, invincible: bool = False) -> ContactOutcome:
        outcome = self.combat.resolve_player_contact(
            self.player,
            enemy,
            invincible=invincible or self.player_dead,
            vampiric_enabled=self.effects.vampiric_enemies,
        )
        if outcome.player_died and not self.player_dead:
            self.player_dead = True
            self.combo.reset()
            logger.info(f"Player died on wave {self.wave}")
            self.event_bus.publish("player_died", {
                "wave": self.wave,
                "kills": self.progress.kills,
                "level": self.progress.level,
            })
        return outcome

    def grant_external_xp(self, amount: float, source: str | None = None) -> int:
        """Credit XP delivered by the relay client."""
        if not self.running:
            return 0
        return self.progress.add_xp(amount, source=source)

    # -- run end ------------------------------------------------------------

    def end_run(self) -> RunResult:
        """Stop the run and persist cross-run progression."""
        self.running = False
        self.combo.reset()

        before = self.ledger.load()
        state = self.ledger.perform_rebirth(self.wave, self.progress.kills)
        rebirthed = state.rebirth_level > before.rebirth_level
        if not rebirthed:
            state = self.ledger.record_run(self.wave)
        self.profile.record_wave(self.wave)
        RunModifierSet.clear(self.store)

        result = RunResult(
            wave=self.wave,
            kills=self.progress.kills,
            level=self.progress.level,
            total_xp=self.progress.total_xp,
            best_streak=self.combo.best_streak,
            rebirth=state,
            rebirthed=rebirthed,
        )
        self.event_bus.publish("run_ended", {
            "wave": result.wave,
            "kills": result.kills,
            "level": result.level,
            "rebirth_level": state.rebirth_level,
        })
        logger.info(f"Run ended at wave {result.wave} with {result.kills} kills")
        return result

    def snapshot(self) -> dict:
        return {
            "wave": self.wave,
            "phase": self.waves.phase.value,
            "player": {"health": self.player.health, "max_health": self.player.max_health},
            "stats": asdict(self.current_stats()),
            "progress": self.progress.to_dict(),
            "combo": self.combo.display(),
            "enemies": len(self.enemies()),
            "modifiers": self.modifiers.ids,
            "world_event": self.world_events.active_event.id if self.world_events.active_event else None,
        }
