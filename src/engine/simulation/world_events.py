"""WorldEventManager — timed global events that bend XP and enemy speed.

At the start of each wave from wave 5 onward there is a 15% chance that a
random world event begins, unless one is already running.  Events expire
after their duration; only one can be active at a time.

Data flow:
  WaveController wave start -> WorldEventManager.try_trigger(wave, now)
  ArenaSession.tick -> WorldEventManager.tick(now) -> expire
  CombatResolver / WaveController read active_effects().xp_multiplier
  Spawner reads active_effects().enemy_speed_mod

Events published on EventBus:
  - world_event_started: id, name, duration
  - world_event_ended: id
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from engine.comms.event_bus import EventBus

TRIGGER_CHANCE = 0.15
MIN_WAVE_FOR_EVENTS = 5


@dataclass(frozen=True)
class WorldEvent:
    id: str
    name: str
    description: str
    duration_ms: int
    effects: Mapping[str, float | bool] | None = None


@dataclass(frozen=True)
class EventEffects:
    xp_multiplier: float = 1.0
    enemy_speed_mod: float = 1.0
    force_rare_drops: bool = False


EVENTS: dict[str, WorldEvent] = {
    "DOUBLE_XP": WorldEvent(
        "double_xp", "DOUBLE XP", "All XP doubled", 30_000,
        {"xp_multiplier": 2},
    ),
    "CURSE": WorldEvent(
        "curse", "CURSE", "Enemies move 50% faster", 20_000,
        {"enemy_speed_mod": 1.5},
    ),
    "JACKPOT": WorldEvent(
        "jackpot", "JACKPOT", "Every drop is rare", 15_000,
        {"force_rare_drops": True},
    ),
    "BUG_BOUNTY": WorldEvent(
        "bug_bounty", "BUG BOUNTY", "+50% XP from everything", 25_000,
        {"xp_multiplier": 1.5},
    ),
    "LAG_SPIKE": WorldEvent(
        "lag_spike", "LAG SPIKE", "Enemies move at half speed", 10_000,
        {"enemy_speed_mod": 0.5},
    ),
}


def effects_of(event: WorldEvent | None) -> EventEffects:
    """Effects of *event*, with identity defaults for anything it does not set."""
    if event is None or not event.effects:
        return EventEffects()
    return EventEffects(
        xp_multiplier=float(event.effects.get("xp_multiplier", 1.0)),
        enemy_speed_mod=float(event.effects.get("enemy_speed_mod", 1.0)),
        force_rare_drops=bool(event.effects.get("force_rare_drops", False)),
    )


class WorldEventManager:
    """Rolls, tracks, and expires the single active world event."""

    def __init__(
        self,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        trigger_chance: float = TRIGGER_CHANCE,
        min_wave: int = MIN_WAVE_FOR_EVENTS,
    ) -> None:
        self._event_bus = event_bus
        self._rng = rng or random.Random()
        self.trigger_chance = trigger_chance
        self.min_wave = min_wave
        self.active_event: WorldEvent | None = None
        self._ends_at: float = 0.0

    def is_event_active(self) -> bool:
        return self.active_event is not None

    def active_effects(self) -> EventEffects:
        return effects_of(self.active_event)

    def try_trigger(self, wave: int, now: float) -> bool:
        """Roll for a new event at the start of *wave*.  Returns True if one started."""
        if self.active_event is not None or wave < self.min_wave:
            return False
        if self._rng.random() >= self.trigger_chance:
            return False
        self.start(self._rng.choice(list(EVENTS.values())), now)
        return True

    def start(self, event: WorldEvent, now: float) -> None:
        self.active_event = event
        self._ends_at = now + event.duration_ms
        if self._event_bus is not None:
            self._event_bus.publish("world_event_started", {
                "id": event.id,
                "name": event.name,
                "duration": event.duration_ms,
            })

    def tick(self, now: float) -> None:
        if self.active_event is not None and now >= self._ends_at:
            self.end()

    def end(self) -> None:
        event = self.active_event
        self.active_event = None
        self._ends_at = 0.0
        if event is not None and self._event_bus is not None:
            self._event_bus.publish("world_event_ended", {"id": event.id})
