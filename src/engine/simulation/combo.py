# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""ComboTracker -- kill streaks with decay, tiers, and milestones.

Tier thresholds (highest match wins):
    5+  COMBO
   10+  ON FIRE
   25+  RAMPAGE
   50+  UNSTOPPABLE
  100+  GODLIKE

The HUD hides the counter below 3 kills, so a streak of 3-4 is displayed
with no tier label.  Milestones at 10/25/50/100 fire once per streak; the
streak resets after ``decay_ms`` without a kill, which re-arms them.
``best_streak`` survives decay and reset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from engine.comms.event_bus import EventBus

DEFAULT_DECAY_MS = 3000
DISPLAY_THRESHOLD = 3


@dataclass(frozen=True)
class ComboTier:
    min_streak: int
    label: str
    color: str


@dataclass(frozen=True)
class ComboMilestone:
    threshold: int
    label: str
    color: str


# Highest first; lookup takes the first match.
TIERS: tuple[ComboTier, ...] = (
    ComboTier(100, "GODLIKE", "#ff00ff"),
    ComboTier(50, "UNSTOPPABLE", "#ff4444"),
    ComboTier(25, "RAMPAGE", "#ffaa00"),
    ComboTier(10, "ON FIRE", "#ffff00"),
    ComboTier(5, "COMBO", "#00ffff"),
)

MILESTONES: tuple[ComboMilestone, ...] = (
    ComboMilestone(10, "KILL STREAK!", "#00ff88"),
    ComboMilestone(25, "RAMPAGE!", "#ffaa00"),
    ComboMilestone(50, "UNSTOPPABLE!", "#ff4444"),
    ComboMilestone(100, "G O D L I K E", "#ff00ff"),
)


def tier_for(streak: int) -> ComboTier | None:
    for tier in TIERS:
        if streak >= tier.min_streak:
            return tier
    return None


@dataclass
class ComboTracker:
    """Per-run kill streak state.  Timestamps are milliseconds."""

    decay_ms: float = DEFAULT_DECAY_MS
    kill_streak: int = 0
    best_streak: int = 0
    last_kill_time: float = 0.0
    shown_milestones: set[int] = field(default_factory=set)
    event_bus: EventBus | None = field(default=None, repr=False, compare=False)

    def register_kill(self, now: float) -> ComboMilestone | None:
        """Count a kill at *now*.  Returns the milestone reached, if any."""
        self.kill_streak += 1
        self.last_kill_time = now
        if self.kill_streak > self.best_streak:
            self.best_streak = self.kill_streak
        return self._check_milestone()

    def check_decay(self, now: float) -> bool:
        """Reset the streak if the decay window has elapsed.  Returns True on decay."""
        if self.kill_streak > 0 and now - self.last_kill_time > self.decay_ms:
            self.kill_streak = 0
            self.shown_milestones.clear()
            if self.event_bus is not None:
                self.event_bus.publish("combo_decayed", {"best_streak": self.best_streak})
            return True
        return False

    def reset(self) -> None:
        """Clear the streak on run end or player death.  best_streak is kept."""
        self.kill_streak = 0
        self.last_kill_time = 0.0
        self.shown_milestones.clear()

    def get_tier(self) -> str | None:
        tier = tier_for(self.kill_streak)
        return tier.label if tier else None

    @property
    def visible(self) -> bool:
        return self.kill_streak >= DISPLAY_THRESHOLD

    def display(self) -> dict:
        """HUD snapshot: hidden below 3 kills, tier label from 5 kills."""
        tier = tier_for(self.kill_streak)
        return {
            "visible": self.visible,
            "streak": self.kill_streak,
            "text": f"{self.kill_streak}x" if self.visible else "",
            "label": tier.label if (tier and self.visible) else "",
            "color": tier.color if tier else "#ffffff",
        }

    def _check_milestone(self) -> ComboMilestone | None:
        for m in MILESTONES:
            if self.kill_streak == m.threshold and m.threshold not in self.shown_milestones:
                self.shown_milestones.add(m.threshold)
                if self.event_bus is not None:
                    self.event_bus.publish("combo_milestone", {
                        "threshold": m.threshold,
                        "label": m.label,
                        "color": m.color,
                    })
                return m
        return None
