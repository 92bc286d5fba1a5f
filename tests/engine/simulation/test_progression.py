# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for the XP curve, player stats and PlayerProgress."""

from __future__ import annotations

import pytest

from engine.simulation.progression import (
    PlayerProgress,
    apply_xp,
    crit_chance,
    player_stats,
    xp_required_for_level,
)

pytestmark = pytest.mark.unit


class TestXPCurve:
    def test_known_values(self):
        assert xp_required_for_level(1) == 100
        assert xp_required_for_level(2) == 282
        assert xp_required_for_level(4) == 800

    def test_strictly_increasing_positive_ints(self):
        for level in range(1, 200):
            a = xp_required_for_level(level)
            b = xp_required_for_level(level + 1)
            assert isinstance(a, int) and a > 0
            assert b > a


class TestApplyXP:
    def test_no_level_up_below_threshold(self):
        r = apply_xp(0, 1, 99)
        assert (r.new_xp, r.new_level, r.levels_gained) == (99, 1, 0)

    def test_exact_threshold_levels_up(self):
        r = apply_xp(0, 1, 100)
        assert (r.new_xp, r.new_level, r.levels_gained) == (0, 2, 1)

    def test_multi_level_jump(self):
        # 100 (L1) + 282 (L2) + 519 (L3) = 901
        r = apply_xp(0, 1, 905)
        assert r.new_level == 4
        assert r.levels_gained == 3
        assert r.new_xp == 4

    def test_fractional_gain_is_floored(self):
        assert apply_xp(0, 1, 99.9).new_xp == 99


class TestPlayerStats:
    def test_level_one_base(self):
        s = player_stats(1)
        assert s.speed == 208
        assert s.attack_interval_ms == 285
        assert s.attack_damage == 30
        assert s.max_health == 220

    def test_attack_interval_floors(self):
        assert player_stats(50).attack_interval_ms == 100
        assert player_stats(50, attack_rate=10).attack_interval_ms == 50

    def test_multipliers_compound(self):
        s = player_stats(1, damage=2, rebirth=1.5, mod_damage=2, mod_health=0.5)
        assert s.attack_damage == 180
        assert s.max_health == 165

    def test_crit_chance(self):
        assert crit_chance() == pytest.approx(0.1)
        assert crit_chance(1.15) == pytest.approx(0.25)


class TestPlayerProgress:
    def test_add_xp_returns_floored_amount(self):
        p = PlayerProgress()
        assert p.add_xp(12.9) == 12
        assert p.total_xp == 12

    def test_negative_xp_ignored(self):
        p = PlayerProgress()
        assert p.add_xp(-5) == 0
        assert p.xp == 0

    def test_publishes_level_up_per_level(self, bus):
        levels = bus.subscribe("level_up")
        gained = bus.subscribe("xp_gained")
        p = PlayerProgress(event_bus=bus)
        p.add_xp(905, source="test")
        assert [levels.get_nowait()["level"] for _ in range(3)] == [2, 3, 4]
        assert levels.empty()
        msg = gained.get_nowait()
        assert msg == {"amount": 905, "total": 4, "level": 4, "source": "test"}

    def test_to_dict(self):
        p = PlayerProgress()
        p.add_xp(50)
        d = p.to_dict()
        assert d["xp"] == 50
        assert d["level"] == 1
        assert d["xp_to_next"] == 100
