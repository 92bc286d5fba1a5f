# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for SpawnPlanner and the spawn scaling formulas."""

from __future__ import annotations

import pytest

from engine.simulation.catalog import ENEMY_TYPES
from engine.simulation.spawner import (
    SpawnPlanner,
    boss_health_scale,
    build_spawn_pool,
    enemy_health_scale,
    is_boss_spawn_wave,
    is_mini_boss_spawn_wave,
    mini_boss_health_scale,
    select_boss,
    spawn_count,
)

pytestmark = pytest.mark.unit


class TestSpawnPool:
    def test_negative_wave_is_empty(self):
        assert build_spawn_pool(-1) == []

    def test_high_wave_contains_every_type(self):
        assert set(build_spawn_pool(9999)) == set(ENEMY_TYPES)

    def test_wave_zero_only_bugs(self):
        assert build_spawn_pool(0) == ["bug", "bug", "bug"]

    def test_weights_repeat_entries_in_catalog_order(self):
        assert build_spawn_pool(3) == ["bug", "bug", "bug", "glitch", "glitch"]


class TestBossSelection:
    @pytest.mark.parametrize("wave,expected", [
        (0, "boss-stackoverflow"),
        (20, "boss-stackoverflow"),
        (39, "boss-stackoverflow"),
        (40, "boss-nullpointer"),
        (60, "boss-memoryleakprime"),
        (80, "boss-kernelpanic"),
        (500, "boss-kernelpanic"),
    ])
    def test_select_boss(self, wave, expected):
        assert select_boss(wave) == expected

    def test_mini_boss_scales_slower(self):
        for wave in range(20, 200, 20):
            assert mini_boss_health_scale(wave) < boss_health_scale(wave)

    def test_scales(self):
        assert boss_health_scale(40) == 2.0
        assert mini_boss_health_scale(40) == pytest.approx(1.6)

    def test_spawn_cadence(self):
        assert not is_boss_spawn_wave(0)
        assert is_boss_spawn_wave(20)
        assert is_mini_boss_spawn_wave(10)
        assert not is_mini_boss_spawn_wave(20)
        assert not is_mini_boss_spawn_wave(15)


class TestScaling:
    def test_enemy_health_scale_capped(self):
        prev = 0.0
        for level in range(0, 100):
            s = enemy_health_scale(level)
            assert s >= prev
            assert s <= 3
            prev = s
        assert enemy_health_scale(40) == 3
        assert enemy_health_scale(1000) == 3

    def test_spawn_count_monotonic_and_capped(self):
        prev = 0
        for wave in range(0, 100):
            n = spawn_count(5, wave)
            assert n >= prev
            assert n <= 25
            prev = n
        assert spawn_count(5, 3) == 11


class TestSpawnPlanner:
    def test_pick_from_empty_pool(self, rng):
        assert SpawnPlanner(rng).pick_enemy_type(-1) is None
        assert SpawnPlanner(rng).spawn_enemy(-1) is None

    def test_create_enemy_scales_health(self, rng):
        enemy = SpawnPlanner(rng).create_enemy("memory-leak", player_level=20)
        assert enemy.health == 120
        assert enemy.max_health == 120
        assert enemy.active

    def test_split_type_can_split(self, rng):
        assert SpawnPlanner(rng).create_enemy("git-conflict").can_split
        assert not SpawnPlanner(rng).create_enemy("bug").can_split

    def test_boss_instances(self, rng):
        planner = SpawnPlanner(rng)
        boss = planner.create_boss(40)
        assert boss.type_id == "boss-nullpointer"
        assert boss.health == 7000
        assert boss.is_boss
        mini = planner.create_mini_boss(20)
        assert mini.type_id == "mini-boss"
        assert mini.health == 650

    def test_picks_are_deterministic_with_seed(self):
        import random
        a = [SpawnPlanner(random.Random(7)).pick_enemy_type(50) for _ in range(5)]
        b = [SpawnPlanner(random.Random(7)).pick_enemy_type(50) for _ in range(5)]
        assert a == b
