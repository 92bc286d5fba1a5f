# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for the rebirth (prestige) rules and RebirthLedger persistence."""

from __future__ import annotations

import pytest

from engine.simulation.rebirth import (
    STARTING_WEAPON_POOL,
    RebirthLedger,
    RebirthState,
    all_stats_multiplier,
    can_rebirth,
    perform_rebirth,
    rebirth_info,
    starting_weapon_count,
    starting_weapons,
    xp_multiplier,
)

pytestmark = pytest.mark.unit


class TestRules:
    def test_no_milestone_below_fifty(self):
        assert can_rebirth(49, RebirthState()) is None

    def test_highest_reached_milestone(self):
        m = can_rebirth(160, RebirthState())
        assert m.rebirth == 3
        assert m.name == "SENIOR DEV"

    def test_already_at_level(self):
        assert can_rebirth(120, RebirthState(rebirth_level=2)) is None

    def test_perform_noop_returns_same_state(self):
        state = RebirthState(rebirth_level=1, highest_wave=70)
        assert perform_rebirth(60, 10, state) is state

    def test_perform_applies_milestone(self):
        state = RebirthState(rebirth_level=1, highest_wave=120, total_rebirths=1, lifetime_kills=100)
        new = perform_rebirth(100, 40, state)
        assert new.rebirth_level == 2
        assert new.total_rebirths == 2
        assert new.lifetime_kills == 140
        assert new.highest_wave == 120

    def test_max_level_cannot_rebirth(self):
        assert can_rebirth(9999, RebirthState(rebirth_level=5)) is None

    def test_multipliers(self):
        s = RebirthState(rebirth_level=4)
        assert all_stats_multiplier(s) == pytest.approx(1.2)
        assert xp_multiplier(s) == pytest.approx(1.4)
        assert starting_weapon_count(s) == 3
        assert starting_weapon_count(RebirthState()) == 0

    def test_starting_weapons_distinct(self, rng):
        picked = starting_weapons(RebirthState(rebirth_level=5), rng)
        assert len(picked) == 3
        assert len(set(picked)) == 3
        assert set(picked) <= set(STARTING_WEAPON_POOL)

    def test_info_defaults_to_intern(self):
        info = rebirth_info(RebirthState())
        assert info["name"] == "INTERN"
        assert info["next_milestone"]["wave"] == 50
        assert rebirth_info(RebirthState(rebirth_level=5))["next_milestone"] is None


class TestStateValidation:
    @pytest.mark.parametrize("data", [
        [], "x", {"rebirth_level": 6}, {"rebirth_level": -1},
        {"highest_wave": "10"}, {"lifetime_kills": True},
    ])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            RebirthState.from_dict(data)


class TestLedger:
    def test_round_trip(self, store):
        ledger = RebirthLedger(store)
        state = RebirthState(rebirth_level=3, highest_wave=170, total_rebirths=3, lifetime_kills=4000)
        ledger.save(state)
        assert ledger.load() == state

    def test_missing_is_zero_state(self, store):
        assert RebirthLedger(store).load() == RebirthState()

    def test_corrupt_is_zero_state(self, store):
        store.set("rebirth", "{{{")
        assert RebirthLedger(store).load() == RebirthState()

    def test_perform_persists(self, store):
        ledger = RebirthLedger(store)
        ledger.perform_rebirth(55, 300)
        assert RebirthLedger(store).load().rebirth_level == 1

    def test_record_run_never_lowers(self, store):
        ledger = RebirthLedger(store)
        ledger.record_run(30)
        ledger.record_run(10)
        assert ledger.load().highest_wave == 30
