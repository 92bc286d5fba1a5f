# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for SpatialGrid — uniform-grid neighbour queries."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from engine.simulation.spatial import SpatialGrid

pytestmark = pytest.mark.unit


@dataclass(eq=False)
class Dot:
    position: tuple[float, float]
    active: bool = True


class TestCellKeys:
    def test_rejects_non_positive_cell_size(self):
        with pytest.raises(ValueError):
            SpatialGrid(0)

    def test_cell_key_floors_negative_coordinates(self):
        grid = SpatialGrid(100)
        assert grid.cell_key(-1, -1) == (-1, -1)
        assert grid.cell_key(0, 0) == (0, 0)
        assert grid.cell_key(199.9, 100) == (1, 1)


class TestInsertAndRebuild:
    def test_inactive_and_none_are_not_indexed(self):
        grid = SpatialGrid(50)
        grid.insert(None)
        grid.insert(Dot((0, 0), active=False))
        assert len(grid) == 0

    def test_rebuild_replaces_previous_contents(self):
        grid = SpatialGrid(50)
        grid.rebuild([Dot((0, 0)), Dot((10, 10))])
        assert len(grid) == 2
        grid.rebuild([Dot((500, 500))])
        assert len(grid) == 1
        assert grid.get_cell(0, 0) == []

    def test_get_cell_returns_copy(self):
        grid = SpatialGrid(50)
        d = Dot((5, 5))
        grid.insert(d)
        cell = grid.get_cell(5, 5)
        cell.clear()
        assert grid.get_cell(5, 5) == [d]


class TestQueries:
    def test_query_radius_crosses_cell_boundaries(self):
        grid = SpatialGrid(100)
        near = Dot((105, 0))
        far = Dot((300, 0))
        grid.rebuild([near, far])
        assert grid.query_radius((95, 0), 20) == [near]

    def test_query_radius_is_inclusive(self):
        grid = SpatialGrid(100)
        d = Dot((10, 0))
        grid.insert(d)
        assert grid.query_radius((0, 0), 10) == [d]

    def test_negative_radius_returns_empty(self):
        grid = SpatialGrid(100)
        grid.insert(Dot((0, 0)))
        assert grid.query_radius((0, 0), -1) == []

    def test_entity_deactivated_after_insert_is_skipped(self):
        grid = SpatialGrid(100)
        d = Dot((0, 0))
        grid.insert(d)
        d.active = False
        assert grid.query_radius((0, 0), 50) == []

    def test_query_rect(self):
        grid = SpatialGrid(25)
        inside = Dot((30, 30))
        outside = Dot((80, 30))
        grid.rebuild([inside, outside])
        assert grid.query_rect((0, 0), (50, 50)) == [inside]


class TestCheckCollisions:
    def test_callback_per_overlapping_pair(self):
        grid = SpatialGrid(100)
        a, b = Dot((0, 0)), Dot((5, 0))
        grid.rebuild([a, b])
        bullet = Dot((2, 0))
        hits = []
        fired = grid.check_collisions([bullet], 10, lambda m, o: hits.append(o))
        assert fired == 2
        assert set(map(id, hits)) == {id(a), id(b)}

    def test_target_killed_by_callback_not_reported_twice(self):
        grid = SpatialGrid(100)
        enemy = Dot((0, 0))
        grid.rebuild([enemy])

        def kill(mover, other):
            other.active = False

        fired = grid.check_collisions([Dot((1, 0)), Dot((2, 0))], 10, kill)
        assert fired == 1

    def test_inactive_mover_skipped(self):
        grid = SpatialGrid(100)
        grid.rebuild([Dot((0, 0))])
        assert grid.check_collisions([Dot((0, 0), active=False)], 10, lambda m, o: None) == 0
