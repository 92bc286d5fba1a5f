"""SpatialGrid — uniform grid partitioning for arena proximity queries.

Rebuilt once per tick from the active entity snapshots (clear + reinsert),
then queried many times during that tick for projectile/enemy and
player/enemy overlap checks.  Inactive entities are never indexed and are
skipped again at query time in case they died mid-tick.

Cell size of 100px means most collision radii (10-60px) touch at most a
3x3 neighbourhood of cells.
"""

from __future__ import annotations

import math
from typing import Callable, Iterable, Protocol


class Positioned(Protocol):
    """Anything with a world position and an active flag."""

    position: tuple[float, float]
    active: bool


class SpatialGrid:
    """Grid-based spatial partitioning for O(1) neighbour queries."""

    def __init__(self, cell_size: float = 100.0) -> None:
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self._cell_size = cell_size
        self._inv_cell_size = 1.0 / cell_size
        self._cells: dict[tuple[int, int], list[Positioned]] = {}

    @property
    def cell_size(self) -> float:
        return self._cell_size

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._cells.values())

    def cell_key(self, x: float, y: float) -> tuple[int, int]:
        """Convert world position to cell key."""
        return (int(math.floor(x * self._inv_cell_size)),
                int(math.floor(y * self._inv_cell_size)))

    def clear(self) -> None:
        self._cells = {}

    def insert(self, entity: Positioned | None) -> None:
        """Index a single entity.  None and inactive entities are ignored."""
        if entity is None or not entity.active:
            return
        key = self.cell_key(entity.position[0], entity.position[1])
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
        bucket.append(entity)

    def rebuild(self, entities: Iterable[Positioned]) -> None:
        """Rebuild the entire grid from scratch (once per tick)."""
        self.clear()
        for e in entities:
            self.insert(e)

    def get_cell(self, x: float, y: float) -> list[Positioned]:
        """Return the entities indexed in the cell containing (x, y)."""
        return list(self._cells.get(self.cell_key(x, y), ()))

    def query_radius(self, pos: tuple[float, float], radius: float) -> list[Positioned]:
        """Return all active entities within radius of pos. O(k) where k = nearby entities."""
        if radius < 0:
            return []
        px, py = pos
        r2 = radius * radius

        # Determine which cells overlap the query circle
        min_cx = int(math.floor((px - radius) * self._inv_cell_size))
        max_cx = int(math.floor((px + radius) * self._inv_cell_size))
        min_cy = int(math.floor((py - radius) * self._inv_cell_size))
        max_cy = int(math.floor((py + radius) * self._inv_cell_size))

        result: list[Positioned] = []
        cells = self._cells
        for cx in range(min_cx, max_cx + 1):
            for cy in range(min_cy, max_cy + 1):
                bucket = cells.get((cx, cy))
                if bucket is None:
                    continue
                for e in bucket:
                    if not e.active:
                        continue
                    dx = e.position[0] - px
                    dy = e.position[1] - py
                    if dx * dx + dy * dy <= r2:
                        result.append(e)
        return result

    def query_rect(self, min_xy: tuple[float, float], max_xy: tuple[float, float]) -> list[Positioned]:
        """Return all active entities in bounding box [min_xy, max_xy]."""
        x_min, y_min = min_xy
        x_max, y_max = max_xy

        min_cx = int(math.floor(x_min * self._inv_cell_size))
        max_cx = int(math.floor(x_max * self._inv_cell_size))
        min_cy = int(math.floor(y_min * self._inv_cell_size))
        max_cy = int(math.floor(y_max * self._inv_cell_size))

        result: list[Positioned] = []
        cells = self._cells
        for cx in range(min_cx, max_cx + 1):
            for cy in range(min_cy, max_cy + 1):
                bucket = cells.get((cx, cy))
                if bucket is None:
                    continue
                for e in bucket:
                    tx, ty = e.position
                    if e.active and x_min <= tx <= x_max and y_min <= ty <= y_max:
                        result.append(e)
        return result

    def check_collisions(
        self,
        movers: Iterable[Positioned],
        radius: float,
        callback: Callable[[Positioned, Positioned], None],
    ) -> int:
        """Call ``callback(mover, indexed)`` for every pair within *radius*.

        The grid must already hold the second group (see rebuild()).  An
        entity deactivated by an earlier callback is not reported again.
        Returns the number of callbacks fired.
        """
        fired = 0
        for mover in movers:
            if not mover.active:
                continue
            for other in self.query_radius(mover.position, radius):
                if not other.active or not mover.active:
                    continue
                callback(mover, other)
                fired += 1
        return fired
