# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Root conftest — shared fixtures for engine and relay tests."""

import random

import pytest


@pytest.fixture
def rng():
    """Deterministic RNG so spawn and crit rolls are reproducible."""
    return random.Random(1234)


@pytest.fixture
def bus():
    from engine.comms.event_bus import EventBus
    return EventBus()


@pytest.fixture
def store():
    from engine.persistence import MemoryStore
    return MemoryStore()


class FixedRandom(random.Random):
    """Random whose random() always returns *value* (crit and trigger rolls)."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self._value = value

    def random(self) -> float:
        return self._value


@pytest.fixture
def fixed_random():
    return FixedRandom
