# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Engine — the arena simulation core for VIBE-CODER.

This package contains the simulation (spawning, combat, waves, XP and
prestige progression), cross-run persistence, and communication
primitives (event bus and XP relay client).

The presentation layer drives an ArenaSession each frame and subscribes
to its EventBus to render kills, level-ups and wave completions.
"""

__version__ = "0.1.0"
