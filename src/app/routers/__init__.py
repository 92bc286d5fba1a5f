# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""API routers for the XP relay."""

from app.routers.ws import router as ws_router
from app.routers.xp import router as xp_router

__all__ = ["ws_router", "xp_router"]
