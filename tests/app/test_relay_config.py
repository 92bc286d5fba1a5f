# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for app/config.py — Settings defaults and env overrides."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from app.config import Settings


@pytest.mark.unit
class TestSettingsDefaults:
    """Default values without any environment variables."""

    def test_relay_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            s = Settings(_env_file=None)
            assert s.port == 3001
            assert s.cors_origin == "http://localhost:5173"
            assert s.max_body_bytes == 1024

    def test_game_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            s = Settings(_env_file=None)
            assert s.combo_decay_ms == 3000
            assert s.xp_server_url == "ws://localhost:3001"
            assert s.save_path.name == "save"


@pytest.mark.unit
class TestSettingsEnvOverride:
    def test_prefixed_env_vars(self):
        env = {"VIBE_PORT": "3333", "VIBE_CORS_ORIGIN": "http://game.local"}
        with patch.dict(os.environ, env, clear=True):
            s = Settings(_env_file=None)
            assert s.port == 3333
            assert s.cors_origin == "http://game.local"

    def test_unprefixed_ignored(self):
        with patch.dict(os.environ, {"PORT": "9999"}, clear=True):
            assert Settings(_env_file=None).port == 3001

    def test_invalid_port_rejected(self):
        from pydantic import ValidationError
        with patch.dict(os.environ, {"VIBE_PORT": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("VIBE_MAX_BODY_BYTES=2048\n")
        with patch.dict(os.environ, {}, clear=True):
            assert Settings(_env_file=env_file).max_body_bytes == 2048
