# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Relay and game settings, loaded from the environment (prefix ``VIBE_``) or ``.env``."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VIBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "VIBE-CODER"
    debug: bool = False

    # XP relay server
    host: str = "127.0.0.1"
    port: int = Field(default=3001, ge=1, le=65535)
    cors_origin: str = "http://localhost:5173"
    max_body_bytes: int = Field(default=1024, gt=0)
    log_level: str = "INFO"

    # Game client
    save_path: Path = Path.home() / ".vibe-coder" / "save"
    combo_decay_ms: int = Field(default=3000, gt=0)
    xp_server_url: str = "ws://localhost:3001"


settings = Settings()
