# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Relay rules — validate coding-activity events and price them in XP.

Everything here is pure: the router turns an EventValidationError into
an HTTP 400 and hands the resulting broadcast dict to the
ConnectionManager.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

MAX_TYPE_LENGTH = 32
MAX_SOURCE_LENGTH = 16
MAX_TOOL_LENGTH = 32
MAX_ACTION_LENGTH = 32

VALID_EVENT_TYPES = frozenset({
    "message", "tool_use", "task_complete", "response",
    "claude_code", "codex_cli", "gemini_cli", "cursor_ai", "copilot",
    "activity", "unknown",
})

VALID_SOURCES = frozenset({"claude", "codex", "gemini", "cursor", "copilot", "unknown"})

XP_VALUES: dict[str, int] = {
    "message": 10,
    "tool_use": 5,
    "task_complete": 50,
    "response": 5,
    "claude_code": 15,
    "codex_cli": 12,
    "gemini_cli": 12,
    "cursor_ai": 10,
    "copilot": 8,
}
DEFAULT_XP = 5
DEFAULT_CLI_XP = 10

# Source -> XP table entry that overrides the event type's value.
SOURCE_XP_KEYS = {
    "claude": "claude_code",
    "codex": "codex_cli",
    "gemini": "gemini_cli",
    "cursor": "cursor_ai",
    "copilot": "copilot",
}

EDIT_TOOL_XP = 15
BASH_TOOL_XP = 10


@dataclass(frozen=True)
class CliSource:
    name: str
    color: str


CLI_SOURCES: dict[str, CliSource] = {
    "claude": CliSource("CLAUDE", "#00ffff"),
    "codex": CliSource("CODEX", "#00ff88"),
    "gemini": CliSource("GEMINI", "#4488ff"),
    "cursor": CliSource("CURSOR", "#ff88ff"),
    "copilot": CliSource("COPILOT", "#ffaa00"),
    "unknown": CliSource("CODE", "#ffffff"),
}


class EventValidationError(ValueError):
    """A relay payload that cannot be accepted."""


@dataclass(frozen=True)
class ValidatedEvent:
    type: str
    source: str
    tool: str | None = None


def validate_event(body: Any) -> ValidatedEvent:
    """Truncate, default, and allowlist-check an incoming event body.

    A JSON array counts as an object with no fields, so it validates as
    an ``unknown`` event.  Any other non-object body is rejected.
    """
    if isinstance(body, list):
        body = {}
    if not isinstance(body, dict):
        raise EventValidationError("Body must be a JSON object")

    raw_type = body.get("type")
    raw_source = body.get("source")
    event_type = raw_type[:MAX_TYPE_LENGTH] if isinstance(raw_type, str) else "unknown"
    source = raw_source[:MAX_SOURCE_LENGTH] if isinstance(raw_source, str) else "unknown"

    if event_type not in VALID_EVENT_TYPES:
        raise EventValidationError(f"Invalid event type: {event_type}")
    if source not in VALID_SOURCES:
        raise EventValidationError(f"Invalid source: {source}")

    tool = None
    data = body.get("data")
    if isinstance(data, dict) and isinstance(data.get("tool"), str):
        tool = data["tool"][:MAX_TOOL_LENGTH]

    return ValidatedEvent(type=event_type, source=source, tool=tool)


def xp_for_event(event: ValidatedEvent) -> int:
    xp = XP_VALUES.get(event.type, DEFAULT_XP)

    override = SOURCE_XP_KEYS.get(event.source)
    if override is not None:
        xp = XP_VALUES[override]

    if event.type == "tool_use" and event.tool:
        if "Edit" in event.tool or "Write" in event.tool:
            xp = EDIT_TOOL_XP
        if "Bash" in event.tool:
            xp = BASH_TOOL_XP
    return xp


def xp_for_cli_source(source: str) -> int:
    """XP for a ``/cli/{source}`` ping.  Raises for sources without a CLI entry."""
    if source not in CLI_SOURCES:
        raise EventValidationError("Unknown CLI source")
    return XP_VALUES.get(f"{source}_code") or XP_VALUES.get(f"{source}_cli") or DEFAULT_CLI_XP


def cli_action(body: Any) -> str:
    action = body.get("action") if isinstance(body, dict) else None
    if isinstance(action, str) and action:
        return action[:MAX_ACTION_LENGTH]
    return "activity"


def build_broadcast(event_type: str, amount: int, source: str = "unknown", now: float | None = None) -> dict:
    """The JSON message pushed to every connected game client."""
    info = CLI_SOURCES.get(source, CLI_SOURCES["unknown"])
    return {
        "type": event_type,
        "amount": amount,
        "source": source,
        "sourceName": info.name,
        "sourceColor": info.color,
        "timestamp": int((time.time() if now is None else now) * 1000),
    }
