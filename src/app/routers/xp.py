# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""XP relay API -- coding tools post activity here, game clients get XP."""

from __future__ import annotations

import json
import time

from fastapi import APIRouter, HTTPException, Request
from loguru import logger
from pydantic import BaseModel

from app.relay import (
    EventValidationError,
    build_broadcast,
    cli_action,
    validate_event,
    xp_for_cli_source,
    xp_for_event,
)

router = APIRouter(tags=["xp"])


class XPResponse(BaseModel):
    success: bool = True
    xp: int
    source: str


class HealthResponse(BaseModel):
    status: str
    clients: int
    uptime: float


async def _read_json(request: Request) -> object:
    raw = await request.body()
    if len(raw) > request.app.state.max_body_bytes:
        raise HTTPException(413, "Payload too large")
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(400, "Malformed JSON body")


@router.post("/event", response_model=XPResponse)
async def post_event(request: Request):
    """Price an activity event and broadcast the XP to every game client."""
    body = await _read_json(request)
    try:
        event = validate_event(body)
    except EventValidationError as e:
        logger.warning(f"Rejected XP event: {e}")
        raise HTTPException(400, str(e))

    xp = xp_for_event(event)
    message = build_broadcast(event.type, xp, event.source)
    delivered = await request.app.state.manager.broadcast(message)
    logger.info(f"Broadcast: {event.type} +{xp} XP [{message['sourceName']}] ({delivered} clients)")
    return XPResponse(xp=xp, source=event.source)


@router.post("/cli/{source}", response_model=XPResponse)
async def post_cli(source: str, request: Request):
    try:
        xp = xp_for_cli_source(source)
    except EventValidationError as e:
        raise HTTPException(400, str(e))

    body = await _read_json(request)
    action = cli_action(body)
    message = build_broadcast(action, xp, source)
    delivered = await request.app.state.manager.broadcast(message)
    logger.info(f"Broadcast: {action} +{xp} XP [{message['sourceName']}] ({delivered} clients)")
    return XPResponse(xp=xp, source=source)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    return HealthResponse(
        status="ok",
        clients=request.app.state.manager.count,
        uptime=time.monotonic() - request.app.state.start_time,
    )
