# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""WebSocket fan-out of XP broadcasts to connected game clients."""

from __future__ import annotations

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

router = APIRouter(tags=["websocket"])


class ConnectionManager:
    """Tracks connected game clients and broadcasts JSON messages to them."""

    def __init__(self) -> None:
        self.active_connections: set[WebSocket] = set()
        self.last_event: dict | None = None

    @property
    def count(self) -> int:
        return len(self.active_connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"Game client connected ({self.count} total)")

    async def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.discard(websocket)
            logger.info(f"Game client disconnected ({self.count} remaining)")

    async def broadcast(self, message: dict) -> int:
        """Send *message* to every client; drop clients whose send fails.  Returns deliveries."""
        self.last_event = message
        text = json.dumps(message)
        dead: list[WebSocket] = []
        delivered = 0
        for ws in list(self.active_connections):
            try:
                await ws.send_text(text)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropping client after failed send: {e}")
                dead.append(ws)
        for ws in dead:
            self.active_connections.discard(ws)
        return delivered

    async def send_to(self, websocket: WebSocket, message: dict) -> bool:
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as e:
            logger.debug(f"send_to failed: {e}")
            return False


async def _serve(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.manager
    await manager.connect(websocket)
    try:
        # Clients only listen; anything they send is ignored.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)


@router.websocket("/")
async def websocket_root(websocket: WebSocket):
    await _serve(websocket)


@router.websocket("/ws")
async def websocket_ws(websocket: WebSocket):
    await _serve(websocket)
