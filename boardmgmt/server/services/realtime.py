"""
Realtime hub.

Keeps the open WebSocket connections of this process in named groups and fans out
events to them. Every socket joins ``user:{user_id}`` on connect; chat clients
additionally join ``conv:{conversation_id}`` for the conversations they open.

Events are sent as ``{"event": <name>, "data": <payload>}`` JSON frames. A socket
that fails to receive an event is dropped from all groups.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from boardmgmt.core.logging_config import get_logger

logger = get_logger(__name__)

# Event names
MESSAGE_CREATED = "MessageCreated"
MESSAGE_EDITED = "MessageEdited"
MESSAGE_DELETED = "MessageDeleted"
REACTION_UPDATED = "ReactionUpdated"
TYPING = "Typing"
INBOX_MESSAGE = "InboxMessage"
READ_RECEIPT = "ReadReceipt"


def user_group(user_id: str) -> str:
    return f"user:{user_id}"


def conversation_group(conversation_id: str) -> str:
    return f"conv:{conversation_id}"


class RealtimeHub:
    """In-process WebSocket group registry."""

    def __init__(self) -> None:
        self._groups: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        await self.join(websocket, user_group(user_id))
        logger.debug(f"Realtime connection opened for user {user_id}")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            for group in list(self._groups):
                members = self._groups[group]
                members.discard(websocket)
                if not members:
                    del self._groups[group]

    async def join(self, websocket: WebSocket, group: str) -> None:
        async with self._lock:
            self._groups.setdefault(group, set()).add(websocket)

    async def leave(self, websocket: WebSocket, group: str) -> None:
        async with self._lock:
            members = self._groups.get(group)
            if members is None:
                return
            members.discard(websocket)
            if not members:
                del self._groups[group]

    async def leave_user(self, user_id: str, group: str) -> None:
        """Remove every connection of ``user_id`` from ``group``."""
        for websocket in self.members(user_group(user_id)):
            await self.leave(websocket, group)

    def members(self, group: str) -> List[WebSocket]:
        return list(self._groups.get(group, ()))

    async def emit(self, group: str, event: str, payload: Any) -> int:
        """
        Send an event to every socket in ``group``.

        Returns:
            Number of sockets the event was delivered to
        """
        frame = {"event": event, "data": jsonable_encoder(payload)}
        delivered = 0
        dead: List[WebSocket] = []
        for websocket in self.members(group):
            try:
                await websocket.send_json(frame)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropping realtime connection after send failure: {e}")
                dead.append(websocket)
        for websocket in dead:
            await self.disconnect(websocket)
        return delivered


_hub = RealtimeHub()


def get_realtime_hub() -> RealtimeHub:
    return _hub
