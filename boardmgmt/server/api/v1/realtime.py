"""
Realtime WebSocket Endpoint.

Clients connect with ``/api/v1/realtime/ws?token=<jwt>`` and receive JSON frames
``{"event": <name>, "data": <payload>}``. They may send:

- ``{"action": "join_conversation", "conversation_id": "..."}``
- ``{"action": "leave_conversation", "conversation_id": "..."}``
- ``{"action": "ping"}``
"""

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from boardmgmt.core.exceptions import UnauthorizedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.server.services.chat import ChatService
from boardmgmt.server.services.deps import SessionDep, TokenServiceDep, user_from_token
from boardmgmt.server.services.realtime import conversation_group, get_realtime_hub

logger = get_logger(__name__)

router = APIRouter()

POLICY_VIOLATION_UNAUTHORIZED = 4401


def parse_client_frame(text: str) -> Optional[Dict[str, Any]]:
    """Decode a client frame; anything but a JSON object yields ``None``."""
    try:
        message = json.loads(text)
    except ValueError:
        return None
    return message if isinstance(message, dict) else None


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, session: SessionDep, tokens: TokenServiceDep, token: str = ""):
    try:
        user = await user_from_token(session, tokens, token)
    except UnauthorizedError as e:
        logger.debug(f"Rejected realtime connection: {e.message}")
        await websocket.accept()
        await websocket.close(code=POLICY_VIOLATION_UNAUTHORIZED)
        return

    hub = get_realtime_hub()
    await websocket.accept()
    await hub.connect(websocket, user.id)
    chat = ChatService(session, hub=hub)
    try:
        while True:
            message = parse_client_frame(await websocket.receive_text())
            if message is None:
                await _send_error(websocket, "Frames must be JSON objects.")
                continue
            action = message.get("action")
            conversation_id = str(message.get("conversation_id") or "")

            if action == "ping":
                await websocket.send_json({"event": "pong", "data": None})
            elif action == "join_conversation":
                if conversation_id and await chat.is_member(conversation_id, user.id):
                    await hub.join(websocket, conversation_group(conversation_id))
                    await websocket.send_json({"event": "joined", "data": {"conversation_id": conversation_id}})
                else:
                    await _send_error(websocket, "Not a member of this conversation.")
            elif action == "leave_conversation":
                await hub.leave(websocket, conversation_group(conversation_id))
            else:
                await _send_error(websocket, f"Unknown action: {action!r}")
    except WebSocketDisconnect:
        logger.debug(f"Realtime connection closed for user {user.id}")
    finally:
        await hub.disconnect(websocket)
