"""
WebSocket router for real-time notifications.

Clients connect to /ws/notifications?token=<session token>. The socket is
registered under the token's user; the server pushes
{"type": "notification", "data": {...}} for every notification row created for
that user. "ping" is answered with "pong".
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from grievance_api.core.deps import authenticate_token
from grievance_api.core.errors import Unauthenticated
from grievance_api.core.websocket import ConnectionRegistry, manager
from grievance_api.db.session import SessionLocal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])


@router.websocket("/notifications")
async def websocket_notifications(
    websocket: WebSocket,
    token: str | None = Query(None),
):
    """Authenticate, register, then keep the connection alive until the client leaves."""
    db = SessionLocal()
    try:
        user_id = authenticate_token(db, token).id
    except Unauthenticated as exc:
        await websocket.close(code=4001, reason=exc.message)
        return
    finally:
        db.close()

    await manager.connect(websocket, user_id)

    try:
        while True:
            try:
                data = await websocket.receive_text()
                if data == "ping":
                    await websocket.send_text("pong")
            except WebSocketDisconnect:
                break
    finally:
        await manager.unregister(websocket)


async def push_notification(
    user_id: UUID,
    notification: dict,
    registry: ConnectionRegistry | None = None,
) -> bool:
    """Push a notification to a connected user."""
    return await (registry or manager).send_to_user(
        user_id,
        {
            "type": "notification",
            "data": notification,
        },
    )


async def push_notifications(
    payloads: list[dict],
    registry: ConnectionRegistry | None = None,
) -> None:
    """
    Push already-committed notifications. Best-effort: a recipient without an
    open socket will see the row on their next poll.
    """
    for payload in payloads:
        try:
            delivered = await push_notification(UUID(payload["user_id"]), payload, registry)
        except Exception:
            logger.exception("Push for notification %s failed", payload.get("notification_id"))
            continue
        if not delivered:
            logger.debug("User %s offline, notification stored only", payload["user_id"])
