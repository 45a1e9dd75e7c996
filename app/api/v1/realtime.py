"""
Realtime WebSocket feeds.

Browsers cannot set an Authorization header on a WebSocket handshake, so
the token travels as the ``token`` query parameter. Every feed pushes the
full current result set on connect and again after each change.
"""

import asyncio

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from app.config import Settings, get_settings
from app.crud.chat import ChatCRUD, GlobalChatCRUD
from app.crud.notifications import NotificationCRUD
from app.dependencies import authenticate_token, get_db_client
from app.services.realtime import SnapshotFeed
from app.utils.exceptions import LaCasaException
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


async def _authenticate(websocket: WebSocket, token: str):
    await websocket.accept()
    try:
        return authenticate_token(token)
    except LaCasaException as e:
        logger.info(f"Realtime connection refused: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return None


async def _until_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _pump(websocket: WebSocket, feed: SnapshotFeed) -> None:
    """Forward snapshots until the client goes away."""
    feed.start()
    disconnected = asyncio.ensure_future(_until_disconnect(websocket))
    try:
        while True:
            pending = asyncio.ensure_future(feed.next())
            done, _ = await asyncio.wait({pending, disconnected}, return_when=asyncio.FIRST_COMPLETED)
            if disconnected in done:
                pending.cancel()
                break
            await websocket.send_json(pending.result())
    except WebSocketDisconnect:
        pass
    finally:
        feed.stop()
        disconnected.cancel()


@router.websocket("/global-chat")
async def global_chat_feed(
    websocket: WebSocket,
    token: str = Query(""),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """The latest global chat messages, oldest first."""
    if await _authenticate(websocket, token) is None:
        return
    query = GlobalChatCRUD(db_client).recent_query(settings.chat_history_limit)
    await _pump(websocket, SnapshotFeed(query, transform=lambda items: list(reversed(items))))


@router.websocket("/conversations")
async def conversations_feed(
    websocket: WebSocket,
    token: str = Query(""),
    db_client=Depends(get_db_client),
):
    """The caller's conversation list with previews and unread counters."""
    user = await _authenticate(websocket, token)
    if user is None:
        return
    await _pump(websocket, SnapshotFeed(ChatCRUD(db_client).conversations_query(user["uid"])))


@router.websocket("/conversations/{conversation_id}")
async def conversation_feed(
    websocket: WebSocket,
    conversation_id: str,
    token: str = Query(""),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Messages of one conversation. Only participants may listen."""
    user = await _authenticate(websocket, token)
    if user is None:
        return
    try:
        query = ChatCRUD(db_client).messages_query(conversation_id, user["uid"], settings.chat_history_limit)
    except LaCasaException as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return
    await _pump(websocket, SnapshotFeed(query))


@router.websocket("/notifications")
async def notifications_feed(
    websocket: WebSocket,
    token: str = Query(""),
    db_client=Depends(get_db_client),
):
    """The caller's notifications, newest first, with the unread count."""
    user = await _authenticate(websocket, token)
    if user is None:
        return

    def with_unread(items):
        return {"notifications": items, "unread_count": sum(1 for n in items if not n.get("read"))}

    await _pump(websocket, SnapshotFeed(NotificationCRUD(db_client).feed_query(user["uid"]), transform=with_unread))
