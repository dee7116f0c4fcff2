from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..chat import ChatBroadcaster, ChatService
from ..dependencies import get_broadcaster, get_chat_service
from ..schemas import ChatMessageCreate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.get("/events/{event_id}/chat")
def list_messages(event_id: int, service: ChatService = Depends(get_chat_service)) -> List[Dict[str, Any]]:
    return service.list_messages(event_id)


@router.post("/events/{event_id}/chat", status_code=201)
def post_message(
    event_id: int,
    form: ChatMessageCreate,
    service: ChatService = Depends(get_chat_service),
) -> Dict[str, Any]:
    return service.post_message(event_id, form)


@router.delete("/chat/{message_id}")
def delete_message(message_id: int, service: ChatService = Depends(get_chat_service)) -> Dict[str, Any]:
    return service.delete_message(message_id)


@router.websocket("/events/{event_id}/chat/ws")
async def chat_feed(
    websocket: WebSocket,
    event_id: int,
    broadcaster: ChatBroadcaster = Depends(get_broadcaster),
) -> None:
    subscription = None
    sender = None

    async def forward() -> None:
        while True:
            change = await subscription.get()
            await websocket.send_json(change)

    try:
        subscription = broadcaster.subscribe(event_id)
        await websocket.accept()
        sender = asyncio.create_task(forward())
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Chat feed for event %s closed", event_id)
    finally:
        if sender is not None:
            sender.cancel()
            (outcome,) = await asyncio.gather(sender, return_exceptions=True)
            if not isinstance(outcome, asyncio.CancelledError):
                logger.warning("Chat feed for event %s stopped sending: %s", event_id, outcome)
        if subscription is not None:
            subscription.close()
