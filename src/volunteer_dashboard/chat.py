from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Tuple

from .configuration import OrganizerConfig
from .models import ChatMessageRecord
from .schemas import ChatMessageCreate

logger = logging.getLogger(__name__)

INSERT = "INSERT"
DELETE = "DELETE"


class ChatSubscription:
    def __init__(self, broadcaster: "ChatBroadcaster", event_id: int):
        self.broadcaster = broadcaster
        self.event_id = event_id
        self.loop = asyncio.get_running_loop()
        self.queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()

    def close(self) -> None:
        self.broadcaster.unsubscribe(self)


class ChatBroadcaster:
    """
    In-process change feed for event chats.

    Each subscriber owns a queue bound to its event loop. ``publish`` may be
    called from any thread; changes are handed to each loop with
    ``call_soon_threadsafe``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Set[ChatSubscription]] = defaultdict(set)

    def subscribe(self, event_id: int) -> ChatSubscription:
        subscription = ChatSubscription(self, event_id)
        with self._lock:
            self._subscribers[event_id].add(subscription)
        return subscription

    def unsubscribe(self, subscription: ChatSubscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.event_id)
            if not subscribers:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.event_id]

    def subscriber_count(self, event_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(event_id, ()))

    def publish(self, event_id: int, change: Dict[str, Any]) -> None:
        with self._lock:
            targets = list(self._subscribers.get(event_id, ()))
        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, change)
            except RuntimeError as exc:
                logger.warning("Dropping chat subscriber for event %s: %s", event_id, exc)
                self.unsubscribe(subscription)


class ChatService:
    def __init__(self, repository, broadcaster: ChatBroadcaster, organizer: Optional[OrganizerConfig] = None):
        self.repository = repository
        self.broadcaster = broadcaster
        self.organizer = organizer or OrganizerConfig()

    def serialize(self, message: ChatMessageRecord) -> Dict[str, Any]:
        payload = message.as_dict()
        if payload["created_at"] is not None:
            payload["created_at"] = payload["created_at"].isoformat()
        payload["isOrganizer"] = message.volunteer_id == self.organizer.id
        return payload

    def list_messages(self, event_id: int) -> List[Dict[str, Any]]:
        return [self.serialize(message) for message in self.repository.list_chat_messages(event_id)]

    def post_message(self, event_id: int, form: ChatMessageCreate) -> Dict[str, Any]:
        self.repository.get_event(event_id)
        author_id, author_name, author_email = self._author(form)
        record = self.repository.create_chat_message(
            {
                "event_id": event_id,
                "message": form.message,
                "volunteer_id": author_id,
                "volunteer_name": author_name,
                "volunteer_email": author_email,
            }
        )
        payload = self.serialize(record)
        self.broadcaster.publish(event_id, {"type": INSERT, "new": payload})
        return payload

    def delete_message(self, message_id: int) -> Dict[str, Any]:
        record = self.repository.delete_chat_message(message_id)
        self.broadcaster.publish(record.event_id, {"type": DELETE, "old": {"id": record.id}})
        return {"id": record.id, "eventId": record.event_id}

    def _author(self, form: ChatMessageCreate) -> Tuple[str, str, Optional[str]]:
        if form.volunteer_id and form.volunteer_name:
            return form.volunteer_id, form.volunteer_name, form.volunteer_email
        return self.organizer.id, self.organizer.name, self.organizer.email
