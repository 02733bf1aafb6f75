"""Realtime fan-out to connected clients over Redis pub/sub.

Events are published to ``<prefix>:user:<id>``, ``<prefix>:admin`` and
``<prefix>:all`` channels; a websocket gateway subscribed to them forwards each message
to the browser. Publishing is skipped when ``REALTIME_REDIS_URL`` is empty.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis  # type: ignore
from django.conf import settings  # type: ignore
from django.core.serializers.json import DjangoJSONEncoder  # type: ignore

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


def _get_client() -> redis.Redis | None:
    global _client
    url = getattr(settings, "REALTIME_REDIS_URL", "")
    if not url:
        return None
    if _client is None:
        _client = redis.Redis.from_url(url)
    return _client


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


ADMIN_ROOM = "admin"


def push_event(room: str, event: str, payload: dict[str, Any]) -> bool:
    """Publish ``event`` to a room. Returns False when nothing was sent."""
    client = _get_client()
    if client is None:
        logger.debug(f"Realtime disabled, dropping {event} for {room}")
        return False

    prefix = getattr(settings, "REALTIME_CHANNEL_PREFIX", "campspot")
    message = json.dumps({"event": event, "data": payload}, cls=DjangoJSONEncoder)
    try:
        client.publish(f"{prefix}:{room}", message)
    except redis.RedisError as e:
        logger.error(f"Failed to publish {event} to {room}: {e}")
        return False
    return True


def push_to_user(user_id: int, event: str, payload: dict[str, Any]) -> bool:
    return push_event(user_room(user_id), event, payload)


def push_to_admins(event: str, payload: dict[str, Any]) -> bool:
    return push_event(ADMIN_ROOM, event, payload)
