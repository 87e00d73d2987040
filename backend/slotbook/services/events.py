"""
backend/slotbook/services/events.py

Event emitter: pushes reservation lifecycle events to a Redis queue for
downstream consumers (notifications, order service).

Queue:
- events:slots: slot_locked / slot_released / booking_confirmed
"""

import json
import time
import logging

from redis.exceptions import RedisError

from .. import redis_client as redis_module

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:slots"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a lifecycle event.

    Pushed to the Redis list `events:slots`. Without a configured Redis
    client the event is dropped; publish failures are logged, never raised.
    """
    client = redis_module.redis_client
    if client is None:
        logger.debug(f"Event {event_type} not published: Redis is not configured")
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        client.rpush(EVENTS_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
