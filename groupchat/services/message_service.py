"""Message service: post to and read from named groups.

Messages are stored under ``("messages", group, timestamp, message_id)`` so
a prefix scan on ``("messages", group)`` returns them in send order. The
id is a monotonic counter plus random suffix, so two messages sent in the
same millisecond by one process keep their order and never collide.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from ..repositories.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

MESSAGES_PREFIX = "messages"


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def send_message(
    store: KeyValueStore,
    group_name: str,
    sender: str,
    text: str,
    now: Optional[datetime] = None,
) -> dict:
    timestamp = format_timestamp(now or datetime.now(timezone.utc))
    value = {"from": sender, "message": text, "timestamp": timestamp}
    message_id = f"{time.monotonic_ns():016x}-{uuid.uuid4().hex[:8]}"
    store.set((MESSAGES_PREFIX, group_name, timestamp, message_id), value)
    logger.debug("Message stored", extra={"group": group_name, "sender": sender})
    return value


def list_messages(store: KeyValueStore, group_name: str) -> List[dict]:
    """All messages in *group_name*, oldest first."""
    return [value for _, value in store.iter_prefix((MESSAGES_PREFIX, group_name))]


def purge_messages(store: KeyValueStore) -> int:
    count = store.delete_prefix((MESSAGES_PREFIX,))
    logger.warning("Purged all messages", extra={"count": count})
    return count
