# compras/backend/feed.py
import logging
import threading
from collections import defaultdict

from .base import Subscription

logger = logging.getLogger(__name__)


def session_channel(token_id: str) -> str:
    return f"auth:{token_id}"


class ChangeFeed:
    """
    In-process change feed shared by every backend client of one app.

    Channels are table names (payload: the inserted row) or
    ``session_channel(jti)`` (payload: the new session, ``None`` on sign-out).

    Callbacks run on the publishing thread, in subscription order. They are
    expected to hand the payload off (e.g. put it on a queue) and return.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers = defaultdict(dict)

    def subscribe(self, channel: str, callback, topic=None) -> Subscription:
        holder = {}

        def release():
            with self._lock:
                self._subscribers[channel].pop(holder["id"], None)
            logger.debug("feed: unsubscribed %s from %s", holder["id"], channel)

        sub = Subscription(release, topic=topic or f"INSERT:{channel}")
        holder["id"] = sub.id
        with self._lock:
            self._subscribers[channel][sub.id] = callback
        logger.debug("feed: subscribed %s to %s", sub.id, channel)
        return sub

    def publish(self, channel: str, payload) -> int:
        with self._lock:
            callbacks = list(self._subscribers[channel].values())
        for cb in callbacks:
            cb(payload)
        return len(callbacks)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers[channel])
