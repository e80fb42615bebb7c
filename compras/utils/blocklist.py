# compras/utils/blocklist.py
import threading
import time


class RevokedTokens:
    """
    ``jti`` -> ``exp`` of signed-out access tokens.

    Expired entries are dropped on every ``add``; an expired token is rejected
    by the JWT layer anyway, so the set only holds tokens that could still be used.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries = {}

    def add(self, jti, exp):
        with self._lock:
            now = self._clock()
            for key in [k for k, e in self._entries.items() if e <= now]:
                del self._entries[key]
            self._entries[jti] = exp

    def __contains__(self, jti):
        with self._lock:
            return jti in self._entries

    def __len__(self):
        with self._lock:
            return len(self._entries)
