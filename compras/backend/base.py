# compras/backend/base.py
"""
Contract of the backend collaborator.

The components never talk to the database, the storage folder or the
auth tables directly. They receive a ``Backend`` instance and only use the
operations declared here, so a hosted service or a test double can take
its place.
"""
from __future__ import annotations

import abc
import itertools
from dataclasses import dataclass
from typing import Callable, Optional


class BackendError(Exception):
    """A backend call failed. ``operation`` names the call, ``detail`` is for logs only."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}" if detail else f"{operation} failed")


@dataclass(frozen=True)
class Session:
    user_id: int
    email: str
    access_token: Optional[str] = None
    # jti of the access token; sign-out on any client reaches every holder of it
    token_id: Optional[str] = None

    def as_dict(self):
        return {"user_id": self.user_id, "email": self.email}


_handle_ids = itertools.count(1)


class Subscription:
    """Handle returned by every subscribe call; releasing it twice is a no-op."""

    def __init__(self, release: Callable[[], None], topic: str = ""):
        self.id = next(_handle_ids)
        self.topic = topic
        self._release = release
        self.active = True

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self._release()

    def __repr__(self):
        state = "active" if self.active else "closed"
        return f"<Subscription {self.id} {self.topic} {state}>"


SessionCallback = Callable[[Optional[Session]], None]
InsertCallback = Callable[[dict], None]


class Backend(abc.ABC):

    # ---- session ----
    @abc.abstractmethod
    def get_current_session(self) -> Optional[Session]: ...

    @abc.abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> Session: ...

    @abc.abstractmethod
    def sign_out(self) -> None: ...

    @abc.abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Subscription: ...

    # ---- storage ----
    @abc.abstractmethod
    def upload(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None: ...

    @abc.abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str: ...

    # ---- table ----
    @abc.abstractmethod
    def select(self, table: str, order_by: str = "created_at", ascending: bool = False) -> list[dict]: ...

    @abc.abstractmethod
    def insert(self, table: str, record: dict) -> dict: ...

    @abc.abstractmethod
    def subscribe_to_inserts(self, table: str, callback: InsertCallback) -> Subscription: ...

    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        if subscription is not None:
            subscription.unsubscribe()
