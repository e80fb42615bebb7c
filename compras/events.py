# compras/events.py
"""
Typed events for the review dashboard and the reducer that applies them.

Backend callbacks only produce events; the dashboard feeds them to
``reduce`` one at a time on its own thread, which keeps ordering explicit
and makes every transition testable without a backend.
"""
from dataclasses import dataclass, field, replace
from typing import Optional

from .backend import Session
from .records import PurchaseRecord

LOADING = "loading"
UNAUTHENTICATED = "unauthenticated"
AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionChanged:
    session: Optional[Session]


@dataclass(frozen=True)
class RecordsLoaded:
    records: tuple


@dataclass(frozen=True)
class RecordInserted:
    record: PurchaseRecord


@dataclass(frozen=True)
class DashboardState:
    status: str = LOADING
    session: Optional[Session] = None
    purchases: tuple = field(default_factory=tuple)

    @property
    def authenticated(self):
        return self.status == AUTHENTICATED


def _same_user(a, b):
    return a is not None and b is not None and a.user_id == b.user_id


def reduce(state: DashboardState, event) -> DashboardState:
    if isinstance(event, SessionChanged):
        if event.session is None:
            return DashboardState(status=UNAUTHENTICATED)
        if state.authenticated and _same_user(state.session, event.session):
            # token refresh for the same identity keeps the loaded list
            return replace(state, session=event.session)
        return DashboardState(status=AUTHENTICATED, session=event.session)

    if isinstance(event, RecordsLoaded):
        if not state.authenticated:
            return state
        loaded_ids = {r.id for r in event.records}
        # rows delivered by the feed while the fetch was in flight stay on top
        early = tuple(r for r in state.purchases if r.id not in loaded_ids)
        return replace(state, purchases=early + tuple(event.records))

    if isinstance(event, RecordInserted):
        if not state.authenticated:
            return state
        if any(r.id == event.record.id for r in state.purchases):
            return state
        return replace(state, purchases=(event.record,) + state.purchases)

    raise TypeError(f"unknown dashboard event {event!r}")
