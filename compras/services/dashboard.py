# compras/services/dashboard.py
"""
Review dashboard: operator session, live purchase list, search, stats,
image viewer and export.

Backend notifications (session changes, inserted rows) are turned into
events and queued on ``inbox``. They only take effect when the dashboard
pumps the inbox, so every state change happens on the caller's thread.

Usage::

    with ReviewDashboard(backend) as dash:
        dash.sign_in(email, password)
        dash.search_term = "abc"
        rows = dash.filtered_purchases
"""
from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from ..backend import Backend, BackendError
from ..events import (AUTHENTICATED, DashboardState, RecordInserted, RecordsLoaded,
                      SessionChanged, reduce)
from ..records import PurchaseRecord
from ..utils.dates import format_es, get_zone, is_today
from .export import export_purchases

logger = logging.getLogger(__name__)

MSG_BAD_CREDENTIALS = "Credenciales incorrectas"
MSG_EMPTY = "No hay compras registradas"


@dataclass
class ImageModal:
    url: Optional[str] = None

    @property
    def open(self):
        return self.url is not None

    def as_dict(self):
        return {"open": self.open, "image_url": self.url, "new_tab_url": self.url}


class ReviewDashboard:

    def __init__(self, backend: Backend, table="purchases", tz=None):
        self.backend = backend
        self.table = table
        self.tz = tz if isinstance(tz, tzinfo) else get_zone(tz)
        self.inbox: "queue.Queue" = queue.Queue()
        self.state = DashboardState()
        self.error = ""
        self.search_term = ""
        self.modal = ImageModal()
        self._auth_sub = None
        self._feed_sub = None
        self.mounted = False

    # ------------------------ lifecycle ------------------------
    def __enter__(self):
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.teardown()
        return False

    def mount(self):
        if self.mounted:
            return
        self.mounted = True
        self._auth_sub = self.backend.on_session_change(
            lambda session: self.inbox.put(SessionChanged(session)))
        try:
            current = self.backend.get_current_session()
        except BackendError:
            logger.exception("dashboard: could not read current session")
            current = None
        self.dispatch(SessionChanged(current))
        self.pump()

    def teardown(self):
        self.backend.unsubscribe(self._auth_sub)
        self._auth_sub = None
        self._close_feed()
        self.mounted = False

    # ------------------------ events ------------------------
    def dispatch(self, event):
        prev = self.state
        self.state = reduce(prev, event)
        self._after(prev, self.state)
        return self.state

    def pump(self):
        """Apply every queued event; returns the applied events in order."""
        applied = []
        while True:
            try:
                event = self.inbox.get_nowait()
            except queue.Empty:
                return applied
            self.dispatch(event)
            applied.append(event)

    def wait(self, timeout=None):
        """Block for the next queued event and apply it; ``None`` on timeout."""
        try:
            event = self.inbox.get(timeout=timeout)
        except queue.Empty:
            return None
        self.dispatch(event)
        return event

    def _after(self, prev, new):
        was_in = prev.status == AUTHENTICATED
        now_in = new.status == AUTHENTICATED
        switched = was_in and now_in and prev.session.user_id != new.session.user_id
        if was_in and (not now_in or switched):
            self._close_feed()
        if now_in and (not was_in or switched):
            self._open_feed()

    def _open_feed(self):
        self._feed_sub = self.backend.subscribe_to_inserts(
            self.table, lambda row: self.inbox.put(RecordInserted(PurchaseRecord.from_row(row))))
        try:
            rows = self.backend.select(self.table, order_by="created_at", ascending=False)
        except BackendError:
            logger.exception("dashboard: error fetching %s", self.table)
            return
        self.dispatch(RecordsLoaded(tuple(PurchaseRecord.from_row(r) for r in rows)))

    def _close_feed(self):
        self.backend.unsubscribe(self._feed_sub)
        self._feed_sub = None

    @property
    def live(self):
        return self._feed_sub is not None and self._feed_sub.active

    # ------------------------ session ------------------------
    @property
    def status(self):
        return self.state.status

    @property
    def session(self):
        return self.state.session

    def sign_in(self, email, password) -> bool:
        self.error = ""
        try:
            self.backend.sign_in_with_password(email, password)
        except BackendError as e:
            logger.warning("dashboard: sign-in rejected for %s: %s", email, e.detail)
            self.error = MSG_BAD_CREDENTIALS
            return False
        self.pump()
        return True

    def sign_out(self):
        self.backend.sign_out()
        self.pump()

    # ------------------------ display ------------------------
    @property
    def purchases(self):
        return list(self.state.purchases)

    @property
    def filtered_purchases(self):
        return [p for p in self.state.purchases if p.matches(self.search_term)]

    @property
    def total_count(self):
        return len(self.state.purchases)

    def today_count(self, now=None):
        return sum(1 for p in self.state.purchases if is_today(p.created_at, self.tz, now))

    def stats(self, now=None):
        return {"total": self.total_count, "today": self.today_count(now)}

    def display_row(self, record: PurchaseRecord):
        return {
            "id": record.id,
            "fecha": format_es(record.created_at, self.tz),
            "nombre": record.nombre or "N/A",
            "email": record.email or "N/A",
            "codigo_referido": record.codigo_referido,
            "comprobante_url": record.comprobante_url,
        }

    def display_rows(self):
        return [self.display_row(p) for p in self.filtered_purchases]

    @property
    def empty_message(self):
        return "" if self.filtered_purchases else MSG_EMPTY

    def find(self, purchase_id) -> Optional[PurchaseRecord]:
        return next((p for p in self.state.purchases if p.id == purchase_id), None)

    # ------------------------ image viewer ------------------------
    def open_image(self, record: PurchaseRecord):
        self.modal = ImageModal(record.comprobante_url)
        return self.modal

    def close_image(self):
        self.modal = ImageModal()

    def click(self, target: str):
        """Clicks on the backdrop close the viewer; clicks inside the content do not."""
        if target == "backdrop":
            self.close_image()

    # ------------------------ export ------------------------
    def export(self, now=None):
        return export_purchases(self.state.purchases, self.tz, now)
