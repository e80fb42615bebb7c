# compras/admin/stream.py
import json
import logging

from ..events import RecordInserted

logger = logging.getLogger(__name__)


def format_sse(data, event=None):
    payload = json.dumps(data, ensure_ascii=False)
    head = f"event: {event}\n" if event else ""
    return f"{head}data: {payload}\n\n"


def stream_purchases(dashboard, heartbeat=15, max_events=None):
    """
    Server-Sent Events for a review dashboard.

    Mounts the dashboard on the first ``next()`` and tears it down when the
    generator is closed (client gone) or exhausted.
    """
    with dashboard:
        logger.info("stream: opened (status=%s, live=%s)", dashboard.status, dashboard.live)
        yield format_sse({"status": dashboard.status, "live": dashboard.live,
                          "stats": dashboard.stats()}, event="ready")
        sent = 0
        try:
            while max_events is None or sent < max_events:
                before = dashboard.total_count
                event = dashboard.wait(timeout=heartbeat)
                if event is None:
                    yield ": ping\n\n"
                    continue
                if not dashboard.state.authenticated:
                    yield format_sse({"status": dashboard.status}, event="signed_out")
                    return
                if isinstance(event, RecordInserted) and dashboard.total_count > before:
                    yield format_sse({"purchase": dashboard.display_row(event.record),
                                      "stats": dashboard.stats()}, event="purchase")
                    sent += 1
        finally:
            logger.info("stream: closed after %d event(s)", sent)
