import json
from io import BytesIO

from flask_jwt_extended import get_jti

from compras.admin.stream import format_sse, stream_purchases
from compras.backend import Session
from compras.backend.feed import session_channel
from compras.services.dashboard import ReviewDashboard
from conftest import ADMIN_EMAIL, FakeBackend, make_row


def parse(chunk):
    lines = dict(line.split(": ", 1) for line in chunk.strip().splitlines())
    return lines.get("event"), json.loads(lines["data"])


def text(chunk):
    return chunk.decode() if isinstance(chunk, bytes) else chunk


def authed_backend():
    backend = FakeBackend(session=Session(user_id=1, email=ADMIN_EMAIL))
    backend.rows = [make_row(1, "ABC123")]
    backend._next_id = 2
    return backend


def test_format_sse():
    assert format_sse({"a": "ñ"}, event="x") == 'event: x\ndata: {"a": "ñ"}\n\n'
    assert format_sse([1]) == "data: [1]\n\n"


def test_ready_then_purchase_events():
    backend = authed_backend()
    gen = stream_purchases(ReviewDashboard(backend, tz="UTC"), heartbeat=0.01, max_events=1)

    event, data = parse(next(gen))
    assert event == "ready"
    assert data["live"] is True
    assert data["stats"]["total"] == 1

    assert next(gen) == ": ping\n\n"

    backend.insert("purchases", {"codigo_referido": "NEW", "comprobante_url": "https://x/2.png"})
    event, data = parse(next(gen))
    assert event == "purchase"
    assert data["purchase"]["codigo_referido"] == "NEW"
    assert data["stats"]["total"] == 2

    # max_events reached: generator ends and releases its subscriptions
    assert list(gen) == []
    assert backend.insert_listeners == {}
    assert backend.session_listeners == {}


def test_duplicate_rows_are_not_streamed():
    backend = authed_backend()
    gen = stream_purchases(ReviewDashboard(backend, tz="UTC"), heartbeat=0.01, max_events=1)
    next(gen)
    backend.emit_insert(backend.rows[0])
    assert next(gen) == ": ping\n\n"
    gen.close()


def test_sign_out_ends_stream():
    backend = authed_backend()
    gen = stream_purchases(ReviewDashboard(backend, tz="UTC"), heartbeat=0.01)
    next(gen)
    backend.sign_out()
    event, data = parse(next(gen))
    assert event == "signed_out"
    assert list(gen) == []
    assert backend.insert_listeners == {}


def test_closing_client_releases_subscriptions():
    backend = authed_backend()
    gen = stream_purchases(ReviewDashboard(backend, tz="UTC"), heartbeat=0.01)
    next(gen)
    assert len(backend.insert_listeners) == 1
    gen.close()
    assert backend.insert_listeners == {}
    assert backend.session_listeners == {}


def test_stream_endpoint(client, auth_headers):
    resp = client.get("/admin/stream", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.mimetype == "text/event-stream"
    first = text(next(iter(resp.response)))
    assert first.startswith("event: ready")
    resp.close()


def test_logout_ends_open_stream(app, client, auth_headers):
    feed = app.extensions["compras"]["backend_factory"].feed
    token = auth_headers["Authorization"].split()[1]
    with app.app_context():
        channel = session_channel(get_jti(token))

    resp = client.get("/admin/stream", headers=auth_headers)
    chunks = iter(resp.response)
    event, data = parse(text(next(chunks)))
    assert event == "ready"
    assert data["live"] is True
    assert feed.subscriber_count("purchases") == 1
    assert feed.subscriber_count(channel) == 1

    assert client.post("/admin/logout", headers=auth_headers).status_code == 200
    form = {"codigo_referido": "LATE01", "comprobante": (BytesIO(b"\x89PNG"), "r.png", "image/png")}
    assert client.post("/", data=form, content_type="multipart/form-data").status_code == 201

    event, data = parse(text(next(chunks)))
    assert event == "signed_out"
    assert data["status"] == "unauthenticated"
    assert feed.subscriber_count("purchases") == 0
    assert list(chunks) == []
    assert feed.subscriber_count(channel) == 0
    resp.close()
