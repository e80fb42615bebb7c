"""
Pytest configuration and shared fixtures.
"""
from datetime import datetime, timezone

import pytest
from werkzeug.security import generate_password_hash

from compras import create_app
from compras.backend import Backend, BackendError, Session, Subscription
from compras.extensions import db
from compras.model import User
from compras.services.submission import ReceiptFile

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


class FakeBackend(Backend):
    """In-memory backend; operations listed in ``fail`` raise ``BackendError``."""

    def __init__(self, users=None, session=None):
        self.users = users if users is not None else {ADMIN_EMAIL: ADMIN_PASSWORD}
        self.session = session
        self.session_listeners = {}
        self.insert_listeners = {}
        self.objects = {}
        self.rows = []
        self.calls = []
        self.fail = set()
        self._next_id = 1
        self.clock = lambda: datetime.now(timezone.utc)

    def _call(self, op):
        self.calls.append(op)
        if op in self.fail:
            raise BackendError(op, "simulated failure")

    def _subscribe(self, registry, callback, topic):
        holder = {}
        sub = Subscription(lambda: registry.pop(holder["id"], None), topic=topic)
        holder["id"] = sub.id
        registry[sub.id] = callback
        return sub

    # session
    def get_current_session(self):
        return self.session

    def _notify(self):
        for cb in list(self.session_listeners.values()):
            cb(self.session)

    def sign_in_with_password(self, email, password):
        self._call("sign_in")
        if self.users.get(email) != password:
            raise BackendError("sign_in", "invalid login credentials")
        self.session = Session(user_id=list(self.users).index(email) + 1, email=email, access_token="tok")
        self._notify()
        return self.session

    def sign_out(self):
        self._call("sign_out")
        self.session = None
        self._notify()

    def on_session_change(self, callback):
        return self._subscribe(self.session_listeners, callback, "auth")

    # storage
    def upload(self, bucket, path, data, content_type=None):
        self._call("upload")
        if (bucket, path) in self.objects:
            raise BackendError("upload", "duplicate")
        self.objects[(bucket, path)] = data

    def get_public_url(self, bucket, path):
        return f"https://files.example.com/{bucket}/{path}"

    # table
    def select(self, table, order_by="created_at", ascending=False):
        self._call("select")
        return sorted(self.rows, key=lambda r: r[order_by], reverse=not ascending)

    def insert(self, table, record):
        self._call("insert")
        row = dict(record, id=self._next_id, created_at=self.clock().isoformat())
        self._next_id += 1
        self.rows.append(row)
        self.emit_insert(row)
        return row

    def subscribe_to_inserts(self, table, callback):
        self._call("subscribe")
        return self._subscribe(self.insert_listeners, callback, f"INSERT:{table}")

    def emit_insert(self, row):
        for cb in list(self.insert_listeners.values()):
            cb(row)


def make_row(id, codigo, nombre=None, email=None, created_at="2026-10-19T15:00:00+00:00"):
    return {
        "id": id,
        "nombre": nombre,
        "email": email,
        "codigo_referido": codigo,
        "comprobante_url": f"https://files.example.com/comprobantes/{id}.png",
        "created_at": created_at,
    }


def image(name="recibo.png", size=1024, content_type="image/png"):
    return ReceiptFile(filename=name, content_type=content_type, data=b"\x89PNG" + b"0" * (size - 4))


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "STORAGE_ROOT": str(tmp_path / "storage"),
        "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
        "TIMEZONE": "America/La_Paz",
        "STREAM_HEARTBEAT_SECONDS": 1,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_user(app):
    with app.app_context():
        u = User(email=ADMIN_EMAIL, name="Admin", password_hash=generate_password_hash(ADMIN_PASSWORD))
        db.session.add(u)
        db.session.commit()
        return u.id


@pytest.fixture
def auth_headers(client, admin_user):
    resp = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    token = resp.get_json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}
