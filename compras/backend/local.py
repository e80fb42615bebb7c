# compras/backend/local.py
"""
Backend implementation backed by the app's own database and disk.

- table API    -> Flask-SQLAlchemy models
- storage API  -> files under ``STORAGE_ROOT/<bucket>/``, served by the storage blueprint
- session API  -> ``users`` table + werkzeug password hashes + JWT access tokens
- change feed  -> ``ChangeFeed`` shared through ``app.extensions``

Every method expects an active app context.
"""
from __future__ import annotations

import logging
import os

from flask import current_app, has_request_context, url_for
from flask_jwt_extended import create_access_token, get_jti
from sqlalchemy import asc, desc
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash
from werkzeug.utils import safe_join

from ..extensions import db
from ..model import Purchase, User
from .base import Backend, BackendError, Session, Subscription
from .feed import ChangeFeed, session_channel

logger = logging.getLogger(__name__)

TABLES = {
    Purchase.__tablename__: Purchase,
}

# insert-time required columns per table
REQUIRED = {
    Purchase.__tablename__: ("codigo_referido", "comprobante_url"),
}


def _model(operation, table):
    model = TABLES.get(table)
    if model is None:
        raise BackendError(operation, f"unknown table {table!r}")
    return model


class LocalBackend(Backend):

    def __init__(self, feed: ChangeFeed, storage_root: str, public_base_url: str | None = None,
                 session: Session | None = None):
        self.feed = feed
        self.storage_root = storage_root
        self.public_base_url = (public_base_url or "").rstrip("/") or None
        self._session = session
        self._listeners = {}

    # ------------------------ session ------------------------
    def get_current_session(self):
        return self._session

    def _set_session(self, session):
        self._session = session
        for cb in list(self._listeners.values()):
            cb(session)

    def _remote_sign_out(self, session):
        # another client signed this token out
        if session is None and self._session is not None:
            logger.info("session: token of %s signed out elsewhere", self._session.email)
            self._set_session(None)

    def sign_in_with_password(self, email, password):
        email = (email or "").strip().lower()
        if not email or not password:
            raise BackendError("sign_in", "email and password are required")
        try:
            user = User.query.filter_by(email=email).first()
        except SQLAlchemyError as e:
            raise BackendError("sign_in", str(e)) from e
        if not user or not check_password_hash(user.password_hash, password):
            raise BackendError("sign_in", "invalid login credentials")

        token = create_access_token(identity=str(user.id), additional_claims={"email": user.email})
        session = Session(user_id=user.id, email=user.email, access_token=token, token_id=get_jti(token))
        self._set_session(session)
        return session

    def sign_out(self):
        previous = self._session
        self._set_session(None)
        if previous is not None and previous.token_id:
            delivered = self.feed.publish(session_channel(previous.token_id), None)
            logger.debug("session: sign-out of %s reached %d client(s)", previous.email, delivered)

    def on_session_change(self, callback):
        holder = {}
        current = self._session
        remote = None
        if current is not None and current.token_id:
            remote = self.feed.subscribe(session_channel(current.token_id), self._remote_sign_out, topic="auth")

        def release():
            self._listeners.pop(holder["id"], None)
            if remote is not None:
                remote.unsubscribe()

        sub = Subscription(release, topic="auth")
        holder["id"] = sub.id
        self._listeners[sub.id] = callback
        return sub

    # ------------------------ storage ------------------------
    def _object_path(self, operation, bucket, path):
        bucket_dir = safe_join(self.storage_root, bucket)
        full = safe_join(bucket_dir, path) if bucket_dir else None
        if not full:
            raise BackendError(operation, f"invalid object path {bucket}/{path}")
        return bucket_dir, full

    def upload(self, bucket, path, data, content_type=None):
        bucket_dir, full = self._object_path("upload", bucket, path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            # "x" refuses to overwrite an existing object
            with open(full, "xb") as fh:
                fh.write(data)
        except FileExistsError as e:
            raise BackendError("upload", f"object {bucket}/{path} already exists") from e
        except OSError as e:
            raise BackendError("upload", str(e)) from e
        logger.info("storage: stored %s/%s (%d bytes, %s)", bucket, path, len(data), content_type or "?")

    def get_public_url(self, bucket, path):
        if self.public_base_url:
            return f"{self.public_base_url}/storage/{bucket}/{path}"
        if has_request_context():
            return url_for("storage.get_object", bucket=bucket, path=path, _external=True)
        return f"/storage/{bucket}/{path}"

    # ------------------------ table ------------------------
    def select(self, table, order_by="created_at", ascending=False):
        model = _model("select", table)
        column = getattr(model, order_by, None)
        if column is None:
            raise BackendError("select", f"unknown column {order_by!r}")
        try:
            rows = model.query.order_by(asc(column) if ascending else desc(column)).all()
        except SQLAlchemyError as e:
            raise BackendError("select", str(e)) from e
        return [r.as_api() for r in rows]

    def insert(self, table, record):
        model = _model("insert", table)
        for col in REQUIRED.get(table, ()):
            if not (record.get(col) or "").strip():
                raise BackendError("insert", f"{col} is required")

        obj = model(**{k: record.get(k) for k in model.WRITABLE})
        try:
            db.session.add(obj)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError("insert", str(e)) from e

        row = obj.as_api()
        delivered = self.feed.publish(table, row)
        logger.debug("feed: %s insert %s delivered to %d subscriber(s)", table, row["id"], delivered)
        return row

    def subscribe_to_inserts(self, table, callback):
        _model("subscribe", table)
        return self.feed.subscribe(table, callback)


def local_backend_factory(app):
    """Build the default per-request client factory for ``app``."""
    feed = ChangeFeed()

    def factory(session=None):
        return LocalBackend(
            feed,
            storage_root=app.config["STORAGE_ROOT"],
            public_base_url=app.config.get("PUBLIC_BASE_URL"),
            session=session,
        )

    factory.feed = feed
    return factory


def get_backend(session=None):
    return current_app.extensions["compras"]["backend_factory"](session)
