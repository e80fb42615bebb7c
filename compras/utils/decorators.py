# ------- compras/utils/decorators.py -------
from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from ..backend import Session
from ..extensions import db
from ..model import User
from .api import err


def _current_session():
    verify_jwt_in_request()
    try:
        uid = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, uid)
    if not user:
        return None
    claims = get_jwt()
    return Session(user_id=user.id, email=claims.get("email") or user.email, token_id=claims.get("jti"))


def admin_required(fn):
    """Reject the request unless it carries a valid admin token; exposes ``g.session``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        session = _current_session()
        if not session:
            return err("No autorizado", 401)
        g.session = session
        return fn(*args, **kwargs)
    return wrapper
