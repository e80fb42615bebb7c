from flask import Blueprint

bp = Blueprint("storage", __name__, url_prefix="/storage")

from . import routes  # noqa: E402,F401
