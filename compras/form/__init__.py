from flask import Blueprint

bp = Blueprint("form", __name__)

from . import routes  # noqa: E402,F401
