# --- compras/utils/api.py ---
from datetime import datetime, timezone

from flask import current_app, has_app_context, jsonify

from .dates import get_zone


def _api_time_human():
    tz = get_zone(current_app.config.get("TIMEZONE") if has_app_context() else None)
    return datetime.now(timezone.utc).astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")

def api_ok(message, data=None):
    return {
        "status": True,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time_human()
        }
    }

def api_error(message, data=None):
    return {
        "status": False,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time_human()
        }
    }

# unified response helpers
def ok(message, data=None, status=200):
    r = jsonify(api_ok(message, data)); r.status_code = status; return r

def err(message, status=400, data=None):
    r = jsonify(api_error(message, data)); r.status_code = status; return r
