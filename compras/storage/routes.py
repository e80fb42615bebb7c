# compras/storage/routes.py
from flask import abort, current_app, send_from_directory
from werkzeug.utils import safe_join

from . import bp


@bp.get("/<bucket>/<path:path>")
def get_object(bucket, path):
    """Public read access to uploaded objects (receipt images)."""
    if bucket != current_app.config["RECEIPTS_BUCKET"]:
        abort(404)
    bucket_dir = safe_join(current_app.config["STORAGE_ROOT"], bucket)
    if bucket_dir is None:
        abort(404)
    return send_from_directory(bucket_dir, path)
