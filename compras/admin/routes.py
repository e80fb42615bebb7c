# compras/admin/routes.py
from io import BytesIO

from flask import Response, current_app, g, request, send_file, stream_with_context
from flask_jwt_extended import get_jwt

from ..backend import get_backend
from ..services.dashboard import MSG_BAD_CREDENTIALS, ReviewDashboard
from ..utils.api import err, ok
from ..utils.decorators import admin_required
from . import bp
from .stream import stream_purchases


def _dashboard(session=None):
    cfg = current_app.config
    return ReviewDashboard(get_backend(session), table=cfg["PURCHASES_TABLE"], tz=cfg["TIMEZONE"])


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or request.form or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    with _dashboard() as dash:
        dash.sign_in(email, password)
        if not dash.state.authenticated:
            return err(dash.error or MSG_BAD_CREDENTIALS, 401)
        session = dash.session
        current_app.logger.info("admin: %s signed in", session.email)
        return ok("Sesión iniciada", {
            "token": session.access_token,
            "user": session.as_dict(),
            "stats": dash.stats(),
        })


@bp.post("/logout")
@admin_required
def logout():
    claims = get_jwt()
    # tokens are stateless; remember the jti until it would have expired anyway
    current_app.extensions["compras"]["revoked_tokens"].add(claims["jti"], claims["exp"])
    with _dashboard(g.session) as dash:
        # also ends any open /admin/stream held with this token
        dash.sign_out()
        current_app.logger.info("admin: %s signed out", g.session.email)
        return ok("Sesión cerrada", {"status": dash.status, "live": dash.live})


@bp.get("/me")
@admin_required
def me():
    return ok("session", {"user": g.session.as_dict()})


@bp.get("/purchases")
@admin_required
def list_purchases():
    """
    Query params:
      q -> case-insensitive match on codigo_referido, nombre or email
    """
    with _dashboard(g.session) as dash:
        dash.search_term = (request.args.get("q") or "").strip()
        rows = dash.display_rows()
        return ok("purchases", {
            "q": dash.search_term,
            "stats": dash.stats(),
            "items": rows,
            "empty_message": dash.empty_message,
        })


@bp.get("/purchases/<int:pid>/image")
@admin_required
def purchase_image(pid: int):
    with _dashboard(g.session) as dash:
        record = dash.find(pid)
        if not record:
            return err("compra no encontrada", 404)
        return ok("image", dash.open_image(record).as_dict())


@bp.get("/export")
@admin_required
def export_purchases():
    """
    Export every loaded purchase (no search filter) as an Excel file.
    """
    with _dashboard(g.session) as dash:
        export = dash.export()
    current_app.logger.info("admin: export %s (%d bytes)", export.filename, len(export.content))
    return send_file(
        BytesIO(export.content),
        as_attachment=True,
        download_name=export.filename,
        mimetype=export.mimetype,
    )


@bp.get("/stream")
@admin_required
def stream():
    heartbeat = current_app.config["STREAM_HEARTBEAT_SECONDS"]
    gen = stream_purchases(_dashboard(g.session), heartbeat=heartbeat)
    resp = Response(stream_with_context(gen), mimetype="text/event-stream")
    resp.headers["Cache-Control"] = "no-cache"
    resp.headers["X-Accel-Buffering"] = "no"
    return resp
