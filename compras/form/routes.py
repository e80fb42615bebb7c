# compras/form/routes.py
from flask import current_app, request

from ..backend import get_backend
from ..services.submission import FIELDS, MSG_FAILURE, ReceiptFile, SubmissionForm
from ..utils.api import err, ok
from . import bp


def _build_form():
    cfg = current_app.config
    return SubmissionForm(
        get_backend(),
        bucket=cfg["RECEIPTS_BUCKET"],
        table=cfg["PURCHASES_TABLE"],
        max_bytes=cfg["RECEIPT_MAX_BYTES"],
    )


# GET /
@bp.get("/")
def form_info():
    cfg = current_app.config
    return ok("form", {
        "fields": {
            "nombre": {"required": False},
            "email": {"required": False},
            "codigo_referido": {"required": True},
            "comprobante": {"required": True, "accept": "image/*", "max_bytes": cfg["RECEIPT_MAX_BYTES"]},
        },
        "ticket_url": cfg["TICKET_URL"],
        "admin_path": "/admin",
    })


# POST /
@bp.post("/")
def submit_purchase():
    """
    multipart/form-data:
      nombre, email         -> optional
      codigo_referido       -> required
      comprobante (file)    -> required, image/*, <= 5 MiB
    """
    form = _build_form()
    for name in FIELDS:
        form.set_field(name, request.form.get(name))

    fs = request.files.get("comprobante")
    if fs and fs.filename:
        receipt = ReceiptFile(filename=fs.filename, content_type=fs.mimetype or "", data=fs.read())
        if not form.choose_file(receipt):
            return err(form.message.text, 422, data={"form": form.as_dict()})

    if form.submit():
        return ok(form.message.text, {"purchase": form.last_record, "form": form.as_dict()}, 201)

    status = 500 if form.message.text == MSG_FAILURE else 422
    return err(form.message.text, status, data={"form": form.as_dict()})
