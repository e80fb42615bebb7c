# compras/services/submission.py
"""
Proof-of-purchase submission form.

One ``SubmissionForm`` mirrors one attendee's form: field values, the
picked receipt, a busy flag and the message shown under the form.
"""
from __future__ import annotations

import logging
import os
import random
import string
import time
from dataclasses import dataclass
from typing import Optional

from ..backend import Backend, BackendError

logger = logging.getLogger(__name__)

MAX_RECEIPT_BYTES = 5 * 1024 * 1024

MSG_FILE_TOO_LARGE = "El archivo no debe superar 5MB"
MSG_NOT_IMAGE = "Solo se permiten imágenes"
MSG_CODE_REQUIRED = "El código de referido es obligatorio"
MSG_RECEIPT_REQUIRED = "Debes subir el comprobante de pago"
MSG_FAILURE = "Error al registrar la compra. Por favor intenta nuevamente."
MSG_SUCCESS = "¡Compra registrada exitosamente! Pronto verificaremos tu pago."

FIELDS = ("nombre", "email", "codigo_referido")

_BASE36 = string.digits + string.ascii_lowercase


@dataclass
class ReceiptFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self):
        return len(self.data)


@dataclass
class Message:
    kind: str = ""   # "", "error" or "success"
    text: str = ""

    def __bool__(self):
        return bool(self.text)

    def as_dict(self):
        return {"type": self.kind, "text": self.text}


def generate_object_name(filename: str, now_ms: Optional[int] = None, rng=None) -> str:
    """``<epoch ms>_<6 base36 chars>.<ext>``; the extension is omitted when the file has none."""
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    rng = rng or random
    suffix = "".join(rng.choice(_BASE36) for _ in range(6))
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    name = f"{now_ms}_{suffix}"
    return f"{name}.{ext}" if ext else name


class SubmissionForm:

    def __init__(self, backend: Backend, bucket="comprobantes", table="purchases",
                 max_bytes=MAX_RECEIPT_BYTES, name_factory=generate_object_name):
        self.backend = backend
        self.bucket = bucket
        self.table = table
        self.max_bytes = max_bytes
        self.name_factory = name_factory
        self.busy = False
        self.message = Message()
        self.last_record = None
        self.reset()

    def reset(self):
        self.values = {f: "" for f in FIELDS}
        self.receipt: Optional[ReceiptFile] = None

    def set_field(self, name, value):
        if name not in FIELDS:
            raise KeyError(name)
        self.values[name] = value or ""

    def _error(self, text):
        self.message = Message("error", text)
        return False

    def choose_file(self, receipt: Optional[ReceiptFile]) -> bool:
        """Validate a picked file; a rejected pick clears the current selection."""
        if receipt is None:
            return False
        if receipt.size > self.max_bytes:
            self.receipt = None
            return self._error(MSG_FILE_TOO_LARGE)
        if not (receipt.content_type or "").lower().startswith("image/"):
            self.receipt = None
            return self._error(MSG_NOT_IMAGE)
        self.receipt = receipt
        self.message = Message()
        return True

    def submit(self) -> bool:
        if self.busy:
            return False
        self.message = Message()

        codigo = self.values["codigo_referido"].strip()
        if not codigo:
            return self._error(MSG_CODE_REQUIRED)
        if self.receipt is None:
            return self._error(MSG_RECEIPT_REQUIRED)

        self.busy = True
        try:
            path = self.name_factory(self.receipt.filename)
            try:
                self.backend.upload(self.bucket, path, self.receipt.data, self.receipt.content_type)
            except BackendError:
                logger.exception("submission: receipt upload failed (codigo=%s)", codigo)
                return self._error(MSG_FAILURE)

            public_url = self.backend.get_public_url(self.bucket, path)
            record = {
                "nombre": self.values["nombre"].strip() or None,
                "email": self.values["email"].strip() or None,
                "codigo_referido": codigo,
                "comprobante_url": public_url,
            }
            try:
                row = self.backend.insert(self.table, record)
            except BackendError:
                # the uploaded object is left behind; nothing removes it
                logger.exception("submission: insert failed, orphaned object %s/%s", self.bucket, path)
                return self._error(MSG_FAILURE)

            logger.info("submission: purchase %s registered (codigo=%s)", (row or {}).get("id"), codigo)
            self.message = Message("success", MSG_SUCCESS)
            self.last_record = row
            self.reset()
            return True
        finally:
            self.busy = False

    def as_dict(self):
        return {
            **self.values,
            "comprobante": self.receipt.filename if self.receipt else None,
            "busy": self.busy,
            "message": self.message.as_dict(),
        }
