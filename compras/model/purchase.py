# compras/model/purchase.py
from datetime import datetime, timezone
from ..extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class Purchase(db.Model):
    """A submitted proof of purchase. Rows are only ever inserted."""
    __tablename__ = "purchases"
    id = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(180), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    codigo_referido = db.Column(db.String(120), nullable=False, index=True)
    comprobante_url = db.Column(db.String(1024), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    # columns a client may write; id and created_at belong to the backend
    WRITABLE = ("nombre", "email", "codigo_referido", "comprobante_url")

    def as_api(self):
        created = self.created_at
        if created is not None and created.tzinfo is None:
            # sqlite drops the offset; values are always stored as UTC
            created = created.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "nombre": self.nombre,
            "email": self.email,
            "codigo_referido": self.codigo_referido,
            "comprobante_url": self.comprobante_url,
            "created_at": created.isoformat() if created else None,
        }
