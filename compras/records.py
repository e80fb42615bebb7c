# compras/records.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .utils.dates import parse_timestamp


@dataclass(frozen=True)
class PurchaseRecord:
    id: int
    codigo_referido: str
    comprobante_url: str
    nombre: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "PurchaseRecord":
        return cls(
            id=row["id"],
            codigo_referido=row.get("codigo_referido") or "",
            comprobante_url=row.get("comprobante_url") or "",
            nombre=row.get("nombre") or None,
            email=row.get("email") or None,
            created_at=parse_timestamp(row.get("created_at")),
        )

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on code, name or email."""
        needle = (term or "").lower()
        if not needle:
            return True
        if needle in self.codigo_referido.lower():
            return True
        if self.nombre and needle in self.nombre.lower():
            return True
        return bool(self.email and needle in self.email.lower())

    def as_api(self):
        return {
            "id": self.id,
            "nombre": self.nombre,
            "email": self.email,
            "codigo_referido": self.codigo_referido,
            "comprobante_url": self.comprobante_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
