# compras/services/export.py
from dataclasses import dataclass
from io import BytesIO

import pandas as pd

from ..utils.dates import format_es, today

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_NAME = "Compras"
COLUMNS = ["ID", "Nombre", "Email", "Código de Referido", "URL Comprobante", "Fecha"]


@dataclass
class ExportFile:
    filename: str
    content: bytes
    mimetype: str = XLSX_MIMETYPE


def build_rows(records, tz):
    return [{
        "ID": r.id,
        "Nombre": r.nombre or "N/A",
        "Email": r.email or "N/A",
        "Código de Referido": r.codigo_referido,
        "URL Comprobante": r.comprobante_url,
        "Fecha": format_es(r.created_at, tz),
    } for r in records]


def build_workbook(rows) -> bytes:
    df = pd.DataFrame(rows, columns=COLUMNS)

    # Create an in-memory buffer
    output = BytesIO()
    df.to_excel(output, index=False, sheet_name=SHEET_NAME, engine="openpyxl")
    return output.getvalue()


def export_filename(tz, now=None):
    return f"compras_{today(tz, now).isoformat()}.xlsx"


def export_purchases(records, tz, now=None) -> ExportFile:
    """All given records (never a filtered view) as a single-sheet workbook."""
    return ExportFile(
        filename=export_filename(tz, now),
        content=build_workbook(build_rows(records, tz)),
    )
