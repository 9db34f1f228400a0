# portal/services/exporter.py
"""Export objednávek do XLSX (openpyxl) a CSV – jeden řádek na položku."""
from __future__ import annotations

import csv
import io
from typing import Sequence

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from portal.models import Order
from portal.services.formatters import format_date_cs, format_volume

ORDER_EXPORT_HEADERS = [
    "Datum vytvoření",
    "Zákazník",
    "Firma",
    "Produkt",
    "Množství",
    "Objem",
    "Kategorie",
    "Poznámka",
    "Celkový objem",
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIMETYPE = "text/csv; charset=utf-8"


class ExportError(Exception):
    pass


def order_rows(orders: Sequence[Order]) -> list[list]:
    rows = []
    for order in orders:
        for it in order.items:
            product = it.product
            category = product.category if product else None
            rows.append([
                format_date_cs(order.created_at),
                order.customer_name or "",
                order.customer_company or "",
                product.name if product else f"#{it.product_id}",
                it.quantity,
                format_volume(it.volume, category),
                category or "",
                order.note or "",
                f"{order.total_volume or 0}L",
            ])
    return rows


class TabularExporter:
    def to_xlsx(self, headers: Sequence[str], rows: Sequence[Sequence], sheet_title: str = "Objednávky") -> bytes:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = sheet_title

        ws.append(list(headers))
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for r in rows:
            ws.append(list(r))

        # Auto šířky
        for col_idx, _ in enumerate(headers, start=1):
            max_len = 0
            for row in ws.iter_rows(min_col=col_idx, max_col=col_idx):
                cell = row[0]
                if cell.value is not None:
                    max_len = max(max_len, len(str(cell.value)))
            ws.column_dimensions[get_column_letter(col_idx)].width = min(max_len + 2, 40)

        bio = io.BytesIO()
        wb.save(bio)
        return bio.getvalue()

    def to_csv(self, headers: Sequence[str], rows: Sequence[Sequence]) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(headers)
        writer.writerows(rows)
        # BOM kvůli Excelu a diakritice
        return buf.getvalue().encode("utf-8-sig")

    def export_orders(self, orders: Sequence[Order], fmt: str = "xlsx") -> bytes:
        rows = order_rows(orders)
        if not rows:
            raise ExportError("Žádné objednávky ke zpracování")
        if fmt == "csv":
            return self.to_csv(ORDER_EXPORT_HEADERS, rows)
        return self.to_xlsx(ORDER_EXPORT_HEADERS, rows)
