# Overview: Reads product spreadsheets (CSV/Excel) into payloads for CatalogStore.bulk_insert().

"""
Product import files.

Accepted formats: .csv (UTF-8, header row) and .xlsx (first sheet, header row).
Headers may use the API names or the camelCase names of the older export
format:

    product_code | productCode      name_en | nameEn      name_ta | nameTa
    category_id  | categoryId       price                 tax_percentage | gstPercentage
    tax_inclusive | isGstInclusive  unit                  stock
    barcode                          image_uri | imageUri

Blank cells are dropped so column defaults apply.
"""

from __future__ import annotations

import csv
import io
from typing import Any, BinaryIO

from ..errors import ValidationError

HEADER_ALIASES = {
    "productCode": "product_code",
    "nameEn": "name_en",
    "nameTa": "name_ta",
    "categoryId": "category_id",
    "gstPercentage": "tax_percentage",
    "isGstInclusive": "tax_inclusive",
    "imageUri": "image_uri",
}

KNOWN_COLUMNS = {
    "product_code", "barcode", "name_en", "name_ta", "category_id", "price",
    "price_cents", "tax_percentage", "tax_rate_bps", "tax_inclusive", "unit",
    "stock", "image_uri",
}


def read_rows(stream: BinaryIO, filename: str) -> list[dict[str, Any]]:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext == "csv":
        text = io.StringIO(stream.read().decode("utf-8-sig"))
        return [row for row in csv.DictReader(text)]
    if ext in {"xlsx", "xlsm", "xltx", "xltm"}:
        from openpyxl import load_workbook
        wb = load_workbook(stream, data_only=True, read_only=True)
        data = list(wb.active.values)
        if not data:
            return []
        headers = [str(h) if h is not None else "" for h in data[0]]
        return [
            {headers[i]: row[i] for i in range(min(len(headers), len(row)))}
            for row in data[1:]
            if any(cell is not None for cell in row)
        ]
    raise ValidationError("Unsupported file format; use .csv or .xlsx")


def rows_to_payloads(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    payloads = []
    for number, row in enumerate(rows, start=1):
        payload: dict[str, Any] = {}
        for header, value in row.items():
            if header is None:
                continue
            key = HEADER_ALIASES.get(header.strip(), header.strip())
            if key not in KNOWN_COLUMNS:
                raise ValidationError(f"row {number}: unknown column {header!r}", details={"row": number})
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if isinstance(value, float) and value.is_integer() and key in {"category_id", "stock", "price_cents", "tax_rate_bps"}:
                # Excel hands whole numbers back as floats
                value = int(value)
            if isinstance(value, (int, float)) and key in {"product_code", "barcode"}:
                value = str(int(value)) if float(value).is_integer() else str(value)
            payload[key] = value
        payloads.append(payload)
    return payloads
