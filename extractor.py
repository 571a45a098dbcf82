"""
Invoice spreadsheet extraction using pandas.

Reads the first sheet of an uploaded pharmacy invoice (.xlsx/.xls) and
returns one line item per drug row: drug name, unit price, formulation,
strength, payer.

Layout: three title/header rows, then one drug per row with fixed columns
(see config.py). Rows without a drug name are skipped. Prices may be
numbers or text like "$1,234.50"; anything unparsable becomes 0.
"""

import math
import re
import pandas as pd
from config import (
    HEADER_ROWS, MIN_SHEET_ROWS,
    COL_DRUG_NAME, COL_STRENGTH, COL_FORMULATION, COL_PAYER, COL_UNIT_PRICE,
)

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def extract_invoice(xlsx_path: str) -> dict:
    """Extract invoice line items from a spreadsheet."""
    result = {
        "source": xlsx_path,
        "line_items": [],
        "rows_read": 0,
        "rows_skipped": 0,
        "warnings": [],
        "error": None,
    }

    try:
        sheet = pd.read_excel(xlsx_path, sheet_name=0, header=None)
        rows = sheet.values.tolist()

        if len(rows) < MIN_SHEET_ROWS:
            raise ValueError(
                f"Excel file must have at least {MIN_SHEET_ROWS} rows "
                f"({HEADER_ROWS} header rows + at least one drug row)"
            )

        items, skipped = parse_rows(rows[HEADER_ROWS:])
        result["line_items"] = items
        result["rows_read"] = len(rows) - HEADER_ROWS
        result["rows_skipped"] = skipped

        if not items:
            result["warnings"].append("NO_LINE_ITEMS_FOUND")

    except Exception as e:
        result["error"] = f"Failed to parse Excel file: {str(e)}"

    return result


def parse_rows(rows: list[list]) -> tuple[list[dict], int]:
    """Turn raw sheet rows into line items. Returns (items, rows_skipped)."""
    items = []
    skipped = 0
    for row in rows:
        item = {
            "drugName": _cell_text(row, COL_DRUG_NAME),
            "unitPrice": parse_price(_cell(row, COL_UNIT_PRICE)),
            "formulation": _cell_text(row, COL_FORMULATION),
            "strength": _cell_text(row, COL_STRENGTH),
            "payer": _cell_text(row, COL_PAYER),
        }
        if not item["drugName"]:
            skipped += 1
            continue
        items.append(item)
    return items, skipped


def parse_price(value) -> float:
    """
    Coerce a price cell to a non-negative float.

    Strings lose "$" and "," and are read up to the first non-numeric
    character ("12.50 ea" -> 12.5). Blank, unparsable or negative -> 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").strip()
        m = _LEADING_NUMBER.match(cleaned)
        if not m:
            return 0.0
        number = float(m.group(0))
    else:
        try:
            number = float(value)
        except (ValueError, TypeError):
            return 0.0

    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _cell(row: list, col: int):
    """Raw cell value, or None when the row is short or the cell is empty."""
    if col >= len(row):
        return None
    value = row[col]
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _cell_text(row: list, col: int) -> str:
    value = _cell(row, col)
    return str(value).strip() if value is not None else ""
