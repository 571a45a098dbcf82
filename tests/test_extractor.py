import pandas as pd
import pytest

from extractor import extract_invoice, parse_price, parse_rows

HEADER = [
    ["Pharmacy Invoice", None, None, None, None, None, None, None],
    ["Invoice #: PH-1001", None, None, None, None, None, None, None],
    ["#", "Drug", "Strength", "Formulation", "Qty", "Payer", "NDC", "Unit Price"],
]


def write_invoice(path, rows):
    pd.DataFrame(HEADER + rows).to_excel(path, header=False, index=False)
    return str(path)


@pytest.mark.parametrize("raw, expected", [
    (12.5, 12.5),
    (3, 3.0),
    ("$1,234.50", 1234.5),
    (" $0.45 ", 0.45),
    ("12.50 ea", 12.5),
    ("N/A", 0.0),
    ("", 0.0),
    (None, 0.0),
    (float("nan"), 0.0),
    (-4.0, 0.0),
    ("-4.00", 0.0),
])
def test_parse_price(raw, expected):
    assert parse_price(raw) == pytest.approx(expected)


def test_parse_rows_reads_fixed_columns():
    rows = [[1, " Aspirin ", "100mg", "Tablet", 30, "Medicare", "0001", "$0.55"]]
    items, skipped = parse_rows(rows)
    assert skipped == 0
    assert items == [{
        "drugName": "Aspirin",
        "unitPrice": 0.55,
        "formulation": "Tablet",
        "strength": "100mg",
        "payer": "Medicare",
    }]


def test_parse_rows_handles_short_rows():
    items, skipped = parse_rows([[1, "Metformin", "500 mg"]])
    assert skipped == 0
    assert items[0]["unitPrice"] == 0.0
    assert items[0]["payer"] == ""


def test_extract_invoice(tmp_path):
    path = write_invoice(tmp_path / "invoice.xlsx", [
        [1, "Aspirin", "100mg", "Tablet", 30, "Medicare", "0001", 0.55],
        [2, None, "20 mg", "Tablet", 10, "Medicaid", "0002", "$4.00"],
        [3, "Lisinopril", "20 mg", "Tablet", 10, "Medicaid", "0003", "$4.00"],
    ])

    result = extract_invoice(path)

    assert result["error"] is None
    assert result["rows_read"] == 3
    assert result["rows_skipped"] == 1
    assert [i["drugName"] for i in result["line_items"]] == ["Aspirin", "Lisinopril"]
    assert result["line_items"][0]["unitPrice"] == pytest.approx(0.55)
    assert result["line_items"][1]["unitPrice"] == pytest.approx(4.0)
    assert result["line_items"][1]["strength"] == "20 mg"


def test_extract_invoice_too_few_rows(tmp_path):
    path = str(tmp_path / "short.xlsx")
    pd.DataFrame(HEADER).to_excel(path, header=False, index=False)

    result = extract_invoice(path)

    assert result["line_items"] == []
    assert result["error"].startswith("Failed to parse Excel file: Excel file must have at least 4 rows")


def test_extract_invoice_no_drug_names(tmp_path):
    path = write_invoice(tmp_path / "blank.xlsx", [
        [1, None, "100mg", "Tablet", 30, "Medicare", "0001", 0.55],
    ])

    result = extract_invoice(path)

    assert result["error"] is None
    assert result["line_items"] == []
    assert "NO_LINE_ITEMS_FOUND" in result["warnings"]


def test_extract_invoice_missing_file(tmp_path):
    result = extract_invoice(str(tmp_path / "missing.xlsx"))
    assert result["error"].startswith("Failed to parse Excel file:")
