"""
Audit configuration — reference source, thresholds, and invoice layout.

Values can be overridden from the environment or a .env file in the
working directory (REFERENCE_API_URL, REFERENCE_API_TIMEOUT, AUDIT_OUTPUT_DIR).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# ── Reference Catalog ───────────────────────────────────────────────
REFERENCE_API_URL = os.environ.get(
    "REFERENCE_API_URL",
    "https://685daed17b57aebd2af6da54.mockapi.io/api/v1/drugs",
)
REQUEST_TIMEOUT_SECONDS = float(os.environ.get("REFERENCE_API_TIMEOUT", "15"))

# ── Thresholds ──────────────────────────────────────────────────────
PRICE_THRESHOLD_PCT = 10.0      # Strictly above this = price discrepancy
FUZZY_SUGGEST_THRESHOLD = 80    # thefuzz ratio needed to suggest a reference name

# ── Invoice Spreadsheet Layout ──────────────────────────────────────
# Title, metadata and header rows sit above the first drug row.
HEADER_ROWS = 3
MIN_SHEET_ROWS = 4

COL_DRUG_NAME = 1
COL_STRENGTH = 2
COL_FORMULATION = 3
COL_PAYER = 5
COL_UNIT_PRICE = 7

# ── Outputs ─────────────────────────────────────────────────────────
OUTPUT_DIR = os.environ.get("AUDIT_OUTPUT_DIR", "output")
