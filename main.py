"""
Pharmacy Invoice Audit — Main Entry Point

4-step pipeline: extract spreadsheet -> fetch reference catalog ->
detect discrepancies -> generate reports.

Usage:
    python main.py                           # Process all in ./invoices/
    python main.py path/to/invoice.xlsx      # Process one or more files
"""

import sys
import os
from config import OUTPUT_DIR
from extractor import extract_invoice
from reference_client import fetch_reference_drugs
from comparator import detect_discrepancies
from matcher import find_unmatched, suggest_reference
from report import build_json_payload, build_discrepancy_report, save_outputs

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")


def _failure(detail: str) -> dict:
    print(f"  ERROR: {detail}")
    return {"error": "Failed to process file", "detail": detail}


def process_invoice(xlsx_path: str, output_dir: str = OUTPUT_DIR,
                    reference: dict | None = None) -> dict:
    """
    Run the full pipeline on a single invoice spreadsheet.

    reference: a fetch_reference_drugs() result to reuse across a batch;
    fetched on demand when omitted.
    """
    invoice_name = os.path.splitext(os.path.basename(xlsx_path))[0]
    print(f"\n{'='*60}")
    print(f"Processing: {xlsx_path}")
    print(f"{'='*60}")

    # Step 1: Extract
    print("  [1/4] Extracting invoice line items...")
    invoice_data = extract_invoice(xlsx_path)
    if invoice_data.get("error"):
        return _failure(invoice_data["error"])

    line_items = invoice_data["line_items"]
    print(f"        Line items: {len(line_items)}")
    if invoice_data["rows_skipped"]:
        print(f"        Skipped rows (no drug name): {invoice_data['rows_skipped']}")
    if invoice_data.get("warnings"):
        print(f"        Warnings: {', '.join(invoice_data['warnings'])}")

    # Step 2: Reference catalog
    if reference is None:
        print("  [2/4] Fetching reference catalog...")
        reference = fetch_reference_drugs()
    else:
        print("  [2/4] Using cached reference catalog...")
    if reference.get("error"):
        return _failure(reference["error"])
    records = reference["records"]
    print(f"        Reference drugs: {len(records)} ({reference.get('source')})")

    # Step 3: Detect
    print("  [3/4] Detecting discrepancies...")
    report = detect_discrepancies(line_items, records)
    summary = report["summary"]
    print(f"        Price: {summary['totalPriceDiscrepancies']}, "
          f"Formulation: {summary['totalFormulationIssues']}, "
          f"Strength: {summary['totalStrengthErrors']}, "
          f"Payer: {summary['totalPayerMismatches']}")
    print(f"        >>> {summary['totalIssues']} issue(s), "
          f"${summary['totalOvercharge']:,.2f} total overcharge <<<")

    unmatched = []
    for name in find_unmatched(line_items, records):
        suggestion = suggest_reference(name, records)
        unmatched.append({"drugName": name, **suggestion})
        hint = f" (did you mean '{suggestion['suggestion']}'?)" if suggestion["suggestion"] else ""
        print(f"        Not in catalog: {name}{hint}")

    # Step 4: Generate outputs
    print("  [4/4] Generating reports...")
    json_payload = build_json_payload(report)
    text_report = build_discrepancy_report(report, invoice_name, unmatched)
    save_outputs(invoice_name, json_payload, text_report, output_dir)

    return json_payload


def main():
    missing = 0
    if len(sys.argv) > 1:
        paths = []
        for path in sys.argv[1:]:
            if os.path.isfile(path):
                paths.append(path)
            else:
                print(f"File not found: {path}")
                missing += 1
        if not paths:
            sys.exit(1)
    else:
        invoices_dir = os.path.join(os.path.dirname(__file__) or ".", "invoices")
        if not os.path.isdir(invoices_dir):
            print(f"No invoices directory found at {invoices_dir}")
            print("Usage: python main.py [invoice.xlsx ...]")
            sys.exit(1)

        files = sorted(f for f in os.listdir(invoices_dir)
                       if f.lower().endswith(SPREADSHEET_EXTENSIONS))
        if not files:
            print(f"No spreadsheet files found in {invoices_dir}")
            sys.exit(1)

        paths = [os.path.join(invoices_dir, f) for f in files]
        print(f"\nFound {len(paths)} invoice(s) to process.\n")

    # One catalog fetch per run
    reference = fetch_reference_drugs()
    results = [process_invoice(path, OUTPUT_DIR, reference=reference) for path in paths]

    # Summary
    print(f"\n{'='*60}")
    print("SUMMARY")
    print(f"{'='*60}")
    failed = [r for r in results if r.get("error")]
    audited = [r for r in results if not r.get("error")]
    print(f"  Processed: {len(results)}")
    print(f"  Failed:    {len(failed)}")
    print(f"  Issues:    {sum(r['summary']['totalIssues'] for r in audited)}")
    print(f"  Overcharge: ${sum(r['summary']['totalOvercharge'] or 0 for r in audited):,.2f}")
    print(f"\nAll outputs saved to ./{OUTPUT_DIR}/")

    if failed or missing:
        sys.exit(1)


if __name__ == "__main__":
    main()
