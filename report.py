"""
Report generation — two outputs per invoice:
  1. Structured JSON payload (the discrepancy report, field names preserved)
  2. Human-readable discrepancy report
"""

import json
import math
import os
from datetime import datetime, timezone

SECTIONS = [
    ("priceDiscrepancies", "UNIT PRICE DISCREPANCIES"),
    ("formulationDiscrepancies", "FORMULATION ISSUES"),
    ("strengthDiscrepancies", "STRENGTH ERRORS"),
    ("payerDiscrepancies", "PAYER MISMATCHES"),
]


def _json_number(value):
    """inf/nan are not valid JSON; report them as null."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def build_json_payload(report: dict) -> dict:
    """Build the API payload from a discrepancy report. Strict JSON, same shape."""
    payload = {}
    for key, _ in SECTIONS:
        payload[key] = [
            {field: _json_number(value) for field, value in d.items()}
            for d in report.get(key, [])
        ]
    payload["summary"] = {
        field: _json_number(value) for field, value in report["summary"].items()
    }
    return payload


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def format_percentage(percentage: float | None) -> str:
    if percentage is None or not math.isfinite(percentage):
        return "n/a (no standard price)"
    sign = "+" if percentage > 0 else ""
    return f"{sign}{percentage:.1f}%"


def build_discrepancy_report(report: dict, invoice_name: str,
                             unmatched: list[dict] | None = None) -> str:
    """
    Build a human-readable discrepancy report.

    unmatched: optional list of {"drugName", "suggestion", "score"} for
    invoice items that had no reference record.
    """
    lines = []
    sep = "=" * 72
    summary = report["summary"]

    lines.append(sep)
    lines.append("  PHARMACY INVOICE AUDIT REPORT")
    lines.append(sep)
    lines.append("")
    lines.append(f"  Invoice:     {invoice_name}")
    lines.append(f"  Generated:   {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}")
    lines.append("")
    lines.append(f"  Issues found:          {summary['totalIssues']}")
    lines.append(f"  Price discrepancies:   {summary['totalPriceDiscrepancies']}")
    lines.append(f"  Formulation issues:    {summary['totalFormulationIssues']}")
    lines.append(f"  Strength errors:       {summary['totalStrengthErrors']}")
    lines.append(f"  Payer mismatches:      {summary['totalPayerMismatches']}")
    lines.append(f"  Total overcharge:      {format_currency(summary['totalOvercharge'])}")
    lines.append("")

    for key, title in SECTIONS:
        items = report.get(key, [])
        lines.append("-" * 72)
        lines.append(f"  {title} ({len(items)})")
        lines.append("-" * 72)
        if not items:
            lines.append("  None.")
            lines.append("")
            continue

        if key == "priceDiscrepancies":
            lines.append(f"  {'Drug':<30} {'Invoice$':>10} {'Standard$':>10} {'Over$':>10} {'Diff':>8}")
            lines.append(f"  {'-'*30} {'-'*10} {'-'*10} {'-'*10} {'-'*8}")
            for d in items:
                lines.append(
                    f"  {str(d['drugName'])[:30]:<30} "
                    f"{format_currency(d['recordedValue']):>10} "
                    f"{format_currency(d['expectedValue']):>10} "
                    f"{format_currency(d['overcharge']):>10} "
                    f"{format_percentage(d['percentage']):>8}"
                )
        else:
            for d in items:
                lines.append(f"  {d['drugName']}")
                lines.append(f"    Invoice:   {d['recordedValue']}")
                lines.append(f"    Expected:  {d['expectedValue']}")
        lines.append("")

    if unmatched:
        lines.append("-" * 72)
        lines.append(f"  NOT IN REFERENCE CATALOG ({len(unmatched)}), not audited")
        lines.append("-" * 72)
        for u in unmatched:
            if u.get("suggestion"):
                lines.append(f"  {u['drugName']}  (closest: {u['suggestion']}, {u['score']}%)")
            else:
                lines.append(f"  {u['drugName']}")
        lines.append("")

    lines.append(sep)
    return "\n".join(lines)


def save_outputs(invoice_name: str, json_payload: dict, report: str, output_dir: str = "output"):
    """Save both outputs to files."""
    os.makedirs(output_dir, exist_ok=True)

    base = os.path.join(output_dir, invoice_name)

    with open(f"{base}_discrepancies.json", "w") as f:
        json.dump(json_payload, f, indent=2)

    with open(f"{base}_report.txt", "w") as f:
        f.write(report)

    print(f"  Saved: {base}_discrepancies.json")
    print(f"  Saved: {base}_report.txt")
