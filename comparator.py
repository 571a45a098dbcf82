"""
Discrepancy detection engine.

Compares invoice line items against reference drug records and reports four
independent kinds of discrepancy: price, formulation, strength, and payer.
An invoice item is matched to the first reference record with the same drug
name (case-insensitive); unmatched items are skipped.

Price: flagged when the invoice price is more than 10% above the standard
unit price. Formulation, strength and payer: flagged when the normalized
text differs, so "Tablet (ER)" vs "Tablet" or "20,000 IU" vs "20000iu" pass.
"""

import math
import re
from config import PRICE_THRESHOLD_PCT
from matcher import build_reference_index, find_reference

DISCREPANCY_TYPES = ("price", "formulation", "strength", "payer")

_WHITESPACE = re.compile(r"\s+")
_PARENTHESIZED = re.compile(r"\(.*?\)")
_STRENGTH_UNITS = re.compile(r"mg|mcg|iu|units?")
_SLASH_RUNS = re.compile(r"/+")


def normalize_text(value: str) -> str:
    """Remove all whitespace and lower-case. Used for payers."""
    return _WHITESPACE.sub("", value or "").lower()


def normalize_formulation(formulation: str) -> str:
    """'Tablet (ER)' -> 'tablet'. Parenthesized qualifiers are dropped."""
    stripped = _PARENTHESIZED.sub("", formulation or "")
    return _WHITESPACE.sub("", stripped).lower()


def normalize_strength(strength: str) -> str:
    """
    Reduce a strength to its numbers and separators.

    "20,000 IU" -> "20000", "5mg/325mg" -> "5/325", "100 units/mL" -> "100/ml".
    """
    value = (strength or "").lower()
    value = _WHITESPACE.sub("", value)
    value = _STRENGTH_UNITS.sub("", value)
    value = value.replace(",", "")
    value = _SLASH_RUNS.sub("/", value)
    return value.strip()


def price_deviation(invoice_price: float, expected_price: float) -> tuple[float, float]:
    """
    Return (overcharge, percentage) of the invoice price over the expected price.

    A zero expected price has no ratio: any positive invoice price is an
    unbounded overcharge (inf), anything else is 0%.
    """
    diff = invoice_price - expected_price
    if expected_price == 0:
        return diff, math.inf if invoice_price > 0 else 0.0
    return diff, (diff / expected_price) * 100


def check_price(invoice_item: dict, reference: dict) -> dict | None:
    """Price discrepancy for a matched pair, or None if within threshold."""
    invoice_price = invoice_item.get("unitPrice", 0) or 0
    expected_price = reference.get("standardUnitPrice", 0) or 0
    overcharge, percentage = price_deviation(invoice_price, expected_price)

    # Exactly at the threshold is acceptable
    if not percentage > PRICE_THRESHOLD_PCT:
        return None

    return {
        "drugName": invoice_item.get("drugName"),
        "recordedValue": invoice_price,
        "expectedValue": expected_price,
        "discrepancyType": "price",
        "overcharge": overcharge,
        "percentage": percentage,
    }


def _check_field(invoice_item: dict, reference: dict, field: str, normalize) -> dict | None:
    recorded = invoice_item.get(field, "") or ""
    expected = reference.get(field, "") or ""
    if normalize(recorded) == normalize(expected):
        return None
    return {
        "drugName": invoice_item.get("drugName"),
        "recordedValue": recorded,
        "expectedValue": expected,
        "discrepancyType": field,
    }


def check_formulation(invoice_item: dict, reference: dict) -> dict | None:
    return _check_field(invoice_item, reference, "formulation", normalize_formulation)


def check_strength(invoice_item: dict, reference: dict) -> dict | None:
    return _check_field(invoice_item, reference, "strength", normalize_strength)


def check_payer(invoice_item: dict, reference: dict) -> dict | None:
    return _check_field(invoice_item, reference, "payer", normalize_text)


_CHECKS = {
    "price": check_price,
    "formulation": check_formulation,
    "strength": check_strength,
    "payer": check_payer,
}


def summarize(price: list[dict], formulation: list[dict],
              strength: list[dict], payer: list[dict]) -> dict:
    """Counts per kind, total issues, and total overcharge."""
    return {
        "totalPriceDiscrepancies": len(price),
        "totalFormulationIssues": len(formulation),
        "totalStrengthErrors": len(strength),
        "totalPayerMismatches": len(payer),
        "totalIssues": len(price) + len(formulation) + len(strength) + len(payer),
        "totalOvercharge": sum(d.get("overcharge") or 0 for d in price),
    }


def detect_discrepancies(invoice_items: list[dict], reference_records: list[dict]) -> dict:
    """
    Compare every invoice line item against its reference record.

    Each item is checked on all four fields independently, so one item can
    appear in several lists. Lists keep invoice order.

    Returns:
        priceDiscrepancies, formulationDiscrepancies, strengthDiscrepancies,
        payerDiscrepancies: lists of discrepancy dicts
        summary: per-kind counts, totalIssues, totalOvercharge
    """
    found = {kind: [] for kind in DISCREPANCY_TYPES}
    index = build_reference_index(reference_records)

    for item in invoice_items:
        reference = find_reference(item.get("drugName", ""), index)
        if reference is None:
            continue

        for kind in DISCREPANCY_TYPES:
            discrepancy = _CHECKS[kind](item, reference)
            if discrepancy is not None:
                found[kind].append(discrepancy)

    return {
        "priceDiscrepancies": found["price"],
        "formulationDiscrepancies": found["formulation"],
        "strengthDiscrepancies": found["strength"],
        "payerDiscrepancies": found["payer"],
        "summary": summarize(found["price"], found["formulation"],
                             found["strength"], found["payer"]),
    }
