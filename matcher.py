"""
Drug name matching against the reference catalog.

Detection uses one rule only: exact name equality after lower-casing both
full strings. The first reference record with a given name wins; later
duplicates are ignored.

Fuzzy matching (thefuzz) is diagnostic. It suggests the closest reference
name for invoice items that found no match, so a reviewer can spot typos
like "Amoxicilin". It never changes which discrepancies are reported.
"""

from thefuzz import fuzz
from config import FUZZY_SUGGEST_THRESHOLD


def name_key(drug_name: str) -> str:
    """Lookup key for a drug name. Whitespace is significant."""
    return (drug_name or "").lower()


def build_reference_index(reference_records: list[dict]) -> dict:
    """Index reference records by lower-cased drug name, keeping the first seen."""
    index = {}
    for record in reference_records:
        key = name_key(record.get("drugName", ""))
        if key not in index:
            index[key] = record
    return index


def find_reference(drug_name: str, index: dict) -> dict | None:
    """Return the reference record matching this drug name, or None."""
    return index.get(name_key(drug_name))


def find_unmatched(invoice_items: list[dict], reference_records: list[dict]) -> list[str]:
    """Drug names on the invoice with no reference match, in invoice order."""
    index = build_reference_index(reference_records)
    return [
        item.get("drugName", "")
        for item in invoice_items
        if find_reference(item.get("drugName", ""), index) is None
    ]


def suggest_reference(drug_name: str, reference_records: list[dict]) -> dict:
    """
    Find the closest reference drug name for an unmatched invoice item.

    Returns:
        suggestion: reference drug name, or None if nothing scores high enough
        score: best thefuzz ratio (0-100)
    """
    if not drug_name or not reference_records:
        return {"suggestion": None, "score": 0}

    wanted = name_key(drug_name).strip()
    best_score = 0
    best_name = None
    for record in reference_records:
        candidate = record.get("drugName", "")
        score = fuzz.ratio(wanted, name_key(candidate).strip())
        # Strictly greater keeps the earliest record on ties
        if score > best_score:
            best_score = score
            best_name = candidate

    if best_score >= FUZZY_SUGGEST_THRESHOLD:
        return {"suggestion": best_name, "score": best_score}
    return {"suggestion": None, "score": best_score}
