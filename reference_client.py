"""
Reference drug catalog — fetched over HTTP from the pricing API.

The API returns a JSON list of drug records:
    {id, drugName, unitPrice, standardUnitPrice, formulation, strength,
     payer, pricingNotes?}

standardUnitPrice is the expected price invoices are compared against.
Records are trusted as typed; missing fields are filled with blanks/zeros
so the comparator never sees absent keys.
"""

import requests
from config import REFERENCE_API_URL, REQUEST_TIMEOUT_SECONDS

_TEXT_FIELDS = ("drugName", "formulation", "strength", "payer")
_PRICE_FIELDS = ("unitPrice", "standardUnitPrice")


def fetch_reference_drugs(url: str | None = None, timeout: float | None = None) -> dict:
    """
    Download the reference catalog.

    Returns:
        records: list of reference drug dicts (empty on failure)
        source: URL that was queried
        error: message if the fetch failed, else None
    """
    url = url or REFERENCE_API_URL
    result = {"records": [], "source": url, "error": None}

    try:
        response = requests.get(url, timeout=timeout or REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        result["error"] = f"Failed to fetch reference drugs: {str(e)}"
        return result

    if not isinstance(data, list):
        result["error"] = (
            f"Failed to fetch reference drugs: expected a JSON list, "
            f"got {type(data).__name__}"
        )
        return result

    result["records"] = [coerce_reference_record(r) for r in data if isinstance(r, dict)]
    return result


def coerce_reference_record(record: dict) -> dict:
    """Fill in missing fields without touching values that are present."""
    coerced = dict(record)
    for field in _TEXT_FIELDS:
        if coerced.get(field) is None:
            coerced[field] = ""
    for field in _PRICE_FIELDS:
        if coerced.get(field) is None:
            coerced[field] = 0.0
    return coerced
