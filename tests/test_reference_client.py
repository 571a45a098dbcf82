from unittest import mock

import requests

from reference_client import coerce_reference_record, fetch_reference_drugs

CATALOG = [
    {
        "id": 1,
        "drugName": "Aspirin",
        "unitPrice": 0.50,
        "standardUnitPrice": 0.45,
        "formulation": "Tablet",
        "strength": "100mg",
        "payer": "Medicare",
        "pricingNotes": "Standard pricing applies",
    },
]


def fake_response(data, status=200):
    response = mock.Mock()
    response.json.return_value = data
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Server Error")
    else:
        response.raise_for_status.return_value = None
    return response


def test_fetch_reference_drugs():
    with mock.patch("reference_client.requests.get", return_value=fake_response(CATALOG)) as get:
        result = fetch_reference_drugs(url="https://example.test/drugs", timeout=3)

    get.assert_called_once_with("https://example.test/drugs", timeout=3)
    assert result["error"] is None
    assert result["source"] == "https://example.test/drugs"
    assert result["records"] == CATALOG


def test_fetch_uses_configured_url():
    with mock.patch("reference_client.requests.get", return_value=fake_response([])) as get:
        result = fetch_reference_drugs()

    assert get.call_args.args[0] == result["source"]
    assert result["records"] == []
    assert result["error"] is None


def test_fetch_http_error():
    with mock.patch("reference_client.requests.get", return_value=fake_response(None, status=503)):
        result = fetch_reference_drugs(url="https://example.test/drugs")

    assert result["records"] == []
    assert result["error"].startswith("Failed to fetch reference drugs:")


def test_fetch_connection_error():
    with mock.patch("reference_client.requests.get",
                    side_effect=requests.ConnectionError("unreachable")):
        result = fetch_reference_drugs(url="https://example.test/drugs")

    assert "unreachable" in result["error"]


def test_fetch_rejects_non_list_body():
    with mock.patch("reference_client.requests.get",
                    return_value=fake_response({"message": "Not found"})):
        result = fetch_reference_drugs(url="https://example.test/drugs")

    assert result["records"] == []
    assert "expected a JSON list" in result["error"]


def test_coerce_fills_missing_fields_only():
    record = coerce_reference_record({"id": 7, "drugName": "Metformin", "standardUnitPrice": 1.2})
    assert record["standardUnitPrice"] == 1.2
    assert record["unitPrice"] == 0.0
    assert record["payer"] == ""
    assert record["formulation"] == ""
    assert record["id"] == 7
