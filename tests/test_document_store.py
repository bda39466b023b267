"""
Document store client tests — request shape, error mapping and the
Quotation payload. urlopen is mocked; no network.
"""

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from liftcpq.document_store import (
    DocumentStoreClient, DocumentStoreError, build_quotation_payload,
    customer_type_from_erp, customer_type_to_erp,
)
from liftcpq.pricing_engine import PricingEngine
from liftcpq.schemas import FormData

from conftest import make_config, make_customer_info


def _client():
    return DocumentStoreClient(base_url="https://erp.example.com/", api_key="key", api_secret="secret", timeout=5)


def _response(payload):
    response = MagicMock()
    response.read.return_value = json.dumps(payload).encode("utf-8")
    response.__enter__.return_value = response
    return response


def _http_error(code, body=b""):
    return urllib.error.HTTPError("https://erp.example.com", code, "error", {}, io.BytesIO(body))


# --- Transport ---

def test_unconfigured_client_raises():
    client = DocumentStoreClient(base_url="")
    assert client.configured is False
    with pytest.raises(DocumentStoreError):
        client.create_doc("Quotation", {})


@patch("liftcpq.document_store.urllib.request.urlopen")
def test_create_doc_wraps_body_and_authenticates(mock_urlopen):
    mock_urlopen.return_value = _response({"data": {"name": "SAL-QTN-0001"}})
    doc = _client().create_doc("Quotation", {"party_name": "CUST-001"})
    assert doc == {"name": "SAL-QTN-0001"}

    request = mock_urlopen.call_args[0][0]
    assert request.full_url == "https://erp.example.com/api/resource/Quotation"
    assert request.get_method() == "POST"
    assert request.get_header("Authorization") == "token key:secret"
    assert json.loads(request.data) == {"data": {"party_name": "CUST-001"}}


@patch("liftcpq.document_store.urllib.request.urlopen")
def test_get_list_encodes_params(mock_urlopen):
    mock_urlopen.return_value = _response({"data": [{"name": "CUST-001"}]})
    rows = _client().get_list("Customer", filters=[["customer_type", "=", "Company"]],
                              fields=["name"], limit=5)
    assert rows == [{"name": "CUST-001"}]
    url = mock_urlopen.call_args[0][0].full_url
    assert url.startswith("https://erp.example.com/api/resource/Customer?")
    assert "limit=5" in url
    assert "customer_type" in url


@patch("liftcpq.document_store.urllib.request.urlopen")
def test_get_doc_not_found_returns_none(mock_urlopen):
    mock_urlopen.side_effect = _http_error(404)
    assert _client().get_doc("Customer", "CUST-404") is None


@pytest.mark.parametrize("code,message", [
    (401, "Unauthorized access. Please login again."),
    (403, "Access forbidden. You do not have permission to perform this action."),
    (500, "Internal server error. Please try again later."),
])
@patch("liftcpq.document_store.urllib.request.urlopen")
def test_http_errors_mapped_to_messages(mock_urlopen, code, message):
    mock_urlopen.side_effect = _http_error(code)
    with pytest.raises(DocumentStoreError) as exc:
        _client().update_doc("Quotation", "Q-1", {})
    assert exc.value.status_code == code
    assert exc.value.message == message


@patch("liftcpq.document_store.urllib.request.urlopen")
def test_other_http_error_uses_body_message(mock_urlopen):
    mock_urlopen.side_effect = _http_error(417, json.dumps({"message": "Item not found"}).encode())
    with pytest.raises(DocumentStoreError) as exc:
        _client().create_doc("Quotation", {})
    assert exc.value.message == "Item not found"
    assert exc.value.details == {"message": "Item not found"}


@patch("liftcpq.document_store.urllib.request.urlopen")
def test_network_error_status_zero(mock_urlopen):
    mock_urlopen.side_effect = urllib.error.URLError("connection refused")
    with pytest.raises(DocumentStoreError) as exc:
        _client().delete_doc("Quotation", "Q-1")
    assert exc.value.status_code == 0
    assert "Network error" in exc.value.message


# --- Mapping ---

def test_customer_type_mapping():
    assert customer_type_to_erp("Commercial") == "Company"
    assert customer_type_to_erp("Individual") == "Individual"
    assert customer_type_to_erp("") == "Company"
    assert customer_type_from_erp("Company") == "Commercial"
    assert customer_type_from_erp("Partnership") == "Commercial"
    assert customer_type_from_erp("Individual") == "Individual"


def test_build_quotation_payload():
    form_data = FormData(
        customer_info=make_customer_info(),
        product_configs=[make_config(lifts="2", stops="3")],
        additional_discount_percentage=5,
    )
    priced = PricingEngine().build_priced_quote(form_data)
    payload = build_quotation_payload(form_data, priced)

    assert payload["party_name"] == "CUST-001"
    assert payload["customer_name"] == "Evanam Pvt Ltd"
    assert payload["customer_type"] == "Company"
    assert payload["additional_discount_percentage"] == 5
    assert payload["taxes_and_charges"] == "Output GST In-state - SE"
    assert payload["valid_till"] == priced["valid_till"]

    item = payload["items"][0]
    assert item["item_code"] == "ITEM-TEST"
    assert item["qty"] == 2
    assert item["rate"] == 1_065_000
    assert item["custom_stops"] == 3
    assert item["custom_floor_designation"] == "G+2"


def test_payload_without_customer_id_omits_party():
    form_data = FormData(
        customer_info=make_customer_info(customer_id="", customer_name=None, customer_type="Individual"),
        product_configs=[make_config()],
    )
    payload = build_quotation_payload(form_data, PricingEngine().build_priced_quote(form_data))
    assert "party_name" not in payload
    assert payload["customer_name"] == "Arun K"
    assert payload["customer_type"] == "Individual"
