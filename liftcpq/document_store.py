"""
Client for the remote document store (Frappe-style REST API).

    GET    /api/resource/{doctype}?filters=..&fields=..&order_by=..&limit=..
    GET    /api/resource/{doctype}/{name}
    POST   /api/resource/{doctype}            body: {"data": {...}}
    PUT    /api/resource/{doctype}/{name}     body: {"data": {...}}
    DELETE /api/resource/{doctype}/{name}

Responses wrap the payload in {"data": ...}. Every failure surfaces as a
DocumentStoreError with a user-facing message and the HTTP status
(0 for network errors).
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

from .config import settings

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    401: "Unauthorized access. Please login again.",
    403: "Access forbidden. You do not have permission to perform this action.",
    404: "Resource not found.",
    500: "Internal server error. Please try again later.",
}


class DocumentStoreError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


def _message_from_body(body, default: str) -> str:
    if isinstance(body, str) and body:
        return body
    if isinstance(body, dict):
        for key in ("message", "error", "exception"):
            if isinstance(body.get(key), str):
                return body[key]
    return default


class DocumentStoreClient:
    """Thin wrapper over the document store's resource API."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 api_secret: Optional[str] = None, timeout: Optional[int] = None):
        self.base_url = (base_url if base_url is not None else settings.DOCUMENT_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.DOCUMENT_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.DOCUMENT_API_SECRET
        self.timeout = timeout or settings.DOCUMENT_API_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    # --- Resource operations ---

    def get_list(self, doctype: str, filters: Optional[list] = None, fields: Optional[list] = None,
                 order_by: str = "", limit: int = 50) -> list:
        params = {}
        if filters:
            params["filters"] = json.dumps(filters)
        params["fields"] = json.dumps(fields or ["*"])
        if order_by:
            params["order_by"] = order_by
        if limit:
            params["limit"] = str(limit)
        result = self._request("GET", self._resource_path(doctype), params=params,
                               default_message=f"Failed to fetch {doctype} list")
        return result.get("data", [])

    def get_doc(self, doctype: str, name: str, fields: Optional[list] = None) -> Optional[dict]:
        """Single document, or None when the store answers 404."""
        params = {}
        if fields and "*" not in fields:
            params["fields"] = json.dumps(fields)
        try:
            result = self._request("GET", self._resource_path(doctype, name), params=params,
                                   default_message=f"Failed to fetch {doctype} {name}")
        except DocumentStoreError as e:
            if e.status_code == 404:
                return None
            raise
        return result.get("data")

    def create_doc(self, doctype: str, data: dict) -> dict:
        result = self._request("POST", self._resource_path(doctype), body={"data": data},
                               default_message=f"Failed to create {doctype}")
        return result.get("data", {})

    def update_doc(self, doctype: str, name: str, data: dict) -> dict:
        result = self._request("PUT", self._resource_path(doctype, name), body={"data": data},
                               default_message=f"Failed to update {doctype} {name}")
        return result.get("data", {})

    def delete_doc(self, doctype: str, name: str) -> bool:
        self._request("DELETE", self._resource_path(doctype, name),
                      default_message=f"Failed to delete {doctype} {name}")
        return True

    # --- Transport ---

    def _resource_path(self, doctype: str, name: Optional[str] = None) -> str:
        path = f"/api/resource/{urllib.parse.quote(doctype)}"
        if name is not None:
            path += f"/{urllib.parse.quote(str(name), safe='')}"
        return path

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key and self.api_secret:
            headers["Authorization"] = f"token {self.api_key}:{self.api_secret}"
        return headers

    def _request(self, method: str, path: str, params: Optional[dict] = None,
                 body: Optional[dict] = None, default_message: str = "An error occurred") -> dict:
        if not self.configured:
            raise DocumentStoreError("Document store URL is not configured", status_code=None)

        url = self.base_url + path
        if params:
            url += "?" + urllib.parse.urlencode(params)
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, headers=self._headers(), method=method)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            details = _read_error_body(e)
            message = STATUS_MESSAGES.get(e.code, _message_from_body(details, default_message))
            logger.warning("%s %s failed with %s: %s", method, path, e.code, message)
            raise DocumentStoreError(message, status_code=e.code, details=details) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            logger.warning("%s %s network error: %s", method, path, e)
            raise DocumentStoreError(
                "Network error. Please check your internet connection and try again.",
                status_code=0,
                details=str(e),
            ) from e

        if not raw:
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DocumentStoreError(default_message, status_code=None, details=raw[:200]) from e


def _read_error_body(error: urllib.error.HTTPError):
    try:
        raw = error.read()
    except OSError:
        return None
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw.decode("utf-8", errors="replace")


# --- Customer type mapping (wizard ↔ ERP) ---

def customer_type_to_erp(customer_type: str) -> str:
    """Commercial → Company, Individual → Individual, anything else → Company."""
    return "Individual" if customer_type == "Individual" else "Company"


def customer_type_from_erp(customer_type: str) -> str:
    """Company/Partnership/unknown → Commercial, Individual → Individual."""
    return "Individual" if customer_type == "Individual" else "Commercial"


# --- Quotation payload ---

def build_quotation_payload(form_data, priced: dict) -> dict:
    """
    Map a priced wizard submission onto the store's Quotation doctype.
    Each line becomes one item at its complete line price; the discount and
    tax template are passed through so the store computes tax.
    """
    customer = form_data.customer_info
    items = []
    for line in priced["lines"]:
        qty = line["lifts"]
        items.append({
            "item_code": line["product_id"],
            "qty": qty,
            "rate": round(line["line_total"] / qty, 2) if qty else line["line_total"],
            "description": (
                f"{line['product_name']} Package: {line['package_name'] or '—'} "
                f"Requirements: {qty} lift(s), {line['stops']} stops"
            ),
            "custom_stops": line["stops"],
            "custom_floor_designation": line["floor_designation"],
        })
    payload = {
        "quotation_to": "Customer",
        "party_name": customer.customer_id or None,
        "customer_name": customer.customer_name or f"{customer.first_name} {customer.last_name}".strip(),
        "customer_type": customer_type_to_erp(customer.customer_type),
        "valid_till": priced["valid_till"],
        "items": items,
        "additional_discount_percentage": priced["discount_percentage"],
        "apply_discount_on": "Net Total",
        "taxes_and_charges": priced["taxes_and_charges"],
        "tax_category": priced["tax_category"],
    }
    return {k: v for k, v in payload.items() if v is not None}
