"""
Back-office REST API client.

The backend owns all data: campaigns, payment methods, outstanding purchase
orders, orders and payments. This client only moves JSON. It does not retry.
"""

import json
import logging

import requests
from pydantic_core import to_jsonable_python

logger = logging.getLogger(__name__)


class BackofficeAPIError(Exception):
    """Raised when a back-office API request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BackofficeClient:
    """Thin JSON client for the back-office API."""

    def __init__(self, base_url: str, api_token: str | None = None, timeout: int = 10):
        """
        Initialize with the API location.

        Args:
            base_url: API root, e.g. https://backoffice.example.com/api
            api_token: Optional bearer token
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If base_url is empty
        """
        if not base_url:
            raise ValueError("base_url is required")

        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "BackofficeClient":
        """Build a client from EngineConfig's api_* settings."""
        return cls(config.api_base_url, api_token=config.api_token, timeout=config.api_timeout_seconds)

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _request(self, method: str, path: str, payload: dict | None = None, params: dict | None = None):
        """
        Send a request and unwrap the response envelope.

        Returns:
            The envelope's data field, or the whole body when there is none

        Raises:
            BackofficeAPIError: On connection failure, invalid JSON, non-2xx
                status or success=false
        """
        url = f"{self.base_url}{path}"

        try:
            response = requests.request(
                method,
                url,
                json=to_jsonable_python(payload) if payload is not None else None,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Back-office connection failed: {method} {path}: {e}")
            raise BackofficeAPIError(f"Connection failed: {e}")

        try:
            body = response.json()
        except json.JSONDecodeError:
            logger.error(f"Back-office returned invalid JSON for {method} {path}: {response.text[:200]}")
            raise BackofficeAPIError("Invalid response from back-office API", response.status_code)

        envelope = body if isinstance(body, dict) else {}
        if not 200 <= response.status_code < 300 or envelope.get("success") is False:
            error_msg = envelope.get("message") or f"HTTP {response.status_code}"
            logger.error(f"Back-office error on {method} {path}: {error_msg}")
            raise BackofficeAPIError(error_msg, response.status_code)

        if "data" in envelope:
            return envelope["data"]
        return body

    # =========================================================================
    # CAMPAIGNS & PAYMENT METHODS
    # =========================================================================

    def calculate_discount(self, items: list[dict]) -> dict:
        """
        Ask the campaign service for the discount on a cart.

        Args:
            items: [{product_id, quantity, unit_price}, ...]

        Returns:
            {total_discount, items, campaigns_applied}
        """
        return self._request("POST", "/campaigns/calculate-discount", {"items": items})

    def get_payment_methods(self, customer_type: str = "social_commerce") -> list[dict]:
        """
        List payment methods available for a customer type.

        The backend nests the list under several keys depending on version.
        """
        data = self._request("GET", "/payment-methods", params={"customer_type": customer_type})

        if isinstance(data, dict):
            for key in ("payment_methods", "methods", "data"):
                nested = data.get(key)
                if isinstance(nested, list):
                    return nested
                if isinstance(nested, dict) and isinstance(nested.get("payment_methods"), list):
                    return nested["payment_methods"]
            return []
        return data if isinstance(data, list) else []

    # =========================================================================
    # ORDERS
    # =========================================================================

    def create_order(self, payload: dict) -> dict:
        """Create an order. Returns the created order."""
        order = self._request("POST", "/orders", payload)
        logger.info(f"Order created: {order.get('order_number') if isinstance(order, dict) else order}")
        return order

    def record_order_payment(self, order_id: int, payload: dict) -> dict:
        """Record a payment against an existing order."""
        result = self._request("POST", f"/orders/{order_id}/payments/simple", payload)
        logger.info(f"Payment of {payload.get('amount')} recorded on order {order_id}")
        return result

    # =========================================================================
    # VENDOR PAYMENTS
    # =========================================================================

    def get_outstanding(self, vendor_id: int) -> dict:
        """
        Outstanding purchase orders for a vendor.

        Returns:
            {purchase_orders: [...], ...}
        """
        data = self._request("GET", f"/vendors/{vendor_id}/outstanding")
        return data if isinstance(data, dict) else {"purchase_orders": []}

    def create_vendor_payment(self, payload: dict) -> dict:
        """Record a vendor payment with optional allocations."""
        result = self._request("POST", "/vendor-payments", payload)
        logger.info(f"Vendor payment of {payload.get('amount')} recorded for vendor {payload.get('vendor_id')}")
        return result
