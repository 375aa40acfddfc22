"""
Payment Processor Client

Async wrapper around the Stripe Checkout Sessions REST API.
Stripe takes form-encoded bodies with bracketed keys for nested values.
"""

import logging
from typing import Any, Optional

import httpx

from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)


class PaymentProcessorError(UpstreamError):
    """Payment processor rejected a request or could not be reached"""

    public_message = "Payment processor error"


def encode_form(params: dict[str, Any], prefix: Optional[str] = None) -> list[tuple[str, str]]:
    """
    Flatten nested params into Stripe's bracket notation.

    {"line_items": [{"quantity": 2}]} -> [("line_items[0][quantity]", "2")]
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_name = f"{name}[{index}]"
                if isinstance(item, dict):
                    pairs.extend(encode_form(item, item_name))
                else:
                    pairs.append((item_name, str(item)))
        elif isinstance(value, bool):
            pairs.append((name, "true" if value else "false"))
        else:
            pairs.append((name, str(value)))
    return pairs


class PaymentProcessorClient:
    """
    Client for hosted checkout sessions.

    Usage:
        client = PaymentProcessorClient(secret_key="sk_test_...")
        session = await client.create_checkout_session({...})
        redirect_to(session["url"])
        ...
        session = await client.retrieve_checkout_session(session_id)
    """

    def __init__(
        self,
        secret_key: Optional[str],
        base_url: str = "https://api.stripe.com/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            secret_key: Processor secret API key
            base_url: API root
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self._secret_key = secret_key
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

        if not secret_key:
            logger.warning("No payment processor secret key configured - checkout will fail")

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        if not self._secret_key:
            raise PaymentProcessorError("Payment processor is not configured")

        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self._secret_key}"}

        try:
            if method == "GET":
                response = await self._http_client.get(url, headers=headers, params=encode_form(params or {}))
            else:
                response = await self._http_client.request(
                    method, url, headers=headers, data=dict(encode_form(params or {})),
                )
        except httpx.HTTPError as e:
            logger.error(f"Payment processor unreachable: {e}")
            raise PaymentProcessorError(f"Payment processor unreachable: {e}")

        if response.status_code >= 400:
            logger.error(f"Payment processor request failed: {response.status_code} - {response.text}")
            raise PaymentProcessorError(self._error_message(response))

        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return f"Payment processor error ({response.status_code})"

    async def create_checkout_session(self, params: dict[str, Any]) -> dict[str, Any]:
        """Create a hosted checkout session; the response carries the redirect url"""
        return await self._request("POST", "/checkout/sessions", params)

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        """Fetch a checkout session by id"""
        if not session_id:
            raise ValueError("session_id is required")
        return await self._request("GET", f"/checkout/sessions/{session_id}")
