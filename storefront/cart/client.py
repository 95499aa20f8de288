"""
Cart Data Service client.

Thin async wrapper over the cart HTTP API. Every mutating call returns the
full cart as a CartSnapshot; failures are raised as CartServiceError so
callers deal with a single exception type.
"""
import secrets
import string
import time
import uuid
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.config import Settings, get_settings
from storefront.errors import (
    ERROR_CART_ADD_FAILED,
    ERROR_CART_CLEAR_FAILED,
    ERROR_CART_FETCH_FAILED,
    ERROR_CART_MERGE_FAILED,
    ERROR_CART_REMOVE_FAILED,
    ERROR_CART_UPDATE_FAILED,
)
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

from .exceptions import CartServiceError, MalformedResponseError
from .models import CartSnapshot
from .schemas import CartResponse, ErrorResponse

logger = get_logger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}

_BASE36 = string.digits + string.ascii_lowercase


def generate_guest_session_id() -> str:
    """Build a guest session id: guest_<epoch ms>_<9 base36 chars>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"guest_{int(time.time() * 1000)}_{suffix}"


def _cache_buster() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def _item_path(item_id: str) -> str:
    return "/api/cart/items/" + quote(item_id, safe="")


def _error_message(response: httpx.Response, default: str) -> str:
    """Pull the human readable `error` field out of a failed response."""
    try:
        return ErrorResponse.model_validate(response.json()).error
    except (ValueError, ValidationError):
        return default


class CartApiClient:
    """
    Client for the cart HTTP API.

    Usage:
        client = CartApiClient()
        snapshot = await client.fetch_cart()
        snapshot = await client.update_item_quantity(item_id, 3)
        await client.aclose()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        retry_backoff: float = 0.5,
    ):
        self.settings = settings or get_settings()
        self.session_id = session_id or self.settings.session_id or generate_guest_session_id()
        self.user_id = user_id
        self._retry_backoff = retry_backoff
        self._owns_http_client = http_client is None
        self._http_client = http_client

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of the shared httpx client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=httpx.Timeout(self.settings.api_timeout, connect=5.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            )
        return self._http_client

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = {"Accept": "application/json"}
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        if extra:
            headers.update(extra)
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        default_error: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        client = self._get_http_client()
        try:
            response = await client.request(
                method, url, params=params, json=json, headers=self._headers(headers)
            )
        except httpx.TransportError:
            raise
        except httpx.HTTPError as e:
            raise CartServiceError(f"{default_error}: {e!s}") from e

        if response.is_error:
            message = _error_message(response, default_error)
            logger.warning(
                f"Cart service {method} {url} failed with {response.status_code}: "
                f"{sanitize_string_for_logging(message)}"
            )
            raise CartServiceError(message, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(status_code=response.status_code) from e

    async def _send_once(self, method: str, url: str, default_error: str, **kwargs) -> Any:
        """Send without retrying; transport errors become CartServiceError."""
        try:
            return await self._send(method, url, default_error, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"Cart service {method} {url} transport error: {e!s}")
            raise CartServiceError(f"{default_error}: {e!s}") from e

    @staticmethod
    def _parse_cart(data: Any) -> CartSnapshot:
        try:
            return CartResponse.model_validate(data).to_snapshot()
        except ValidationError as e:
            logger.warning(f"Malformed cart response: {e.error_count()} validation errors")
            raise MalformedResponseError() from e

    async def fetch_cart(self) -> CartSnapshot:
        """
        Read the current cart.

        Reads are idempotent, so transport errors are retried with
        exponential backoff before giving up.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.fetch_retries + 1),
            wait=wait_exponential(multiplier=self._retry_backoff, max=5),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    data = await self._send(
                        "GET",
                        "/api/cart",
                        ERROR_CART_FETCH_FAILED,
                        params={"sessionId": self.session_id, "_t": _cache_buster()},
                        headers=NO_CACHE_HEADERS,
                    )
        except httpx.TransportError as e:
            logger.error(f"Cart fetch failed after retries: {e!s}")
            raise CartServiceError(f"{ERROR_CART_FETCH_FAILED}: {e!s}") from e

        return self._parse_cart(data)

    async def update_item_quantity(self, item_id: str, quantity: int) -> CartSnapshot:
        """
        Set the quantity of one line item.

        Every call carries a unique `_t` parameter and no-cache headers so no
        intermediate cache can answer a fresh mutation with a stale body.
        """
        logger.debug(f"Updating cart item {sanitize_id_for_logging(item_id)} to quantity {quantity}")
        data = await self._send_once(
            "PUT",
            _item_path(item_id),
            ERROR_CART_UPDATE_FAILED,
            params={"_t": _cache_buster()},
            json={"quantity": quantity},
            headers=NO_CACHE_HEADERS,
        )
        return self._parse_cart(data)

    async def remove_item(self, item_id: str) -> CartSnapshot:
        """Delete one line item."""
        data = await self._send_once(
            "DELETE",
            _item_path(item_id),
            ERROR_CART_REMOVE_FAILED,
            headers=NO_CACHE_HEADERS,
        )
        return self._parse_cart(data)

    async def add_item(
        self,
        product_id: str,
        quantity: int = 1,
        variant_id: Optional[str] = None,
        selected_weight: Optional[float] = None,
    ) -> CartSnapshot:
        """Add a product (or more of it) to the cart."""
        payload: dict[str, Any] = {
            "productId": product_id,
            "quantity": quantity,
            "sessionId": self.session_id,
        }
        if variant_id:
            payload["variantId"] = variant_id
        if selected_weight is not None:
            payload["selectedWeight"] = selected_weight

        data = await self._send_once("POST", "/api/cart", ERROR_CART_ADD_FAILED, json=payload)
        return self._parse_cart(data)

    async def clear_cart(self) -> str:
        """Remove every line item. Returns the service message."""
        data = await self._send_once(
            "DELETE",
            "/api/cart",
            ERROR_CART_CLEAR_FAILED,
            params={"sessionId": self.session_id},
        )
        return str(data.get("message", "")) if isinstance(data, dict) else ""

    async def merge_guest_cart(self, user_id: str) -> str:
        """Move the guest cart of this session into the given user's cart."""
        data = await self._send_once(
            "POST",
            "/api/cart/merge",
            ERROR_CART_MERGE_FAILED,
            json={"sessionId": self.session_id, "userId": user_id},
        )
        self.user_id = user_id
        return str(data.get("message", "")) if isinstance(data, dict) else ""

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
        self._http_client = None
