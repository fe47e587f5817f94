from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from api.models import (
    APIRequest,
    APIResponse,
    Category,
    CategoryListParams,
    OperationType,
    Order,
    OrderCreateParams,
    Params,
    Product,
    ProductGetParams,
    ProductListParams,
    ProductSearchParams,
)
from db.audit import OrderAuditLog
from utils.logger import get_logger

_logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class GatewayError(Exception):
    """Any failed round trip to the gateway."""


class GatewayTransportError(GatewayError):
    """The request never produced an HTTP response."""


class GatewayApplicationError(GatewayError):
    """HTTP status >= 400, or an error field in the response envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatewayDecodeError(GatewayError):
    """The response (or its data field) does not have the expected shape."""


def normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        return ""
    if base_url.startswith("http://") or base_url.startswith("https://"):
        return base_url
    return "http://" + base_url


def decode_many(data: Any, model: Type[M], what: str) -> List[M]:
    """
    Decode a list result. The gateway sometimes answers with a bare object
    instead of a one element list, and with null for nothing.
    """
    if data is None:
        return []
    if isinstance(data, dict):
        data = [data]
    try:
        return TypeAdapter(List[model]).validate_python(data)
    except ValidationError as e:
        raise GatewayDecodeError(f"unmarshal {what}: {e}") from e


def decode_one(data: Any, model: Type[M], what: str) -> M:
    """Decode a single result, accepting an object or a one element list."""
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise GatewayDecodeError(f"unmarshal {what}: {e}") from e


class GatewayClient:
    """
    Client for the catalog/order gateway.

    Every operation is a POST of {type, operation, params} to the base url,
    answered by {data, count?, error?}.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        audit: Optional[OrderAuditLog] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = normalize_base_url(base_url)
        self._audit = audit
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _audit_entry(self, entry: str) -> None:
        if self._audit is None:
            return
        try:
            await self._audit.record(entry)
        except Exception:
            # audit failures never fail the call
            _logger.exception("Could not write order audit entry")

    async def call(
        self, op_type: OperationType, operation: str, params: Params
    ) -> APIResponse:
        """Perform one round trip, returns the decoded envelope."""
        if not self.base_url:
            raise GatewayError("missing api base url")

        request = APIRequest(type=op_type, operation=operation, params=params.to_wire())
        _logger.debug(f"-> {operation} {request.params}")

        try:
            resp = await self._http.post(
                self.base_url,
                content=request.model_dump_json(),
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # a malformed base url only surfaces here, as InvalidURL
            _logger.warning(f"{operation} failed: {e!r}")
            raise GatewayTransportError(f"do request: {e}") from e

        status = resp.status_code
        body = resp.text
        if status >= 400:
            await self._audit_entry(f"http {status} response body: {body}")

        try:
            envelope = APIResponse.model_validate_json(resp.content)
        except ValidationError as e:
            if status >= 400:
                raise GatewayApplicationError(f"http error: {status}", status) from e
            raise GatewayDecodeError(f"unmarshal response: {e}") from e

        if envelope.error:
            await self._audit_entry("api error response: " + body)
            _logger.warning(f"{operation} returned error: {envelope.error}")
            raise GatewayApplicationError(f"api error: {envelope.error}", status)

        if status >= 400:
            raise GatewayApplicationError(f"http error: {status}", status)

        _logger.debug(f"<- {operation} ({status})")
        return envelope

    # ---------------------------
    # Products & categories
    # ---------------------------

    async def list_products(
        self, params: ProductListParams
    ) -> Tuple[List[Product], int]:
        resp = await self.call(OperationType.QUERY, "product.list", params)
        return decode_many(resp.data, Product, "products"), resp.count or 0

    async def get_product(self, product_id: str) -> Product:
        resp = await self.call(
            OperationType.QUERY, "product.get", ProductGetParams(id=product_id)
        )
        return decode_one(resp.data, Product, "product")

    async def search_products(
        self, params: ProductSearchParams
    ) -> Tuple[List[Product], int]:
        resp = await self.call(OperationType.QUERY, "product.search", params)
        return decode_many(resp.data, Product, "products"), resp.count or 0

    async def list_categories(
        self, params: CategoryListParams
    ) -> Tuple[List[Category], int]:
        resp = await self.call(OperationType.QUERY, "category.list", params)
        return decode_many(resp.data, Category, "categories"), resp.count or 0

    # ---------------------------
    # Orders
    # ---------------------------

    async def create_order(self, params: OrderCreateParams) -> Order:
        """
        Submit an order. Request, response and any failure go to the audit
        log, this is the one call with consequences outside the session.
        """
        await self._audit_entry(
            "order.create request: " + json.dumps(params.to_wire())
        )

        try:
            resp = await self.call(OperationType.MUTATION, "order.create", params)
        except GatewayError as e:
            await self._audit_entry(f"order.create error: {e}")
            raise

        await self._audit_entry("order.create response: " + json.dumps(resp.data))

        try:
            order = decode_one(resp.data, Order, "order")
        except GatewayDecodeError as e:
            await self._audit_entry(f"order.create error: {e}")
            raise

        _logger.info(f"Order {order.id} created ({order.status.label})")
        return order
