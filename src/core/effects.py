"""
Effects requested by the session, and the runner that carries them out.

An effect never touches session state. It ends with at most one event that
the host feeds back into the session like any other input.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Union

from api.client import GatewayClient, GatewayError
from api.models import OrderCreateParams, ProductListParams, ProductSearchParams
from core.events import (
    InputEvent,
    NotificationExpired,
    OrderCreated,
    ProductLoaded,
    ProductsLoaded,
    SearchResultsLoaded,
    Tick,
)
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class LoadProducts:
    request_id: int
    params: ProductListParams


@dataclass(frozen=True)
class LoadProduct:
    request_id: int
    product_id: str


@dataclass(frozen=True)
class SearchProducts:
    request_id: int
    params: ProductSearchParams


@dataclass(frozen=True)
class CreateOrder:
    request_id: int
    params: OrderCreateParams


@dataclass(frozen=True)
class ScheduleTick:
    delay: float


@dataclass(frozen=True)
class ScheduleNotificationClear:
    notification_id: int
    delay: float


@dataclass(frozen=True)
class QuitSession:
    """Ends the session, handled by the host itself."""


Effect = Union[
    LoadProducts,
    LoadProduct,
    SearchProducts,
    CreateOrder,
    ScheduleTick,
    ScheduleNotificationClear,
    QuitSession,
]


class EffectRunner:
    """Runs effects against one session's gateway client."""

    def __init__(self, client: GatewayClient) -> None:
        self.client = client

    async def run(self, effect: Effect) -> Optional[InputEvent]:
        """
        Carry out an effect and return the event describing its outcome.
        Gateway failures are returned inside the event, never raised.
        """
        if isinstance(effect, ScheduleTick):
            await asyncio.sleep(effect.delay)
            return Tick()

        if isinstance(effect, ScheduleNotificationClear):
            await asyncio.sleep(effect.delay)
            return NotificationExpired(effect.notification_id)

        if isinstance(effect, LoadProducts):
            try:
                products, count = await self.client.list_products(effect.params)
            except GatewayError as e:
                return ProductsLoaded(effect.request_id, error=e)
            return ProductsLoaded(effect.request_id, products=products, count=count)

        if isinstance(effect, LoadProduct):
            try:
                product = await self.client.get_product(effect.product_id)
            except GatewayError as e:
                return ProductLoaded(effect.request_id, error=e)
            return ProductLoaded(effect.request_id, product=product)

        if isinstance(effect, SearchProducts):
            try:
                products, count = await self.client.search_products(effect.params)
            except GatewayError as e:
                return SearchResultsLoaded(effect.request_id, error=e)
            return SearchResultsLoaded(
                effect.request_id, products=products, count=count
            )

        if isinstance(effect, CreateOrder):
            try:
                order = await self.client.create_order(effect.params)
            except GatewayError as e:
                _logger.warning(f"Order submission failed: {e}")
                return OrderCreated(effect.request_id, error=e)
            return OrderCreated(effect.request_id, order=order)

        # QuitSession and anything else the host handles itself
        return None
