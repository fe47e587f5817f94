"""
Everything the session state machine consumes.

Key events come from the terminal host, completion events come back from
effects once they finish. All of them are handled one at a time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from api.models import Order, Product


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    CONFIRM = "confirm"
    BACK = "back"
    TAB = "tab"
    BACKTAB = "backtab"
    ERASE = "erase"
    QUIT = "quit"
    CHAR = "char"


@dataclass(frozen=True)
class KeyPressed:
    key: Key
    char: str = ""

    @classmethod
    def of_char(cls, char: str) -> "KeyPressed":
        return cls(Key.CHAR, char)


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    """Spinner frame, only meaningful while loading."""


@dataclass(frozen=True)
class NotificationExpired:
    notification_id: int


# ---------------------------
# Completion events
# ---------------------------


@dataclass(frozen=True)
class ProductsLoaded:
    request_id: int
    products: List[Product] = field(default_factory=list)
    count: int = 0
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ProductLoaded:
    request_id: int
    product: Optional[Product] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class SearchResultsLoaded:
    request_id: int
    products: List[Product] = field(default_factory=list)
    count: int = 0
    error: Optional[Exception] = None


@dataclass(frozen=True)
class OrderCreated:
    request_id: int
    order: Optional[Order] = None
    error: Optional[Exception] = None


Completion = Union[ProductsLoaded, ProductLoaded, SearchResultsLoaded, OrderCreated]
InputEvent = Union[KeyPressed, Resized, Tick, NotificationExpired, Completion]
