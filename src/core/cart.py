from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from api.models import Product

VariantMap = Dict[str, str]


def variants_equal(a: Optional[Mapping[str, str]], b: Optional[Mapping[str, str]]) -> bool:
    """Order independent, exact key set and values. None counts as empty."""
    return dict(a or {}) == dict(b or {})


@dataclass
class CartItem:
    product: Product
    quantity: int
    variant: VariantMap = field(default_factory=dict)

    @property
    def line_total(self) -> float:
        return self.product.selling_price * self.quantity

    def matches(self, product_id: str, variant: Optional[Mapping[str, str]]) -> bool:
        return self.product.id == product_id and variants_equal(self.variant, variant)


@dataclass
class Cart:
    """
    In-memory cart. Lines are identified by (product id, variant selection),
    insertion order is display order.
    """

    items: List[CartItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def find(
        self, product_id: str, variant: Optional[Mapping[str, str]] = None
    ) -> Optional[CartItem]:
        for item in self.items:
            if item.matches(product_id, variant):
                return item
        return None

    def add(
        self,
        product: Product,
        quantity: int,
        variant: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Merge into the matching line, or append a new one holding its own copy
        of the product and of the variant selection. Quantity is not clamped here.
        """
        existing = self.find(product.id, variant)
        if existing:
            existing.quantity += quantity
            return
        self.items.append(
            CartItem(
                product=product.model_copy(deep=True),
                quantity=quantity,
                variant=dict(variant or {}),
            )
        )

    def remove(self, product_id: str, variant: Optional[Mapping[str, str]] = None) -> None:
        for i, item in enumerate(self.items):
            if item.matches(product_id, variant):
                del self.items[i]
                return

    def update_quantity(
        self,
        product_id: str,
        variant: Optional[Mapping[str, str]],
        quantity: int,
    ) -> None:
        """quantity <= 0 removes the line."""
        item = self.find(product_id, variant)
        if not item:
            return
        if quantity <= 0:
            self.remove(product_id, variant)
        else:
            item.quantity = quantity

    def clear(self) -> None:
        self.items = []

    def total(self) -> float:
        return sum(item.line_total for item in self.items)

    def count(self) -> int:
        return sum(item.quantity for item in self.items)
