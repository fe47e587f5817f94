# provide wire models for the catalog/order gateway

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OperationType(str, Enum):
    QUERY = "query"
    MUTATION = "mutation"


class OrderStatusType(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    REJECTED_BY_USER = "rejected_by_user"
    DELIVERED = "delivered"
    OUT_FOR_DELIVERY = "out_for_delivery"
    AGENT = "agent"
    AGENT_CHANGED = "agent_changed"
    IN_HUB = "in_hub"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    DIRECT = "direct"


class WireModel(BaseModel):
    """
    Base for everything decoded from the gateway.
    Fields can be filled by alias (wire name) or by python name.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ---------------------------
# Catalog
# ---------------------------


class Media(WireModel):
    url: str = ""
    mimetype: str = ""
    size: int = 0


class Discount(WireModel):
    rate: float = 0.0
    type: Union[DiscountType, str] = DiscountType.PERCENTAGE


class VariantValue(WireModel):
    label: str
    active: bool = True


class ProductVariant(WireModel):
    variant_name: str
    variant_values: List[VariantValue] = Field(default_factory=list)


class CategoryDetail(WireModel):
    id: str = Field("", alias="_id")
    name: str = ""
    description: str = ""
    discount: Discount = Field(default_factory=Discount)
    medias: List[Media] = Field(default_factory=list)


class Product(WireModel):
    id: str = Field(alias="_id")
    name: str
    brand: str = ""
    categories: List[str] = Field(default_factory=list)
    product_description: str = ""
    mrp_price: float = 0.0
    selling_price: float = 0.0
    tags: List[str] = Field(default_factory=list)
    medias: List[Media] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    active: bool = True
    product_variants: List[ProductVariant] = Field(default_factory=list)
    category_details: List[CategoryDetail] = Field(default_factory=list)

    @property
    def discount_percent(self) -> float:
        if self.mrp_price <= 0 or self.mrp_price <= self.selling_price:
            return 0.0
        return (self.mrp_price - self.selling_price) / self.mrp_price * 100


class Category(WireModel):
    id: str = Field(alias="_id")
    name: str
    description: str = ""
    medias: List[Media] = Field(default_factory=list)
    discount: Discount = Field(default_factory=Discount)


# ---------------------------
# Orders
# ---------------------------


class ShippingDetails(BaseModel):
    """
    Shipping form. Mutable, it is edited keystroke by keystroke on the
    address screen.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    email: str = ""
    full_name: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    is_default: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    address: Optional[str] = None


class OrderItem(WireModel):
    product: Optional[Product] = None
    quantity: int = 0


class OrderStatusExtras(WireModel):
    agent_phone: Optional[str] = None


class OrderStatus(WireModel):
    type: Union[OrderStatusType, str] = OrderStatusType.ACCEPTED
    reason: str = ""
    extras: OrderStatusExtras = Field(default_factory=OrderStatusExtras)

    @property
    def label(self) -> str:
        return self.type.value if isinstance(self.type, OrderStatusType) else self.type


class Order(WireModel):
    id: str = Field("", alias="_id")
    total_amount: float = 0.0
    total_discount: float = 0.0
    order_items: List[OrderItem] = Field(default_factory=list)
    shipping_details: Optional[ShippingDetails] = None
    status: OrderStatus = Field(default_factory=OrderStatus)


# ---------------------------
# Request params
# ---------------------------


class Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProductListParams(Params):
    skip: int = 0
    take: int = 20
    active: Optional[bool] = None
    category_id: Optional[str] = None
    include_categories: Optional[bool] = None


class ProductGetParams(Params):
    id: str


class ProductSearchParams(Params):
    search_term: str
    skip: int = 0
    take: int = 20
    include_categories: Optional[bool] = None


class CategoryListParams(Params):
    skip: int = 0
    limit: int = 20


class OrderItemInput(Params):
    product_id: str = Field(alias="productId")
    product_name: str = Field(alias="productName")
    variant: Dict[str, str] = Field(default_factory=dict)
    quantity: int
    price: float
    total: float


class OrderPricingInput(Params):
    subtotal: float
    discount: float = 0.0
    shipping: float = 0.0
    total: float


class OrderCreateParams(Params):
    shipping_address: ShippingDetails = Field(alias="shippingAddress")
    items: List[OrderItemInput] = Field(default_factory=list)
    special_message: Optional[str] = Field(None, alias="specialMessage")
    pricing: OrderPricingInput
    user_email: str = Field(alias="userEmail")
    timestamp: str
    payment_method: Optional[str] = Field(None, alias="paymentMethod")


# ---------------------------
# Envelopes
# ---------------------------


class APIRequest(BaseModel):
    type: OperationType
    operation: str
    params: Dict[str, Any] = Field(default_factory=dict)


class APIResponse(BaseModel):
    data: Any = None
    count: Optional[int] = None
    error: Optional[str] = None
