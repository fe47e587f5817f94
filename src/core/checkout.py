from __future__ import annotations

from datetime import datetime
from typing import Optional

from api.models import (
    OrderCreateParams,
    OrderItemInput,
    OrderPricingInput,
    ShippingDetails,
)
from core.cart import Cart

PAYMENT_METHOD_COD = "cod"
MIN_PHONE_DIGITS = 8
MIN_POSTAL_LENGTH = 4


def is_valid_phone(phone: str) -> bool:
    digits = 0
    for ch in phone:
        if "0" <= ch <= "9":
            digits += 1
        elif ch not in "+- ":
            return False
    return digits >= MIN_PHONE_DIGITS


def is_valid_email(email: str) -> bool:
    at = email.find("@")
    dot = email.rfind(".")
    return at > 0 and dot > at + 1 and dot < len(email) - 1


def validate_shipping_details(details: ShippingDetails) -> Optional[str]:
    """
    Return None if the shipping details can be submitted, else the reason for
    the first failing field.

    Fields are checked in form order: full name, phone, email, address line 1,
    city, state, postal code, country. Address line 2 is optional.
    """
    full_name = details.full_name.strip()
    phone = details.phone.strip()
    email = details.email.strip()
    address1 = details.address_line1.strip()
    city = details.city.strip()
    state = details.state.strip()
    postal = details.postal_code.strip()
    country = details.country.strip()

    if not full_name:
        return "Full name is required"
    if not phone or not is_valid_phone(phone):
        return "Enter a valid phone number"
    if not email or not is_valid_email(email):
        return "Enter a valid email address"
    if not address1:
        return "Address line 1 is required"
    if not city:
        return "City is required"
    if not state:
        return "State is required"
    if not postal or len(postal) < MIN_POSTAL_LENGTH:
        return "Enter a valid postal code"
    if not country:
        return "Country is required"
    return None


def build_order_params(
    cart: Cart, details: ShippingDetails, now: Optional[datetime] = None
) -> OrderCreateParams:
    """
    Order payload for the cart as it is now. Discount and shipping are always
    zero, payment is collected on delivery.
    """
    items = [
        OrderItemInput(
            product_id=item.product.id,
            product_name=item.product.name,
            variant=dict(item.variant),
            quantity=item.quantity,
            price=item.product.selling_price,
            total=item.line_total,
        )
        for item in cart.items
    ]

    subtotal = cart.total()
    discount = 0.0
    shipping = 0.0
    total = subtotal - discount + shipping

    shipping_address = details.model_copy(update={"address": None, "is_default": False})
    now = now or datetime.now().astimezone()

    return OrderCreateParams(
        shipping_address=shipping_address,
        items=items,
        pricing=OrderPricingInput(
            subtotal=subtotal, discount=discount, shipping=shipping, total=total
        ),
        user_email=details.email.strip(),
        timestamp=now.isoformat(timespec="seconds"),
        payment_method=PAYMENT_METHOD_COD,
    )
