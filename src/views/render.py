# turns session state into markdown for the shop screen
from typing import List

from api.models import Product
from core.cart import Cart
from core.session import (
    ADDRESS_FIELDS,
    ADDRESS_LABELS,
    AddressView,
    CartView,
    CheckoutView,
    HomeView,
    OrderSuccessView,
    ProductView,
    SearchView,
    SessionState,
)
from utils.config import AppConfig
from utils.pure import escape_cell, generate_markdown_table, truncate

NOTIFICATION_ICONS = {"success": "✅", "error": "❌", "info": "ℹ️"}


def price(amount: float) -> str:
    return f"₹{amount:.0f}"


def content_width(state: SessionState) -> int:
    return max(40, min(state.width - 4, 120))


def _product_table(products: List[Product], cursor: int, width: int) -> str:
    name_width = max(20, min(width - 40, 50))
    rows = [
        [
            "▸" if i == cursor else "",
            escape_cell(truncate(p.name, name_width)),
            escape_cell(truncate(p.brand, 13)),
            price(p.selling_price),
        ]
        for i, p in enumerate(products)
    ]
    return generate_markdown_table(["", "Product", "Brand", "Price"], rows, ["c", "l", "l", "r"])


def _cart_table(cart: Cart, cursor: int, width: int) -> str:
    name_width = max(15, width - 50)
    rows = []
    for i, item in enumerate(cart.items):
        name = truncate(item.product.name, name_width)
        if item.variant:
            name += " (" + ", ".join(f"{k}: {v}" for k, v in item.variant.items()) + ")"
        rows.append(
            [
                "▸" if i == cursor else "",
                escape_cell(name),
                f"[ - ] {item.quantity:2d} [ + ]",
                price(item.line_total),
            ]
        )
    return generate_markdown_table(["", "Item", "Qty", "Total"], rows, ["c", "l", "c", "r"])


def render_loading(state: SessionState, config: AppConfig) -> str:
    return (
        f"# {config.shop_name}\n\n"
        "### About Us\n\n"
        f"{config.company_description}\n\n"
        f"**{state.spinner} {state.loading_msg}**"
    )


def _header(title: str, cart: Cart, badge: bool = True) -> str:
    suffix = f"  —  🛒 {cart.count()}" if badge and cart.count() > 0 else ""
    return f"## {title}{suffix}\n\n"


def render_home(state: SessionState, view: HomeView, config: AppConfig) -> str:
    md = f"# {config.shop_name}\n\n"
    if state.cart.count() > 0:
        md += f"🛒 Cart: {state.cart.count()} items\n\n"
    md += "### Products\n\n"
    if not state.home_products:
        md += "No products available.\n"
    else:
        md += _product_table(state.home_products, view.cursor, content_width(state))
    return md


def render_search(state: SessionState, view: SearchView) -> str:
    md = _header("🔍 Search Products", state.cart)
    md += f"**Search:** `{view.query}▌`\n\n"
    if not view.results:
        if not view.query:
            md += "Start typing to search...\n"
        else:
            md += "No results found. Press Tab to search.\n"
        return md
    md += f"### Found {len(view.results)} results\n\n"
    md += _product_table(view.results, view.cursor, content_width(state))
    return md


def render_product(state: SessionState, view: ProductView) -> str:
    p = view.product
    md = _header("📦 Product Details", state.cart)
    md += f"### {p.name}\n\n"

    desc = p.product_description
    if len(desc) > 500:
        desc = desc[:500] + "..."
    if desc:
        md += f"{desc}\n\n"

    if p.features:
        md += "#### ✨ Features\n\n"
        md += "".join(f"- {feature}\n" for feature in p.features) + "\n"

    md += f"- Brand: **{p.brand}**\n"
    md += f"- Selling Price: **{price(p.selling_price)}**\n"
    md += f"- MRP: {price(p.mrp_price)}\n"
    if p.discount_percent > 0:
        md += f"- 🎉 **{p.discount_percent:.0f}% OFF!**\n"
    if p.tags:
        md += "- Tags: " + " • ".join(f"`{tag}`" for tag in p.tags) + "\n"
    if p.category_details:
        md += "- Categories: " + ", ".join(c.name for c in p.category_details) + "\n"

    md += "\n#### ⚙️ Select Options\n\n"
    rows = [
        [
            "▸" if view.focus == 0 else "",
            "Quantity",
            f"◀ {view.quantity} ▶" if view.focus == 0 else str(view.quantity),
        ]
    ]
    for i, variant in enumerate(p.product_variants):
        selected = view.selections[i] if i < len(view.selections) else 0
        labels = [
            f"**[{v.label}]**" if j == selected else escape_cell(v.label)
            for j, v in enumerate(variant.variant_values)
        ]
        rows.append(
            [
                "▸" if view.focus == i + 1 else "",
                escape_cell(variant.variant_name),
                " ".join(labels),
            ]
        )
    md += generate_markdown_table(["", "Option", "Value"], rows, ["c", "l", "l"])
    return md


def render_cart(state: SessionState, view: CartView) -> str:
    md = _header("🛒 Shopping Cart", state.cart, badge=False)
    if not state.cart.items:
        return md + "Your cart is empty.\n\nPress Esc to browse products\n"
    md += "Use +/- to change quantity\n\n"
    md += _cart_table(state.cart, view.cursor, content_width(state))
    md += f"\n\n**💰 Total: {price(state.cart.total())}**\n"
    return md


def render_address(state: SessionState, view: AddressView) -> str:
    md = _header("📦 Shipping Details", state.cart)
    rows = []
    for i, name in enumerate(ADDRESS_FIELDS):
        value = getattr(state.shipping, name)
        focused = i == view.field_index
        rows.append(
            [
                "▸" if focused else "",
                ADDRESS_LABELS[name],
                escape_cell(value) + ("▌" if focused else ""),
            ]
        )
    md += generate_markdown_table(["", "Field", "Value"], rows, ["c", "l", "l"])
    return md


def render_checkout(state: SessionState, view: CheckoutView) -> str:
    s = state.shipping
    md = _header("✓ Confirm Order", state.cart, badge=False)
    md += "### Order Summary\n\n"
    rows = [
        [escape_cell(item.product.name), f"x{item.quantity}", price(item.line_total)]
        for item in state.cart.items
    ]
    md += generate_markdown_table(["Item", "Qty", "Total"], rows, ["l", "c", "r"])
    md += f"\n\n**💰 Total: {price(state.cart.total())}**\n\n"
    md += "### Shipping To\n\n"
    lines = [
        s.full_name,
        f"📱 {s.phone}",
        f"📧 {s.email}",
        s.address_line1,
        s.address_line2,
        f"{s.city}, {s.state} {s.postal_code}",
        s.country,
    ]
    md += "  \n".join(line for line in lines if line.strip()) + "\n\n"
    md += "Payment: cash on delivery\n\n"
    md += "**Press Enter or Y to place order**\n"
    return md


def render_order_success(state: SessionState, view: OrderSuccessView) -> str:
    md = "## ✓ ✓ ✓  ORDER PLACED!  ✓ ✓ ✓\n\n"
    order = state.order
    if order is not None:
        md += f"- Order ID: {order.id}\n"
        md += f"- Total: {price(order.total_amount)}\n"
        md += f"- Status: {order.status.label}\n"
        if order.status.reason:
            md += f"- Reason: {order.status.reason}\n"
        if order.status.extras.agent_phone:
            md += f"- Agent phone: {order.status.extras.agent_phone}\n"
    md += "\nThank you for your order! 🎉\n"
    return md


def render_session(state: SessionState, config: AppConfig) -> str:
    """Markdown for the whole session: active screen, notification, error, help."""
    if state.loading:
        return render_loading(state, config)

    view = state.view
    if isinstance(view, HomeView):
        md = render_home(state, view, config)
    elif isinstance(view, SearchView):
        md = render_search(state, view)
    elif isinstance(view, ProductView):
        md = render_product(state, view)
    elif isinstance(view, CartView):
        md = render_cart(state, view)
    elif isinstance(view, AddressView):
        md = render_address(state, view)
    elif isinstance(view, CheckoutView):
        md = render_checkout(state, view)
    else:
        md = render_order_success(state, view)

    if state.notification is not None:
        icon = NOTIFICATION_ICONS.get(state.notification.kind, "")
        md += f"\n\n> {icon} {state.notification.message}\n"
    if state.error is not None:
        md += f"\n\n> ⚠ Error: {state.error}\n"

    help_text = config.help_text(state.screen.value)
    if help_text:
        md += f"\n\n---\n\n{help_text}\n"
    return md
