import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.client import GatewayTransportError  # noqa: E402
from api.models import Order, Product, ShippingDetails  # noqa: E402
from core.session import (  # noqa: E402
    AddressView,
    CartView,
    CheckoutView,
    HomeView,
    Notification,
    OrderSuccessView,
    ProductView,
    SearchView,
    SessionState,
)
from utils.config import AppConfig  # noqa: E402
from views.render import render_session  # noqa: E402

RUNNER = Product(
    id="p1",
    name="Trail | Runner",
    brand="Acme",
    selling_price=1999.0,
    mrp_price=2499.0,
    features=["Grippy sole"],
    product_variants=[
        {"variant_name": "Size", "variant_values": [{"label": "8"}, {"label": "9"}]}
    ],
)


class RenderTestCase(unittest.TestCase):
    def setUp(self):
        self.config = AppConfig()
        self.state = SessionState(home_products=[RUNNER], home_count=1)

    def test_loading_replaces_screen(self):
        self.state.loading = True
        self.state.loading_msg = "Loading products..."
        md = render_session(self.state, self.config)
        self.assertIn("Loading products...", md)
        self.assertIn("About Us", md)
        self.assertNotIn("Products", md.split("About Us")[1])

    def test_home(self):
        md = render_session(self.state, self.config)
        self.assertIn("Trail \\| Runner", md)
        self.assertIn("₹1999", md)
        self.assertIn("Q/Ctrl+C: Quit", md)

    def test_hidden_controls(self):
        md = render_session(self.state, AppConfig(show_controls=False))
        self.assertNotIn("Q/Ctrl+C: Quit", md)

    def test_notification_and_error(self):
        self.state.notification = Notification(1, "Added 1 to cart!", "success")
        self.state.error = GatewayTransportError("do request: refused")
        md = render_session(self.state, self.config)
        self.assertIn("✅ Added 1 to cart!", md)
        self.assertIn("⚠ Error: do request: refused", md)

    def test_search(self):
        self.state.view = SearchView(query="run")
        self.assertIn("No results found", render_session(self.state, self.config))
        self.state.view = SearchView(query="run", results=[RUNNER])
        self.assertIn("Found 1 results", render_session(self.state, self.config))

    def test_product(self):
        self.state.view = ProductView.opened_from(RUNNER, HomeView())
        md = render_session(self.state, self.config)
        self.assertIn("Grippy sole", md)
        self.assertIn("20% OFF", md)
        self.assertIn("**[8]**", md)
        self.assertIn("◀ 1 ▶", md)

    def test_cart_and_checkout(self):
        self.state.view = CartView()
        self.assertIn("Your cart is empty.", render_session(self.state, self.config))

        self.state.cart.add(RUNNER, 2, {"Size": "9"})
        md = render_session(self.state, self.config)
        self.assertIn("Size: 9", md)
        self.assertIn("₹3998", md)

        self.state.shipping = ShippingDetails(full_name="Asha Rao", city="Pune", state="MH")
        self.state.view = CheckoutView()
        md = render_session(self.state, self.config)
        self.assertIn("Asha Rao", md)
        self.assertIn("Pune, MH", md)

    def test_cart_badge_only_outside_cart_screens(self):
        self.state.cart.add(RUNNER, 3)

        for view in (CartView(), CheckoutView()):
            with self.subTest(view=type(view).__name__):
                self.state.view = view
                title = render_session(self.state, self.config).splitlines()[0]
                self.assertNotIn("🛒 3", title)
                self.assertNotIn("—", title)

        self.state.view = SearchView(query="run")
        title = render_session(self.state, self.config).splitlines()[0]
        self.assertTrue(title.endswith("🛒 3"))

    def test_address(self):
        self.state.shipping.city = "Pune"
        self.state.view = AddressView(field_index=5)
        md = render_session(self.state, self.config)
        self.assertIn("Pune▌", md)
        self.assertIn("Address Line 2 (optional)", md)

    def test_order_success(self):
        self.state.order = Order(
            id="o-1",
            total_amount=3998.0,
            status={"type": "agent", "extras": {"agent_phone": "+91 99999"}},
        )
        self.state.view = OrderSuccessView()
        md = render_session(self.state, self.config)
        self.assertIn("ORDER PLACED", md)
        self.assertIn("o-1", md)
        self.assertIn("agent", md)
        self.assertIn("+91 99999", md)


if __name__ == "__main__":
    unittest.main()
