"""
Session state machine.

One ShopSession per connection. The host feeds it events one at a time through
``handle``; each call mutates the session state in place and returns the
effects the host must run. Effects report back through new events, so state is
only ever touched from ``handle``.

The active screen is represented by a view object (HomeView, SearchView, ...)
that carries the fields only that screen uses, e.g. its own cursor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Literal, Optional, Union

from api.models import (
    Order,
    Product,
    ProductListParams,
    ProductSearchParams,
    ShippingDetails,
)
from core.cart import Cart
from core.checkout import build_order_params, validate_shipping_details
from core.effects import (
    CreateOrder,
    Effect,
    LoadProduct,
    LoadProducts,
    QuitSession,
    ScheduleNotificationClear,
    ScheduleTick,
    SearchProducts,
)
from core.events import (
    InputEvent,
    Key,
    KeyPressed,
    NotificationExpired,
    OrderCreated,
    ProductLoaded,
    ProductsLoaded,
    Resized,
    SearchResultsLoaded,
    Tick,
)
from utils.config import AppConfig
from utils.logger import get_logger
from utils.pure import truncate

_logger = get_logger(__name__)

LOADING_FRAMES = "⣾⣽⣻⢿⡿⣟⣯⣷"

# form order of the address screen
ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "email",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)
ADDRESS_LABELS = {
    "full_name": "Full Name",
    "phone": "Phone",
    "email": "Email",
    "address_line1": "Address Line 1",
    "address_line2": "Address Line 2 (optional)",
    "city": "City",
    "state": "State",
    "postal_code": "Postal Code",
    "country": "Country",
}


class Screen(Enum):
    HOME = "home"
    SEARCH = "search"
    PRODUCT = "product"
    CART = "cart"
    ADDRESS = "address"
    CHECKOUT = "checkout"
    ORDER_SUCCESS = "order_success"


def clamp(index: int, length: int) -> int:
    """Clamp a cursor into [0, length - 1], 0 for an empty list."""
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


# ---------------------------
# Views
# ---------------------------


@dataclass
class HomeView:
    screen: ClassVar[Screen] = Screen.HOME
    cursor: int = 0


@dataclass
class SearchView:
    screen: ClassVar[Screen] = Screen.SEARCH
    query: str = ""
    results: List[Product] = field(default_factory=list)
    cursor: int = 0


@dataclass
class ProductView:
    """
    Product detail. Focus 0 is the quantity selector, focus i > 0 the
    (i-1)-th variant. `selections` holds the highlighted value index of each
    variant, in the product's variant order.
    """

    screen: ClassVar[Screen] = Screen.PRODUCT
    product: Product
    origin: Union[HomeView, SearchView]
    quantity: int = 1
    selections: List[int] = field(default_factory=list)
    focus: int = 0

    @classmethod
    def opened_from(
        cls, product: Product, origin: Union[HomeView, SearchView]
    ) -> "ProductView":
        return cls(
            product=product,
            origin=origin,
            selections=[0 for _ in product.product_variants],
        )

    @property
    def focus_count(self) -> int:
        return 1 + len(self.product.product_variants)

    def selected_variants(self) -> Dict[str, str]:
        result: Dict[str, str] = {}
        for variant, idx in zip(self.product.product_variants, self.selections):
            if 0 <= idx < len(variant.variant_values):
                result[variant.variant_name] = variant.variant_values[idx].label
        return result

    def selected_variant_text(self) -> str:
        return ", ".join(f"{k}: {v}" for k, v in self.selected_variants().items())


@dataclass
class CartView:
    screen: ClassVar[Screen] = Screen.CART
    cursor: int = 0


@dataclass
class AddressView:
    screen: ClassVar[Screen] = Screen.ADDRESS
    field_index: int = 0

    @property
    def field_name(self) -> str:
        return ADDRESS_FIELDS[self.field_index % len(ADDRESS_FIELDS)]


@dataclass
class CheckoutView:
    screen: ClassVar[Screen] = Screen.CHECKOUT
    # address field to restore when going back
    field_index: int = 0


@dataclass
class OrderSuccessView:
    screen: ClassVar[Screen] = Screen.ORDER_SUCCESS


View = Union[
    HomeView,
    SearchView,
    ProductView,
    CartView,
    AddressView,
    CheckoutView,
    OrderSuccessView,
]


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    kind: Literal["success", "error", "info"] = "info"


@dataclass
class SessionState:
    view: View = field(default_factory=HomeView)
    home_products: List[Product] = field(default_factory=list)
    home_count: int = 0
    cart: Cart = field(default_factory=Cart)
    shipping: ShippingDetails = field(default_factory=ShippingDetails)
    order: Optional[Order] = None
    notification: Optional[Notification] = None

    loading: bool = False
    loading_msg: str = ""
    loading_frame: int = 0
    error: Optional[Exception] = None
    # request id of the gateway call in flight, None when idle
    pending_request: Optional[int] = None

    width: int = 80
    height: int = 24

    @property
    def screen(self) -> Screen:
        return self.view.screen

    @property
    def spinner(self) -> str:
        return LOADING_FRAMES[self.loading_frame % len(LOADING_FRAMES)]


# ---------------------------
# State machine
# ---------------------------


class ShopSession:
    """Owns a SessionState and moves it from event to event."""

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config or AppConfig()
        self.state = SessionState()

        self._last_request_id = 0
        self._last_notification_id = 0
        self._tick_armed = False

        self._key_handlers: Dict[type, Callable[[KeyPressed], List[Effect]]] = {
            HomeView: self._home_keys,
            SearchView: self._search_keys,
            ProductView: self._product_keys,
            CartView: self._cart_keys,
            AddressView: self._address_keys,
            CheckoutView: self._checkout_keys,
            OrderSuccessView: self._order_success_keys,
        }

    # ---------- entry points ----------

    def start(self) -> List[Effect]:
        """Effects for a fresh session: load the first page of active products."""
        params = ProductListParams(
            skip=0,
            take=self.config.page_size,
            active=True,
            include_categories=True,
        )
        return self._begin_request(
            "Loading products...", lambda rid: LoadProducts(rid, params)
        )

    def handle(self, event: InputEvent) -> List[Effect]:
        if isinstance(event, KeyPressed):
            # no input while a request is in flight
            if self.state.loading:
                return []
            return self._handle_key(event)

        if isinstance(event, Tick):
            if not self.state.loading:
                self._tick_armed = False
                return []
            self.state.loading_frame = (self.state.loading_frame + 1) % len(
                LOADING_FRAMES
            )
            return [ScheduleTick(self.config.spinner_interval)]

        if isinstance(event, NotificationExpired):
            current = self.state.notification
            if current is not None and current.id == event.notification_id:
                self.state.notification = None
            return []

        if isinstance(event, Resized):
            self.state.width = event.width
            self.state.height = event.height
            return []

        if isinstance(event, ProductsLoaded):
            return self._on_products_loaded(event)
        if isinstance(event, ProductLoaded):
            return self._on_product_loaded(event)
        if isinstance(event, SearchResultsLoaded):
            return self._on_search_results(event)
        if isinstance(event, OrderCreated):
            return self._on_order_created(event)

        _logger.debug(f"Ignoring unknown event {event!r}")
        return []

    # ---------- helpers ----------

    def _set_loading(self, loading: bool, msg: str = "") -> List[Effect]:
        self.state.loading = loading
        self.state.loading_msg = msg
        self.state.loading_frame = 0
        if loading and not self._tick_armed:
            self._tick_armed = True
            return [ScheduleTick(self.config.spinner_interval)]
        return []

    def _begin_request(
        self, msg: str, make_effect: Callable[[int], Effect]
    ) -> List[Effect]:
        self._last_request_id += 1
        request_id = self._last_request_id
        self.state.pending_request = request_id
        effects = self._set_loading(True, msg)
        effects.append(make_effect(request_id))
        return effects

    def _notify(
        self, message: str, kind: Literal["success", "error", "info"] = "info"
    ) -> List[Effect]:
        self._last_notification_id += 1
        self.state.notification = Notification(
            self._last_notification_id, message, kind
        )
        return [
            ScheduleNotificationClear(
                self._last_notification_id, self.config.notification_ttl
            )
        ]

    def _action(self, event: KeyPressed) -> str:
        """
        Name of what a key means on a command screen. Printable keys are
        looked up in the configured bindings, the rest map to their own name.
        """
        if event.key is not Key.CHAR:
            return event.key.value
        bindings = self.config.bindings
        for name in (
            "up",
            "down",
            "left",
            "right",
            "select",
            "back",
            "search",
            "cart",
            "add_to_cart",
            "delete",
            "increment",
            "decrement",
            "yes",
            "no",
            "quit",
        ):
            if event.char in getattr(bindings, name):
                return name
        return ""

    def _go_home(self) -> List[Effect]:
        self.state.view = HomeView()
        return []

    def _go_cart(self) -> List[Effect]:
        self.state.view = CartView()
        return []

    def _load_product(self, product: Product) -> List[Effect]:
        return self._begin_request(
            "Loading product...", lambda rid: LoadProduct(rid, product.id)
        )

    def _accept_completion(self, event) -> bool:
        """
        Common completion handling. False when the event must not be applied:
        it answers a request that is no longer in flight, or it failed.
        """
        if event.request_id != self.state.pending_request:
            _logger.debug(f"Dropping stale completion for request {event.request_id}")
            return False
        self.state.pending_request = None
        self._set_loading(False)
        if event.error is not None:
            _logger.warning(f"Request {event.request_id} failed: {event.error}")
            self.state.error = event.error
            return False
        self.state.error = None
        return True

    # ---------- completions ----------

    def _on_products_loaded(self, event: ProductsLoaded) -> List[Effect]:
        if not self._accept_completion(event):
            return []
        self.state.home_products = list(event.products)
        self.state.home_count = event.count
        if isinstance(self.state.view, HomeView):
            self.state.view.cursor = 0
        return []

    def _on_product_loaded(self, event: ProductLoaded) -> List[Effect]:
        if not self._accept_completion(event):
            return []
        if event.product is None:
            return []
        origin = self.state.view
        if not isinstance(origin, (HomeView, SearchView)):
            origin = HomeView()
        self.state.view = ProductView.opened_from(event.product, origin)
        return []

    def _on_search_results(self, event: SearchResultsLoaded) -> List[Effect]:
        if not self._accept_completion(event):
            return []
        view = self.state.view
        if isinstance(view, SearchView):
            view.results = list(event.products)
            view.cursor = 0
        return []

    def _on_order_created(self, event: OrderCreated) -> List[Effect]:
        if not self._accept_completion(event):
            return []
        self.state.order = event.order
        self.state.view = OrderSuccessView()
        return []

    # ---------- keys ----------

    def _handle_key(self, event: KeyPressed) -> List[Effect]:
        if event.key is Key.QUIT:
            return [QuitSession()]
        handler = self._key_handlers.get(type(self.state.view))
        if handler is None:
            return []
        return handler(event)

    def _home_keys(self, event: KeyPressed) -> List[Effect]:
        view: HomeView = self.state.view
        products = self.state.home_products
        action = self._action(event)

        if action == "quit":
            return [QuitSession()]
        if action == "up":
            view.cursor = clamp(view.cursor - 1, len(products))
        elif action == "down":
            view.cursor = clamp(view.cursor + 1, len(products))
        elif action in ("confirm", "select"):
            if products and 0 <= view.cursor < len(products):
                return self._load_product(products[view.cursor])
        elif action == "search":
            self.state.view = SearchView()
        elif action == "cart":
            return self._go_cart()
        return []

    def _search_keys(self, event: KeyPressed) -> List[Effect]:
        view: SearchView = self.state.view
        key = event.key

        if key is Key.BACK:
            return self._go_home()
        if key is Key.ERASE:
            view.query = view.query[:-1]
        elif key is Key.CONFIRM:
            # open the highlighted result if there is one, else search
            if view.results and 0 <= view.cursor < len(view.results):
                return self._load_product(view.results[view.cursor])
            return self._run_search(view)
        elif key is Key.TAB:
            return self._run_search(view)
        elif key is Key.UP:
            view.cursor = clamp(view.cursor - 1, len(view.results))
        elif key is Key.DOWN:
            view.cursor = clamp(view.cursor + 1, len(view.results))
        elif key is Key.CHAR and event.char:
            view.query += event.char
        return []

    def _run_search(self, view: SearchView) -> List[Effect]:
        if not view.query:
            return []
        params = ProductSearchParams(
            search_term=view.query,
            skip=0,
            take=self.config.page_size,
            include_categories=True,
        )
        return self._begin_request(
            f"Searching for '{view.query}'...",
            lambda rid: SearchProducts(rid, params),
        )

    def _product_keys(self, event: KeyPressed) -> List[Effect]:
        view: ProductView = self.state.view
        action = self._action(event)

        if action == "quit":
            return [QuitSession()]
        if action == "back":
            origin = view.origin
            origin.cursor = 0
            self.state.view = origin
        elif action in ("add_to_cart", "confirm"):
            return self._add_to_cart(view)
        elif action in ("tab", "down"):
            view.focus = min(view.focus + 1, view.focus_count - 1)
        elif action in ("backtab", "up"):
            view.focus = max(view.focus - 1, 0)
        elif action == "left":
            self._cycle(view, -1)
        elif action == "right":
            self._cycle(view, 1)
        elif action == "cart":
            return self._go_cart()
        return []

    def _cycle(self, view: ProductView, step: int) -> None:
        """Quantity on focus 0, otherwise the focused variant, wrapping around."""
        if view.focus == 0:
            view.quantity = max(1, min(view.quantity + step, self.config.product_max_qty))
            return
        idx = view.focus - 1
        if not (0 <= idx < len(view.selections)):
            return
        values = view.product.product_variants[idx].variant_values
        if not values:
            return
        view.selections[idx] = (view.selections[idx] + step) % len(values)

    def _add_to_cart(self, view: ProductView) -> List[Effect]:
        variants = view.selected_variants()
        self.state.cart.add(view.product, view.quantity, variants)
        if view.product.product_variants:
            return self._notify(
                f"Added {view.quantity} ({view.selected_variant_text()}) to cart!",
                "success",
            )
        return self._notify(f"Added {view.quantity} to cart!", "success")

    def _cart_keys(self, event: KeyPressed) -> List[Effect]:
        view: CartView = self.state.view
        cart = self.state.cart
        action = self._action(event)
        view.cursor = clamp(view.cursor, len(cart.items))

        if action == "quit":
            return [QuitSession()]
        if action == "back":
            return self._go_home()
        if action == "up":
            view.cursor = clamp(view.cursor - 1, len(cart.items))
        elif action == "down":
            view.cursor = clamp(view.cursor + 1, len(cart.items))
        elif action == "increment":
            if not cart.items:
                return []
            item = cart.items[view.cursor]
            ceiling = self.config.cart_max_qty
            if item.quantity >= ceiling:
                return self._notify(
                    f"Maximum quantity of {ceiling} reached for this item", "error"
                )
            cart.update_quantity(item.product.id, item.variant, item.quantity + 1)
            return self._notify("Quantity increased", "info")
        elif action == "decrement":
            if not cart.items:
                return []
            item = cart.items[view.cursor]
            if item.quantity > 1:
                cart.update_quantity(item.product.id, item.variant, item.quantity - 1)
                return self._notify("Quantity decreased", "info")
        elif action == "delete":
            if not cart.items:
                return []
            item = cart.items[view.cursor]
            cart.remove(item.product.id, item.variant)
            if view.cursor >= len(cart.items) and view.cursor > 0:
                view.cursor -= 1
            return self._notify(f"Removed {truncate(item.product.name, 20)}", "info")
        elif action in ("confirm", "select"):
            if cart.items:
                self.state.view = AddressView()
        return []

    def _address_keys(self, event: KeyPressed) -> List[Effect]:
        view: AddressView = self.state.view
        shipping = self.state.shipping
        key = event.key
        n = len(ADDRESS_FIELDS)

        if key is Key.BACK:
            self.state.view = CartView()
        elif key is Key.CONFIRM:
            reason = validate_shipping_details(shipping)
            if reason:
                return self._notify(reason, "error")
            self.state.view = CheckoutView(field_index=view.field_index)
        elif key in (Key.TAB, Key.DOWN):
            view.field_index = (view.field_index + 1) % n
        elif key in (Key.UP, Key.BACKTAB):
            view.field_index = (view.field_index + n - 1) % n
        elif key is Key.ERASE:
            name = view.field_name
            setattr(shipping, name, getattr(shipping, name)[:-1])
        elif key is Key.CHAR and event.char:
            name = view.field_name
            setattr(shipping, name, getattr(shipping, name) + event.char)
        return []

    def _checkout_keys(self, event: KeyPressed) -> List[Effect]:
        view: CheckoutView = self.state.view
        action = self._action(event)

        if action in ("back", "no"):
            self.state.view = AddressView(field_index=view.field_index)
        elif action in ("confirm", "yes"):
            return self._place_order()
        return []

    def _place_order(self) -> List[Effect]:
        cart = self.state.cart
        # same rules as leaving the address screen
        reason = validate_shipping_details(self.state.shipping)
        if reason:
            return self._notify(reason, "error")
        if not cart.items:
            return self._notify("Cart is empty.", "error")

        params = build_order_params(cart, self.state.shipping)
        _logger.info(
            f"Placing order: {cart.count()} item(s), total {params.pricing.total:.2f}"
        )
        return self._begin_request(
            "Placing order...", lambda rid: CreateOrder(rid, params)
        )

    def _order_success_keys(self, event: KeyPressed) -> List[Effect]:
        action = self._action(event)
        if action in ("confirm", "back", "select"):
            self.state.cart.clear()
            self.state.order = None
            self.state.shipping = ShippingDetails()
            return self._go_home()
        return []
