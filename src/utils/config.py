"""Runtime configuration for a shop session, built once at start-up."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

from utils.logger import get_logger

_logger = get_logger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_AUDIT_DB_PATH = "data/audit.sqlite"

COMPANY_DESCRIPTION = (
    "Welcome to Nrix7 - Your trusted destination for quality products at "
    "unbeatable prices. We bring you the latest trends in fashion, electronics, "
    "home essentials, and more. Shop with confidence through our secure terminal "
    "interface. Fast shipping, easy returns, and 24/7 customer support."
)


@dataclass(frozen=True)
class KeyBindings:
    """
    Printable keys that act as commands on non-text screens.
    Arrows, enter, escape, tab and backspace are fixed and not listed here.
    """

    up: Tuple[str, ...] = ("k",)
    down: Tuple[str, ...] = ("j",)
    left: Tuple[str, ...] = ("h",)
    right: Tuple[str, ...] = ("l",)
    # space acts like enter on list screens and the order confirmation
    select: Tuple[str, ...] = (" ",)
    back: Tuple[str, ...] = ("b",)
    search: Tuple[str, ...] = ("s", "/")
    cart: Tuple[str, ...] = ("c",)
    add_to_cart: Tuple[str, ...] = ("a",)
    delete: Tuple[str, ...] = ("d", "x")
    increment: Tuple[str, ...] = ("+", "=")
    decrement: Tuple[str, ...] = ("-", "_")
    yes: Tuple[str, ...] = ("y",)
    no: Tuple[str, ...] = ("n",)
    quit: Tuple[str, ...] = ("q",)


# screen name -> footer help entries
HELP_TEXT: Dict[str, Tuple[str, ...]] = {
    "home": (
        "↑/k: Navigate up",
        "↓/j: Navigate down",
        "Enter: View",
        "S: Search",
        "C: View Cart",
        "Q/Ctrl+C: Quit",
    ),
    "search": (
        "Type: Search",
        "↑: Navigate up",
        "↓: Navigate down",
        "Tab: Execute",
        "Enter: Select/Search",
        "Esc: Back",
    ),
    "product": (
        "Tab/↑↓: Navigate",
        "←→: Change",
        "A/Enter: Add to Cart",
        "C: View Cart",
        "Esc/B: Back",
        "PgUp/PgDn: Scroll",
        "Q: Quit",
    ),
    "cart": (
        "↑↓/jk: Navigate",
        "+/-: Qty",
        "D: Delete",
        "Enter: Checkout",
        "Esc/B: Back",
    ),
    "address": (
        "Tab/↓: Next field",
        "↑: Previous",
        "Enter: Continue",
        "Esc: Back",
    ),
    "checkout": (
        "Enter/Y: Place Order",
        "N: Back",
        "Esc/B: Back",
    ),
    "order_success": ("Enter: Continue Shopping",),
}


@dataclass(frozen=True)
class AppConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    show_controls: bool = True
    shop_name: str = "Nrix7 Shop"
    company_name: str = "Nrix7 E-Commerce"
    company_description: str = COMPANY_DESCRIPTION
    audit_db_path: str = DEFAULT_AUDIT_DB_PATH
    request_timeout: float = 15.0

    page_size: int = 20
    product_max_qty: int = 99
    cart_max_qty: int = 5
    notification_ttl: float = 3.0
    spinner_interval: float = 0.1

    bindings: KeyBindings = field(default_factory=KeyBindings)

    def help_text(self, screen: str) -> str:
        """
        Footer help line for a screen, empty when controls are hidden.
        Unknown screens only get the quit hint.
        """
        if not self.show_controls:
            return ""
        entries = HELP_TEXT.get(screen, ("Q/Ctrl+C: Quit",))
        return " | ".join(entries)


def load_config(env: Dict[str, str] | None = None) -> AppConfig:
    """Build the session configuration from environment variables."""
    env = os.environ if env is None else env

    kwargs = {}
    if env.get("API_BASE_URL"):
        kwargs["api_base_url"] = env["API_BASE_URL"]
    if env.get("SHOW_CONTROLS") == "false":
        kwargs["show_controls"] = False
    if env.get("AUDIT_DB_PATH"):
        kwargs["audit_db_path"] = env["AUDIT_DB_PATH"]
    if env.get("REQUEST_TIMEOUT"):
        try:
            kwargs["request_timeout"] = float(env["REQUEST_TIMEOUT"])
        except ValueError:
            _logger.warning(
                f"Ignoring invalid REQUEST_TIMEOUT {env['REQUEST_TIMEOUT']!r}"
            )
    return AppConfig(**kwargs)
