from typing import Optional

from textual import events
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Markdown

from core.events import Resized
from core.session import Screen
from views.base_screen import BaseScreen
from views.keymap import translate_key
from views.render import render_session


class ShopScreen(BaseScreen):
    """
    The one screen of a shop session. It owns no state, every key goes to the
    session and the session state is drawn again afterwards.
    """

    DEFAULT_CSS = """
    #vertscroll-session {
        padding: 0 2;
    }
    """

    # handled by the screen itself, the session never sees them
    SCROLL_KEYS = {
        "pageup": "scroll_page_up",
        "pagedown": "scroll_page_down",
        "home": "scroll_home",
        "end": "scroll_end",
    }

    def __init__(self):
        super().__init__()
        self._drawn_screen: Optional[Screen] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="vertscroll-session", can_focus=False):
            yield Markdown("", id="md-session")

    def on_mount(self) -> None:
        self.redraw()

    async def on_key(self, event: events.Key) -> None:
        scroll = self.SCROLL_KEYS.get(event.key)
        if scroll is not None:
            event.stop()
            event.prevent_default()
            getattr(self.query_one("#vertscroll-session", VerticalScroll), scroll)(
                animate=False
            )
            return

        key_pressed = translate_key(event)
        if key_pressed is None:
            return
        event.stop()
        event.prevent_default()
        self.app.feed(key_pressed)

    async def on_resize(self, event: events.Resize) -> None:
        await super().on_resize(event)
        self.app.feed(Resized(event.size.width, event.size.height))

    def redraw(self) -> None:
        session = self.app.session
        screen = session.state.screen
        if screen is not self._drawn_screen:
            # a new screen starts at the top
            self._drawn_screen = screen
            self.query_one("#vertscroll-session", VerticalScroll).scroll_home(
                animate=False
            )
        self.sub_title = session.state.screen.value.replace("_", " ").title()
        self.query_one("#md-session", Markdown).update(
            render_session(session.state, session.config)
        )
