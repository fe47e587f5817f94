from typing import Iterable, Optional

from textual import on, work
from textual.app import App
from textual.binding import Binding

from api.client import GatewayClient
from core.effects import Effect, EffectRunner, QuitSession
from core.events import InputEvent
from core.session import ShopSession
from db.audit import OrderAuditLog
from utils.config import AppConfig, load_config
from utils.logger import get_logger
from utils.messages import QuitRequestedMessage, SessionEventMessage
from views.scr_shop import ShopScreen

_logger = get_logger(__name__)


class ShopApp(App):
    """
    Hosts one shop session: keys and effect results are fed to the session
    one at a time, the effects it asks for run as workers.
    """

    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    session: ShopSession

    def __init__(
        self, config: Optional[AppConfig] = None, client: Optional[GatewayClient] = None
    ):
        super().__init__()
        config = config or load_config()
        self.session = ShopSession(config)
        self.client = client or GatewayClient(
            config.api_base_url,
            timeout=config.request_timeout,
            audit=OrderAuditLog(config.audit_db_path),
        )
        self.runner = EffectRunner(self.client)

    async def on_mount(self) -> None:
        _logger.info(f"Session started against {self.session.config.api_base_url}")
        await self.push_screen(ShopScreen())
        self.dispatch_effects(self.session.start())
        self.redraw()

    async def on_unmount(self) -> None:
        await self.client.aclose()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def feed(self, event: InputEvent) -> None:
        """Hand one event to the session, then run what it asks for and redraw."""
        self.dispatch_effects(self.session.handle(event))
        self.redraw()

    def dispatch_effects(self, effects: Iterable[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, QuitSession):
                self.post_message(QuitRequestedMessage())
            else:
                self.run_effect(effect)

    def redraw(self) -> None:
        # the shop screen may sit under the resize prompt
        for screen in self.screen_stack:
            if isinstance(screen, ShopScreen):
                screen.redraw()

    @work(group="effects")
    async def run_effect(self, effect: Effect) -> None:
        event = await self.runner.run(effect)
        if event is not None:
            self.post_message(SessionEventMessage(event))

    @on(SessionEventMessage)
    def handle_session_event(self, message: SessionEventMessage) -> None:
        self.feed(message.event)

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        _logger.info("Session ended")
        await self.client.aclose()
        self.exit()


def main():
    app = ShopApp()
    app.run()


if __name__ == "__main__":
    main()
