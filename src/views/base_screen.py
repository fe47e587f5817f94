from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import Resize
from textual.screen import Screen
from textual.widgets import Footer, Header

from core.events import Key, KeyPressed
from views.modal_resize import ResizeScreenPromptModal


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, and keybindings.
    """

    # priority, so ctrl+c reaches the session before textual's own binding
    BINDINGS = [
        Binding("ctrl+c", "quit_session", "Quit", show=True, priority=True),
    ]

    MIN_WIDTH = 40
    MIN_HEIGHT = 12

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(self, header_sub_title: str = "Terminal Shop") -> None:
        """
        configure behavior of the base screen
        :return:
        """
        self.app.title = self.app.session.config.shop_name
        self.sub_title = header_sub_title

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        if event.size.width < self.MIN_WIDTH or event.size.height < self.MIN_HEIGHT:
            self.app.push_screen(
                ResizeScreenPromptModal(self.MIN_WIDTH, self.MIN_HEIGHT)
            )

    def action_quit_session(self) -> None:
        self.app.feed(KeyPressed(Key.QUIT))
