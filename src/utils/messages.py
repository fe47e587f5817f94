from textual.message import Message

from core.events import InputEvent


class QuitRequestedMessage(Message):
    """
    broadcasted when the session asks to end
    """

    bubble = True


class SessionEventMessage(Message):
    """
    Carries an event for the session state machine.
    Effects post it when they finish, so the result is handled in the same
    queue as key presses, one at a time.
    """

    bubble = True

    def __init__(self, event: InputEvent) -> None:
        super().__init__()
        self.event = event
