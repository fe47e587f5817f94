# maps textual key events onto the session's key vocabulary
from typing import Dict, Optional

from textual import events

from core.events import Key, KeyPressed

NAMED_KEYS: Dict[str, Key] = {
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "enter": Key.CONFIRM,
    "escape": Key.BACK,
    "tab": Key.TAB,
    "shift+tab": Key.BACKTAB,
    "backspace": Key.ERASE,
    "ctrl+c": Key.QUIT,
}


def translate_key(event: events.Key) -> Optional[KeyPressed]:
    """
    Named keys map to their abstract key, anything printable becomes a
    character key. Everything else (function keys, ctrl combos) is dropped.
    """
    key = NAMED_KEYS.get(event.key)
    if key is not None:
        return KeyPressed(key)
    if event.is_printable and event.character:
        return KeyPressed.of_char(event.character)
    return None
