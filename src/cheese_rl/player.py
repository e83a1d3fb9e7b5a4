"""
Human player: resolves one move per call from the keyboard.

Key events come from a KeyEventSource. Each call to ``KeyboardPlayer.act``
attaches a listener, waits for the first left/right key, detaches and returns
the matching action. Cancelling the call detaches the listener as well.
"""

import asyncio
from typing import Callable

from cheese_rl.game import MOVE_LEFT, MOVE_RIGHT

KeyListener = Callable[[str], None]


class KeyEventSource:
    """
    Fan-out of key codes to subscribed listeners.

    ``emit`` must be called from the thread running the event loop the
    players wait on.
    """

    def __init__(self):
        self._listeners: list[KeyListener] = []

    def subscribe(self, listener: KeyListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: KeyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, code: str) -> None:
        for listener in list(self._listeners):
            listener(code)

    def __len__(self) -> int:
        return len(self._listeners)


class KeyboardPlayer:
    """
    Attributes:
        source: Where key events come from
        key_actions: Key code -> action, other keys are ignored
    """

    KEY_ACTIONS = {
        'ArrowLeft': MOVE_LEFT,
        'ArrowRight': MOVE_RIGHT,
    }

    def __init__(self, source: KeyEventSource, key_actions: dict[str, int] | None = None):
        self.source = source
        self.key_actions = dict(key_actions if key_actions is not None else self.KEY_ACTIONS)

    async def act(self) -> int:
        """Wait for the next mapped key and return its action."""
        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()

        def on_key(code: str) -> None:
            action = self.key_actions.get(code)
            if action is None or future.done():
                return
            self.source.unsubscribe(on_key)
            future.set_result(action)

        self.source.subscribe(on_key)
        try:
            return await future
        finally:
            self.source.unsubscribe(on_key)
