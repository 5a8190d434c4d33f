"""
pynput keyboard/mouse listeners → event queue.
PRIVACY: only key identities, button names and wheel notches — no text.
"""

from pynput import mouse, keyboard

from .capture import QueueEventSource
from .config import log
from .constants import LISTENER_MAX_RESTARTS


def key_name(key):
    """pynput key → plain name (char for printable keys, Key name otherwise)."""
    char = getattr(key, "char", None)
    if char:
        return char
    name = getattr(key, "name", None)
    if name:
        return name
    vk = getattr(key, "vk", None)
    if vk is not None:
        return f"vk_{vk}"
    return None


def _held_id(key):
    # vk survives shift changes between press and release; chars do not
    vk = getattr(key, "vk", None)
    return vk if vk is not None else key_name(key)


class InputListeners(QueueEventSource):
    """
    Desktop-session capture. Listener threads only enqueue; the capture
    thread restarts a dead listener up to LISTENER_MAX_RESTARTS times,
    then gives up with DeviceReadError.
    OS auto-repeat while a key is held is not counted: a key counts again
    only after it was released.
    """

    def __init__(self, max_restarts=LISTENER_MAX_RESTARTS):
        super().__init__()
        self._max_restarts = max_restarts
        self._restarts = 0
        self._mouse = None
        self._keyboard = None
        self._stopping = False
        self._held = set()

    # ── Handlers (run on pynput threads) ──────────────────────

    def _on_press(self, key):
        held = _held_id(key)
        if held in self._held:
            return
        self._held.add(held)
        self.queue.put(("key", key_name(key)))

    def _on_release(self, key):
        self._held.discard(_held_id(key))

    def _on_click(self, x, y, button, pressed):
        if pressed:
            self.queue.put(("click", button.name))

    def _on_scroll(self, x, y, dx, dy):
        self.queue.put(("scroll", dx, dy))

    # ── Lifecycle ─────────────────────────────────────────────

    def _new_mouse(self):
        listener = mouse.Listener(on_click=self._on_click, on_scroll=self._on_scroll)
        listener.daemon = True
        listener.start()
        return listener

    def _new_keyboard(self):
        listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        listener.daemon = True
        listener.start()
        return listener

    def start(self):
        self._stopping = False
        self._held.clear()
        self._mouse = self._new_mouse()
        self._keyboard = self._new_keyboard()
        log.info("Input listeners started (counts only — no keylogging)")

    def stop(self):
        self._stopping = True
        for listener in (self._mouse, self._keyboard):
            if listener is not None:
                listener.stop()
        self._mouse = self._keyboard = None

    def check(self):
        super().check()
        if self._stopping:
            return
        mouse_dead = self._mouse is not None and not self._mouse.is_alive()
        keyboard_dead = self._keyboard is not None and not self._keyboard.is_alive()
        if not (mouse_dead or keyboard_dead):
            return

        if self._restarts >= self._max_restarts:
            self.fail(f"input listener died {self._restarts + 1} times")
            super().check()

        self._restarts += 1
        if mouse_dead:
            log.warning("Mouse listener died — restarting (%d/%d)", self._restarts, self._max_restarts)
            self._mouse = self._new_mouse()
        if keyboard_dead:
            log.warning("Keyboard listener died — restarting (%d/%d)", self._restarts, self._max_restarts)
            self._held.clear()
            self._keyboard = self._new_keyboard()
