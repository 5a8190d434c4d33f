"""
evdev device readers → event queue (Linux, no display server needed).

Reads every keyboard/pointer device under /dev/input directly, like a
libinput seat. Needs read access to the device nodes (root, or a user in
the `input` group). One reader thread per device; an unplugged device is
logged and dropped, losing all of them is fatal.
"""

import threading

import evdev
from evdev import ecodes

from .capture import QueueEventSource
from .config import log

_MOUSE_BUTTONS = {
    ecodes.BTN_LEFT: "left",
    ecodes.BTN_RIGHT: "right",
    ecodes.BTN_MIDDLE: "middle",
}
# BTN_LEFT .. BTN_TASK
_POINTER_BUTTON_RANGE = range(ecodes.BTN_MOUSE, ecodes.BTN_MOUSE + 8)

_KEY_DOWN = 1   # 0 = up, 2 = autorepeat


def key_code_name(code):
    """Canonical KEY_* name for an evdev key code, or None."""
    names = ecodes.KEY.get(code)
    if names is None:
        return None
    if isinstance(names, str):
        names = [names]
    names = [n for n in names if n.startswith("KEY_")]
    if not names:
        return None
    canonical = [n for n in names if "_MIN_" not in n and "_MAX" not in n]
    return (canonical or names)[0]


def translate(event):
    """evdev InputEvent → raw capture tuple, or None."""
    if event.type == ecodes.EV_KEY:
        if event.value != _KEY_DOWN:
            return None
        if event.code in _MOUSE_BUTTONS:
            return ("click", _MOUSE_BUTTONS[event.code])
        if event.code in _POINTER_BUTTON_RANGE:
            return ("click", "other")
        name = key_code_name(event.code)
        return ("key", name) if name else None

    if event.type == ecodes.EV_REL:
        if event.code == ecodes.REL_WHEEL:
            return ("scroll", 0, event.value)
        if event.code == ecodes.REL_HWHEEL:
            return ("scroll", event.value, 0)
    return None


def _is_input_device(device):
    caps = device.capabilities()
    keys = caps.get(ecodes.EV_KEY, [])
    has_keys = any(code in keys for code in (ecodes.KEY_A, ecodes.KEY_SPACE, ecodes.BTN_LEFT))
    return has_keys or ecodes.EV_REL in caps


class EvdevEventSource(QueueEventSource):

    def __init__(self, paths=None):
        super().__init__()
        self._paths = paths
        self._devices = []
        self._alive = 0
        self._alive_lock = threading.Lock()
        self._stopping = False

    def start(self):
        self._stopping = False
        paths = self._paths if self._paths is not None else evdev.list_devices()
        for path in paths:
            try:
                device = evdev.InputDevice(path)
            except OSError as e:
                log.warning("Cannot open %s: %s", path, e)
                continue
            if _is_input_device(device):
                self._devices.append(device)
            else:
                device.close()

        if not self._devices:
            self.fail("no readable keyboard/mouse devices (run as root or join the 'input' group)")
            self.check()

        self._alive = len(self._devices)
        for device in self._devices:
            threading.Thread(
                target=self._reader, args=(device,), name=f"evdev-{device.path}", daemon=True,
            ).start()
        log.info(
            "evdev capture on %d device(s): %s",
            len(self._devices), ", ".join(d.name for d in self._devices),
        )

    def stop(self):
        self._stopping = True
        for device in self._devices:
            try:
                device.close()
            except OSError:
                pass
        self._devices = []

    def _reader(self, device):
        try:
            for event in device.read_loop():
                raw = translate(event)
                if raw is not None:
                    self.queue.put(raw)
        except OSError as e:
            if not self._stopping:
                log.warning("Device %s stopped: %s", device.path, e)
        finally:
            with self._alive_lock:
                self._alive -= 1
                if self._alive <= 0 and not self._stopping:
                    self.fail("all input devices closed")
