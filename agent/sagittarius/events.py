"""
Event classifier — raw input events → (EventKey, EventClass, count).

Capture backends push plain tuples onto a queue:
    ("key", name)          name is a pynput key name/char or an evdev KEY_* code name
    ("click", button)      button is "left" / "right" / "middle" / anything else
    ("scroll", dx, dy)     wheel notches per axis (evdev, pynput)
    ("wheel", dx, dy)      wheel motion in degrees (libinput-style)

PRIVACY: only the key identity is counted, never text or ordering.
"""

import enum

from .constants import (
    CLICK_BUTTONS, CLICK_OTHER, WHEEL_VERTICAL, WHEEL_HORIZONTAL,
    SPECIAL_KEY_NAMES, CHAR_KEY_NAMES, WHEEL_DEGREES_PER_NOTCH,
)


class EventClass(str, enum.Enum):
    KEY = "KEY"
    CLICK = "CLICK"
    WHEEL = "WHEEL"


_PREFIXES = (
    ("KEY_", EventClass.KEY),
    ("CLICK_", EventClass.CLICK),
    ("WHEEL_", EventClass.WHEEL),
)


def event_class(event_key):
    """Class of an EventKey, by prefix. None for keys outside the three classes."""
    for prefix, cls in _PREFIXES:
        if event_key.startswith(prefix):
            return cls
    return None


def key_event_name(name):
    """Normalize a key identity to a Linux input-event code name (KEY_*)."""
    if not name:
        return None
    if name.startswith("KEY_"):
        return name
    if len(name) == 1:
        if name.isalnum() and name.isascii():
            return "KEY_" + name.upper()
        if 1 <= ord(name) <= 26 and name not in CHAR_KEY_NAMES:
            # Ctrl+letter arrives as a control character
            return "KEY_" + chr(ord(name) + 64)
        return CHAR_KEY_NAMES.get(name, "KEY_UNKNOWN")
    if name in SPECIAL_KEY_NAMES:
        return SPECIAL_KEY_NAMES[name]
    # f1..f24 and anything else pynput names
    return "KEY_" + name.upper()


def click_event_name(button):
    return CLICK_BUTTONS.get(str(button).lower(), CLICK_OTHER)


_NOTCH_EPSILON = 1e-9


def _notches(value):
    return int(round(abs(value)))


class WheelAccumulator:
    """
    Carries fractional wheel motion between events, per axis, so smooth
    scrolling (touchpads, macOS) adds up to whole notches instead of
    rounding every small delta away. Used by a single capture thread.
    """

    def __init__(self):
        self._rest = {WHEEL_VERTICAL: 0.0, WHEEL_HORIZONTAL: 0.0}

    def notches(self, axis, value):
        total = self._rest[axis] + abs(value)
        whole = int(total + _NOTCH_EPSILON)
        self._rest[axis] = max(total - whole, 0.0)
        return whole


def classify(event, wheel=None):
    """
    Map one raw event to a list of (event_key, event_class, count).
    Unrecognized events yield an empty list. With a WheelAccumulator,
    fractional wheel motion is carried over to later events; without one
    each event is rounded on its own.
    """
    if not event:
        return []
    kind = event[0]

    if kind == "key":
        key = key_event_name(event[1])
        return [(key, EventClass.KEY, 1)] if key else []

    if kind == "click":
        return [(click_event_name(event[1]), EventClass.CLICK, 1)]

    if kind in ("scroll", "wheel"):
        dx, dy = event[1], event[2]
        if kind == "wheel":
            dx /= WHEEL_DEGREES_PER_NOTCH
            dy /= WHEEL_DEGREES_PER_NOTCH
        out = []
        for axis, value in ((WHEEL_VERTICAL, dy), (WHEEL_HORIZONTAL, dx)):
            n = _notches(value) if wheel is None else wheel.notches(axis, value)
            if n:
                out.append((axis, EventClass.WHEEL, n))
        return out

    return []
