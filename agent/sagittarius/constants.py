"""
Constants, delivery defaults, and event key naming tables.
"""

AGENT_VERSION = "1.0.0"

# ─── Delivery ────────────────────────────────────────────────────
DEFAULT_API_URL = "http://localhost:3000/api/stats"
SEND_INTERVAL_SEC = 10         # Deliver accumulated counts every 10s
REQUEST_TIMEOUT_SEC = 5        # Per-attempt HTTP timeout
MAX_ATTEMPTS = 3               # Attempts per delivery cycle
RETRY_DELAY_SEC = 2            # Fixed pause between attempts (no backoff)
API_SECRET_HEADER = "X-API-Secret"

# ─── Files ───────────────────────────────────────────────────────
BACKUP_FILE_NAME = "stats_backup.json"
LOG_FILE_NAME = "agent.log"
LOG_MAX_BYTES = 1_000_000      # Truncate the log at startup above this size

# ─── Capture ─────────────────────────────────────────────────────
CAPTURE_BACKENDS = ("pynput", "evdev")
CAPTURE_POLL_SEC = 0.5         # Max wait per read so the stop event is noticed
LISTENER_MAX_RESTARTS = 3      # Dead listener restarts before giving up
WHEEL_DEGREES_PER_NOTCH = 15.0 # libinput reports wheel motion in degrees

# ─── Event keys ──────────────────────────────────────────────────
CLICK_BUTTONS = {
    "left": "CLICK_LEFT",
    "right": "CLICK_RIGHT",
    "middle": "CLICK_MIDDLE",
}
CLICK_OTHER = "CLICK_OTHER"
WHEEL_VERTICAL = "WHEEL_VERTICAL"
WHEEL_HORIZONTAL = "WHEEL_HORIZONTAL"

# pynput key names → Linux input-event code names, so both capture
# backends produce the same EventKey for the same physical key.
SPECIAL_KEY_NAMES = {
    "alt": "KEY_LEFTALT",
    "alt_l": "KEY_LEFTALT",
    "alt_r": "KEY_RIGHTALT",
    "alt_gr": "KEY_RIGHTALT",
    "backspace": "KEY_BACKSPACE",
    "caps_lock": "KEY_CAPSLOCK",
    "cmd": "KEY_LEFTMETA",
    "cmd_l": "KEY_LEFTMETA",
    "cmd_r": "KEY_RIGHTMETA",
    "ctrl": "KEY_LEFTCTRL",
    "ctrl_l": "KEY_LEFTCTRL",
    "ctrl_r": "KEY_RIGHTCTRL",
    "delete": "KEY_DELETE",
    "down": "KEY_DOWN",
    "end": "KEY_END",
    "enter": "KEY_ENTER",
    "esc": "KEY_ESC",
    "home": "KEY_HOME",
    "insert": "KEY_INSERT",
    "left": "KEY_LEFT",
    "menu": "KEY_COMPOSE",
    "num_lock": "KEY_NUMLOCK",
    "page_down": "KEY_PAGEDOWN",
    "page_up": "KEY_PAGEUP",
    "pause": "KEY_PAUSE",
    "print_screen": "KEY_SYSRQ",
    "right": "KEY_RIGHT",
    "scroll_lock": "KEY_SCROLLLOCK",
    "shift": "KEY_LEFTSHIFT",
    "shift_l": "KEY_LEFTSHIFT",
    "shift_r": "KEY_RIGHTSHIFT",
    "space": "KEY_SPACE",
    "tab": "KEY_TAB",
    "up": "KEY_UP",
    "media_play_pause": "KEY_PLAYPAUSE",
    "media_volume_mute": "KEY_MUTE",
    "media_volume_down": "KEY_VOLUMEDOWN",
    "media_volume_up": "KEY_VOLUMEUP",
    "media_previous": "KEY_PREVIOUSSONG",
    "media_next": "KEY_NEXTSONG",
}

CHAR_KEY_NAMES = {
    " ": "KEY_SPACE",
    "\t": "KEY_TAB",
    "\n": "KEY_ENTER",
    "\r": "KEY_ENTER",
    "-": "KEY_MINUS",
    "_": "KEY_MINUS",
    "=": "KEY_EQUAL",
    "+": "KEY_EQUAL",
    "[": "KEY_LEFTBRACE",
    "{": "KEY_LEFTBRACE",
    "]": "KEY_RIGHTBRACE",
    "}": "KEY_RIGHTBRACE",
    ";": "KEY_SEMICOLON",
    ":": "KEY_SEMICOLON",
    "'": "KEY_APOSTROPHE",
    '"': "KEY_APOSTROPHE",
    "`": "KEY_GRAVE",
    "~": "KEY_GRAVE",
    "\\": "KEY_BACKSLASH",
    "|": "KEY_BACKSLASH",
    ",": "KEY_COMMA",
    "<": "KEY_COMMA",
    ".": "KEY_DOT",
    ">": "KEY_DOT",
    "/": "KEY_SLASH",
    "?": "KEY_SLASH",
    "!": "KEY_1",
    "@": "KEY_2",
    "#": "KEY_3",
    "$": "KEY_4",
    "%": "KEY_5",
    "^": "KEY_6",
    "&": "KEY_7",
    "*": "KEY_8",
    "(": "KEY_9",
    ")": "KEY_0",
}
