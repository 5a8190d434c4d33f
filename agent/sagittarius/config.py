"""
Paths, logging setup, config loading, safe_print.
"""

import os
import sys
import socket
import logging
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

from .constants import (
    DEFAULT_API_URL, SEND_INTERVAL_SEC, REQUEST_TIMEOUT_SEC, MAX_ATTEMPTS,
    RETRY_DELAY_SEC, BACKUP_FILE_NAME, LOG_FILE_NAME, LOG_MAX_BYTES,
    CAPTURE_BACKENDS,
)
from .errors import ConfigError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

log = logging.getLogger("sagittarius")


# ─── Safe print (no crash when stdout is closed) ────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

def setup_logging(log_file, level=logging.INFO):
    """Attach file + console handlers to the agent logger."""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Keep the log small on long-running hosts
    try:
        if log_file.exists() and log_file.stat().st_size > LOG_MAX_BYTES:
            log_file.write_text("")
    except OSError:
        pass

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    log.handlers.clear()
    log.setLevel(level)
    log.addHandler(file_handler)
    log.addHandler(console_handler)
    log.propagate = False


# ─── Config ──────────────────────────────────────────────────────

@dataclass
class AgentConfig:
    api_secret: str
    api_url: str = DEFAULT_API_URL
    send_interval: float = SEND_INTERVAL_SEC
    request_timeout: float = REQUEST_TIMEOUT_SEC
    max_attempts: int = MAX_ATTEMPTS
    retry_delay: float = RETRY_DELAY_SEC
    home_dir: Path = field(default_factory=Path.cwd)
    backup_file: Path = None
    log_file: Path = None
    capture_backend: str = "pynput"
    hostname: str = field(default_factory=socket.gethostname)

    def __post_init__(self):
        self.home_dir = Path(self.home_dir)
        if self.backup_file is None:
            self.backup_file = self.home_dir / BACKUP_FILE_NAME
        if self.log_file is None:
            self.log_file = self.home_dir / LOG_FILE_NAME
        self.backup_file = Path(self.backup_file)
        self.log_file = Path(self.log_file)
        self.validate()

    def validate(self):
        if not self.api_secret:
            raise ConfigError("API_SECRET is required (set it in the environment or .env)")
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigError(f"API_URL must be an http(s) URL, got {self.api_url!r}")
        if self.send_interval <= 0:
            raise ConfigError("SEND_INTERVAL_SEC must be positive")
        if self.request_timeout <= 0:
            raise ConfigError("REQUEST_TIMEOUT_SEC must be positive")
        if self.max_attempts < 1:
            raise ConfigError("MAX_ATTEMPTS must be at least 1")
        if self.retry_delay < 0:
            raise ConfigError("RETRY_DELAY_SEC cannot be negative")
        if self.capture_backend not in CAPTURE_BACKENDS:
            raise ConfigError(
                f"CAPTURE_BACKEND must be one of {', '.join(CAPTURE_BACKENDS)}, "
                f"got {self.capture_backend!r}"
            )


def _env_number(env, name, cast, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_config(env=None, dotenv_path=None, **overrides):
    """
    Build an AgentConfig from the environment.

    A .env file (current directory, or dotenv_path) is loaded first without
    overriding variables that are already set. Keyword overrides that are
    not None win over the environment (used for CLI flags).
    """
    if env is None:
        load_dotenv(dotenv_path or find_dotenv(usecwd=True))
        env = os.environ

    home_dir = Path(env.get("SAGITTARIUS_HOME") or Path.cwd())
    values = {
        "api_url": env.get("API_URL") or DEFAULT_API_URL,
        "api_secret": env.get("API_SECRET", ""),
        "send_interval": _env_number(env, "SEND_INTERVAL_SEC", float, SEND_INTERVAL_SEC),
        "request_timeout": _env_number(env, "REQUEST_TIMEOUT_SEC", float, REQUEST_TIMEOUT_SEC),
        "max_attempts": _env_number(env, "MAX_ATTEMPTS", int, MAX_ATTEMPTS),
        "retry_delay": _env_number(env, "RETRY_DELAY_SEC", float, RETRY_DELAY_SEC),
        "home_dir": home_dir,
        "backup_file": env.get("BACKUP_FILE") or None,
        "log_file": env.get("LOG_FILE") or None,
        "capture_backend": (env.get("CAPTURE_BACKEND") or "pynput").lower(),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return AgentConfig(**values)
