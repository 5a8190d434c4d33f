"""
Command-line entry point.

Configuration comes from the environment / .env (see config.load_config);
flags given here override it.
"""

import argparse
import logging
import sys

from .constants import AGENT_VERSION, CAPTURE_BACKENDS
from .config import log, safe_print, setup_logging, load_config
from .errors import ConfigError
from .app import AgentApp


def build_parser():
    parser = argparse.ArgumentParser(
        prog="sagittarius-agent",
        description="Count keyboard/mouse events and deliver them to a stats collector.",
    )
    parser.add_argument("--api-url", help="collector endpoint (API_URL)")
    parser.add_argument("--api-secret", help="shared secret sent as X-API-Secret (API_SECRET)")
    parser.add_argument("--interval", type=float, dest="send_interval",
                        help="seconds between deliveries (SEND_INTERVAL_SEC)")
    parser.add_argument("--timeout", type=float, dest="request_timeout",
                        help="per-attempt HTTP timeout in seconds (REQUEST_TIMEOUT_SEC)")
    parser.add_argument("--attempts", type=int, dest="max_attempts",
                        help="attempts per delivery cycle (MAX_ATTEMPTS)")
    parser.add_argument("--retry-delay", type=float, dest="retry_delay",
                        help="seconds between attempts (RETRY_DELAY_SEC)")
    parser.add_argument("--home", dest="home_dir", help="working directory (SAGITTARIUS_HOME)")
    parser.add_argument("--backup-file", help="backup file path (BACKUP_FILE)")
    parser.add_argument("--log-file", help="log file path (LOG_FILE)")
    parser.add_argument("--backend", dest="capture_backend", choices=CAPTURE_BACKENDS,
                        help="input capture backend (CAPTURE_BACKEND)")
    parser.add_argument("--env-file", help="path to a .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {AGENT_VERSION}")
    return parser


def make_source(backend):
    """Instantiate the capture backend. Device libraries load on demand."""
    if backend == "evdev":
        from .evdev_source import EvdevEventSource
        return EvdevEventSource()
    from .listeners import InputListeners
    return InputListeners()


def main(argv=None):
    """Primary agent entry point. Returns the exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            dotenv_path=args.env_file,
            api_url=args.api_url,
            api_secret=args.api_secret,
            send_interval=args.send_interval,
            request_timeout=args.request_timeout,
            max_attempts=args.max_attempts,
            retry_delay=args.retry_delay,
            home_dir=args.home_dir,
            backup_file=args.backup_file,
            log_file=args.log_file,
            capture_backend=args.capture_backend,
        )
    except ConfigError as e:
        safe_print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_file, logging.DEBUG if args.verbose else logging.INFO)
    safe_print("Sagittarius input stats agent v" + AGENT_VERSION)

    try:
        source = make_source(config.capture_backend)
    except ImportError as e:
        log.error("Capture backend %r unavailable: %s", config.capture_backend, e)
        return 1

    app = AgentApp(config, source)
    return app.run()


def run():
    sys.exit(main())
