"""
Collector API — POST /api/stats with the shared-secret header.

All calls are blocking and run on the delivery thread, never on the capture
thread. A delivery is all-or-nothing: either the collector answers 2xx for
the whole payload, or the cycle is treated as if nothing was sent.
"""

import json
import threading
from dataclasses import dataclass

import requests

from .config import log
from .constants import API_SECRET_HEADER
from .errors import DeliveryError, TransportError, AuthError, ServerError
from . import http_client


@dataclass(frozen=True)
class DeliveryOutcome:
    success: bool
    reason: str = ""

    @classmethod
    def ok(cls):
        return cls(True)

    @classmethod
    def failed(cls, reason):
        return cls(False, reason)


class StatsClient:
    """Sends BackupRecord payloads to the collector with bounded retries."""

    def __init__(self, config, session_factory=http_client.create_session):
        self._config = config
        self._session_factory = session_factory
        self.session = session_factory()

    def post_stats(self, record):
        """
        One delivery attempt. Returns the parsed JSON body on 2xx.
        Raises TransportError, AuthError or ServerError.
        """
        headers = {API_SECRET_HEADER: self._config.api_secret}
        try:
            resp = self.session.post(
                self._config.api_url,
                json=record.to_dict(),
                headers=headers,
                timeout=self._config.request_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        if resp.status_code == 401:
            raise AuthError(_error_message(resp) or "Unauthorized")
        if not 200 <= resp.status_code < 300:
            raise ServerError(resp.status_code, resp.text[:200])
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def deliver(self, record, stop_event=None):
        """
        Try up to max_attempts times with a fixed delay between attempts.
        Errors that are not retryable (401) end the cycle at once. No attempt
        starts once stop_event is set, so shutdown can flush.
        """
        attempts = self._config.max_attempts
        delay = self._config.retry_delay
        snap = record.snapshot
        reason = "not attempted"
        if stop_event is None:
            stop_event = threading.Event()

        for attempt in range(1, attempts + 1):
            if stop_event.is_set():
                log.info("Shutdown requested — abandoning remaining attempts")
                return DeliveryOutcome.failed("shutdown: " + reason)
            try:
                data = self.post_stats(record)
                log.info(
                    "Stats sent | keys=%d clicks=%d wheels=%d events=%d | %s",
                    snap.total_keys, snap.total_clicks, snap.total_wheels,
                    len(snap.events), data.get("message", "ok"),
                )
                return DeliveryOutcome.ok()
            except TransportError as e:
                reason = f"transport: {e}"
                log.warning("Stats send network error (attempt %d/%d): %s", attempt, attempts, e)
                self.reset_session()
            except DeliveryError as e:
                if not e.retryable:
                    label = _reason_label(e)
                    log.error("Stats REJECTED (%s): %s — not retrying", label, e)
                    return DeliveryOutcome.failed(f"{label}: {e}")
                reason = f"server: {e}"
                log.warning("Stats send failed (attempt %d/%d): %s", attempt, attempts, e)

            if attempt < attempts:
                stop_event.wait(delay)

        log.error("Stats send FAILED after %d attempts (%s)", attempts, reason)
        log.debug("Unsent payload: %s", json.dumps(record.to_dict(), separators=(",", ":")))
        return DeliveryOutcome.failed(reason)

    def reset_session(self):
        """Drop pooled connections after a transport error."""
        self.close()
        self.session = self._session_factory()

    def close(self):
        try:
            self.session.close()
        except Exception:
            pass


def _error_message(resp):
    try:
        return resp.json().get("error", "")
    except (ValueError, AttributeError):
        return ""


def _reason_label(error):
    return "auth" if isinstance(error, AuthError) else "rejected"
