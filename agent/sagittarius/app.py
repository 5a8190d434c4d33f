"""
AgentApp — wires the counters, capture, delivery and shutdown together.

Threads:
  capture   — source.read() → classify → CounterStore.increment
  delivery  — every send_interval: take → POST (retries) → backup on failure
  main      — waits on the stop event, then runs the final flush

The CounterStore, BackupStore and the cycle lock are owned here and passed
to the components; there is no module-level state.
"""

import threading

from .api import StatsClient
from .backup import BackupStore
from .capture import CaptureLoop
from .config import log
from .constants import AGENT_VERSION
from .counters import CounterStore
from .scheduler import DeliveryScheduler
from .shutdown import ShutdownCoordinator

_CAPTURE_JOIN_SEC = 3
_DELIVERY_JOIN_SEC = 2


class AgentApp:

    def __init__(self, config, source, client=None):
        self._config = config
        self.stop_event = threading.Event()
        self.cycle_lock = threading.Lock()
        self.store = CounterStore()
        self.backup = BackupStore(config.backup_file, config.hostname)
        self.client = client if client is not None else StatsClient(config)
        self.shutdown = ShutdownCoordinator(self.store, self.backup, self.stop_event, self.cycle_lock)
        self.capture = CaptureLoop(
            source, self.store, self.stop_event,
            on_fatal=lambda e: self.shutdown.request_stop("device failure"),
        )
        self.scheduler = DeliveryScheduler(
            config, self.store, self.backup, self.client, self.stop_event, self.cycle_lock,
        )

    def run(self, install_signals=True):
        """
        Run until a signal or a fatal device error. Blocks the calling
        thread. Returns the process exit status (0, or 1 on device failure
        or a failed final flush).
        """
        if install_signals:
            self.shutdown.install_signal_handlers()

        flushed = False
        try:
            # Capture first: recovery adds on top of anything already counted
            self.capture.start()
            self.backup.recover_into(self.store)
            self.scheduler.start()
            log.info(
                "v%s running | host=%s | url=%s | backup=%s",
                AGENT_VERSION, self._config.hostname, self._config.api_url,
                self._config.backup_file,
            )
            while not self.stop_event.wait(1.0):
                pass
        finally:
            self.stop_event.set()
            self.capture.join(_CAPTURE_JOIN_SEC)
            if self.capture.is_alive():
                log.warning("Capture thread still running after %ds", _CAPTURE_JOIN_SEC)
            flushed = self.shutdown.final_flush()
            self.scheduler.join(_DELIVERY_JOIN_SEC)
            self.client.close()
            if install_signals:
                self.shutdown.restore_signal_handlers()
            log.info("Agent shut down.")

        if self.capture.error is not None or not flushed:
            return 1
        return 0

    def stop(self):
        self.shutdown.request_stop("stop()")
