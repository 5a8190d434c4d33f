"""
ShutdownCoordinator — signal handling and the final flush to backup.

Signal handlers only set the shared stop event. The final flush runs on the
main thread after capture has stopped: it takes the remaining live counts
and adds them to the backup file, under the same cycle lock the delivery
scheduler holds, so the two never split or duplicate a set of counts.
"""

import json
import signal
import threading

from .config import log

_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


class ShutdownCoordinator:

    def __init__(self, store, backup, stop_event, cycle_lock):
        self._store = store
        self._backup = backup
        self._stop = stop_event
        self._cycle_lock = cycle_lock
        self._flush_lock = threading.Lock()
        self._previous = {}
        self.flushed = False
        self.reason = None

    # ─── Signals ─────────────────────────────────────────────

    def install_signal_handlers(self):
        """Route termination signals to request_stop(). Main thread only."""
        for name in _SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous[signum] = signal.signal(signum, self._handle_signal)

    def restore_signal_handlers(self):
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous = {}

    def _handle_signal(self, signum, frame):
        self.request_stop(signal.Signals(signum).name)

    def request_stop(self, reason):
        if not self._stop.is_set():
            log.info("Received %s — shutting down", reason)
            self.reason = reason
        self._stop.set()

    # ─── Final flush ─────────────────────────────────────────

    def final_flush(self):
        """
        Move the remaining live counts into the backup file. Runs once;
        later calls return immediately. Returns True when nothing was lost.
        """
        with self._flush_lock:
            if self.flushed:
                return True
            self.flushed = True
            with self._cycle_lock:
                snapshot = self._store.take()
                if snapshot.is_empty:
                    log.info("Final flush: no pending counts")
                    return True
                try:
                    self._backup.merge_and_save(snapshot)
                except OSError as e:
                    log.error(
                        "Final flush FAILED, counts lost: %s | %s",
                        e, json.dumps(snapshot.to_dict(), separators=(",", ":")),
                    )
                    return False
            log.info("Final flush: %d events written to backup", snapshot.total)
            return True
