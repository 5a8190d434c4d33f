"""
Capture loop — drains the input event source into the CounterStore.

Backends (pynput listeners, evdev readers) run their own threads and only
put raw tuples on a queue. The capture thread is the single consumer: it
classifies each event and increments the counters. It never touches the
network or the backup file.
"""

import queue
import threading

from .config import log
from .constants import CAPTURE_POLL_SEC
from .errors import DeviceReadError
from .events import WheelAccumulator, classify


class QueueEventSource:
    """
    Base event source: backend threads put raw events on self.queue.
    Subclasses implement start()/stop() and may override check() to
    detect dead backends.
    """

    def __init__(self):
        self.queue = queue.Queue()
        self._failure = None

    def start(self):
        pass

    def stop(self):
        pass

    def fail(self, reason):
        """Mark the source as broken; the next read raises DeviceReadError."""
        self._failure = reason

    def check(self):
        if self._failure:
            raise DeviceReadError(self._failure)

    def read(self, timeout=CAPTURE_POLL_SEC):
        """Next raw event, or None if nothing arrived within timeout."""
        self.check()
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None


class CaptureLoop:
    """Dedicated capture thread. Stops when stop_event is set or the device fails."""

    def __init__(self, source, store, stop_event, on_fatal=None):
        self._source = source
        self._store = store
        self._stop = stop_event
        self._on_fatal = on_fatal
        self._thread = None
        self.error = None
        self.events_seen = 0
        self._wheel = WheelAccumulator()

    def start(self):
        self._thread = threading.Thread(target=self._run, name="capture", daemon=True)
        self._thread.start()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self):
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        try:
            self._source.start()
            log.info("Capture started (%s)", type(self._source).__name__)
            while not self._stop.is_set():
                event = self._source.read()
                if event is None:
                    continue
                self.handle(event)
        except DeviceReadError as e:
            log.error("Input device unavailable: %s — stopping agent", e)
            self._fail(e)
        except Exception as e:
            log.error("Capture source crashed: %s — stopping agent", e, exc_info=True)
            error = DeviceReadError(f"{type(e).__name__}: {e}")
            error.__cause__ = e
            self._fail(error)
        finally:
            try:
                self._source.stop()
            except Exception as e:
                log.warning("Error stopping capture source: %s", e)
            log.info("Capture stopped (%d events seen)", self.events_seen)

    def _fail(self, error):
        self.error = error
        if self._on_fatal is not None:
            self._on_fatal(error)

    def handle(self, event):
        """Classify one raw event and count it. Unknown events are ignored."""
        for key, cls, n in classify(event, self._wheel):
            self._store.increment(key, cls, n)
            self.events_seen += n
