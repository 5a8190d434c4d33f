"""
DeliveryScheduler — timer-driven delivery of the counters.

Each cycle:
  1. read whatever is waiting in the backup file
  2. take() the live counters (snapshot + reset, delta semantics) and add them
  3. POST with bounded retries
  4. success → delete backup | failure → write the combined payload as backup

The cycle holds `cycle_lock` from step 1 to step 4. The shutdown flush takes
the same lock, so a final flush never interleaves with a cycle in flight.
A cycle that acquires the lock after the stop event is set does nothing.
"""

import threading

from .backup import BackupRecord
from .config import log


class DeliveryScheduler:

    def __init__(self, config, store, backup, client, stop_event, cycle_lock=None):
        self._config = config
        self._store = store
        self._backup = backup
        self._client = client
        self._stop = stop_event
        self.cycle_lock = cycle_lock or threading.Lock()
        self._thread = None

    # ─── Thread lifecycle ────────────────────────────────────

    def start(self):
        self._thread = threading.Thread(target=self._run, name="delivery", daemon=True)
        self._thread.start()
        log.info(
            "Delivery started (interval=%ss, timeout=%ss, attempts=%d, retry_delay=%ss)",
            self._config.send_interval, self._config.request_timeout,
            self._config.max_attempts, self._config.retry_delay,
        )

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self):
        while not self._stop.wait(self._config.send_interval):
            try:
                self.run_cycle()
            except Exception as e:
                log.error("Unexpected error in delivery cycle: %s", e, exc_info=True)
        log.info("Delivery loop stopped")

    # ─── One cycle ───────────────────────────────────────────

    def run_cycle(self):
        """Run one delivery cycle. Returns the DeliveryOutcome, or None if there was nothing to send."""
        with self.cycle_lock:
            if self._stop.is_set():
                # Shutdown owns the live counts and the backup from here on
                return None
            pending = self._backup.load_or_discard()
            snapshot = self._store.take()
            payload = snapshot.merged(pending.snapshot) if pending else snapshot

            if payload.is_empty:
                log.debug("Nothing to send this cycle")
                return None

            record = BackupRecord.create(payload, self._config.hostname)
            outcome = self._client.deliver(record, self._stop)

            if outcome.success:
                self._backup.delete()
                return outcome

            try:
                self._backup.save(record)
            except OSError as e:
                # Disk is unusable; keep the counts in memory for the next cycle
                log.error("Could not write backup (%s) — keeping counts in memory", e)
                self._store.merge_from(snapshot)
                return outcome
            log.warning(
                "Delivery failed (%s) — %d events kept in backup, retrying next cycle",
                outcome.reason, payload.total,
            )
            return outcome
