"""
sagittarius — Input statistics agent
====================================
Architecture: one CounterStore shared by a capture thread and a delivery
thread; the main thread waits for a signal and does the final flush.

  constants.py    → Version, delivery defaults, event key tables
  config.py       → AgentConfig (env / .env), logging setup, safe_print
  errors.py       → Exception taxonomy (delivery, backup, device, config)
  events.py       → Classifier: raw event → (EventKey, EventClass, count)
  counters.py     → CounterSnapshot + CounterStore (lock-guarded counts)
  backup.py       → BackupRecord + BackupStore (atomic JSON backup file)
  http_client.py  → requests session with pooling + CA bundle
  api.py          → StatsClient: POST /api/stats with bounded retries
  scheduler.py    → DeliveryScheduler (timer, take → send → backup)
  capture.py      → QueueEventSource + CaptureLoop (capture thread)
  listeners.py    → pynput keyboard/mouse listeners (desktop sessions)
  evdev_source.py → evdev device readers (headless Linux)
  shutdown.py     → ShutdownCoordinator (signals, final flush)
  app.py          → AgentApp (wires everything, owns the lifecycle)
  runner.py       → main() + CLI flags
"""
