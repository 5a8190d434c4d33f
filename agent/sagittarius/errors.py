"""
Exception taxonomy for the agent.

Delivery errors are handled inside the delivery cycle (retried or backed up).
CorruptBackup is logged and the file discarded. DeviceReadError ends the
capture thread and triggers the final flush.
"""


class AgentError(Exception):
    """Base class for all agent errors."""


class ConfigError(AgentError):
    """Missing or invalid configuration value."""


class DeliveryError(AgentError):
    """A single delivery attempt failed."""

    # False ends the delivery cycle without further attempts
    retryable = True


class TransportError(DeliveryError):
    """Network error or timeout talking to the collector."""


class AuthError(DeliveryError):
    """Collector rejected the shared secret (HTTP 401)."""

    retryable = False


class ServerError(DeliveryError):
    """Collector answered with a non-2xx status other than 401."""

    def __init__(self, status_code, body=""):
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class CorruptBackup(AgentError):
    """Backup file exists but cannot be parsed."""


class DeviceReadError(AgentError):
    """Input device stream closed or became unavailable."""
