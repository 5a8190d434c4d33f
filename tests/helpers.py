import copy
import tempfile
from pathlib import Path

from sagittarius.capture import QueueEventSource
from sagittarius.config import AgentConfig


def make_config(home_dir, **overrides):
    values = {
        "api_secret": "s3cret",
        "api_url": "http://collector.test/api/stats",
        "home_dir": Path(home_dir),
        "retry_delay": 0,
        "hostname": "test-host",
    }
    values.update(overrides)
    return AgentConfig(**values)


class TempDirMixin:
    def setUp(self):
        super().setUp()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()
        super().tearDown()


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body

    @property
    def text(self):
        return "" if self._body is None else str(self._body)


def ok_response():
    return FakeResponse(200, {"success": True, "message": "Stats updated successfully"})


class FakeSession:
    """
    Stand-in for requests.Session. Each post() consumes the next scripted
    outcome (a FakeResponse, or an exception to raise); the last one repeats.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [ok_response()]
        self.calls = []
        self.closed = 0

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({
            "url": url,
            "json": copy.deepcopy(json),
            "headers": dict(headers or {}),
            "timeout": timeout,
        })
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self):
        self.closed += 1

    @property
    def payloads(self):
        return [call["json"] for call in self.calls]


class FakeSource(QueueEventSource):
    """Scripted event source. Optionally fails once its events run out."""

    def __init__(self, events=(), fail_when_empty=None):
        super().__init__()
        for event in events:
            self.queue.put(event)
        self._fail_when_empty = fail_when_empty
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def read(self, timeout=0.02):
        if self._fail_when_empty and self.queue.empty():
            self.fail(self._fail_when_empty)
        return super().read(timeout)
