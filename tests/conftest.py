"""Shared test fixtures."""

import threading

import pytest

from awaithttp.http.bridge import is_record_stack


class FakeOutcome:
    """Stands in for a ResponseOutcome; records whether it was closed."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.closed = False

    def close(self):
        self.closed = True


class FakeCall:
    """Engine call whose outcome is delivered manually, from any thread."""

    def __init__(self, cancel_error=None):
        self.callback = None
        self.cancel_count = 0
        self.cancel_error = cancel_error
        self.enqueued = threading.Event()

    @property
    def is_canceled(self):
        return self.cancel_count > 0

    def enqueue(self, callback):
        self.callback = callback
        self.enqueued.set()

    def cancel(self):
        self.cancel_count += 1
        if self.cancel_error is not None:
            raise self.cancel_error

    def respond(self, outcome, in_thread=True):
        self._deliver(self.callback.on_response, outcome, in_thread)

    def fail(self, exc, in_thread=True):
        self._deliver(self.callback.on_failure, exc, in_thread)

    def _deliver(self, method, value, in_thread):
        if not in_thread:
            method(self, value)
            return
        thread = threading.Thread(target=method, args=(self, value))
        thread.start()
        thread.join()


@pytest.fixture
def fake_call():
    return FakeCall()


@pytest.fixture(autouse=True)
def reset_stack_recorder(monkeypatch):
    """Make every test read the stack recorder switch afresh."""
    monkeypatch.delenv("AWAITHTTP_STACK_RECORDER", raising=False)
    is_record_stack.cache_clear()
    yield
    is_record_stack.cache_clear()
