from concurrent.futures import Future

import pytest

from customerbook.controller import CustomerController
from customerbook.gateway import InMemoryGateway


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback on demand."""

    def __init__(self, seconds, fn):
        self.seconds = seconds
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.fn()


class TimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, seconds, fn):
        timer = FakeTimer(seconds, fn)
        self.timers.append(timer)
        return timer


class RecordingGateway(InMemoryGateway):
    """In-memory gateway that counts calls and can be told to fail or hold operations."""

    def __init__(self, documents=None):
        counter = iter(range(1, 10_000))
        super().__init__(documents, id_factory=lambda: f"id-{next(counter)}")
        self.calls = []
        self.fail = set()
        self.hold = set()
        self.pending = []

    def list_all(self):
        self.calls.append(("list_all",))
        return self._maybe_hold("list_all", super().list_all)

    def upsert(self, customer_id, name, phone, email):
        self.calls.append(("upsert", customer_id, name, phone, email))
        return self._maybe_hold("upsert", lambda: super(RecordingGateway, self).upsert(customer_id, name, phone, email))

    def delete(self, customer_id):
        self.calls.append(("delete", customer_id))
        return self._maybe_hold("delete", lambda: super(RecordingGateway, self).delete(customer_id))

    def count(self, operation):
        return sum(1 for call in self.calls if call[0] == operation)

    def _maybe_hold(self, operation, run):
        if operation not in self.hold:
            return run()
        outer = Future()
        self.pending.append((outer, run))
        return outer

    def release(self):
        """Complete the oldest held operation."""
        outer, run = self.pending.pop(0)
        inner = run()
        exc = inner.exception()
        if exc is None:
            outer.set_result(inner.result())
        else:
            outer.set_exception(exc)

    def _list_all(self):
        if "list_all" in self.fail:
            raise ConnectionError("store unreachable")
        return super()._list_all()

    def _upsert(self, customer_id, name, phone, email):
        if "upsert" in self.fail:
            raise PermissionError("write denied")
        return super()._upsert(customer_id, name, phone, email)

    def _delete(self, customer_id):
        if "delete" in self.fail:
            raise ConnectionError("store unreachable")
        return super()._delete(customer_id)


@pytest.fixture
def timers():
    return TimerFactory()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def controller(gateway, timers):
    return CustomerController(gateway, saving_timeout=3.0, timer_factory=timers)


@pytest.fixture
def errors(controller):
    seen = []
    controller.add_error_listener(lambda operation, error: seen.append((operation, error)))
    return seen
