from datetime import datetime, timedelta

import pytest

from backend import RoomRegistry


class FakeConnection:
    """Registry-facing stand-in for `connection.Connection` that records events."""

    def __init__(self, connection_id):
        self.connection_id = connection_id
        self.room_id = None
        self.sent = []
        self.open = True

    def send(self, event):
        if not self.open:
            return False
        self.sent.append(event)
        return True

    def of_type(self, event_type):
        return [event for event in self.sent if event["type"] == event_type]

    def last(self, event_type):
        events = self.of_type(event_type)
        return events[-1] if events else None


class BrokenConnection(FakeConnection):
    def send(self, event):
        raise RuntimeError("socket is gone")


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return RoomRegistry(clock=clock)


@pytest.fixture
def make_connection():
    counter = iter(range(10_000))

    def factory(name=None):
        return FakeConnection(name or f"conn-{next(counter)}")

    return factory
