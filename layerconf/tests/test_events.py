"""Tests for the event channel."""

import threading
from unittest.mock import Mock

from layerconf.utils.events import EventChannel


class TestEventChannel:
    """Test EventChannel publish/subscribe."""

    def setup_method(self):
        """Set up test fixtures."""
        self.channel = EventChannel("test")

    def test_emit_to_subscribers(self):
        """Test that every subscriber receives the event."""
        first, second = Mock(), Mock()
        self.channel.subscribe(first)
        self.channel.subscribe(second)

        delivered = self.channel.emit("event")

        assert delivered == 2
        first.assert_called_once_with("event")
        second.assert_called_once_with("event")

    def test_unsubscribe(self):
        """Test that an unsubscribed callback no longer receives events."""
        callback = Mock()
        subscription_id = self.channel.subscribe(callback)

        assert self.channel.unsubscribe(subscription_id)
        assert not self.channel.unsubscribe(subscription_id)

        self.channel.emit("event")
        callback.assert_not_called()
        assert len(self.channel) == 0

    def test_failing_subscriber_isolated(self):
        """Test that one failing subscriber does not block the others."""
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        self.channel.subscribe(failing)
        self.channel.subscribe(healthy)

        delivered = self.channel.emit("event")

        assert delivered == 1
        healthy.assert_called_once_with("event")

    def test_subscribe_queue(self):
        """Test queue delivery."""
        events = self.channel.subscribe_queue()

        self.channel.emit(1)
        self.channel.emit(2)

        assert events.get_nowait() == 1
        assert events.get_nowait() == 2

    def test_subscribe_during_emit(self):
        """Test that subscribing from a callback does not deadlock."""
        late = Mock()

        def subscribe_late(event):
            self.channel.subscribe(late)

        self.channel.subscribe(subscribe_late)
        self.channel.emit("first")
        late.assert_not_called()

        self.channel.emit("second")
        late.assert_called_once_with("second")

    def test_concurrent_emit(self):
        """Test emitting from several threads."""
        received = []
        lock = threading.Lock()

        def record(event):
            with lock:
                received.append(event)

        self.channel.subscribe(record)
        threads = [
            threading.Thread(target=self.channel.emit, args=(i,)) for i in range(20)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(2.0)

        assert sorted(received) == list(range(20))
