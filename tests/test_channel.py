"""Test suite for the rendezvous channel and cancel token."""

import threading

import pytest

from kvwatch.common.cancel import CancelToken
from kvwatch.common.channel import Channel, ChannelClosed
from tests.test_utils import wait_until


class TestCancelToken:
    """Test cancel token semantics."""

    def test_cancel_runs_callbacks_once(self):
        """Callbacks run exactly once, even if cancel is called twice."""
        token = CancelToken()
        calls: list[str] = []
        token.add_callback(lambda: calls.append("a"))

        token.cancel()
        token.cancel()

        assert token.cancelled
        assert calls == ["a"]

    def test_callback_on_cancelled_token_runs_immediately(self):
        """Registering on a cancelled token runs the callback right away."""
        token = CancelToken()
        token.cancel()
        calls: list[str] = []

        token.add_callback(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_removed_callback_does_not_run(self):
        """A callback unregistered before cancel is never called."""
        token = CancelToken()
        calls: list[str] = []
        token.add_callback(lambda: calls.append("kept"))

        def removed() -> None:
            calls.append("removed")

        token.add_callback(removed)

        token.remove_callback(removed)
        token.remove_callback(removed)
        token.cancel()

        assert calls == ["kept"]

    def test_wait_returns_on_cancel(self):
        """wait() wakes up as soon as the token is cancelled."""
        token = CancelToken()
        threading.Timer(0.05, token.cancel).start()

        assert token.wait(5.0) is True

    def test_wait_times_out(self):
        """wait() returns False when the timeout expires first."""
        assert CancelToken().wait(0.01) is False


class TestChannel:
    """Test channel handoff, closing and cancellation."""

    def test_put_blocks_until_taken(self):
        """The producer is released only once the consumer takes the item."""
        channel: Channel[int] = Channel()
        delivered = threading.Event()

        def produce() -> None:
            if channel.put(1):
                delivered.set()

        threading.Thread(target=produce, daemon=True).start()

        assert not delivered.wait(0.1)
        assert channel.get(timeout=1.0) == 1
        assert delivered.wait(1.0)

    def test_items_arrive_in_order(self):
        """Items are delivered in the order they were put."""
        channel: Channel[int] = Channel()

        def produce() -> None:
            for i in range(5):
                channel.put(i)
            channel.close()

        threading.Thread(target=produce, daemon=True).start()

        assert list(channel) == [0, 1, 2, 3, 4]

    def test_get_times_out(self):
        """get() raises TimeoutError when nothing arrives."""
        channel: Channel[int] = Channel()

        with pytest.raises(TimeoutError):
            channel.get(timeout=0.01)

    def test_closed_channel_ends_iteration(self):
        """Iteration stops once the channel is closed."""
        channel: Channel[int] = Channel()
        channel.close()
        channel.close()

        assert list(channel) == []
        with pytest.raises(ChannelClosed):
            channel.get()

    def test_cancel_withdraws_pending_item(self):
        """Cancelling while the producer waits withdraws the item."""
        token = CancelToken()
        channel: Channel[str] = Channel(token)
        results: list[bool] = []

        producer = threading.Thread(target=lambda: results.append(channel.put("late")), daemon=True)
        producer.start()
        assert wait_until(lambda: channel._offered == 1)

        token.cancel()
        producer.join(1.0)
        channel.close()

        assert results == [False]
        assert list(channel) == []

    def test_put_after_close_is_rejected(self):
        """Nothing can be put into a closed channel."""
        channel: Channel[int] = Channel()
        channel.close()

        assert channel.put(1) is False
