# This file is part of cloudboot. See LICENSE file for license information.

import threading

import pytest

from cloudboot.channel import Channel
from cloudboot.context import CANCELED, CancellationError, Context


class TestChannel:
    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            Channel(capacity=0)

    def test_send_then_receive(self, ctx):
        channel = Channel()
        channel.send(ctx, "value")
        assert 1 == len(channel)
        assert "value" == channel.receive(ctx)
        assert 0 == len(channel)

    def test_receive_is_fifo(self, ctx):
        channel = Channel(capacity=2)
        channel.send(ctx, 1)
        channel.send(ctx, 2)
        assert [1, 2] == [channel.receive(), channel.receive()]

    def test_send_on_cancelled_context_delivers_nothing(self):
        ctx = Context()
        ctx.cancel()
        channel = Channel()
        with pytest.raises(CancellationError, match=CANCELED):
            channel.send(ctx, "value")
        assert 0 == len(channel)

    def test_cancel_wakes_blocked_send(self):
        """A full channel blocks send until the context is cancelled."""
        ctx = Context()
        channel = Channel()
        channel.send(ctx, "first")
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        with pytest.raises(CancellationError):
            channel.send(ctx, "second")
        assert 1 == len(channel)
        assert "first" == channel.receive()

    def test_receive_unblocks_send(self, ctx):
        channel = Channel()
        channel.send(ctx, "first")
        timer = threading.Timer(0.05, channel.receive)
        timer.start()
        channel.send(ctx, "second")
        timer.join()
        assert "second" == channel.receive(timeout=0)

    def test_send_removes_wake_callback(self, ctx):
        channel = Channel()
        channel.send(ctx, "value")
        assert [] == ctx._callbacks

    def test_receive_times_out(self):
        with pytest.raises(TimeoutError):
            Channel().receive(timeout=0)

    def test_receive_cancelled(self):
        ctx = Context.with_timeout(0.05)
        with pytest.raises(CancellationError):
            Channel().receive(ctx)
