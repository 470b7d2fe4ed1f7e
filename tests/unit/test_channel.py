from __future__ import annotations

import queue
from datetime import timedelta

import pytest

from rr_bench.core.channel import ChannelClosed, sample_channel

SHORT_WAIT = 0.01


def test_samples_arrive_in_send_order_then_channel_closes() -> None:
    sender, receiver = sample_channel()
    samples = [timedelta(milliseconds=n) for n in (3, 1, 2)]
    for sample in samples:
        assert sender.send(sample)
    sender.close()

    received = [receiver.recv(timeout=SHORT_WAIT) for _ in samples]

    assert received == samples
    with pytest.raises(ChannelClosed):
        receiver.recv(timeout=SHORT_WAIT)
    # Closure is sticky.
    with pytest.raises(ChannelClosed):
        receiver.recv(timeout=SHORT_WAIT)


def test_channel_stays_open_while_any_clone_is_alive() -> None:
    sender, receiver = sample_channel()
    clone = sender.clone()
    sender.close()

    with pytest.raises(queue.Empty):
        receiver.recv(timeout=SHORT_WAIT)

    clone.send(timedelta(milliseconds=5))
    clone.close()
    assert receiver.recv(timeout=SHORT_WAIT) == timedelta(milliseconds=5)
    with pytest.raises(ChannelClosed):
        receiver.recv(timeout=SHORT_WAIT)


def test_send_reports_closed_receiver() -> None:
    sender, receiver = sample_channel()
    receiver.close()

    assert receiver.closed
    assert sender.send(timedelta(milliseconds=1)) is False


def test_closed_sender_cannot_send_or_clone() -> None:
    sender, _ = sample_channel()
    sender.close()
    sender.close()

    with pytest.raises(RuntimeError):
        sender.send(timedelta(milliseconds=1))
    with pytest.raises(RuntimeError):
        sender.clone()
