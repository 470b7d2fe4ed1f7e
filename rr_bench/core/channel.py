"""
Multiple-producer / single-consumer queue for latency samples.

Readers hold `SampleSender` clones; the orchestrator holds the single
`SampleReceiver`. Once every sender is closed the receiver drains the remaining
samples and then raises `ChannelClosed`. If the receiver closes first, sends
return False so readers can stop without treating it as an error.
"""

from __future__ import annotations

import queue
import threading
from datetime import timedelta
from typing import Optional, Tuple

_DISCONNECTED = object()


class ChannelClosed(Exception):
    """Every sender has been closed and all queued samples were received."""


class _ChannelState:
    def __init__(self) -> None:
        self.queue: "queue.Queue[object]" = queue.Queue()
        self.lock = threading.Lock()
        self.senders = 1
        self.receiver_closed = False


class SampleSender:
    def __init__(self, state: _ChannelState) -> None:
        self._state = state
        self._closed = False

    def clone(self) -> "SampleSender":
        if self._closed:
            raise RuntimeError("cannot clone a closed sender")
        with self._state.lock:
            self._state.senders += 1
        return SampleSender(self._state)

    def send(self, sample: timedelta) -> bool:
        """Queue a sample. Returns False when the receiving side has been closed."""
        if self._closed:
            raise RuntimeError("send on a closed sender")
        if self._state.receiver_closed:
            return False
        self._state.queue.put(sample)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with self._state.lock:
            self._state.senders -= 1
            last = self._state.senders == 0
        if last:
            self._state.queue.put(_DISCONNECTED)

    def __enter__(self) -> "SampleSender":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SampleReceiver:
    def __init__(self, state: _ChannelState) -> None:
        self._state = state

    def recv(self, timeout: Optional[float] = None) -> timedelta:
        """
        Wait up to `timeout` seconds for the next sample.

        Raises
        ------
        queue.Empty
            No sample arrived within the timeout.
        ChannelClosed
            All senders are closed and the queue is drained.
        """
        item = self._state.queue.get(timeout=timeout)
        if item is _DISCONNECTED:
            # Keep the marker so later calls keep reporting closure.
            self._state.queue.put(_DISCONNECTED)
            raise ChannelClosed()
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop accepting samples; pending senders see `send() -> False`."""
        self._state.receiver_closed = True

    @property
    def closed(self) -> bool:
        return self._state.receiver_closed


def sample_channel() -> Tuple[SampleSender, SampleReceiver]:
    state = _ChannelState()
    return SampleSender(state), SampleReceiver(state)


__all__ = ["ChannelClosed", "SampleReceiver", "SampleSender", "sample_channel"]
