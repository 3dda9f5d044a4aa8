# nebchat/infra/llm/channel.py
from __future__ import annotations
import threading
from collections import deque
from typing import Deque, Iterator, Optional

from .errors import ChannelClosedError


class TokenChannel:
    """
    Thread-safe FIFO of text fragments between one producer and its consumers.

    put() blocks while the channel holds `maxsize` fragments (0 = unbounded).
    close() never blocks; fragments already queued stay readable, and get()
    returns None once the channel is closed and drained.
    """

    def __init__(self, maxsize: int = 0):
        self.maxsize = maxsize
        self._items: Deque[str] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def put(self, token: str, timeout: Optional[float] = None) -> None:
        with self._cond:
            ok = self._cond.wait_for(
                lambda: self._closed or not self.maxsize or len(self._items) < self.maxsize,
                timeout,
            )
            if self._closed:
                raise ChannelClosedError("put on closed channel")
            if not ok:
                raise TimeoutError("channel full")
            self._items.append(token)
            self._cond.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[str]:
        with self._cond:
            ok = self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if not ok:
                raise TimeoutError("no fragment available")
            if self._items:
                token = self._items.popleft()
                self._cond.notify_all()
                return token
            return None

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def drain(self) -> list[str]:
        """Pop everything currently queued without waiting."""
        with self._cond:
            out = list(self._items)
            self._items.clear()
            self._cond.notify_all()
            return out

    def __iter__(self) -> Iterator[str]:
        while True:
            token = self.get()
            if token is None:
                return
            yield token

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
