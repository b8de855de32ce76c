"""Bounded frame queue shared between the SDK callback and the render loop."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Optional, TypeVar

F = TypeVar("F")


class FrameQueue(Generic[F]):
    """
    Thread-safe queue that keeps the newest ``capacity`` frames.

    ``enqueue`` never blocks: when the queue is full the oldest frame is
    dropped. After :meth:`dispose` the queue is empty and ignores enqueues.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._frames: Deque[F] = deque(maxlen=capacity)
        self._cond = threading.Condition()
        self._disposed = False
        self.dropped = 0

    def enqueue(self, frame: F) -> None:
        with self._cond:
            if self._disposed:
                return
            if len(self._frames) == self.capacity:
                self.dropped += 1
            self._frames.append(frame)
            self._cond.notify()

    def poll_for_frame(self) -> Optional[F]:
        """Pop the oldest frame without waiting, ``None`` if empty."""
        with self._cond:
            if not self._frames:
                return None
            return self._frames.popleft()

    def wait_for_frame(self, timeout: float | None = 5.0) -> Optional[F]:
        """Block until a frame arrives, the queue is disposed or timeout."""
        with self._cond:
            self._cond.wait_for(
                lambda: bool(self._frames) or self._disposed, timeout=timeout
            )
            if not self._frames:
                return None
            return self._frames.popleft()

    def dispose(self) -> None:
        with self._cond:
            self._frames.clear()
            self._disposed = True
            self._cond.notify_all()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        with self._cond:
            return len(self._frames)

    def __enter__(self) -> "FrameQueue[F]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
