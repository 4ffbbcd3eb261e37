import threading
from typing import Iterator, Tuple

import numpy as np

from textpipe.Utils.constants import END_OF_STREAM
from textpipe.Utils.errors import ClosedSink


class BoundedBuffer:
    """
    Single-producer / single-consumer byte channel with blocking get and put.

    Storage is a fixed numpy uint8 ring. head is where the consumer reads next,
    tail is where the producer writes next; both advance modulo capacity.
    count, head, tail and closed are only touched while holding self._lock,
    and both conditions share that lock.

    Once closed, put() raises ClosedSink, but bytes already enqueued are still
    handed out by get(); after the last one get() returns (END_OF_STREAM, False).
    """
    def __init__(self, capacity: int = 8, name: str = "buffer"):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"BoundedBuffer capacity must be >= 1, got {capacity}")
        self.name = name
        self._capacity = capacity
        self._storage = np.zeros(capacity, dtype=np.uint8)
        self._head = 0
        self._tail = 0
        self._count = 0
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def qsize(self) -> int:
        with self._lock:
            return self._count

    def put(self, ch: int):
        with self._not_full:
            if self._closed:
                raise ClosedSink(f"put on closed buffer '{self.name}'")
            while self._count == self._capacity:
                self._not_full.wait()
                # close() broadcasts not_full so a stray producer wakes up here
                if self._closed:
                    raise ClosedSink(f"put on closed buffer '{self.name}'")
            self._storage[self._tail] = ch
            self._tail = (self._tail + 1) % self._capacity
            self._count += 1
            self._not_empty.notify()

    def get(self) -> Tuple[int, bool]:
        with self._not_empty:
            while self._count == 0 and not self._closed:
                self._not_empty.wait()
            if self._count == 0:
                return END_OF_STREAM, False
            ch = int(self._storage[self._head])
            self._head = (self._head + 1) % self._capacity
            self._count -= 1
            self._not_full.notify()
            return ch, True

    def close(self):
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def __iter__(self) -> Iterator[int]:
        while True:
            ch, ok = self.get()
            if not ok:
                return
            yield ch

    def __repr__(self):
        return f"BoundedBuffer(name={self.name!r}, capacity={self._capacity})"
