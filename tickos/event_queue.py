from __future__ import annotations

import logging
import threading
from collections import deque

from tickos.core.events import QueuedEvent

logger = logging.getLogger(__name__)


class EventQueue:
    """FIFO holding area for events awaiting delivery to a suspended script.

    Contract:
      - `enqueue(event)` appends to the tail and never blocks.
      - `dequeue_if_waiting(waiting)` pops the head only when the consumer is waiting.

    Events that arrive while nobody waits are held, not dropped. With `max_size` set,
    a full queue rejects (and counts) the incoming event instead of growing; events
    already queued are never evicted.

    Producers may live on other threads (HTTP handlers, stream pollers), so every
    operation takes the queue lock.
    """

    def __init__(self, *, max_size: int | None = None) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be >= 1 (or None for unbounded)")
        self._max_size = max_size
        self._items: deque[QueuedEvent] = deque()
        self._lock = threading.Lock()
        self._dropped = 0

    @property
    def max_size(self) -> int | None:
        return self._max_size

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, event: QueuedEvent) -> bool:
        """Append `event`. Returns False if the queue is full and the event was rejected."""

        with self._lock:
            if self._max_size is not None and len(self._items) >= self._max_size:
                self._dropped += 1
                dropped = self._dropped
            else:
                self._items.append(event)
                return True

        logger.warning(
            "Event queue full (max_size=%s); dropped %r (total dropped: %d)",
            self._max_size,
            event.name,
            dropped,
        )
        return False

    def dequeue_if_waiting(self, waiting: bool) -> QueuedEvent | None:
        if not waiting:
            return None
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def snapshot(self) -> tuple[QueuedEvent, ...]:
        with self._lock:
            return tuple(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
