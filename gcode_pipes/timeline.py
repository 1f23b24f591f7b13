# gcode_pipes/timeline.py
from __future__ import annotations
import math
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")

ExpiryCallback = Callable[[float, T], None]


class Timeline(Generic[T]):
    """
    Stores items in chronological order within a sliding time window.

    An item is kept unless the difference between it and the newest item is
    greater than ``window_size``. Evicted items are handed to the expiry
    callbacks in the order they leave the timeline. ``math.inf`` disables
    window eviction; such timelines are drained with ``evict_*`` or ``reset``.
    """

    def __init__(self, window_size: float = math.inf):
        self._window_size: float = 0.0
        self._items: List[Tuple[float, T]] = []
        self._callbacks: List[ExpiryCallback] = []
        self.set_window_size(window_size)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def window_size(self) -> float:
        return self._window_size

    def set_window_size(self, window_size: float) -> None:
        if window_size < 0:
            return
        self._window_size = window_size
        self._trim_window()

    def items(self) -> List[Tuple[float, T]]:
        return list(self._items)

    def values(self) -> List[T]:
        return [data for _, data in self._items]

    def oldest(self) -> Optional[Tuple[float, T]]:
        return self._items[0] if self._items else None

    def newest(self) -> Optional[Tuple[float, T]]:
        return self._items[-1] if self._items else None

    def insert(self, timestamp: float, data: T, before_equal: bool = False) -> None:
        """
        Insert after every item with the same timestamp, or before them when
        ``before_equal`` is set.
        """
        # streams are nearly monotonic, so the insertion point is almost always the end
        index = len(self._items)
        while index > 0 and (
            self._items[index - 1][0] > timestamp
            or (before_equal and self._items[index - 1][0] == timestamp)
        ):
            index -= 1
        self._items.insert(index, (timestamp, data))
        self._trim_window()

    def on_expiry(self, callback: ExpiryCallback, once: bool = False) -> Callable[[], None]:
        """Register a callback for evicted items. Returns an unsubscribe function."""

        def unsubscribe() -> None:
            if wrapper in self._callbacks:
                self._callbacks.remove(wrapper)

        def wrapper(timestamp: float, data: T) -> None:
            if once:
                unsubscribe()
            callback(timestamp, data)

        self._callbacks.append(wrapper)
        return unsubscribe

    def reset(self) -> None:
        """Evict everything, oldest first."""
        while self._items:
            self._expire(0)

    def evict_older_than(self, timestamp: float) -> None:
        while self._items and self._items[0][0] < timestamp:
            self._expire(0)

    def evict_newer_than(self, timestamp: float) -> None:
        while self._items and self._items[-1][0] > timestamp:
            self._expire(len(self._items) - 1)

    def span(self) -> float:
        if not self._items:
            return 0.0
        return self._items[-1][0] - self._items[0][0]

    def _trim_window(self) -> None:
        while self._items and self.span() > self._window_size:
            self._expire(0)

    def _expire(self, index: int) -> None:
        timestamp, data = self._items.pop(index)
        for cb in list(self._callbacks):
            cb(timestamp, data)
