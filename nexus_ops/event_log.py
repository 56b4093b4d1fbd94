"""Bounded in-memory history used by the console log and activity feeds."""
from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class BoundedEventLog(Generic[T]):
    """Ordered history that evicts its oldest entries past ``capacity``.

    With ``newest_first`` (the default) iteration yields the most recent entry
    first, matching how the dashboard feeds render. A ``capacity`` of ``None``
    keeps every entry until :meth:`clear` is called.
    """

    def __init__(self, capacity: Optional[int], *, newest_first: bool = True) -> None:
        if capacity is not None and capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._newest_first = newest_first
        self._items: Deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> Optional[int]:
        return self._capacity

    def add(self, item: T) -> T:
        # deque(maxlen) drops from the opposite end of the insertion
        if self._newest_first:
            self._items.appendleft(item)
        else:
            self._items.append(item)
        return item

    def clear(self) -> None:
        self._items.clear()

    def latest(self) -> Optional[T]:
        if not self._items:
            return None
        return self._items[0] if self._newest_first else self._items[-1]

    def snapshot(self) -> List[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> T:
        return self._items[index]


__all__ = ["BoundedEventLog"]
