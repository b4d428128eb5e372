"""Thread-shared slots and counters used to coordinate protocol threads."""

from __future__ import annotations

import copy
import threading
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")

_U64 = 1 << 64


class GlobalData(Generic[T]):
    """A lock-protected list of slots, one per protocol thread."""

    def __init__(self, size: int = 20, factory: Callable[[], T] = list) -> None:
        self._factory = factory
        self._items: list[T] = [factory() for _ in range(size)]
        self._lock = threading.Lock()

    def add(self, data: T, pos: int) -> None:
        """Store data at pos, growing the list when needed."""
        with self._lock:
            if pos >= len(self._items):
                self._items.extend(self._factory() for _ in range(pos + 1 - len(self._items)))
            self._items[pos] = data

    def get_by_pos(self, pos: int) -> T:
        """Return a copy of the slot at pos."""
        with self._lock:
            if pos >= len(self._items) or pos < 0:
                raise IndexError("GlobalData out of range.")
            return copy.deepcopy(self._items[pos])

    def show(self, title: str) -> None:
        """Print title and then every element of every slot on one line."""
        with self._lock:
            print(title)
            print("".join(f"{item} " for row in self._items for item in row))

    def data(self) -> list[T]:
        """Return a copy of all slots."""
        with self._lock:
            return copy.deepcopy(self._items)

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def set(self, values: Iterable[T]) -> None:
        """Replace every slot."""
        with self._lock:
            self._items = list(values)


class GlobalFlag:
    """A shared unsigned 64-bit counter that threads can wait on."""

    def __init__(self, value: int = 0) -> None:
        self._value = value % _U64
        self._cond = threading.Condition()

    def get(self) -> int:
        with self._cond:
            return self._value

    def reset(self, value: int = 0) -> None:
        with self._cond:
            self._value = value % _U64
            self._cond.notify_all()

    def increment(self) -> int:
        """Add one and return the value before the change."""
        with self._cond:
            previous = self._value
            self._value = (previous + 1) % _U64
            self._cond.notify_all()
            return previous

    def decrement(self) -> int:
        """Subtract one and return the value before the change."""
        with self._cond:
            previous = self._value
            self._value = (previous - 1) % _U64
            self._cond.notify_all()
            return previous

    def _wait_until(self, predicate: Callable[[int], bool]) -> None:
        with self._cond:
            self._cond.wait_for(lambda: predicate(self._value))


def wait_for(listen_flag: GlobalFlag, on_special: Callable[[], None], condition: bool, n: int) -> None:
    """Barrier: the special thread waits for n arrivals, runs on_special and
    resets the flag; every other thread waits for the reset."""
    if condition:
        listen_flag._wait_until(lambda value: value == n)
        on_special()
        listen_flag.reset(0)
    else:
        listen_flag._wait_until(lambda value: value == 0)


_PAIR_FLAG = GlobalFlag()


def wait_for_pair(
    listen_flag: GlobalFlag,
    func_of_first: Callable[[], None],
    func_of_second: Callable[[], None],
    who_is_end: int,
    func_of_begin: Callable[[], None],
    func_of_end: Callable[[], None],
) -> None:
    """Let two threads at a time pass; the first runs func_of_first, the second
    func_of_second. The one numbered who_is_end runs func_of_end after the other
    has run func_of_begin, then both counters are cleared."""
    slot = listen_flag.increment()
    while slot >= 2:
        listen_flag._wait_until(lambda value: value < 2)
        slot = listen_flag.increment()

    if slot == 0:
        func_of_first()
    elif slot == 1:
        func_of_second()

    _PAIR_FLAG.increment()
    is_end = slot == who_is_end
    wait_for(_PAIR_FLAG, lambda: None, is_end, 2)

    if is_end:
        _PAIR_FLAG._wait_until(lambda value: value == 1)
        func_of_end()
        listen_flag.reset(0)
        _PAIR_FLAG.reset(0)
    else:
        func_of_begin()
        _PAIR_FLAG.increment()