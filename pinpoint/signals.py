"""A small synchronous signal/slot mechanism."""

from __future__ import annotations

import threading
from typing import Any, Callable

Slot = Callable[..., Any]


class Signal:
    """A list of callables invoked, in connection order, on every emit."""

    def __init__(self) -> None:
        self._slots: list[Slot] = []
        self._lock = threading.Lock()

    def connect(self, slot: Slot) -> None:
        """Register *slot*; a slot connected twice is called twice."""
        if not callable(slot):
            raise TypeError(f"slot must be callable, got {type(slot).__name__}")
        with self._lock:
            self._slots.append(slot)

    def disconnect(self, slot: Slot) -> None:
        """Remove one connection of *slot*; raise ValueError if it is not connected."""
        with self._lock:
            try:
                self._slots.remove(slot)
            except ValueError:
                raise ValueError("slot is not connected to this signal") from None

    def emit(self, *args: Any) -> None:
        """Call every connected slot with *args*."""
        with self._lock:
            slots = list(self._slots)
        for slot in slots:
            slot(*args)

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)