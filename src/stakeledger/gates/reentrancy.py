"""Mutual exclusion around ledger entry points.

Callers on other threads wait for the lock; a nested call on the thread that
already holds it (for example a custody callback re-entering the ledger) is
rejected with ``ReentrantCall``.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from ..errors import ReentrantCall


class ReentrancyGuard:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    @contextmanager
    def enter(self, name: str = "call") -> Iterator[None]:
        with self._lock:
            if self._entered:
                raise ReentrantCall(f"re-entrant {name} rejected")
            self._entered = True
            try:
                yield
            finally:
                self._entered = False

