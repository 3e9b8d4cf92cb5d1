"""In-memory storage with the same load/save contract as the JSON file."""
from __future__ import annotations

import copy
import threading
from typing import Iterable


class MemoryStorage:
    """Keeps a private copy of the collection; callers never share references."""

    def __init__(self, initial: Iterable[dict] | None = None) -> None:
        self._records: list[dict] = copy.deepcopy(list(initial or []))
        self._lock = threading.Lock()
        self.saves = 0

    def load(self) -> list[dict]:
        with self._lock:
            return copy.deepcopy(self._records)

    def save(self, records: list[dict]) -> None:
        with self._lock:
            self._records = copy.deepcopy(list(records))
            self.saves += 1
