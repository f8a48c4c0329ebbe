"""In-memory memoisation of analysis results keyed by document identity."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Iterable

from .documents import PreparedDocument


def cache_key(period_label: str, documents: Iterable[PreparedDocument], scope: str = "") -> str:
    """Key a request by its period and the (unordered) set of document identities.

    ``scope`` separates results produced by different providers or models.
    """

    identities = sorted(document.identity for document in documents)
    key = "|".join([period_label, *identities])
    return f"{scope}|{key}" if scope else key


class AnalysisCache:
    """A small least-recently-used store of successful analysis results.

    One instance is shared by every Streamlit session, so access is locked.
    """

    def __init__(self, maxsize: int = 32) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._entries: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def put(self, key: str, result: dict[str, Any]) -> None:
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
