"""Tests for analysis memoisation."""

from __future__ import annotations

import threading

import pytest
from finance_assistant import cache, documents


def _document(name: str, data: bytes) -> documents.PreparedDocument:
    return documents.prepare_document(documents.UploadedDocument(name, data, "text/plain"), "Bank Statements")


def test_cache_key_ignores_document_order() -> None:
    first = _document("a.txt", b"alpha")
    second = _document("b.txt", b"beta")
    assert cache.cache_key("March 2025", [first, second]) == cache.cache_key("March 2025", [second, first])


def test_cache_key_changes_with_period_and_content() -> None:
    document = _document("a.txt", b"alpha")
    edited = _document("a.txt", b"alphA")
    key = cache.cache_key("March 2025", [document])
    assert key.startswith("March 2025|a.txt-5-")
    assert key != cache.cache_key("April 2025", [document])
    assert key != cache.cache_key("March 2025", [edited])


def test_analysis_cache_evicts_least_recently_used() -> None:
    store = cache.AnalysisCache(maxsize=2)
    store.put("a", {"actionsToTake": "1"})
    store.put("b", {"actionsToTake": "2"})
    assert store.get("a") == {"actionsToTake": "1"}

    store.put("c", {"actionsToTake": "3"})
    assert "b" not in store
    assert "a" in store and "c" in store
    assert len(store) == 2

    store.clear()
    assert len(store) == 0
    assert store.get("a") is None


def test_analysis_cache_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        cache.AnalysisCache(maxsize=0)


def test_cache_key_scope_separates_models() -> None:
    document = _document("a.txt", b"alpha")
    scoped = cache.cache_key("March 2025", [document], scope="openai:gpt-4o-mini")
    assert scoped.startswith("openai:gpt-4o-mini|March 2025|a.txt-5-")
    assert scoped != cache.cache_key("March 2025", [document], scope="gemini:gemini-2.5-flash")


def test_analysis_cache_is_safe_across_threads() -> None:
    store = cache.AnalysisCache(maxsize=4)
    errors: list[Exception] = []

    def worker(offset: int) -> None:
        try:
            for index in range(500):
                key = f"k{(index + offset) % 8}"
                store.put(key, {"actionsToTake": key})
                store.get(f"k{(index + offset + 1) % 8}")
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(offset,)) for offset in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(store) == 4
