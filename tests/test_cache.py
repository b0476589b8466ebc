"""Tests for installkit.cache."""

import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from installkit.cache import SqliteCounterCache


@pytest.fixture
def cache_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "nested" / "cache.db"


class TestSqliteCounterCache:
    """Tests for the SQLite-backed counter cache."""

    def test_creates_parent_directories(self, cache_path):
        cache = SqliteCounterCache(cache_path)
        try:
            assert cache_path.exists()
        finally:
            cache.close()

    def test_contains_fetch_save(self, cache_path):
        cache = SqliteCounterCache(cache_path)
        try:
            assert cache.contains("login-count") is False
            assert cache.fetch("login-count") is None

            cache.save("login-count", 2)
            assert cache.contains("login-count") is True
            assert cache.fetch("login-count") == 2

            cache.save("login-count", 3)
            assert cache.fetch("login-count") == 3
        finally:
            cache.close()

    def test_zero_is_stored(self, cache_path):
        """A stored zero is present, not absent."""
        cache = SqliteCounterCache(cache_path)
        try:
            cache.save("login-count", 0)
            assert cache.contains("login-count") is True
            assert cache.fetch("login-count") == 0
        finally:
            cache.close()

    def test_survives_reopen(self, cache_path):
        cache = SqliteCounterCache(cache_path)
        cache.save("login-count", 5)
        cache.save("other", {"nested": [1, 2]})
        cache.close()

        reopened = SqliteCounterCache(cache_path)
        try:
            assert reopened.fetch("login-count") == 5
            assert reopened.fetch("other") == {"nested": [1, 2]}
        finally:
            reopened.close()

    def test_in_memory_shared_across_threads(self):
        """Sync endpoints run in a worker thread; they must see the same entries."""
        cache = SqliteCounterCache(":memory:")
        try:
            cache.save("login-count", 2)

            with ThreadPoolExecutor(max_workers=1) as pool:
                fetched = pool.submit(cache.fetch, "login-count").result()
                pool.submit(cache.save, "login-count", 3).result()

            assert fetched == 2
            assert cache.fetch("login-count") == 3
        finally:
            cache.close()
