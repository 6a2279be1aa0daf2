"""Tests for the persisted response cache."""

import json
import os
import time
from unittest.mock import patch

from common.cache import CacheEntry, PersistentCache


class TestPersistentCache:
    """Tests for get/set semantics."""

    def test_set_and_get(self, tmp_path):
        cache = PersistentCache(str(tmp_path / "c"), default_ttl=60)
        cache.set("https://example.com/a", [{"name": "x"}])
        assert cache.get("https://example.com/a") == [{"name": "x"}]
        assert cache.get("https://example.com/b") is None

    def test_survives_new_instance(self, tmp_path):
        PersistentCache(str(tmp_path)).set("k", {"v": 1})
        assert PersistentCache(str(tmp_path)).get("k") == {"v": 1}

    def test_expired_entry_is_removed(self, tmp_path):
        cache = PersistentCache(str(tmp_path), default_ttl=10)
        cache.set("k", 1)
        with patch("common.cache.time.time", return_value=time.time() + 60):
            assert cache.get("k") is None
        assert os.listdir(tmp_path) == []

    def test_ttl_override(self, tmp_path):
        cache = PersistentCache(str(tmp_path), default_ttl=10)
        cache.set("k", 1, ttl=1000)
        with patch("common.cache.time.time", return_value=time.time() + 60):
            assert cache.get("k") == 1

    def test_corrupt_entry_is_a_miss(self, tmp_path):
        cache = PersistentCache(str(tmp_path))
        cache.set("k", 1)
        (path,) = tmp_path.iterdir()
        path.write_text("{not json", encoding="utf-8")
        assert cache.get("k") is None
        assert not path.exists()

    def test_key_mismatch_is_a_miss(self, tmp_path):
        cache = PersistentCache(str(tmp_path))
        cache.set("k", 1)
        (path,) = tmp_path.iterdir()
        data = json.loads(path.read_text(encoding="utf-8"))
        data["key"] = "other"
        path.write_text(json.dumps(data), encoding="utf-8")
        assert cache.get("k") is None

    def test_overwrite_replaces_value(self, tmp_path):
        cache = PersistentCache(str(tmp_path))
        cache.set("k", 1)
        cache.set("k", 2)
        assert cache.get("k") == 2
        assert len(list(tmp_path.iterdir())) == 1


class TestCacheEntry:
    def test_is_expired(self):
        assert CacheEntry(key="k", value=1, expires_at=time.time() - 1).is_expired()
        assert not CacheEntry(key="k", value=1, expires_at=time.time() + 60).is_expired()
