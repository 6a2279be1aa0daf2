"""Tests for logging helpers."""

import logging
from unittest.mock import patch

from common.logging_utils import Timer, extra_context, is_debug_enabled, redact, safe_url


class TestSafeUrl:
    def test_masks_userinfo(self):
        assert safe_url("https://user:pw@registry.example.com/pkg") == \
            "https://[REDACTED]@registry.example.com/pkg"

    def test_masks_sensitive_query(self):
        url = safe_url("https://api.example.com/x?token=abc&page=2")
        assert "abc" not in url
        assert "token=[REDACTED]" in url
        assert "page=2" in url

    def test_plain_url_unchanged(self):
        url = "https://registry.npmjs.org/@scope%2Fpkg"
        assert safe_url(url) == url

    def test_empty(self):
        assert safe_url("") == ""


class TestRedact:
    def test_bearer_and_assignments(self):
        text = redact("Authorization: Bearer abc.def password=hunter2")
        assert "abc.def" not in text
        assert "hunter2" not in text


class TestExtraContext:
    def test_drops_none(self):
        assert extra_context(event="x", target=None, attempt=1) == {"event": "x", "attempt": 1}


class TestIsDebugEnabled:
    def test_follows_level(self):
        logger = logging.getLogger("deptrace.test.debug")
        logger.setLevel(logging.DEBUG)
        assert is_debug_enabled(logger)
        logger.setLevel(logging.INFO)
        assert not is_debug_enabled(logger)


class TestTimer:
    def test_duration(self):
        with patch("common.logging_utils.time.perf_counter", side_effect=[1.0, 1.25]):
            with Timer() as timer:
                pass
        assert timer.duration_ms() == 250
