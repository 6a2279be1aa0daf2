"""Tests for the shared synchronous HTTP helpers."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import get_json, robust_get
from constants import Constants


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch):
    monkeypatch.setattr(Constants, "HTTP_RETRY_BASE_DELAY_SEC", 0)


def _response(status, text="", headers=None):
    response = MagicMock()
    response.status_code = status
    response.text = text
    response.headers = headers or {}
    return response


class TestRobustGet:
    """Tests for retries and status handling."""

    def test_success_sends_defaults(self):
        with patch("common.http_client.requests.get", return_value=_response(200, "ok")) as mock_get:
            assert robust_get("https://api.example.com/x", headers={"X-Test": "1"}) == (200, {}, "ok")
        kwargs = mock_get.call_args.kwargs
        assert kwargs["timeout"] == Constants.REQUEST_TIMEOUT
        assert kwargs["headers"]["X-Test"] == "1"
        assert kwargs["headers"]["User-Agent"] == Constants.USER_AGENT

    def test_retries_5xx_then_succeeds(self):
        responses = [_response(502), _response(200, "ok")]
        with patch("common.http_client.requests.get", side_effect=responses) as mock_get:
            status, _, text = robust_get("https://api.example.com/x")
        assert (status, text) == (200, "ok")
        assert mock_get.call_count == 2

    def test_persistent_5xx_returns_last_response(self):
        with patch("common.http_client.requests.get", return_value=_response(503, "busy")) as mock_get:
            status, _, text = robust_get("https://api.example.com/x")
        assert (status, text) == (503, "busy")
        assert mock_get.call_count == Constants.HTTP_RETRY_MAX

    def test_transport_failure_returns_zero(self):
        with patch("common.http_client.requests.get", side_effect=requests.ConnectionError("refused")):
            status, headers, text = robust_get("https://api.example.com/x")
        assert status == 0
        assert headers == {}
        assert "refused" in text

    def test_4xx_not_retried(self):
        with patch("common.http_client.requests.get", return_value=_response(404)) as mock_get:
            assert robust_get("https://api.example.com/x")[0] == 404
        assert mock_get.call_count == 1


class TestGetJson:
    def test_parses_body(self):
        with patch("common.http_client.requests.get", return_value=_response(200, '[{"name": "x"}]')):
            assert get_json("https://api.example.com/x")[2] == [{"name": "x"}]

    def test_invalid_json_is_none(self):
        with patch("common.http_client.requests.get", return_value=_response(200, "<html>")):
            assert get_json("https://api.example.com/x") == (200, {}, None)

    def test_non_200_is_none(self):
        with patch("common.http_client.requests.get", return_value=_response(404, '{"error": 1}')):
            assert get_json("https://api.example.com/x")[2] is None
