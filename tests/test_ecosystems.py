"""Tests for the ecosyste.ms popularity client."""

from unittest.mock import patch

import pytest

from common.cache import PersistentCache
from popularity import EcosystemsClient, PopularityApiError, PopularPackage


RECORDS = [
    {"name": "react", "downloads": 1000, "latest_release_published_at": "2024-05-01T00:00:00Z"},
    {"name": "lodash", "downloads": 900},
    {"downloads": 5},
    "garbage",
]


def _client(tmp_path):
    return EcosystemsClient(
        base_url="https://eco.example.com/api/v1/",
        cache=PersistentCache(str(tmp_path), default_ttl=60),
    )


class TestPopularPackage:
    def test_from_dict_validates(self):
        assert PopularPackage.from_dict({"downloads": 3}) is None
        assert PopularPackage.from_dict(["react"]) is None
        pkg = PopularPackage.from_dict({"name": "x", "downloads": True})
        assert pkg.downloads is None

    def test_published_at_is_aware(self):
        pkg = PopularPackage(name="x", latest_release_published_at="2024-05-01T12:00:00Z")
        published = pkg.published_at()
        assert published.tzinfo is not None
        assert published.hour == 12
        assert PopularPackage(name="x", latest_release_published_at="nope").published_at() is None


class TestEcosystemsClient:
    """Tests for list fetching and caching."""

    def test_popular_packages_url_and_parsing(self, tmp_path):
        client = _client(tmp_path)
        with patch("popularity.ecosystems.get_json", return_value=(200, {}, RECORDS)) as mock_get:
            packages = client.fetch_popular_packages(max_results=50)
        url = mock_get.call_args[0][0]
        assert url.startswith("https://eco.example.com/api/v1/registries/npmjs.org/packages?")
        assert "per_page=50" in url
        assert "sort=downloads" in url
        assert "order=desc" in url
        assert [p.name for p in packages] == ["react", "lodash"]

    def test_dependent_packages_url(self, tmp_path):
        client = _client(tmp_path)
        with patch("popularity.ecosystems.get_json", return_value=(200, {}, [])) as mock_get:
            client.fetch_dependent_packages("@scope/pkg", max_results=10)
        url = mock_get.call_args[0][0]
        assert "/registries/npmjs.org/packages/@scope%2Fpkg/dependent_packages?" in url
        assert "latest=true" in url

    def test_responses_are_cached(self, tmp_path):
        client = _client(tmp_path)
        with patch("popularity.ecosystems.get_json", return_value=(200, {}, RECORDS)) as mock_get:
            first = client.fetch_popular_packages()
            second = _client(tmp_path).fetch_popular_packages()
        assert mock_get.call_count == 1
        assert first == second

    def test_unreachable(self, tmp_path):
        with patch("popularity.ecosystems.get_json", return_value=(0, {}, None)):
            with pytest.raises(PopularityApiError, match="unreachable"):
                _client(tmp_path).fetch_popular_packages()

    def test_bad_status_not_cached(self, tmp_path):
        client = _client(tmp_path)
        with patch("popularity.ecosystems.get_json", return_value=(500, {}, None)):
            with pytest.raises(PopularityApiError) as excinfo:
                client.fetch_popular_packages()
        assert excinfo.value.status_code == 500
        with patch("popularity.ecosystems.get_json", return_value=(200, {}, [])) as mock_get:
            assert client.fetch_popular_packages() == []
        assert mock_get.call_count == 1

    def test_non_list_payload(self, tmp_path):
        with patch("popularity.ecosystems.get_json", return_value=(200, {}, {"error": "x"})):
            with pytest.raises(PopularityApiError, match="Unexpected"):
                _client(tmp_path).fetch_popular_packages()
