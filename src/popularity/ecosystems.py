"""ecosyste.ms package popularity API client."""

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from common.cache import PersistentCache
from common.config import cache_dir_for
from common.http_client import get_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from constants import Constants

logger = logging.getLogger(__name__)


class PopularityApiError(Exception):
    """Raised when the popularity API returns an unusable response."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class PopularPackage:
    """One package record from the popularity API."""
    name: str
    downloads: Optional[int] = None
    latest_release_published_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PopularPackage"]:
        """Validate a raw record; returns None when it has no usable name."""
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            return None
        downloads = data.get("downloads")
        if isinstance(downloads, bool) or not isinstance(downloads, (int, float)):
            downloads = None
        published = data.get("latest_release_published_at")
        return cls(
            name=data["name"],
            downloads=int(downloads) if downloads is not None else None,
            latest_release_published_at=published if isinstance(published, str) else None,
        )

    def published_at(self) -> Optional[datetime]:
        """Timezone-aware latest release time, or None when absent/unparsable."""
        if not self.latest_release_published_at:
            return None
        try:
            parsed = datetime.fromisoformat(self.latest_release_published_at.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "downloads": self.downloads,
            "latest_release_published_at": self.latest_release_published_at,
        }


class EcosystemsClient:
    """Fetches popularity-ranked package lists, caching responses on disk."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        registry: str = Constants.ECOSYSTEMS_REGISTRY,
        cache: Optional[PersistentCache] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API base URL; defaults to Constants.ECOSYSTEMS_API_BASE.
            registry: Registry name as known to ecosyste.ms.
            cache: Response cache; defaults to one under the "ecosyste-ms" cache dir.
        """
        self._base_url = (base_url or Constants.ECOSYSTEMS_API_BASE).rstrip("/")
        self._registry = registry
        self._cache = cache if cache is not None else PersistentCache(
            cache_dir_for("ecosyste-ms"), default_ttl=Constants.POPULARITY_CACHE_TTL_SEC
        )

    def _registry_url(self, *parts: str) -> str:
        path = "/".join(urllib.parse.quote(p, safe="@") for p in ("registries", self._registry, *parts))
        return f"{self._base_url}/{path}"

    def fetch_popular_packages(self, max_results: int = Constants.POPULARITY_MAX_RESULTS) -> List[PopularPackage]:
        """Most downloaded packages of the registry, descending."""
        query = urllib.parse.urlencode({
            "page": 0,
            "per_page": max_results,
            "sort": "downloads",
            "order": "desc",
        })
        return self._fetch_list(f"{self._registry_url('packages')}?{query}")

    def fetch_dependent_packages(
        self, package_name: str, max_results: int = Constants.POPULARITY_MAX_RESULTS
    ) -> List[PopularPackage]:
        """Most downloaded packages whose latest release depends on ``package_name``."""
        query = urllib.parse.urlencode({
            "page": 0,
            "per_page": max_results,
            "sort": "downloads",
            "order": "desc",
            "latest": "true",
        })
        url = f"{self._registry_url('packages', package_name, 'dependent_packages')}?{query}"
        return self._fetch_list(url)

    def _fetch_list(self, url: str) -> List[PopularPackage]:
        response = self._cache.get(url)
        if response is None:
            status_code, _, response = get_json(url)
            if status_code == 0:
                raise PopularityApiError(f"Popularity API unreachable: {safe_url(url)}")
            if status_code != 200 or response is None:
                raise PopularityApiError(
                    f"Popularity API returned status {status_code} for {safe_url(url)}",
                    status_code,
                )
            if not isinstance(response, list):
                raise PopularityApiError(f"Unexpected popularity API payload for {safe_url(url)}", status_code)
            self._cache.set(url, response)
        elif is_debug_enabled(logger):
            logger.debug(
                "Popularity cache hit",
                extra=extra_context(event="cache_hit", component="ecosystems", target=safe_url(url)),
            )

        packages = []
        for raw in response:
            pkg = PopularPackage.from_dict(raw)
            if pkg is None:
                logger.debug("Skipping malformed popularity record: %r", raw)
                continue
            packages.append(pkg)
        return packages
