"""npm registry resolver: turns (name, version spec) into a concrete manifest."""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.parse
from typing import Any, Dict, Optional

import aiohttp

from common.cache import PersistentCache
from common.config import cache_dir_for
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants
from depgraph.models import Manifest, ResolveResult

from .errors import PackageNotFoundError, RegistryError
from .versions import SpecKind, classify_spec, pick_version, split_alias

logger = logging.getLogger(__name__)

# Version document fields read by Manifest.from_dict
_VERSION_FIELDS = ("name", "version", "dependencies", "author", "maintainers")


def node_id(name: str, version: str) -> str:
    """Identifier of one resolved package instance."""
    return f"{name}@{version}"


def slim_packument(packument: Dict[str, Any]) -> Dict[str, Any]:
    """Drop everything resolution never reads (readmes, dist, scripts, ...).

    Keeps dist-tags, package-level maintainers and, per version, the fields
    a Manifest is built from.
    """
    versions = packument.get("versions")
    slim_versions = {}
    if isinstance(versions, dict):
        for version, doc in versions.items():
            if isinstance(doc, dict):
                slim_versions[version] = {k: doc[k] for k in _VERSION_FIELDS if k in doc}
    slim: Dict[str, Any] = {"versions": slim_versions}
    for key in ("name", "dist-tags", "maintainers"):
        if key in packument:
            slim[key] = packument[key]
    return slim


class NpmRegistryResolver:
    """Resolver backed by the npm registry's full packument documents.

    One packument request is issued per package name for the lifetime of the
    resolver; concurrent callers share it. A failed request is forgotten so a
    later caller tries again. Successful packuments are slimmed and persisted
    in an on-disk cache keyed by packument URL.
    """

    def __init__(
        self,
        registry_url: str = Constants.REGISTRY_URL_NPM,
        timeout: int = Constants.REQUEST_TIMEOUT,
        max_concurrency: Optional[int] = None,
        cache: Optional[PersistentCache] = None,
    ):
        """Initialize the resolver.

        Args:
            registry_url: Registry base URL.
            timeout: Per-request timeout in seconds.
            max_concurrency: Upper bound on in-flight registry requests;
                None leaves requests unbounded.
            cache: Packument cache; defaults to the "registry" directory
                under the configured cache root.
        """
        self._registry_url = registry_url.rstrip("/") + "/"
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        self._packuments: Dict[str, asyncio.Future] = {}
        self._cache = cache if cache is not None else PersistentCache(
            cache_dir_for("registry"), default_ttl=Constants.REGISTRY_CACHE_TTL_SEC
        )

    async def start(self) -> aiohttp.ClientSession:
        """Start the HTTP session if needed and return it."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=100)
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector,
                headers={
                    "Accept": "application/json",
                    "User-Agent": Constants.USER_AGENT,
                },
            )
        return self._session

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "NpmRegistryResolver":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def packument_url(self, name: str) -> str:
        """Registry URL for a package; scoped names keep '@' and encode '/'."""
        return self._registry_url + urllib.parse.quote(name, safe="@")

    async def resolve(self, name: str, version_spec: str) -> ResolveResult:
        """Resolve one dependency request.

        Args:
            name: Dependency name as declared by the parent.
            version_spec: Declared spec (range, tag, exact, alias or URL).

        Returns:
            ResolveResult whose manifest is None for specs that do not point
            at the registry (git, tarball, file, ...).

        Raises:
            RegistryError: On lookup failure or unsatisfiable spec.
        """
        real_name, spec = split_alias(name, version_spec)
        if classify_spec(spec) == SpecKind.EXTERNAL:
            return ResolveResult(id=node_id(name, spec), manifest=None)

        # Shielded: the packument is shared with other callers that may outlive this one
        packument = await asyncio.shield(self.fetch_packument(real_name))
        version = pick_version(packument, spec)
        version_doc = (packument.get("versions") or {}).get(version)
        if not isinstance(version_doc, dict):
            return ResolveResult(id=node_id(real_name, version), manifest=None)

        doc = dict(version_doc)
        doc.setdefault("name", real_name)
        doc.setdefault("version", version)
        # Older version documents omit maintainers; fall back to the package level list
        if not doc.get("maintainers") and packument.get("maintainers"):
            doc["maintainers"] = packument["maintainers"]
        manifest = Manifest.from_dict(doc)
        return ResolveResult(id=node_id(manifest.name, manifest.version), manifest=manifest)

    def fetch_packument(self, name: str) -> "asyncio.Future[Dict[str, Any]]":
        """Shared future for the slimmed registry document of ``name``."""
        task = self._packuments.get(name)
        if task is None:
            task = asyncio.ensure_future(self._fetch_packument(name))
            task.add_done_callback(lambda done, key=name: self._forget_failed(key, done))
            self._packuments[name] = task
        return task

    def _forget_failed(self, name: str, task: asyncio.Future) -> None:
        # Reading exception() also marks it retrieved for tasks nobody awaited
        if task.cancelled() or task.exception() is not None:
            if self._packuments.get(name) is task:
                del self._packuments[name]

    async def _fetch_packument(self, name: str) -> Dict[str, Any]:
        url = self.packument_url(name)
        cached = self._cache.get(url)
        if isinstance(cached, dict):
            if is_debug_enabled(logger):
                logger.debug(
                    "Packument cache hit",
                    extra=extra_context(event="cache_hit", component="npm_resolver", target=safe_url(url)),
                )
            return cached

        if self._semaphore is None:
            packument = await self._get_json(url, name)
        else:
            async with self._semaphore:
                packument = await self._get_json(url, name)
        packument = slim_packument(packument)
        self._cache.set(url, packument)
        return packument

    async def _get_json(self, url: str, package: str) -> Dict[str, Any]:
        """GET a JSON document with retries on network errors and 5xx."""
        session = await self.start()
        safe_target = safe_url(url)
        last_error = ""

        for attempt in range(Constants.HTTP_RETRY_MAX):
            if attempt:
                await asyncio.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="npm_resolver",
                        action="GET",
                        target=safe_target,
                        attempt=attempt + 1,
                    ),
                )
            with Timer() as timer:
                try:
                    async with session.get(url) as response:
                        status = response.status
                        body = await response.text()
                except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    last_error = str(exc) or type(exc).__name__
                    logger.debug("Registry request for %s failed: %s", package, last_error)
                    continue

            if status == 404:
                raise PackageNotFoundError(f"Package {package} not found in registry", package)
            if status >= 500:
                last_error = f"HTTP {status}"
                continue
            if status != 200:
                raise RegistryError(f"Unexpected status {status} fetching {package}", package)

            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response ok",
                    extra=extra_context(
                        event="http_response",
                        component="npm_resolver",
                        action="GET",
                        outcome="success",
                        status_code=status,
                        duration_ms=timer.duration_ms(),
                        target=safe_target,
                    ),
                )
            try:
                data = json.loads(body)
            except json.JSONDecodeError as exc:
                raise RegistryError(f"Couldn't decode registry JSON for {package}", package) from exc
            if not isinstance(data, dict):
                raise RegistryError(f"Unexpected registry document for {package}", package)
            return data

        raise RegistryError(
            f"Request for {package} failed after {Constants.HTTP_RETRY_MAX} attempts: {last_error}",
            package,
        )
