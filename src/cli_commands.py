"""Sub-command implementations for the deptrace CLI.

Each ``run_*`` function takes the parsed argument namespace, prints its
human-readable result (unless ``--quiet``) and returns a JSON-serializable
result for ``--output``.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

from common.progress import LogUpdate, text_progress_bar
from constants import Constants
from depgraph import DepGraph, resolve_tree
from popularity import EcosystemsClient, PopularPackage, filter_packages
from registry import NpmRegistryResolver

logger = logging.getLogger(__name__)

_PROGRESS_WIDTH = 30


class InvalidPackageRefError(ValueError):
    """Raised for a malformed ``name[@version]`` argument."""


def parse_package_ref(ref: str) -> Tuple[str, str]:
    """Split ``name[@version]`` into (name, version); scoped names are supported.

    Raises:
        InvalidPackageRefError: If no package name is present.
    """
    ref = ref.strip()
    sep = ref.find("@", 1)
    if sep == -1:
        name, version = ref, ""
    else:
        name, version = ref[:sep], ref[sep + 1:]
    if not name or name == "@":
        raise InvalidPackageRefError(f"Invalid package/version identifier: {ref}")
    return name, version or Constants.DEFAULT_VERSION


def make_resolver() -> NpmRegistryResolver:
    return NpmRegistryResolver(
        registry_url=Constants.REGISTRY_URL_NPM,
        timeout=Constants.REQUEST_TIMEOUT,
        max_concurrency=Constants.NPM_MAX_CONCURRENCY,
    )


def _out(args, text: str = "") -> None:
    if not getattr(args, "QUIET", False):
        print(text)


class _Progress:
    """Counts finished roots and redraws a bar on stderr when interactive."""

    def __init__(self, total: int, enabled: bool):
        self._total = total
        self._done = 0
        self._writer = LogUpdate(sys.stderr) if enabled and total else None

    def advance(self) -> None:
        self._done += 1
        if self._writer is not None:
            bar = text_progress_bar(self._done / self._total, _PROGRESS_WIDTH)
            self._writer.print(f"{bar} {self._done}/{self._total}")

    def stop(self) -> None:
        if self._writer is not None:
            self._writer.stop()


def _progress_enabled(args) -> bool:
    return not getattr(args, "QUIET", False) and sys.stderr.isatty()


async def resolve_many(
    packages: Sequence[PopularPackage],
    resolver,
    progress: Optional[_Progress] = None,
) -> List[Tuple[PopularPackage, DepGraph]]:
    """Resolve every package's latest tree concurrently.

    A failing root is logged and skipped; it never aborts the batch.
    """

    async def _one(pkg: PopularPackage) -> Optional[Tuple[PopularPackage, DepGraph]]:
        try:
            return pkg, await resolve_tree(pkg.name, Constants.DEFAULT_VERSION, resolver)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Error fetching metadata for %s", pkg.name)
            logger.debug("Resolution of %s failed: %s", pkg.name, exc)
            return None
        finally:
            if progress is not None:
                progress.advance()

    results = await asyncio.gather(*(_one(pkg) for pkg in packages))
    return [result for result in results if result is not None]


def _filtered(args, packages: List[PopularPackage]) -> List[PopularPackage]:
    return filter_packages(
        packages,
        min_downloads=getattr(args, "DOWNLOADS", None),
        updated_since=getattr(args, "RECENT_UPDATE", None),
    )


def run_depsearch(args) -> Dict[str, Any]:
    """Paths from a package to every version of a nested dependency."""
    name, version = parse_package_ref(args.HAYSTACK)

    async def _run() -> DepGraph:
        async with make_resolver() as resolver:
            return await resolve_tree(name, version, resolver)

    logger.info("Resolving %s@%s...", name, version)
    tree = asyncio.run(_run())
    logger.info("Finding paths...")
    paths = tree.find_paths_to(args.NEEDLE)
    if not paths:
        _out(args, f'"{args.NEEDLE}" is not a dependency of {tree.root}.')
    for path in paths:
        _out(args, " -> ".join(path))
    return {
        "root": tree.root,
        "needle": args.NEEDLE,
        "versions": sorted(tree.deps_by_version.get(args.NEEDLE, ())),
        "paths": paths,
    }


def run_tree(args) -> Dict[str, Any]:
    """Bounded rendering of a package's resolved tree."""
    name, version = parse_package_ref(args.PACKAGE)

    async def _run() -> DepGraph:
        async with make_resolver() as resolver:
            return await resolve_tree(name, version, resolver)

    logger.info("Resolving %s@%s...", name, version)
    tree = asyncio.run(_run())
    _out(args, tree.render(max_visits=getattr(args, "MAX_VISITS", Constants.RENDER_MAX_VISITS)))
    return tree.to_dict()


def run_popular_reverse_deps(args, client: Optional[EcosystemsClient] = None) -> Dict[str, Any]:
    """Popular packages whose latest release directly depends on the package."""
    client = client or EcosystemsClient()
    pkg_name = args.PACKAGE
    dependents = _filtered(args, client.fetch_dependent_packages(pkg_name, args.MAX_RESULTS))

    if not dependents:
        _out(args, f'"{pkg_name}" doesn\'t appear to have any popular reverse dependencies.')
        _out(args, "Note that the ecosyste.ms API doesn't seem to return accurate results,")
        _out(args, "so this may omit many packages.")
        return {"package": pkg_name, "dependents": []}

    logger.info("Fetched %d packages. Resolving dependencies...", len(dependents))

    async def _check(resolver, pkg: PopularPackage) -> Optional[PopularPackage]:
        try:
            resolved = await resolver.resolve(pkg.name, Constants.DEFAULT_VERSION)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Error fetching metadata for %s", pkg.name)
            logger.debug("Resolution of %s failed: %s", pkg.name, exc)
            return None
        if resolved.manifest is not None and pkg_name in resolved.manifest.dependencies:
            return pkg
        return None

    async def _run() -> List[PopularPackage]:
        async with make_resolver() as resolver:
            found = await asyncio.gather(*(_check(resolver, pkg) for pkg in dependents))
        return [pkg for pkg in found if pkg is not None]

    real_dependents = asyncio.run(_run())
    for pkg in real_dependents:
        _out(args, f"{pkg.name} (downloads: {pkg.downloads if pkg.downloads is not None else 'unknown'})")
    return {"package": pkg_name, "dependents": [pkg.to_dict() for pkg in real_dependents]}


def _resolve_popular(args, client: Optional[EcosystemsClient]) -> List[Tuple[PopularPackage, DepGraph]]:
    client = client or EcosystemsClient()
    packages = _filtered(args, client.fetch_popular_packages(args.MAX_RESULTS))
    logger.info("Fetched %d packages. Resolving dependency trees...", len(packages))

    async def _run() -> List[Tuple[PopularPackage, DepGraph]]:
        progress = _Progress(len(packages), _progress_enabled(args))
        try:
            async with make_resolver() as resolver:
                return await resolve_many(packages, resolver, progress)
        finally:
            progress.stop()

    return asyncio.run(_run())


def run_popular_packages_containing(args, client: Optional[EcosystemsClient] = None) -> Dict[str, Any]:
    """Popular packages whose full tree contains the package, with paths."""
    pkg_name = args.PACKAGE
    afflicted = [
        (pkg, tree) for pkg, tree in _resolve_popular(args, client) if tree.contains(pkg_name)
    ]

    if not afflicted:
        _out(args, f'"{pkg_name}" doesn\'t appear to be contained in any popular packages.')
        return {"package": pkg_name, "packages": []}

    results = []
    for pkg, tree in afflicted:
        paths = tree.find_paths_to(pkg_name)
        _out(args, f"{tree.root_manifest.name}:")
        for path in paths:
            _out(args, f"    {' -> '.join(path)}")
        results.append({
            "name": pkg.name,
            "root": tree.root,
            "versions": sorted(tree.deps_by_version[pkg_name]),
            "paths": paths,
        })
    return {"package": pkg_name, "packages": results}


def run_popular_packages_maintained_by(args, client: Optional[EcosystemsClient] = None) -> Dict[str, Any]:
    """Popular packages containing any package authored or maintained by someone."""
    maintainer = args.MAINTAINER
    results = []
    for pkg, tree in _resolve_popular(args, client):
        matches = tree.packages_maintained_by(maintainer)
        if not matches:
            continue
        _out(args, f"{tree.root_manifest.name}:")
        entries = []
        for manifest in matches:
            paths = [path for path in tree.find_paths_to(manifest.name) if path[-1] == manifest.id]
            for path in paths:
                _out(args, f"    {' -> '.join(path)}")
            entries.append({"id": manifest.id, "paths": paths})
        results.append({"name": pkg.name, "root": tree.root, "matches": entries})

    if not results:
        _out(args, f'No popular packages appear to contain packages maintained by "{maintainer}".')
    return {"maintainer": maintainer, "packages": results}


COMMAND_HANDLERS = {
    "depsearch": run_depsearch,
    "tree": run_tree,
    "popular-reverse-deps": run_popular_reverse_deps,
    "popular-packages-containing": run_popular_packages_containing,
    "popular-packages-maintained-by": run_popular_packages_maintained_by,
}
