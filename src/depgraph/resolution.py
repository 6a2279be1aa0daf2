"""Concurrent, single-flight expansion of a package into its dependency graph.

Every distinct ``(name, version spec)`` request is resolved at most once per
``resolve_tree`` call; concurrent requesters share the same task. A node's
manifest is registered before its children settle so cyclic dependencies
converge on the in-progress object, and the parent -> child edges are added
by a deferred task once the children's ids are known.

Concurrency is unbounded: every newly discovered dependency is requested
immediately. Resolvers that need admission control must apply it themselves.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set, Tuple

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants

from .dep_graph import DepGraph
from .digraph import Graph
from .models import ResolvedManifest, Resolver

logger = logging.getLogger(__name__)

NodeResult = Tuple[str, Optional[ResolvedManifest]]


class UnresolvableRootError(LookupError):
    """Raised when the root request yields no manifest."""

    def __init__(self, node_id: str):
        super().__init__(f"No manifest for root package {node_id}")
        self.node_id = node_id


class TreeResolver:
    """State of a single ``resolve_tree`` call."""

    def __init__(self, resolver: Resolver):
        self._resolver = resolver
        self.graph: Graph[str] = Graph()
        self.packages: Dict[str, ResolvedManifest] = {}
        self.deps_by_version: Dict[str, Set[str]] = {}
        self._requests: Dict[Tuple[str, str], asyncio.Future] = {}
        self._edge_tasks: List[asyncio.Future] = []

    def request(self, name: str, version_spec: str) -> asyncio.Future:
        """Return the shared task resolving ``(name, version_spec)``."""
        key = (name, version_spec)
        task = self._requests.get(key)
        if task is None:
            task = asyncio.ensure_future(self._expand(name, version_spec))
            self._requests[key] = task
        return task

    async def _expand(self, name: str, version_spec: str) -> NodeResult:
        result = await self._resolver.resolve(name, version_spec)
        node_id = result.id
        if result.manifest is None:
            logger.warning("No manifest for %s", node_id)
            return node_id, None

        existing = self.packages.get(node_id)
        if existing is not None:
            return node_id, existing

        manifest = ResolvedManifest.from_manifest(result.manifest, node_id)
        children = [
            self.request(dep_name, dep_spec)
            for dep_name, dep_spec in manifest.dependencies.items()
        ]
        self.packages[node_id] = manifest
        self._edge_tasks.append(asyncio.ensure_future(self._connect(manifest, children)))
        self.deps_by_version.setdefault(name, set()).add(manifest.version)

        if is_debug_enabled(logger):
            logger.debug(
                "Expanded package",
                extra=extra_context(
                    event="resolve",
                    component="resolution",
                    action="expand",
                    target=node_id,
                    dependency_count=len(children),
                ),
            )
        return node_id, manifest

    async def _connect(self, manifest: ResolvedManifest, children: List[asyncio.Future]) -> None:
        for child_id, child in await asyncio.gather(*children):
            if child is not None:
                manifest.resolved_dependencies[child_id] = child
            self.graph.connect(manifest.id, child_id)

    async def run(self, name: str, version_spec: str) -> DepGraph:
        """Resolve the whole tree rooted at ``(name, version_spec)``."""
        root = self.request(name, version_spec)
        try:
            # Requests spawn further requests; loop until no new ones appear.
            seen = -1
            while seen != len(self._requests):
                seen = len(self._requests)
                await asyncio.gather(*list(self._requests.values()))
            while self._edge_tasks:
                await self._edge_tasks.pop()
        except BaseException:
            self._abandon()
            raise
        root_id, root_manifest = root.result()
        if root_manifest is None:
            raise UnresolvableRootError(root_id)
        return DepGraph(self.graph, self.packages, root_id, self.deps_by_version)

    def _abandon(self) -> None:
        """Cancel outstanding work and consume failures of a failed run."""
        for task in [*self._requests.values(), *self._edge_tasks]:
            if not task.done():
                task.cancel()
            elif not task.cancelled():
                task.exception()
        self._edge_tasks.clear()


async def resolve_tree(
    name: str,
    version: Optional[str],
    resolver: Resolver,
) -> DepGraph:
    """Resolve a package and all of its transitive dependencies.

    Args:
        name: Root package name.
        version: Root version spec; ``None`` or empty means ``latest``.
        resolver: Collaborator turning (name, spec) into a ResolveResult.

    Returns:
        DepGraph snapshot of the resolved tree.

    Raises:
        UnresolvableRootError: If the root itself has no manifest.
        Whatever ``resolver.resolve`` raises; the first failure aborts the call.
    """
    version_spec = version or Constants.DEFAULT_VERSION
    tree = TreeResolver(resolver)
    with Timer() as timer:
        dep_graph = await tree.run(name, version_spec)
    logger.debug(
        "Resolved %s@%s: %d packages, %d edges in %d ms",
        name,
        version_spec,
        len(dep_graph.packages),
        dep_graph.graph.edge_count(),
        timer.duration_ms(),
    )
    return dep_graph
