"""Query facade over a resolved dependency graph."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Set, Tuple

from constants import Constants

from .digraph import Graph
from .models import ResolvedManifest

TraverseCallback = Callable[[ResolvedManifest, List[str]], bool]


class DepGraph:
    """Immutable snapshot produced by ``resolve_tree``.

    Attributes:
        graph: Directed graph of node ids (parent -> dependency).
        packages: Manifest table keyed by node id. Ids whose manifest could
            not be obtained appear in ``graph`` only.
        root: Node id of the root package.
        deps_by_version: Package name -> every version resolved for it.
    """

    def __init__(
        self,
        graph: Graph[str],
        packages: Mapping[str, ResolvedManifest],
        root: str,
        deps_by_version: Mapping[str, Set[str]],
    ):
        self.graph = graph
        self.packages = packages
        self.root = root
        self.deps_by_version = deps_by_version

    @property
    def root_manifest(self) -> ResolvedManifest:
        return self.packages[self.root]

    def contains(self, package_name: str) -> bool:
        """True if any version of ``package_name`` is part of the tree."""
        return package_name in self.deps_by_version

    def contains_version(self, package_name: str, version: str) -> bool:
        return version in self.deps_by_version.get(package_name, ())

    def render(self, max_visits: int = Constants.RENDER_MAX_VISITS) -> str:
        """Render the tree as indented text, depth first from the root.

        A child already on the current path is printed with a ``[cyclic]``
        marker and not expanded. Each node is expanded at most ``max_visits``
        times over the whole output; later occurrences are printed once more
        without children, annotated when they have any.
        """
        output: List[str] = []
        stack: List[Tuple[str, int, List[str]]] = [(self.root, 0, [self.root])]
        visited_count: Dict[str, int] = {}

        while stack:
            node, indent, path = stack.pop()
            line = "  " * indent + node
            outgoing = self.graph.outgoing(node)
            count = visited_count.get(node, 0)
            if count >= max_visits:
                if outgoing:
                    line += f" [already printed {max_visits} times]"
                output.append(line)
                continue
            visited_count[node] = count + 1
            output.append(line)

            pending = []
            for child in sorted(outgoing):
                if child in path:
                    output.append("  " * (indent + 1) + f"{child} [cyclic]")
                    continue
                pending.append((child, indent + 1, path + [child]))
            stack.extend(reversed(pending))

        return "\n".join(output)

    def __str__(self) -> str:
        return self.render()

    def find_paths_to(self, package_name: str) -> List[List[str]]:
        """Every simple path from the root to each version of ``package_name``.

        Walks incoming edges backwards from every node whose manifest name
        matches. The enumeration is exhaustive, so it grows exponentially on
        diamond-heavy graphs.

        Returns:
            Paths ordered root -> match.
        """
        targets = sorted(
            node_id for node_id, pkg in self.packages.items() if pkg.name == package_name
        )

        paths: List[List[str]] = []
        for target in targets:
            stack: List[Tuple[str, List[str]]] = [(target, [target])]
            while stack:
                node, path = stack.pop()
                if node == self.root:
                    paths.append(path[::-1])
                    continue
                pending = [
                    (dependent, path + [dependent])
                    for dependent in sorted(self.graph.incoming(node))
                    if dependent not in path
                ]
                stack.extend(reversed(pending))
        return paths

    def traverse_deps(self, callback: TraverseCallback) -> None:
        """Depth-first walk from the root, pruned by ``callback``.

        ``callback(manifest, path)`` runs once per visited node; returning
        False keeps that node's dependencies off the stack. A dependency
        already on the current path is never pushed.
        """
        stack: List[Tuple[str, List[str]]] = [(self.root, [self.root])]
        while stack:
            node_id, path = stack.pop()
            pkg = self.packages[node_id]
            if not callback(pkg, path):
                continue
            for dep in pkg.resolved_dependencies.values():
                if dep.id not in path:
                    stack.append((dep.id, path + [dep.id]))

    def packages_maintained_by(self, maintainer: str) -> List[ResolvedManifest]:
        """Manifests whose author or a maintainer matches ``maintainer`` by name or email."""
        return [
            pkg
            for _, pkg in sorted(self.packages.items())
            if pkg.is_maintained_by(maintainer)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable summary of the graph."""
        return {
            "root": self.root,
            "packages": {
                node_id: {
                    "name": pkg.name,
                    "version": pkg.version,
                    "dependencies": sorted(self.graph.outgoing(node_id)),
                }
                for node_id, pkg in sorted(self.packages.items())
            },
            "deps_by_version": {
                name: sorted(versions) for name, versions in sorted(self.deps_by_version.items())
            },
        }

    def __repr__(self) -> str:
        return f"DepGraph(root={self.root!r}, packages={len(self.packages)})"
