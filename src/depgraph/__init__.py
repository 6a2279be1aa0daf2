"""Dependency graph package.

Resolves a package into its full transitive dependency graph and answers
path, traversal and maintainer queries over the result.
"""

from .digraph import Graph
from .models import Manifest, Person, ResolvedManifest, ResolveResult, Resolver, parse_person
from .dep_graph import DepGraph
from .resolution import TreeResolver, UnresolvableRootError, resolve_tree

__all__ = [
    "Graph",
    "Manifest",
    "Person",
    "ResolvedManifest",
    "ResolveResult",
    "Resolver",
    "parse_person",
    "DepGraph",
    "TreeResolver",
    "UnresolvableRootError",
    "resolve_tree",
]
