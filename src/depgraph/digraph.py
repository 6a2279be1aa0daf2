"""Generic directed graph with forward and backward adjacency sets."""

from __future__ import annotations

from typing import Dict, FrozenSet, Generic, Hashable, Optional, Set, TypeVar, Union

T = TypeVar("T", bound=Hashable)

_EMPTY: FrozenSet = frozenset()


class Graph(Generic[T]):
    """Directed graph keyed by arbitrary hashable identifiers.

    ``outgoing_connections`` and ``incoming_connections`` are kept symmetric:
    ``dst in outgoing_connections[src]`` iff ``src in incoming_connections[dst]``.
    A missing key is equivalent to an empty adjacency set.
    """

    def __init__(self) -> None:
        self.outgoing_connections: Dict[T, Set[T]] = {}
        self.incoming_connections: Dict[T, Set[T]] = {}

    def connect(self, src: T, dst: T) -> bool:
        """Add a directed connection from one node to another.

        Args:
            src: The source node.
            dst: The destination node.

        Returns:
            True if the connection already existed, False if not.
        """
        outgoing = self.outgoing_connections.setdefault(src, set())
        exists = dst in outgoing
        outgoing.add(dst)
        self.incoming_connections.setdefault(dst, set()).add(src)
        return exists

    def disconnect(self, src: T, dst: T) -> Optional[bool]:
        """Remove a directed connection from one node to another.

        Adjacency entries left empty are pruned.

        Args:
            src: The source node.
            dst: The destination node.

        Returns:
            True if the connection existed, False if not, None when either
            endpoint had no adjacency entry.
        """
        outgoing = self.outgoing_connections.get(src)
        if outgoing is None:
            return None
        exists = dst in outgoing
        outgoing.discard(dst)
        if not outgoing:
            del self.outgoing_connections[src]

        incoming = self.incoming_connections.get(dst)
        if incoming is None:
            return None
        incoming.discard(src)
        if not incoming:
            del self.incoming_connections[dst]

        return exists

    def is_connected(self, src: T, dst: T) -> bool:
        """Return True if the edge ``src -> dst`` exists."""
        outgoing = self.outgoing_connections.get(src)
        return outgoing is not None and dst in outgoing

    def outgoing(self, src: T) -> Union[Set[T], FrozenSet[T]]:
        """Nodes ``src`` points to. Treat the result as read-only."""
        return self.outgoing_connections.get(src, _EMPTY)

    def incoming(self, dst: T) -> Union[Set[T], FrozenSet[T]]:
        """Nodes pointing at ``dst``. Treat the result as read-only."""
        return self.incoming_connections.get(dst, _EMPTY)

    def nodes(self) -> Set[T]:
        """Every vertex that takes part in at least one edge."""
        return set(self.outgoing_connections) | set(self.incoming_connections)

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.outgoing_connections.values())

    def __contains__(self, node: object) -> bool:
        return node in self.outgoing_connections or node in self.incoming_connections

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self.nodes())}, edges={self.edge_count()})"
