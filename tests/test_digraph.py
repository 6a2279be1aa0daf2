"""Tests for the directed graph ADT."""

from depgraph.digraph import Graph


class TestConnect:
    """Tests for edge insertion."""

    def test_connect_creates_edge_both_directions(self):
        g = Graph()
        assert g.connect("a", "b") is False
        assert g.is_connected("a", "b")
        assert not g.is_connected("b", "a")
        assert g.outgoing("a") == {"b"}
        assert g.incoming("b") == {"a"}

    def test_connect_is_idempotent(self):
        """A duplicate connect reports the existing edge and leaves sizes unchanged."""
        g = Graph()
        g.connect("a", "b")
        assert g.connect("a", "b") is True
        assert len(g.outgoing("a")) == 1
        assert len(g.incoming("b")) == 1
        assert g.edge_count() == 1

    def test_self_loop(self):
        g = Graph()
        g.connect("a", "a")
        assert g.is_connected("a", "a")
        assert g.incoming("a") == {"a"}


class TestDisconnect:
    """Tests for edge removal."""

    def test_disconnect_removes_edge_and_prunes(self):
        g = Graph()
        g.connect("a", "b")
        assert g.disconnect("a", "b") is True
        assert not g.is_connected("a", "b")
        assert "a" not in g.outgoing_connections
        assert "b" not in g.incoming_connections
        assert g.nodes() == set()

    def test_disconnect_keeps_other_edges(self):
        g = Graph()
        g.connect("a", "b")
        g.connect("a", "c")
        g.connect("d", "b")
        g.disconnect("a", "b")
        assert g.outgoing("a") == {"c"}
        assert g.incoming("b") == {"d"}

    def test_disconnect_missing_source_returns_none(self):
        g = Graph()
        assert g.disconnect("x", "y") is None

    def test_disconnect_absent_edge_returns_false(self):
        g = Graph()
        g.connect("a", "b")
        g.connect("c", "d")
        assert g.disconnect("a", "d") is False
        assert g.is_connected("a", "b")
        assert g.is_connected("c", "d")

    def test_reconnect_after_disconnect(self):
        g = Graph()
        g.connect("a", "b")
        g.disconnect("a", "b")
        assert g.connect("a", "b") is False
        assert g.is_connected("a", "b")


class TestAdjacency:
    """Tests for adjacency accessors."""

    def test_unknown_node_returns_empty_set(self):
        g = Graph()
        assert len(g.outgoing("nope")) == 0
        assert len(g.incoming("nope")) == 0
        assert not g.is_connected("nope", "other")

    def test_nodes_and_contains(self):
        g = Graph()
        g.connect("a", "b")
        g.connect("b", "c")
        assert g.nodes() == {"a", "b", "c"}
        assert "c" in g
        assert "z" not in g
        assert g.edge_count() == 2
