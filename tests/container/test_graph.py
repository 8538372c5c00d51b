"""Tests for dependency graph helpers."""

from community_server.container import find_cycle, missing_dependencies


class TestFindCycle:
    """Test cycle detection over declared dependencies."""

    def test_no_dependencies(self):
        """A service without dependencies has no cycle."""
        assert find_cycle({"a": []}, "a") is None

    def test_unregistered_start(self):
        """An unknown start name is a leaf."""
        assert find_cycle({}, "ghost") is None

    def test_three_service_cycle(self):
        """A -> B -> C -> A is reported with the full path."""
        graph = {"a": ["b"], "b": ["c"], "c": ["a"]}
        assert find_cycle(graph, "a") == ["a", "b", "c", "a"]

    def test_cycle_reported_from_any_member(self):
        """Starting inside the cycle reports it from that member."""
        graph = {"a": ["b"], "b": ["c"], "c": ["a"]}
        assert find_cycle(graph, "b") == ["b", "c", "a", "b"]

    def test_self_dependency(self):
        """A service depending on itself is a cycle."""
        assert find_cycle({"a": ["a"]}, "a") == ["a", "a"]

    def test_shared_dependency_is_not_a_cycle(self):
        """Two branches reaching the same service (diamond) are fine."""
        graph = {"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []}
        assert find_cycle(graph, "a") is None

    def test_cycle_below_start_excludes_ancestry(self):
        """Only the cycle itself is reported, not the path leading into it."""
        graph = {"root": ["a"], "a": ["b"], "b": ["a"]}
        assert find_cycle(graph, "root") == ["a", "b", "a"]

    def test_unknown_dependency_is_a_leaf(self):
        """Dependencies that are not registered do not break detection."""
        assert find_cycle({"a": ["missing"]}, "a") is None


def test_missing_dependencies():
    """Declared but unregistered dependencies are listed per service."""
    graph = {"a": ["b", "ghost"], "b": [], "c": ["phantom"]}
    assert missing_dependencies(graph) == {"a": ["ghost"], "c": ["phantom"]}


def test_missing_dependencies_none():
    """A fully registered graph reports nothing."""
    assert missing_dependencies({"a": ["b"], "b": []}) == {}
