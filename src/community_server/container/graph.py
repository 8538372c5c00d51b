"""Dependency graph helpers for the service container.

The graph is given as a mapping of service name to its declared dependency
names. Names that are not keys of the mapping are treated as leaves; the
container reports them as unknown when it tries to resolve them.
"""

from collections.abc import Mapping, Sequence

DependencyGraph = Mapping[str, Sequence[str]]


def find_cycle(graph: DependencyGraph, start: str) -> list[str] | None:
    """Find a dependency cycle reachable from ``start``.

    Walks the graph depth-first, tracking the current ancestry path. Each
    dependency branch gets its own copy of the visited set, so two services
    sharing a common dependency (a diamond) are not reported as a cycle.

    Args:
        graph: Mapping of service name to its declared dependencies
        start: Service name to start from

    Returns:
        The cycle path (first and last element are the same name), or None

    Example:
        ```python
        find_cycle({"a": ["b"], "b": ["c"], "c": ["a"]}, "a")  # ["a", "b", "c", "a"]
        find_cycle({"a": ["b", "c"], "b": ["d"], "c": ["d"]}, "a")  # None
        ```
    """
    return _walk(graph, start, frozenset(), [])


def _walk(graph: DependencyGraph, name: str, visited: frozenset[str], path: list[str]) -> list[str] | None:
    if name in visited:
        # Drop the ancestry leading into the cycle
        return [*path[path.index(name) :], name]

    dependencies = graph.get(name)
    if not dependencies:
        return None

    visited = visited | {name}
    path = [*path, name]
    for dependency in dependencies:
        cycle = _walk(graph, dependency, visited, path)
        if cycle is not None:
            return cycle
    return None


def missing_dependencies(graph: DependencyGraph) -> dict[str, list[str]]:
    """Return declared dependencies that are not themselves registered, keyed by service."""
    missing: dict[str, list[str]] = {}
    for service, dependencies in graph.items():
        unknown = [dependency for dependency in dependencies if dependency not in graph]
        if unknown:
            missing[service] = unknown
    return missing
