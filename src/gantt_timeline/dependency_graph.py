from __future__ import annotations

from collections import deque
from typing import Iterable

from .task_models import Task


class DependencyGraph:
    """
    Dependents and ancestor adjacency built from each task's dependency list.

    The graph is rebuilt in full by `build`; there is no incremental update.
    Inputs are not assumed to be acyclic: both closures keep a visited set.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self.dependency_map: dict[str, list[str]] = {}
        self.ancestor_map: dict[str, list[str]] = {}
        if tasks is not None:
            self.build(tasks)

    def build(self, tasks: Iterable[Task]) -> "DependencyGraph":
        dependency_map: dict[str, list[str]] = {}
        ancestor_map: dict[str, list[str]] = {}

        for task in tasks:
            for dep_id in task.dependencies:
                dependency_map.setdefault(dep_id, []).append(task.id)

                # Direct dependency first, then whatever is already known above it.
                chain = ancestor_map.setdefault(task.id, [])
                for ancestor in [dep_id, *ancestor_map.get(dep_id, [])]:
                    if ancestor not in chain:
                        chain.append(ancestor)

        self.dependency_map = dependency_map
        self.ancestor_map = ancestor_map
        return self

    def dependents(self, task_id: str) -> list[str]:
        """Tasks that list `task_id` directly as a dependency."""
        return list(self.dependency_map.get(task_id, []))

    def has_dependents(self, task_id: str) -> bool:
        return bool(self.dependency_map.get(task_id))

    def descendants(self, task_id: str) -> set[str]:
        """All tasks reachable through dependents of `task_id`, excluding itself."""
        return set(self.ordered_descendants(task_id))

    def ordered_descendants(self, task_id: str) -> list[str]:
        """Breadth-first descendants in discovery order."""
        seen = {task_id}
        out: list[str] = []
        queue = deque([task_id])
        while queue:
            current = queue.popleft()
            for child in self.dependency_map.get(current, []):
                if child in seen:
                    continue
                seen.add(child)
                out.append(child)
                queue.append(child)
        return out

    def ancestors(self, task_id: str) -> list[str]:
        """All transitive dependencies of `task_id`, breadth-first, excluding itself."""
        seen = {task_id}
        out: list[str] = []
        queue = deque([task_id])
        while queue:
            current = queue.popleft()
            for parent in self.ancestor_map.get(current, []):
                if parent in seen:
                    continue
                seen.add(parent)
                out.append(parent)
                queue.append(parent)
        return out
