# workdesk/hierarchy/tree.py
"""
Arena-style task tree.

Tasks point at their parent by id; this module turns a flat list of records
into two lookup maps (id -> record, parent id -> child ids) in a single pass.
Nothing here assumes the parent graph is acyclic.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .records import TaskRecord

log = logging.getLogger(__name__)


class TaskTree:
    def __init__(self, tasks: dict[int, TaskRecord], children: dict[int, list[int]]):
        self.tasks = tasks
        self._children = children

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id) -> bool:
        return task_id in self.tasks

    def __iter__(self) -> Iterator[TaskRecord]:
        return iter(self.tasks.values())

    def get(self, task_id: int) -> TaskRecord | None:
        return self.tasks.get(task_id)

    def children(self, task_id: int) -> list[int]:
        return self._children.get(task_id, [])

    def is_leaf(self, task_id: int) -> bool:
        return not self._children.get(task_id)

    def parent(self, task_id: int) -> int | None:
        """Parent id, or None when the task is a root for this input set."""
        task = self.tasks.get(task_id)
        if task is None or task.parent_id is None:
            return None
        if task.parent_id not in self.tasks:
            return None
        return task.parent_id

    def parents(self) -> list[int]:
        """Ids of every task with at least one child, in input order."""
        return [tid for tid in self.tasks if self._children.get(tid)]

    def roots(self) -> list[int]:
        return [tid for tid in self.tasks if self.parent(tid) is None]

    def descendants_deepest_first(self, task_id: int) -> list[int]:
        """
        All descendants of `task_id`, each listed before its own parent.

        Deletes issued in this order never orphan a row mid-way. A cycle
        back to an already collected task is ignored.
        """
        level = {task_id: 0}
        order: list[int] = []
        frontier = [task_id]
        while frontier:
            nxt = []
            for current in frontier:
                for child in self.children(current):
                    if child in level:
                        continue
                    level[child] = level[current] + 1
                    order.append(child)
                    nxt.append(child)
            frontier = nxt
        # sorted() is stable, so siblings keep input order
        return sorted(order, key=lambda tid: level[tid], reverse=True)

    def would_create_cycle(self, task_id: int, new_parent_id: int | None) -> bool:
        """True when `new_parent_id` is `task_id` itself or one of its descendants."""
        if new_parent_id is None:
            return False
        seen = set()
        current = new_parent_id
        while current is not None and current not in seen:
            if current == task_id:
                return True
            seen.add(current)
            current = self.parent(current)
        return False


def build_tree(tasks: Iterable[TaskRecord]) -> TaskTree:
    """
    Build the id and parent->children maps for one project's tasks.

    Input order does not matter. A task whose parent is missing from the
    input is treated as a root.
    """
    by_id: dict[int, TaskRecord] = {}
    for t in tasks:
        by_id[t.id] = t

    children: dict[int, list[int]] = {}
    orphans = 0
    for t in by_id.values():
        if t.parent_id is None:
            continue
        if t.parent_id not in by_id:
            orphans += 1
            continue
        children.setdefault(t.parent_id, []).append(t.id)

    if orphans:
        log.debug("build_tree: %d task(s) reference a parent outside the input; treated as roots", orphans)
    return TaskTree(by_id, children)
