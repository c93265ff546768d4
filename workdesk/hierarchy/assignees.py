# workdesk/hierarchy/assignees.py
"""
Planned-assignee resolution.

A scheduling allocation on a task makes its user the planned owner of that
task and of every descendant that has no allocation of its own. The nearest
allocated task on the walk up the ancestor chain wins.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from .records import AllocationRecord, AssigneeChange, TaskRecord
from .tree import TaskTree, build_tree

log = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 20


def allocation_owners(allocations: Iterable[AllocationRecord]) -> dict[int, int]:
    """
    task id -> user id of the allocation that speaks for the task.

    With several users allocated on one task, the one with the most
    allocated hours wins; ties go to the lowest user id.
    """
    totals: dict[int, dict[int, float]] = defaultdict(lambda: defaultdict(float))
    for a in allocations:
        totals[a.task_id][a.user_id] += float(a.allocated_hours or 0.0)

    owners = {}
    for task_id, per_user in totals.items():
        owners[task_id] = min(per_user.items(), key=lambda kv: (-kv[1], kv[0]))[0]
    return owners


class PlannedAssigneeResolver:
    def __init__(self, tree: TaskTree, allocations: Iterable[AllocationRecord], max_hops: int = DEFAULT_MAX_HOPS):
        self.tree = tree
        self.max_hops = max_hops
        self._owners = allocation_owners(allocations)

    def planned_user(self, task_id: int) -> int | None:
        """
        Walk from the task itself (hop 0) towards the root, at most
        `max_hops` hops. None when nothing on the walk is allocated, the
        walk leaves the input set, or the cap is hit.
        """
        current = task_id if task_id in self.tree else None
        hops = 0
        while current is not None:
            owner = self._owners.get(current)
            if owner is not None:
                return owner
            if hops >= self.max_hops:
                if self.tree.parent(current) is None:
                    return None  # reached a root right at the cap
                log.warning("planned assignee: ancestor walk from task %s exceeded %d hops", task_id, self.max_hops)
                return None
            current = self.tree.parent(current)
            hops += 1
        return None


def resolve_planned_assignees(
    tasks: Iterable[TaskRecord],
    allocations: Iterable[AllocationRecord],
    max_hops: int = DEFAULT_MAX_HOPS,
) -> list[AssigneeChange]:
    """Tasks whose assignee differs from their planned user, unassigned ones included."""
    tasks = list(tasks)
    resolver = PlannedAssigneeResolver(build_tree(tasks), allocations, max_hops=max_hops)

    changes: list[AssigneeChange] = []
    seen = set()
    for t in tasks:
        if t.id in seen:
            continue
        seen.add(t.id)
        planned = resolver.planned_user(t.id)
        if planned is None:
            continue
        current = resolver.tree.get(t.id).assigned_user_id
        if current != planned:
            changes.append(AssigneeChange(t.id, current, planned))
    log.debug("planned assignee: %d mismatch(es) over %d task(s)", len(changes), len(seen))
    return changes


def primary_assignee(assignees: Iterable[tuple[int, object]]) -> int | None:
    """
    First assignee by assignment order.

    `assignees` yields (user_id, sort_key) pairs; the sort key is usually the
    assignment timestamp.
    """
    ordered = sorted(assignees, key=lambda pair: pair[1])
    return ordered[0][0] if ordered else None
