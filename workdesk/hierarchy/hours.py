# workdesk/hierarchy/hours.py
"""
Bottom-up estimated-hours roll-up.

Every task with children gets estimated_hours = sum(children.estimated_hours).
Parents are processed by ascending depth-from-leaves (a parent of leaves is
depth 1, its parent depth 2, ...), and each sum reads the children's working
values, so a grandparent already sees the value its child got earlier in the
same pass.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from .records import HoursChange, TaskRecord
from .tree import TaskTree, build_tree

log = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01


def depths_from_leaves(tree: TaskTree) -> dict[int, int]:
    """
    0 for leaves, otherwise 1 + max(depth of children).

    A child reached again while its own depth is still being computed closes
    a cycle and contributes 0.
    """
    depth: dict[int, int] = {}
    for start in tree.tasks:
        if start in depth:
            continue
        on_path = set()
        stack = [(start, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                on_path.discard(node_id)
                kids = tree.children(node_id)
                depth[node_id] = 1 + max(depth.get(c, 0) for c in kids) if kids else 0
                continue
            if node_id in depth or node_id in on_path:
                continue
            on_path.add(node_id)
            stack.append((node_id, True))
            for child_id in tree.children(node_id):
                stack.append((child_id, False))
    return depth


def roll_up_estimated_hours(
    tasks: Iterable[TaskRecord],
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[HoursChange]:
    """
    Recompute parents' estimated hours and return the ones that moved by
    more than `tolerance`. Input records are not modified; the caller
    persists the returned changes.
    """
    tree = build_tree(tasks)
    depth = depths_from_leaves(tree)

    parents = tree.parents()
    order = {tid: i for i, tid in enumerate(parents)}
    parents.sort(key=lambda tid: (depth[tid], order[tid]))

    hours = {tid: float(t.estimated_hours or 0.0) for tid, t in tree.tasks.items()}
    changes: list[HoursChange] = []
    for parent_id in parents:
        new_hours = round(sum(hours[c] for c in tree.children(parent_id)), 2)
        old_hours = hours[parent_id]
        if abs(new_hours - old_hours) > tolerance:
            hours[parent_id] = new_hours
            changes.append(HoursChange(parent_id, old_hours, new_hours))

    log.debug("hours roll-up: %d parent(s) checked, %d changed", len(parents), len(changes))
    return changes
