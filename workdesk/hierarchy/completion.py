# workdesk/hierarchy/completion.py
"""
Completion percentage for every task of a project.

- Leaf task: min(100, round(worked / estimated * 100)).
  With no estimate, 100 when any work was logged, else 0.
- Parent task: mean of the children's percentages weighted by each child's
  estimated hours. If no child carries an estimate, plain mean.

Percentages are integers in [0, 100], rounded half-up.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import replace

from .records import TaskRecord
from .tree import TaskTree, build_tree

log = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def leaf_percentage(worked: float, estimated: float) -> int:
    worked = worked or 0.0
    estimated = estimated or 0.0
    if estimated <= 0:
        return 100 if worked > 0 else 0
    return min(100, round_half_up(worked / estimated * 100))


class CompletionEstimator:
    """
    Memoized post-order estimator over one tree.

    One instance serves one invocation; build a new one for new data.
    """

    def __init__(self, tree: TaskTree):
        self.tree = tree
        self._memo: dict[int, int] = {}

    def compute(self, task_id: int) -> int:
        if task_id in self._memo:
            return self._memo[task_id]
        if task_id not in self.tree:
            return 0

        # Explicit stack: depth is bounded only by the data.
        visited = set()
        stack = [(task_id, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                self._memo[node_id] = self._aggregate(node_id)
                continue
            if node_id in self._memo:
                continue
            if node_id in visited:
                log.warning("completion: cycle through task %s, counted as 0%%", node_id)
                continue
            visited.add(node_id)
            stack.append((node_id, True))
            for child_id in reversed(self.tree.children(node_id)):
                stack.append((child_id, False))

        return self._memo[task_id]

    def _aggregate(self, task_id: int) -> int:
        task = self.tree.get(task_id)
        children = self.tree.children(task_id)
        if not children:
            return leaf_percentage(task.worked_hours, task.estimated_hours)

        total_weight = 0.0
        weighted_sum = 0.0
        plain_sum = 0
        for child_id in children:
            # unmemoized child here means it closed a cycle
            pct = self._memo.get(child_id, 0)
            weight = self.tree.get(child_id).estimated_hours or 0.0
            if weight > 0:
                total_weight += weight
                weighted_sum += pct * weight
            plain_sum += pct

        if total_weight <= 0:
            return round_half_up(plain_sum / len(children))
        return round_half_up(weighted_sum / total_weight)


def compute_completion(tasks: Iterable[TaskRecord]) -> list[TaskRecord]:
    """Return copies of `tasks` with `completion` set. Inputs are left untouched."""
    tasks = list(tasks)
    estimator = CompletionEstimator(build_tree(tasks))
    return [replace(t, completion=estimator.compute(t.id)) for t in tasks]
