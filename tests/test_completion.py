# tests/test_completion.py

from __future__ import annotations

import pytest

from workdesk.hierarchy import CompletionEstimator, build_tree, compute_completion
from workdesk.hierarchy.completion import leaf_percentage

from .factories import rec


def _pct(tasks) -> dict[int, int]:
    return {t.id: t.completion for t in compute_completion(tasks)}


@pytest.mark.parametrize(
    "worked, estimated, expected",
    [
        (3.0, 0.0, 100),   # no estimate but work logged
        (0.0, 0.0, 0),     # nothing estimated, nothing logged
        (25.0, 10.0, 100), # overrun is capped
        (5.0, 10.0, 50),
        (1.0, 8.0, 13),    # 12.5 rounds half-up
        (0.0, 4.0, 0),
    ],
)
def test_leaf_percentage(worked, estimated, expected) -> None:
    assert leaf_percentage(worked, estimated) == expected


def test_parent_is_weighted_by_child_estimates() -> None:
    tasks = [rec(1), rec(2, parent=1, est=10, worked=10), rec(3, parent=1, est=10, worked=0)]
    assert _pct(tasks)[1] == 50


def test_heavier_child_dominates() -> None:
    # 30h child fully done, 10h child untouched -> 75%
    tasks = [rec(1), rec(2, parent=1, est=30, worked=30), rec(3, parent=1, est=10)]
    assert _pct(tasks)[1] == 75


def test_zero_weight_children_fall_back_to_plain_mean() -> None:
    # both children unestimated: one has work (100), one has none (0)
    tasks = [rec(1), rec(2, parent=1, worked=2), rec(3, parent=1), rec(4, parent=1, worked=1)]
    assert _pct(tasks)[1] == 67  # (100 + 0 + 100) / 3 = 66.67


def test_unestimated_children_get_no_weight_when_others_have_one() -> None:
    tasks = [rec(1), rec(2, parent=1, est=10, worked=5), rec(3, parent=1, worked=9)]
    assert _pct(tasks)[1] == 50


def test_three_levels() -> None:
    tasks = [
        rec(1),
        rec(2, parent=1, est=20),
        rec(3, parent=2, est=10, worked=10),
        rec(4, parent=2, est=10, worked=0),
        rec(5, parent=1, est=20, worked=20),
    ]
    pct = _pct(tasks)
    assert pct[2] == 50
    assert pct[1] == 75  # (50 * 20 + 100 * 20) / 40


def test_every_task_gets_a_bounded_integer() -> None:
    tasks = [rec(1), rec(2, parent=1, est=1, worked=50), rec(3, parent=2, est=0.5, worked=0.1), rec(4)]
    for t in compute_completion(tasks):
        assert isinstance(t.completion, int)
        assert 0 <= t.completion <= 100


def test_inputs_are_not_mutated() -> None:
    tasks = [rec(1), rec(2, parent=1, est=4, worked=2)]
    out = compute_completion(tasks)
    assert all(t.completion is None for t in tasks)
    assert [t.id for t in out] == [1, 2]


def test_deep_chain_does_not_hit_recursion_limit() -> None:
    depth = 5000
    tasks = [rec(0)] + [rec(i, parent=i - 1) for i in range(1, depth)]
    tasks[-1] = rec(depth - 1, parent=depth - 2, est=2, worked=1)

    estimator = CompletionEstimator(build_tree(tasks))

    assert estimator.compute(0) == 50


def test_unknown_task_is_zero() -> None:
    estimator = CompletionEstimator(build_tree([rec(1)]))
    assert estimator.compute(42) == 0
