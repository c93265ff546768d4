# tests/test_hours.py

from __future__ import annotations

from dataclasses import replace

from workdesk.hierarchy import build_tree, depths_from_leaves, roll_up_estimated_hours

from .factories import rec


def _apply(tasks, changes):
    new = {c.task_id: c.new_hours for c in changes}
    return [replace(t, estimated_hours=new.get(t.id, t.estimated_hours)) for t in tasks]


def test_depths_from_leaves() -> None:
    tasks = [rec(1), rec(2, parent=1), rec(3, parent=2), rec(4, parent=1)]
    assert depths_from_leaves(build_tree(tasks)) == {1: 2, 2: 1, 3: 0, 4: 0}


def test_parent_gets_sum_of_children() -> None:
    tasks = [rec(1, est=1), rec(2, parent=1, est=3), rec(3, parent=1, est=4.5)]

    changes = roll_up_estimated_hours(tasks)

    assert [(c.task_id, c.old_hours, c.new_hours) for c in changes] == [(1, 1.0, 7.5)]


def test_three_level_chain_converges_in_one_pass() -> None:
    # leaf was just changed from 5 to 8; mid and root still hold the old total
    tasks = [rec(1, est=5), rec(2, parent=1, est=5), rec(3, parent=2, est=8)]

    changes = {c.task_id: c for c in roll_up_estimated_hours(tasks)}

    assert changes[2].new_hours == 8
    assert changes[1].new_hours == 8  # sees mid's new value, not the stale 5
    assert changes[1].old_hours == 5


def test_input_order_does_not_matter_for_convergence() -> None:
    tasks = [
        rec(3, parent=2, est=2),
        rec(1),
        rec(5, parent=4, est=1),
        rec(2, parent=1),
        rec(4, parent=1),
        rec(6, parent=4, est=1.5),
    ]
    new = {c.task_id: c.new_hours for c in roll_up_estimated_hours(tasks)}
    assert new == {2: 2.0, 4: 2.5, 1: 4.5}


def test_second_run_is_empty() -> None:
    tasks = [rec(1), rec(2, parent=1), rec(3, parent=2, est=0.1), rec(4, parent=2, est=0.2), rec(5, parent=1, est=7)]

    first = roll_up_estimated_hours(tasks)
    assert first

    assert roll_up_estimated_hours(_apply(tasks, first)) == []


def test_changes_within_tolerance_are_ignored() -> None:
    tasks = [rec(1, est=10.005), rec(2, parent=1, est=10)]
    assert roll_up_estimated_hours(tasks) == []


def test_leaves_are_never_reported() -> None:
    tasks = [rec(1, est=3), rec(2, est=0)]
    assert roll_up_estimated_hours(tasks) == []


def test_input_records_are_not_modified() -> None:
    tasks = [rec(1), rec(2, parent=1, est=6)]
    roll_up_estimated_hours(tasks)
    assert tasks[0].estimated_hours == 0
