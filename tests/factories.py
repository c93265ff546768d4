# tests/factories.py

from __future__ import annotations

from datetime import date

from workdesk.extensions import db
from workdesk.hierarchy import AllocationRecord, StatusCatalog, StatusValue, TaskRecord
from workdesk.models.task import Task, TaskAllocation, TimeEntry

TODO, IN_PROGRESS, DONE, CANCELLED = 1, 2, 3, 4


def rec(
    id: int,
    parent: int | None = None,
    est: float = 0.0,
    worked: float = 0.0,
    status: int | None = None,
    user: int | None = None,
) -> TaskRecord:
    return TaskRecord(
        id=id,
        parent_id=parent,
        name=f"task-{id}",
        estimated_hours=est,
        worked_hours=worked,
        status_id=status,
        assigned_user_id=user,
    )


def alloc(task_id: int, user_id: int, hours: float = 4.0, day: date = date(2025, 3, 3)) -> AllocationRecord:
    return AllocationRecord(task_id=task_id, user_id=user_id, allocation_date=day, allocated_hours=hours)


def default_catalog() -> StatusCatalog:
    """Mirrors the statuses seeded for every new organization."""
    return StatusCatalog(
        [
            StatusValue(TODO, "To Do", sort_order=1),
            StatusValue(IN_PROGRESS, "In Progress", sort_order=2),
            StatusValue(DONE, "Done", is_closed=True, sort_order=3),
            StatusValue(CANCELLED, "Cancelled", is_cancelled=True, sort_order=4),
        ]
    )


# --- database rows (need an app context) -------------------------------------

def add_task(project_id, name, parent=None, est=0.0, status=None, user=None, **fields):
    task = Task(
        project_id=project_id,
        name=name,
        parent_id=parent,
        estimated_hours=est,
        status_id=status,
        assigned_user_id=user,
        **fields,
    )
    db.session.add(task)
    db.session.flush()
    return task


def add_allocation(task_id, user_id, hours=4.0, day=date(2025, 3, 3)):
    row = TaskAllocation(task_id=task_id, user_id=user_id, allocated_hours=hours, allocation_date=day)
    db.session.add(row)
    return row


def add_time(task_id, hours, user_id=None, day=date(2025, 3, 3)):
    row = TimeEntry(task_id=task_id, user_id=user_id, hours=hours, work_date=day)
    db.session.add(row)
    return row
