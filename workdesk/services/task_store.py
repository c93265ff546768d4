# workdesk/services/task_store.py
"""
Task store accessor: the only place the hierarchy features touch the database.

Reads turn rows into engine records; writes apply engine change-sets as
per-row UPDATE statements. Nothing here commits; the caller owns the
transaction. SQLAlchemy errors propagate unchanged.
"""
import logging
from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..hierarchy import AllocationRecord, StatusCatalog, StatusValue, TaskRecord, primary_assignee
from ..models.organization import Project, TaskStatusValue
from ..models.task import Task, TaskAllocation, TaskAssignee, TaskHistory, TimeEntry

log = logging.getLogger(__name__)


def get_project_or_404(project_id: int) -> Project:
    return db.get_or_404(Project, project_id, description="Project not found")


def get_task_or_404(task_id: int) -> Task:
    return db.get_or_404(Task, task_id, description="Task not found")


def worked_hours_by_task(project_id: int) -> dict[int, float]:
    rows = (
        db.session.query(TimeEntry.task_id, func.coalesce(func.sum(TimeEntry.hours), 0.0))
        .join(Task, Task.id == TimeEntry.task_id)
        .filter(Task.project_id == project_id)
        .group_by(TimeEntry.task_id)
        .all()
    )
    return {task_id: float(total or 0.0) for task_id, total in rows}


def to_record(task: Task, worked_hours: float = 0.0) -> TaskRecord:
    return TaskRecord(
        id=task.id,
        parent_id=task.parent_id,
        name=task.name,
        estimated_hours=float(task.estimated_hours or 0.0),
        worked_hours=worked_hours,
        status_id=task.status_id,
        assigned_user_id=task.assigned_user_id,
    )


def load_project_tasks(project_id: int) -> list[Task]:
    return (
        Task.query
        .filter_by(project_id=project_id)
        .order_by(Task.display_order.asc(), Task.id.asc())
        .all()
    )


def load_task_records(project_id: int) -> list[TaskRecord]:
    """Every task of the project as an engine record, worked hours included."""
    worked = worked_hours_by_task(project_id)
    return [to_record(t, worked.get(t.id, 0.0)) for t in load_project_tasks(project_id)]


def load_allocations(project_id: int) -> list[AllocationRecord]:
    rows = (
        TaskAllocation.query
        .join(Task, Task.id == TaskAllocation.task_id)
        .filter(Task.project_id == project_id)
        .all()
    )
    return [
        AllocationRecord(
            task_id=a.task_id,
            user_id=a.user_id,
            allocation_date=a.allocation_date,
            allocated_hours=float(a.allocated_hours or 0.0),
        )
        for a in rows
    ]


def load_status_catalog(organization_id: int) -> StatusCatalog:
    values = (
        TaskStatusValue.query
        .filter_by(organization_id=organization_id)
        .order_by(TaskStatusValue.sort_order.asc(), TaskStatusValue.id.asc())
        .all()
    )
    return StatusCatalog(
        StatusValue(
            id=v.id,
            name=v.name,
            is_closed=bool(v.is_closed),
            is_cancelled=bool(v.is_cancelled),
            sort_order=v.sort_order or 0,
        )
        for v in values
    )


def update_task_fields(task_id: int, **fields) -> None:
    """Single-row UPDATE so concurrent writers never overwrite unrelated columns."""
    fields["updated_at"] = datetime.utcnow()
    Task.query.filter_by(id=task_id).update(fields, synchronize_session=False)


def record_history(task_id, user_id, action, field_name=None, old_value=None, new_value=None) -> TaskHistory:
    entry = TaskHistory(
        task_id=task_id,
        user_id=user_id,
        action=action,
        field_name=field_name,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
    )
    db.session.add(entry)
    return entry


def apply_hours_changes(changes, actor_id=None) -> None:
    for c in changes:
        update_task_fields(c.task_id, estimated_hours=c.new_hours)
        record_history(c.task_id, actor_id, "updated", "estimated_hours", c.old_hours, c.new_hours)


def apply_status_changes(changes, actor_id=None) -> None:
    for c in changes:
        update_task_fields(c.task_id, status_id=c.new_status_id)
        record_history(
            c.task_id, actor_id, "updated", "status",
            c.old_status_name or "None", c.new_status_name or "Unknown",
        )


def apply_assignee_changes(changes, actor_id=None) -> None:
    """
    Make each planned user the task's primary assignee. The planned user
    joins the assignee set if missing, so the primary is always a member;
    earlier members stay in the set.
    """
    for c in changes:
        update_task_fields(c.task_id, assigned_user_id=c.new_user_id)
        record_history(c.task_id, actor_id, "updated", "assigned_user_id", c.old_user_id, c.new_user_id)
        if TaskAssignee.query.filter_by(task_id=c.task_id, user_id=c.new_user_id).first() is None:
            db.session.add(TaskAssignee(task_id=c.task_id, user_id=c.new_user_id, assigned_by=actor_id))
            record_history(c.task_id, actor_id, "updated", "assignees", None, c.new_user_id)


def delete_tasks(task_ids) -> int:
    """
    Delete tasks in the given order (deepest first) with their allocations,
    assignees and time entries. Returns the number of tasks removed.
    """
    deleted = 0
    for tid in task_ids:
        task = db.session.get(Task, tid)
        if task is None:
            continue
        db.session.delete(task)
        # flush per row so a parent is never removed before its children
        db.session.flush()
        deleted += 1
    return deleted


def sync_primary_assignee(task: Task) -> int | None:
    """Set task.assigned_user_id to the earliest remaining assignee (or None)."""
    rows = TaskAssignee.query.filter_by(task_id=task.id).all()
    task.assigned_user_id = primary_assignee((a.user_id, (a.assigned_at, a.id)) for a in rows)
    return task.assigned_user_id
