# workdesk/services/hierarchy_service.py
"""
Project-level task hierarchy operations.

Each bulk operation loads every task of one project through the task store,
runs one engine pass, writes back only what changed and commits once.
Runs on the same project are serialized inside this process; separate
processes still rely on the per-row updates of the task store.
"""
import logging
import threading
import weakref
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..hierarchy import (
    CycleError,
    build_tree,
    compute_completion,
    resolve_planned_assignees,
    roll_up_estimated_hours,
    sync_status_from_children,
)
from ..models.task import Task, TaskAllocation, TaskAssignee
from ..models.user import User
from . import task_store
from .email_service import notify_task_reassigned

log = logging.getLogger(__name__)

# Entries go away once no request holds the project's lock
_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _project_lock(project_id: int) -> threading.Lock:
    with _locks_guard:
        lock = _locks.get(project_id)
        if lock is None:
            lock = threading.Lock()
            _locks[project_id] = lock
        return lock


class HierarchyService:
    def __init__(self, config=None):
        config = config if config is not None else current_app.config
        self.max_hops = int(config.get("HIERARCHY_MAX_ANCESTOR_HOPS", 20))
        self.tolerance = float(config.get("HIERARCHY_HOURS_TOLERANCE", 0.01))

    @contextmanager
    def _unit_of_work(self, project_id: int, operation: str):
        """Serialize per project; commit on success, roll back and re-raise on any error."""
        with _project_lock(project_id):
            try:
                yield
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                log.exception("%s failed for project %s; nothing was committed", operation, project_id)
                raise
            except Exception:
                db.session.rollback()
                raise

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def project_summary(self, project_id: int) -> list[dict]:
        task_store.get_project_or_404(project_id)
        tasks = task_store.load_project_tasks(project_id)
        worked = task_store.worked_hours_by_task(project_id)
        records = compute_completion(task_store.to_record(t, worked.get(t.id, 0.0)) for t in tasks)

        rows = []
        for task, rec in zip(tasks, records):
            row = rec.to_dict()
            row.update(
                status_name=task.status.name if task.status else None,
                due_date=task.due_date.isoformat() if task.due_date else None,
                planned_start_date=task.planned_start_date.isoformat() if task.planned_start_date else None,
                planned_end_date=task.planned_end_date.isoformat() if task.planned_end_date else None,
                assignee_ids=[a.user_id for a in task.assignees],
            )
            rows.append(row)
        return rows

    # ------------------------------------------------------------------
    # Bulk roll-ups
    # ------------------------------------------------------------------

    def _roll_up_hours(self, project_id: int, actor_id=None):
        changes = roll_up_estimated_hours(task_store.load_task_records(project_id), tolerance=self.tolerance)
        task_store.apply_hours_changes(changes, actor_id)
        return changes

    def recalculate_hours(self, project_id: int, actor_id=None):
        task_store.get_project_or_404(project_id)
        with self._unit_of_work(project_id, "recalculate_hours"):
            changes = self._roll_up_hours(project_id, actor_id)
        log.info("Recalculated hours for project %s: %d parent task(s) updated", project_id, len(changes))
        return changes

    def sync_parent_status(self, project_id: int, actor_id=None):
        project = task_store.get_project_or_404(project_id)
        with self._unit_of_work(project_id, "sync_parent_status"):
            catalog = task_store.load_status_catalog(project.organization_id)
            changes = sync_status_from_children(task_store.load_task_records(project_id), catalog)
            task_store.apply_status_changes(changes, actor_id)
        log.info("Synced parent status for project %s: %d task(s) updated", project_id, len(changes))
        return changes

    def reassign_from_planning(self, project_id: int, actor_id=None):
        project = task_store.get_project_or_404(project_id)
        with self._unit_of_work(project_id, "reassign_from_planning"):
            changes = resolve_planned_assignees(
                task_store.load_task_records(project_id),
                task_store.load_allocations(project_id),
                max_hops=self.max_hops,
            )
            task_store.apply_assignee_changes(changes, actor_id)
        log.info("Reassigned %d task(s) from planning in project %s", len(changes), project_id)

        # Notify after commit; a failed email never undoes the reassignment
        for c in changes:
            if c.new_user_id == actor_id:
                continue
            task = db.session.get(Task, c.task_id)
            user = db.session.get(User, c.new_user_id)
            if task is not None and not notify_task_reassigned(task, user, project=project):
                log.info("No reassignment email for task %s (user %s)", c.task_id, c.new_user_id)
        return changes

    def update_due_dates(self, project_id: int, actor_id=None) -> list[dict]:
        """Copy planned_end_date into due_date wherever they differ."""
        task_store.get_project_or_404(project_id)
        updates = []
        with self._unit_of_work(project_id, "update_due_dates"):
            tasks = (
                Task.query
                .filter(Task.project_id == project_id, Task.planned_end_date.isnot(None))
                .order_by(Task.id.asc())
                .all()
            )
            for t in tasks:
                if t.due_date == t.planned_end_date:
                    continue
                old_due = t.due_date.isoformat() if t.due_date else None
                new_due = t.planned_end_date.isoformat()
                task_store.update_task_fields(t.id, due_date=t.planned_end_date)
                task_store.record_history(t.id, actor_id, "updated", "due_date", old_due, new_due)
                updates.append({"task_id": t.id, "old_due_date": old_due, "new_due_date": new_due})
        log.info("Updated %d due date(s) from planning in project %s", len(updates), project_id)
        return updates

    def clear_planning(self, project_id: int, actor_id=None) -> dict:
        """Remove every allocation of the project and clear planned dates and assignee."""
        task_store.get_project_or_404(project_id)
        with self._unit_of_work(project_id, "clear_planning"):
            task_ids = [tid for (tid,) in db.session.query(Task.id).filter(Task.project_id == project_id)]
            deleted = 0
            if task_ids:
                deleted = (
                    TaskAllocation.query
                    .filter(TaskAllocation.task_id.in_(task_ids))
                    .delete(synchronize_session=False)
                )
            for tid in task_ids:
                task_store.update_task_fields(
                    tid, planned_start_date=None, planned_end_date=None, assigned_user_id=None
                )
                task_store.record_history(
                    tid, actor_id, "updated", "planning_cleared", "Planned dates and assignment", None
                )
        log.info("Cleared planning for project %s: %d allocation(s) removed", project_id, deleted)
        return {"deleted_allocations": deleted, "updated_tasks": len(task_ids)}

    # ------------------------------------------------------------------
    # Single-task writes that keep the hierarchy consistent
    # ------------------------------------------------------------------

    def _check_parent(self, project_id: int, task_id, parent_id) -> None:
        if parent_id is None:
            return
        parent = db.session.get(Task, parent_id)
        if parent is None or parent.project_id != project_id:
            raise ValueError(f"Parent task {parent_id} does not exist in project {project_id}")
        if task_id is not None:
            tree = build_tree(task_store.load_task_records(project_id))
            if tree.would_create_cycle(task_id, parent_id):
                raise CycleError(task_id, parent_id)

    def create_task(self, project_id: int, *, name: str, actor_id=None, **fields) -> Task:
        task_store.get_project_or_404(project_id)
        if not (name or "").strip():
            raise ValueError("Task name is required")
        hours = float(fields.get("estimated_hours") or 0.0)
        if hours < 0:
            raise ValueError("estimated_hours cannot be negative")

        with self._unit_of_work(project_id, "create_task"):
            self._check_parent(project_id, None, fields.get("parent_id"))
            task = Task(
                project_id=project_id,
                name=name.strip(),
                parent_id=fields.get("parent_id"),
                description=fields.get("description"),
                status_id=fields.get("status_id"),
                estimated_hours=hours,
                due_date=fields.get("due_date"),
                planned_start_date=fields.get("planned_start_date"),
                planned_end_date=fields.get("planned_end_date"),
                display_order=fields.get("display_order") or 0,
                created_by=actor_id,
            )
            db.session.add(task)
            db.session.flush()
            task_store.record_history(task.id, actor_id, "created", None, None, task.name)
            if task.parent_id is not None:
                self._roll_up_hours(project_id, actor_id)
        log.info("Task %s created in project %s", task.id, project_id)
        return task

    UPDATABLE_FIELDS = (
        "name", "description", "status_id", "estimated_hours", "parent_id",
        "due_date", "planned_start_date", "planned_end_date", "display_order",
    )

    def update_task(self, task_id: int, *, actor_id=None, **fields) -> Task:
        task = task_store.get_task_or_404(task_id)
        project_id = task.project_id
        unknown = set(fields) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        if "name" in fields:
            fields["name"] = str(fields["name"] or "").strip()
            if not fields["name"]:
                raise ValueError("Task name is required")
        if "estimated_hours" in fields:
            fields["estimated_hours"] = float(fields["estimated_hours"] or 0.0)
            if fields["estimated_hours"] < 0:
                raise ValueError("estimated_hours cannot be negative")

        with self._unit_of_work(project_id, "update_task"):
            if "parent_id" in fields and fields["parent_id"] != task.parent_id:
                self._check_parent(project_id, task.id, fields["parent_id"])
            touches_hierarchy = False
            for key, value in fields.items():
                old = getattr(task, key)
                if old == value:
                    continue
                setattr(task, key, value)
                task_store.record_history(task.id, actor_id, "updated", key, old, value)
                touches_hierarchy = touches_hierarchy or key in ("estimated_hours", "parent_id")
            if touches_hierarchy:
                db.session.flush()
                self._roll_up_hours(project_id, actor_id)
        return task

    def delete_task(self, task_id: int, actor_id=None) -> list[int]:
        """Delete a task and all of its descendants, deepest first. Returns the deleted ids."""
        task = task_store.get_task_or_404(task_id)
        project_id = task.project_id
        name = task.name
        with self._unit_of_work(project_id, "delete_task"):
            tree = build_tree(task_store.load_task_records(project_id))
            doomed = tree.descendants_deepest_first(task_id) + [task_id]
            task_store.delete_tasks(doomed)
            task_store.record_history(task_id, actor_id, "deleted", None, name, None)
            self._roll_up_hours(project_id, actor_id)
        log.info("Deleted task %s and %d descendant(s) from project %s", task_id, len(doomed) - 1, project_id)
        return doomed

    def add_assignee(self, task_id: int, user_id: int, actor_id=None) -> Task:
        task = task_store.get_task_or_404(task_id)
        if db.session.get(User, user_id) is None:
            raise ValueError(f"User {user_id} does not exist")
        with self._unit_of_work(task.project_id, "add_assignee"):
            exists = TaskAssignee.query.filter_by(task_id=task.id, user_id=user_id).first()
            if exists is None:
                db.session.add(TaskAssignee(task_id=task.id, user_id=user_id, assigned_by=actor_id))
                task_store.record_history(task.id, actor_id, "updated", "assignees", None, user_id)
            # an existing primary (manual or from planning) is kept
            if task.assigned_user_id is None:
                task_store.sync_primary_assignee(task)
        return task

    def remove_assignee(self, task_id: int, user_id: int, actor_id=None) -> Task:
        task = task_store.get_task_or_404(task_id)
        with self._unit_of_work(task.project_id, "remove_assignee"):
            row = TaskAssignee.query.filter_by(task_id=task.id, user_id=user_id).first()
            if row is not None:
                db.session.delete(row)
                task_store.record_history(task.id, actor_id, "updated", "assignees", user_id, None)
            if task.assigned_user_id == user_id:
                task_store.sync_primary_assignee(task)
        return task
