# workdesk/blueprints/tasks/routes.py
from flask import jsonify
from flask_login import login_required

from . import tasks_bp
from .utils import actor_id, json_body, ok, parse_date, parse_optional_int, service

DATE_FIELDS = ("due_date", "planned_start_date", "planned_end_date")


def _task_json(task) -> dict:
    return {
        "id": task.id,
        "project_id": task.project_id,
        "parent_id": task.parent_id,
        "name": task.name,
        "status_id": task.status_id,
        "estimated_hours": task.estimated_hours,
        "assigned_user_id": task.assigned_user_id,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "planned_start_date": task.planned_start_date.isoformat() if task.planned_start_date else None,
        "planned_end_date": task.planned_end_date.isoformat() if task.planned_end_date else None,
    }


def _clean_fields(data: dict) -> dict:
    fields = dict(data)
    for key in DATE_FIELDS:
        if key in fields:
            fields[key] = parse_date(fields[key])
    for key in ("parent_id", "status_id"):
        if key in fields:
            fields[key] = parse_optional_int(fields[key], key)
    if "estimated_hours" in fields:
        try:
            fields["estimated_hours"] = float(fields["estimated_hours"] or 0)
        except (TypeError, ValueError):
            raise ValueError("estimated_hours must be a number")
    return fields


@tasks_bp.get("/project/<int:project_id>/summary")
@login_required
def project_summary(project_id):
    """All tasks of a project with their completion percentage."""
    return jsonify(success=True, tasks=service().project_summary(project_id))


@tasks_bp.post("/")
@login_required
def task_create():
    data = json_body()
    project_id = parse_optional_int(data.pop("project_id", None), "project_id")
    if project_id is None:
        raise ValueError("project_id is required")
    name = data.pop("name", "")
    task = service().create_task(project_id, name=name, actor_id=actor_id(), **_clean_fields(data))
    return jsonify(ok("Task created", task=_task_json(task))), 201


@tasks_bp.patch("/<int:task_id>")
@login_required
def task_update(task_id):
    task = service().update_task(task_id, actor_id=actor_id(), **_clean_fields(json_body()))
    return jsonify(ok("Task updated", task=_task_json(task)))


@tasks_bp.delete("/<int:task_id>")
@login_required
def task_delete(task_id):
    deleted = service().delete_task(task_id, actor_id=actor_id())
    return jsonify(ok(f"Deleted {len(deleted)} task(s)", deleted_ids=deleted))


@tasks_bp.post("/<int:task_id>/assignees")
@login_required
def assignee_add(task_id):
    user_id = parse_optional_int(json_body().get("user_id"), "user_id")
    if user_id is None:
        raise ValueError("user_id is required")
    task = service().add_assignee(task_id, user_id, actor_id=actor_id())
    return jsonify(ok("Assignee added", task=_task_json(task)))


@tasks_bp.delete("/<int:task_id>/assignees/<int:user_id>")
@login_required
def assignee_remove(task_id, user_id):
    task = service().remove_assignee(task_id, user_id, actor_id=actor_id())
    return jsonify(ok("Assignee removed", task=_task_json(task)))
