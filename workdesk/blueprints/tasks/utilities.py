# workdesk/blueprints/tasks/utilities.py
# Project-wide bulk operations over the task hierarchy.
from flask import jsonify
from flask_login import login_required

from . import tasks_bp
from .utils import actor_id, ok, service


@tasks_bp.post("/utilities/recalculate-hours/<int:project_id>")
@login_required
def recalculate_hours(project_id):
    changes = service().recalculate_hours(project_id, actor_id=actor_id())
    return jsonify(ok(f"Updated {len(changes)} parent tasks", updates=[c.to_dict() for c in changes]))


@tasks_bp.post("/utilities/sync-parent-status/<int:project_id>")
@login_required
def sync_parent_status(project_id):
    changes = service().sync_parent_status(project_id, actor_id=actor_id())
    return jsonify(ok(f"Updated {len(changes)} parent task statuses", updates=[c.to_dict() for c in changes]))


@tasks_bp.post("/utilities/reassign-from-planning/<int:project_id>")
@login_required
def reassign_from_planning(project_id):
    changes = service().reassign_from_planning(project_id, actor_id=actor_id())
    return jsonify(ok(f"Reassigned {len(changes)} tasks", updates=[c.to_dict() for c in changes]))


@tasks_bp.post("/utilities/update-due-dates/<int:project_id>")
@login_required
def update_due_dates(project_id):
    updates = service().update_due_dates(project_id, actor_id=actor_id())
    return jsonify(ok(f"Updated {len(updates)} task due dates", updates=updates))


@tasks_bp.post("/utilities/clear-planning/<int:project_id>")
@login_required
def clear_planning(project_id):
    result = service().clear_planning(project_id, actor_id=actor_id())
    return jsonify(ok(
        f"Cleared planning: {result['deleted_allocations']} allocations, {result['updated_tasks']} tasks updated",
        **result,
    ))
