# tests/test_task_routes.py

from __future__ import annotations

from workdesk.extensions import db
from workdesk.models.task import Task

from .factories import add_allocation, add_task


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


def test_summary(client, seed) -> None:
    root = add_task(seed.project_id, "Root")
    add_task(seed.project_id, "Leaf", parent=root.id, est=2)
    db.session.commit()

    resp = client.get(f"/api/tasks/project/{seed.project_id}/summary")

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert [t["name"] for t in body["tasks"]] == ["Root", "Leaf"]
    assert body["tasks"][0]["completion"] == 0


def test_summary_unknown_project_is_404(client, seed) -> None:
    resp = client.get("/api/tasks/project/9999/summary")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Project not found"}


def test_create_task(client, seed) -> None:
    parent = add_task(seed.project_id, "Parent")
    db.session.commit()
    parent_id = parent.id

    resp = client.post(
        "/api/tasks/",
        json={
            "project_id": seed.project_id,
            "name": "Design",
            "parent_id": str(parent_id),
            "estimated_hours": "3",
            "due_date": "2025-06-01",
        },
    )

    body = resp.get_json()
    assert resp.status_code == 201
    assert body["task"]["parent_id"] == parent_id
    assert body["task"]["estimated_hours"] == 3.0
    assert body["task"]["due_date"] == "2025-06-01"
    db.session.expire_all()
    assert db.session.get(Task, parent_id).estimated_hours == 3.0


def test_create_task_validation(client, seed) -> None:
    missing_name = client.post("/api/tasks/", json={"project_id": seed.project_id})
    assert missing_name.status_code == 400
    assert missing_name.get_json()["message"] == "Task name is required"

    bad_date = client.post(
        "/api/tasks/", json={"project_id": seed.project_id, "name": "X", "due_date": "next week"}
    )
    assert bad_date.status_code == 400

    not_an_object = client.post("/api/tasks/", json=[1, 2])
    assert not_an_object.status_code == 400


def test_reparent_cycle_is_400(client, seed) -> None:
    root = add_task(seed.project_id, "Root")
    leaf = add_task(seed.project_id, "Leaf", parent=root.id)
    db.session.commit()

    resp = client.patch(f"/api/tasks/{root.id}", json={"parent_id": leaf.id})

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_patch_name_must_not_be_blank(client, seed) -> None:
    task = add_task(seed.project_id, "Draft")
    db.session.commit()
    task_id = task.id

    for bad in (None, "   "):
        resp = client.patch(f"/api/tasks/{task_id}", json={"name": bad})
        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "message": "Task name is required"}

    db.session.expire_all()
    assert db.session.get(Task, task_id).name == "Draft"

    renamed = client.patch(f"/api/tasks/{task_id}", json={"name": "  Final  "})
    assert renamed.status_code == 200
    assert renamed.get_json()["task"]["name"] == "Final"


def test_patch_unknown_task_is_404(client, seed) -> None:
    resp = client.patch("/api/tasks/9999", json={"name": "Nope"})
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Task not found"


def test_delete_task(client, seed) -> None:
    root = add_task(seed.project_id, "Root")
    child = add_task(seed.project_id, "Child", parent=root.id)
    db.session.commit()
    root_id, child_id = root.id, child.id

    resp = client.delete(f"/api/tasks/{root_id}")

    assert resp.status_code == 200
    assert resp.get_json()["deleted_ids"] == [child_id, root_id]


def test_assignee_routes(client, seed) -> None:
    task = add_task(seed.project_id, "T")
    db.session.commit()
    task_id = task.id

    added = client.post(f"/api/tasks/{task_id}/assignees", json={"user_id": seed.bob_id})
    assert added.get_json()["task"]["assigned_user_id"] == seed.bob_id

    removed = client.delete(f"/api/tasks/{task_id}/assignees/{seed.bob_id}")
    assert removed.get_json()["task"]["assigned_user_id"] is None

    assert client.post(f"/api/tasks/{task_id}/assignees", json={}).status_code == 400


def test_recalculate_hours_utility(client, seed) -> None:
    root = add_task(seed.project_id, "Root")
    add_task(seed.project_id, "A", parent=root.id, est=1.25)
    add_task(seed.project_id, "B", parent=root.id, est=2)
    db.session.commit()
    root_id = root.id

    resp = client.post(f"/api/tasks/utilities/recalculate-hours/{seed.project_id}")

    body = resp.get_json()
    assert body["message"] == "Updated 1 parent tasks"
    assert body["updates"] == [{"task_id": root_id, "old_hours": 0.0, "new_hours": 3.25}]


def test_sync_parent_status_utility(client, seed) -> None:
    st = seed.status
    root = add_task(seed.project_id, "Root", status=st["To Do"])
    add_task(seed.project_id, "A", parent=root.id, status=st["Done"])
    db.session.commit()

    body = client.post(f"/api/tasks/utilities/sync-parent-status/{seed.project_id}").get_json()

    (update,) = body["updates"]
    assert (update["old_status"], update["new_status"]) == ("To Do", "Done")


def test_reassign_and_clear_planning_utilities(client, seed) -> None:
    root = add_task(seed.project_id, "Root")
    add_task(seed.project_id, "Child", parent=root.id)
    add_allocation(root.id, seed.bob_id)
    db.session.commit()

    reassigned = client.post(f"/api/tasks/utilities/reassign-from-planning/{seed.project_id}").get_json()
    assert reassigned["message"] == "Reassigned 2 tasks"
    assert {u["new_user_id"] for u in reassigned["updates"]} == {seed.bob_id}

    cleared = client.post(f"/api/tasks/utilities/clear-planning/{seed.project_id}").get_json()
    assert cleared["deleted_allocations"] == 1
    assert cleared["updated_tasks"] == 2


def test_utility_on_unknown_project_is_404(client, seed) -> None:
    resp = client.post("/api/tasks/utilities/update-due-dates/9999")
    assert resp.status_code == 404
