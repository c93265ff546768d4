# workdesk/hierarchy/records.py
"""
Plain in-memory records the hierarchy engine works on.

The accessor layer turns database rows into these; the engine never sees a
SQLAlchemy object, so every pass is a pure function of its input.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(slots=True)
class TaskRecord:
    id: int
    parent_id: int | None = None
    name: str = ""
    estimated_hours: float = 0.0
    worked_hours: float = 0.0
    status_id: int | None = None
    assigned_user_id: int | None = None
    completion: int | None = None  # filled by compute_completion

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "name": self.name,
            "estimated_hours": self.estimated_hours,
            "worked_hours": self.worked_hours,
            "status_id": self.status_id,
            "assigned_user_id": self.assigned_user_id,
            "completion": self.completion,
        }


@dataclass(frozen=True, slots=True)
class AllocationRecord:
    task_id: int
    user_id: int
    allocation_date: date | None = None
    allocated_hours: float = 0.0


@dataclass(frozen=True, slots=True)
class HoursChange:
    task_id: int
    old_hours: float
    new_hours: float

    def to_dict(self) -> dict:
        return {"task_id": self.task_id, "old_hours": self.old_hours, "new_hours": self.new_hours}


@dataclass(frozen=True, slots=True)
class StatusChange:
    task_id: int
    old_status_id: int | None
    new_status_id: int
    old_status_name: str | None = None
    new_status_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "old_status_id": self.old_status_id,
            "new_status_id": self.new_status_id,
            "old_status": self.old_status_name or "None",
            "new_status": self.new_status_name or "Unknown",
        }


@dataclass(frozen=True, slots=True)
class AssigneeChange:
    task_id: int
    old_user_id: int | None
    new_user_id: int

    def to_dict(self) -> dict:
        return {"task_id": self.task_id, "old_user_id": self.old_user_id, "new_user_id": self.new_user_id}
