# workdesk/models/task.py
from datetime import datetime
from ..extensions import db


class Task(db.Model):
    __tablename__ = "task"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    # Subtasks point at their parent by id only; the hierarchy engine builds the tree.
    parent_id = db.Column(db.Integer, db.ForeignKey("task.id"), index=True)

    name = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text)
    display_order = db.Column(db.Integer, default=0)

    status_id = db.Column(db.Integer, db.ForeignKey("task_status_value.id"), index=True)
    assigned_user_id = db.Column(db.Integer, db.ForeignKey("user.id"), index=True)

    # Derived (sum of subtasks) once the task has children
    estimated_hours = db.Column(db.Float, default=0.0, nullable=False)

    due_date = db.Column(db.Date, index=True)
    planned_start_date = db.Column(db.Date)
    planned_end_date = db.Column(db.Date)

    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = db.relationship("Project", backref=db.backref("tasks", lazy="dynamic"))
    status = db.relationship("TaskStatusValue")
    assigned_user = db.relationship("User", foreign_keys=[assigned_user_id])

    assignees = db.relationship(
        "TaskAssignee",
        back_populates="task",
        lazy="selectin",
        order_by="[TaskAssignee.assigned_at, TaskAssignee.id]",
        cascade="all, delete-orphan",
    )
    allocations = db.relationship(
        "TaskAllocation",
        back_populates="task",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    time_entries = db.relationship(
        "TimeEntry",
        back_populates="task",
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class TaskAssignee(db.Model):
    """One member of a task's assignee set; the earliest one is the task's primary assignee."""
    __tablename__ = "task_assignee"
    __table_args__ = (db.UniqueConstraint("task_id", "user_id", name="uq_task_assignee"),)

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("task.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("user.id"))
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    task = db.relationship("Task", back_populates="assignees")


class TaskAllocation(db.Model):
    """Scheduling allocation: `user_id` planned on `task_id` for `allocated_hours` on one date."""
    __tablename__ = "task_allocation"
    __table_args__ = (
        db.UniqueConstraint("task_id", "user_id", "allocation_date", name="uq_task_allocation"),
    )

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("task.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    allocation_date = db.Column(db.Date, nullable=False, index=True)
    allocated_hours = db.Column(db.Float, default=0.0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    task = db.relationship("Task", back_populates="allocations")


class TimeEntry(db.Model):
    __tablename__ = "time_entry"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("task.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), index=True)
    work_date = db.Column(db.Date, index=True)
    hours = db.Column(db.Float, default=0.0, nullable=False)
    note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    task = db.relationship("Task", back_populates="time_entries")


class TaskHistory(db.Model):
    """Field-level change record. Kept after the task itself is deleted."""
    __tablename__ = "task_history"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    action = db.Column(db.String(20), nullable=False)  # created|updated|deleted
    field_name = db.Column(db.String(50))
    old_value = db.Column(db.Text)
    new_value = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
