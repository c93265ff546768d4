# workdesk/models/organization.py
from datetime import datetime
from ..extensions import db


class Organization(db.Model):
    __tablename__ = "organization"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    projects = db.relationship(
        "Project",
        back_populates="organization",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    task_statuses = db.relationship(
        "TaskStatusValue",
        back_populates="organization",
        lazy="selectin",
        order_by="TaskStatusValue.sort_order",
        cascade="all, delete-orphan",
    )

    @classmethod
    def with_default_statuses(cls, name: str) -> "Organization":
        """New organization carrying the standard To Do / In Progress / Done / Cancelled set."""
        org = cls(name=name)
        for values in DEFAULT_TASK_STATUSES:
            org.task_statuses.append(TaskStatusValue(**values))
        return org


class Project(db.Model):
    __tablename__ = "project"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    organization = db.relationship("Organization", back_populates="projects")


class TaskStatusValue(db.Model):
    """Organization-scoped task status (e.g. To Do / In Progress / Done / Cancelled)."""
    __tablename__ = "task_status_value"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)
    name = db.Column(db.String(80), nullable=False)
    color = db.Column(db.String(20))
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    is_closed = db.Column(db.Boolean, default=False, nullable=False)
    is_cancelled = db.Column(db.Boolean, default=False, nullable=False)

    organization = db.relationship("Organization", back_populates="task_statuses")


# Seeded for every new organization (see create.py)
DEFAULT_TASK_STATUSES = [
    {"name": "To Do", "sort_order": 1, "color": "#9ca3af"},
    {"name": "In Progress", "sort_order": 2, "color": "#3b82f6"},
    {"name": "Done", "sort_order": 3, "color": "#10b981", "is_closed": True},
    {"name": "Cancelled", "sort_order": 4, "color": "#ef4444", "is_cancelled": True},
]
