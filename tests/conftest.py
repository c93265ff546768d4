# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from workdesk import create_app
from workdesk.config import TestConfig
from workdesk.extensions import db
from workdesk.models.organization import Organization, Project
from workdesk.models.user import User


@pytest.fixture()
def app(tmp_path: Path):
    """
    App wired to a throwaway SQLite file.

    A file (not :memory:) so every connection the pool hands out sees the
    same tables. The app context stays pushed for the whole test, so test
    code and client requests share one session.
    """
    config = type(
        "PerTestConfig",
        (TestConfig,),
        {
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'workdesk.db'}",
            "LOG_DIR": str(tmp_path / "logs"),
        },
    )
    app = create_app(config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def seed(app) -> SimpleNamespace:
    """One organization with the default statuses, two projects and two users."""
    org = Organization.with_default_statuses("Acme")
    project = Project(organization=org, name="Launch")
    other = Project(organization=org, name="Maintenance")
    alice = User(name="Alice", email="alice@example.com")
    bob = User(name="Bob", email="bob@example.com")
    db.session.add_all([org, project, other, alice, bob])
    db.session.commit()

    return SimpleNamespace(
        project_id=project.id,
        other_project_id=other.id,
        alice_id=alice.id,
        bob_id=bob.id,
        status={s.name: s.id for s in org.task_statuses},
    )
