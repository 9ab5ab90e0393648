"""Shared fixtures: in-memory SQLite, seeded users/project/task, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_FORMAT", "dev")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timesheet.core.security import create_access_token
from timesheet.database.base import Base
from timesheet.database.session import get_db
from timesheet.main import app
from timesheet.models.project import Project
from timesheet.models.task import Task
from timesheet.models.user import User

ASSIGNEE_ID = 42
OTHER_USER_ID = 7

T0 = datetime(2024, 3, 4, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def assignee(db) -> User:
    user = User(id=ASSIGNEE_ID, name="Asha Developer", email="asha@example.com", role="Developer")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_user(db) -> User:
    user = User(id=OTHER_USER_ID, name="Ravi Lead", email="ravi@example.com", role="Team Lead")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def project(db) -> Project:
    project = Project(id=1, project_name="Payroll revamp", project_code="PAY-01")
    db.add(project)
    db.commit()
    return project


@pytest.fixture
def make_task(db, project, assignee):
    def _make(**overrides) -> Task:
        values = {
            "project_id": project.id,
            "name": "Build export",
            "assigned_to": assignee.id,
            "estimated_time": 2.0,
            "status": "pending",
            "acceptance_status": "pending",
            "total_tracked_seconds": 0,
        }
        values.update(overrides)
        task = Task(**values)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make


@pytest.fixture
def task(make_task) -> Task:
    return make_task()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
