from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from resource_planning.core.config import Settings
from resource_planning.db.session import Database
from resource_planning.main import create_app
from resource_planning.models import Employee, Project


@pytest.fixture
def database():
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def session(database):
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(database):
    settings = Settings(_env_file=None, create_schema=False, log_level="WARNING")
    app = create_app(settings, database=database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_employee(session):
    counter = {"n": 0}

    def _make(name: str = "Ada Lovelace", position: str = "Developer", **fields) -> Employee:
        counter["n"] += 1
        fields.setdefault("email", f"employee{counter['n']}@example.com")
        employee = Employee(name=name, position=position, **fields)
        session.add(employee)
        session.commit()
        return employee

    return _make


@pytest.fixture
def make_project(session):
    counter = {"n": 0}

    def _make(name: str = "Customer Portal", **fields) -> Project:
        counter["n"] += 1
        fields.setdefault("code", f"PRJ-{counter['n']:03d}")
        project = Project(name=name, **fields)
        session.add(project)
        session.commit()
        return project

    return _make
