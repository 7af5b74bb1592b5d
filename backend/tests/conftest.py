import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient  # fake http client calling routes without a running server
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from routinedesk.api.deps import get_db
from routinedesk.db.base import Base
from routinedesk.db.bootstrap import DEFAULT_TIME_SLOTS, seed_default_time_slots
from routinedesk.main import app
from routinedesk.schemas.routine import ConflictScope, ProposedAssignment, Recurrence, RoutineSlotRecord
from routinedesk.schemas.time_slot import TimeSlotOut
from routinedesk.services.time_slot_catalog import TimeSlotCatalog

ACADEMIC_YEAR = "ay-2081"


@pytest.fixture()
def db_session_factory():
    # StaticPool keeps one connection so every session sees the same in-memory database.
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as db:
        seed_default_time_slots(db)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def client(db_session_factory):
    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def catalog():
    return TimeSlotCatalog(TimeSlotOut(**item) for item in DEFAULT_TIME_SLOTS)


@pytest.fixture()
def scope():
    return ConflictScope(academic_year_id=ACADEMIC_YEAR)


def make_slot(**overrides) -> RoutineSlotRecord:
    values = {
        "id": "slot-1",
        "program_id": "bct",
        "semester": 5,
        "section": "AB",
        "academic_year_id": ACADEMIC_YEAR,
        "day_index": 1,
        "slot_index": 3,
        "subject_id": "sub-dsa",
        "teacher_ids": ["t-1"],
        "room_id": "r-1",
    }
    values.update(overrides)
    if isinstance(values.get("recurrence"), dict):
        values["recurrence"] = Recurrence(**values["recurrence"])
    return RoutineSlotRecord(**values)


def make_proposal(**overrides) -> ProposedAssignment:
    values = {
        "program_id": "bct",
        "semester": 5,
        "section": "AB",
        "academic_year_id": ACADEMIC_YEAR,
        "day_index": 1,
        "slot_indices": [3],
        "subject_id": "sub-dsa",
        "teacher_ids": ["t-1"],
        "room_id": "r-1",
    }
    values.update(overrides)
    if isinstance(values.get("recurrence"), dict):
        values["recurrence"] = Recurrence(**values["recurrence"])
    return ProposedAssignment(**values)


def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password, role=None):
    body = {"email": email, "password": password}
    if role:
        body["role"] = role
    response = client.post("/api/auth/login", json=body)
    assert response.status_code == 200
    return response.json()["access_token"]


def auth_headers(client, role="admin", email=None):
    email = email or f"{role}@example.com"
    register_user(
        client,
        {"name": f"{role.title()} User", "email": email, "password": "password123", "role": role},
    )
    token = login_user(client, email, "password123", role)
    return {"Authorization": f"Bearer {token}"}
