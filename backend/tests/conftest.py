import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.models.task import Task, TaskAssignment

TEST_DB_URL = "sqlite:///./test_taskflow.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "owner": User(name="Olivia Owner", email="owner@example.com", image="https://img.example.com/o.png"),
        "assignee": User(name="Adam Assignee", email="assignee@example.com", image="https://img.example.com/a.png"),
        "outsider": User(name="Oscar Outsider", email="outsider@example.com"),
        "inactive": User(name="Ivy Inactive", email="inactive@example.com", is_active=False),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


def make_task(db, owner, assignees=(), **fields) -> Task:
    fields.setdefault("title", "Task")
    fields.setdefault("priority", "medium")
    task = Task(user_id=owner.id, **fields)
    task.assignments = [TaskAssignment(user_id=u.id) for u in assignees]
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def get_token(client, email: str) -> str:
    resp = client.post("/api/auth/login", json={"email": email})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, email: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, email)}"}
