# backend/tests/conftest.py
import os

# Point the app at a throwaway database before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.users import User, ROLE_SUPERADMIN
from utils.hashing import get_password_hash

ADMIN_EMAIL = "admin@branchstock.com"
ADMIN_PASSWORD = "secret-pass"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    resp = client.post("/register", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 201, resp.text
    token = client.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def subadmin_headers(client, admin_headers):
    resp = client.post(
        "/subadmins",
        json={"email": "staff@branchstock.com", "password": "staff-pass", "first_name": "Sam"},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    token = client.post("/login", json={"email": "staff@branchstock.com", "password": "staff-pass"}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(db):
    # Direct-to-service tests need an acting user without going through HTTP
    u = User(email="svc@branchstock.com", password_hash=get_password_hash("x"), role=ROLE_SUPERADMIN)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def make_item(client, admin_headers):
    def _make(**overrides):
        body = {
            "name": "Laptop",
            "category": "Electronics",
            "quantity": 5,
            "minStock": 2,
            "supplier": "Acme",
            "location": "Shelf A",
        }
        body.update(overrides)
        resp = client.post("/inventory", json=body, headers=admin_headers)
        assert resp.status_code == 201, resp.text
        items = resp.json()
        return items[0] if len(items) == 1 else items
    return _make
