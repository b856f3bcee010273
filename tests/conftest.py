# tests/conftest.py
"""Shared fixtures: a throwaway SQLite database, two users, and an API client."""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"permits_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["API_KEY"] = ""

import pytest
from datetime import datetime
from decimal import Decimal
from fastapi.testclient import TestClient

import app.models  # noqa
from app.database import Base, SessionLocal, engine
from app.models.user import User
from app.schemas.permit import PermitPurchase
from app.services.identity import AuthenticatedUser


def make_purchase(**overrides) -> PermitPurchase:
    fields = dict(
        full_name="Jordan Lee",
        student_id="S0012345",
        vehicle_make="Toyota",
        license_plate="abc123",
        category="semester",
        price=Decimal("50.00"),
        card_number="4111 1111 1111 1234",
    )
    fields.update(overrides)
    return PermitPurchase(**fields)


def row_count(model) -> int:
    """Counts rows through a fresh connection, outside any test session."""
    with SessionLocal() as session:
        return session.query(model).count()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def users(db):
    """Two committed users, returned as the identities the gateway would assert."""
    alice = User(email="alice@mcneese.edu", password_hash="x", first_name="Alice",
                 last_name="Doe", student_id="S0000001", created_at=datetime.utcnow())
    bob = User(email="bob@mcneese.edu", password_hash="x", first_name="Bob",
               last_name="Roe", student_id="S0000002", created_at=datetime.utcnow())
    db.add_all([alice, bob])
    db.commit()
    return (AuthenticatedUser(id=alice.id, email=alice.email),
            AuthenticatedUser(id=bob.id, email=bob.email))


@pytest.fixture
def client(db):
    from app.main import app
    return TestClient(app)


def auth_headers(user: AuthenticatedUser) -> dict:
    return {"X-User-Id": str(user.id)}
