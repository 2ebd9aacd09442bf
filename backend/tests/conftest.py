"""
Configuration partagée pour tous les tests.

Les tests utilisent une base SQLite en mémoire (StaticPool : une seule connexion
partagée) et une horloge figée. Le client HTTP override get_db, get_clock et
get_image_store pour éviter toute connexion PostgreSQL ou écriture disque.
"""

import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from qrattend.clock import FixedClock  # noqa: E402
from qrattend.database import get_db, init_db  # noqa: E402
from qrattend.dependencies import get_clock, get_image_store  # noqa: E402
from qrattend.main import app  # noqa: E402
from qrattend.models.person import Student  # noqa: E402

T0 = datetime(2026, 9, 14, 8, 0, tzinfo=timezone.utc)


class FakeImageStore:
    """Stockage d'images en mémoire."""

    def __init__(self):
        self.saved = {}

    def save(self, name: str, data: bytes) -> str:
        self.saved[name] = data
        return f"https://images.test/{name}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def client(session_factory, clock, image_store):
    """Client HTTP de test branché sur la base SQLite en mémoire."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_image_store] = lambda: image_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def add_students(db, count):
    """Crée `count` élèves et retourne leurs identifiants."""
    students = [
        Student(first_name=f"Prénom{i}", last_name=f"Nom{i:02d}", email=f"eleve-{uuid.uuid4().hex[:8]}@school.test")
        for i in range(count)
    ]
    db.add_all(students)
    db.commit()
    return [s.id for s in students]


@pytest.fixture
def make_students(db):
    return lambda count: add_students(db, count)
