"""Shared pytest fixtures and configuration."""

import os

# Set test environment variables before the application modules read them
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("RECAPTCHA_SECRET_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from realestate.database import Base, get_db  # noqa: E402
from realestate.domain.appointments.service import AppointmentService  # noqa: E402
from realestate.main import app  # noqa: E402
from tests.utils.factories import make_property, make_user  # noqa: E402


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db):
    return AppointmentService(db)


@pytest.fixture
def client(session_factory):
    """API client wired to the per-test database"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    return make_user(db, role="admin", first_name="Ada", last_name="Admin")


@pytest.fixture
def agent(db):
    return make_user(db, role="agent", first_name="Maria", last_name="Santos")


@pytest.fixture
def other_agent(db):
    return make_user(db, role="agent", first_name="Jose", last_name="Reyes")


@pytest.fixture
def listing(db):
    return make_property(db)
