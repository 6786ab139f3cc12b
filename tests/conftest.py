"""Shared fixtures: an isolated in-memory database per test and helpers to create accounts."""

import os

# Module settings are read at import time; keep tests off the on-disk database and SMTP.
os.environ["TUITION_DATABASE_URL"] = "sqlite://"
os.environ["SMTP_EMAIL"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["ALLOW_CREDENTIAL_CONSOLE_FALLBACK"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tuition_module.app import create_app  # noqa: E402
from tuition_module.database import enable_sqlite_savepoints, get_db_session, init_database  # noqa: E402
from tuition_module.identity import Principal  # noqa: E402
from tuition_module.models import Account, UserRole  # noqa: E402
from tuition_module.security import hash_password  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_savepoints(engine)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """API client bound to the test database."""

    def override_db_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app = create_app()
    app.dependency_overrides[get_db_session] = override_db_session
    return TestClient(app)


@pytest.fixture
def sent_credentials(monkeypatch):
    """Capture parent credential notifications instead of sending them."""
    sent = []

    def fake_notify(*, recipient_email, student_name, password):
        sent.append({"email": recipient_email, "student_name": student_name, "password": password})
        return True

    monkeypatch.setattr("tuition_module.services.notify_parent_credentials", fake_notify)
    return sent


def make_account(db, *, name, email, role, password="Secret123!"):
    account = Account(name=name, email=email, password_hash=hash_password(password), role=role)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def as_principal(account) -> Principal:
    return Principal(id=account.id, role=account.role.value)


@pytest.fixture
def tutor_a(db):
    return make_account(db, name="Tutor A", email="a@tutors.com", role=UserRole.TUTOR)


@pytest.fixture
def tutor_b(db):
    return make_account(db, name="Tutor B", email="b@tutors.com", role=UserRole.TUTOR)
