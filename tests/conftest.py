# tests/conftest.py
from __future__ import annotations

import base64
import os
import tempfile
import uuid
from collections.abc import Generator, Iterator
from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

_DB_PATH = os.path.join(tempfile.gettempdir(), f"waitlist-test-{os.getpid()}.db")

os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_PATH}")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("SECURE_PATH_1", "ops")
os.environ.setdefault("SECURE_PATH_2", "s3cret")
os.environ.setdefault("ENCRYPTION_KEY", base64.urlsafe_b64encode(os.urandom(32)).decode())
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_SECRET", "test-signing-secret")
os.environ.setdefault("RATE_LIMIT_BURST", "1000")
os.environ.setdefault("SHUTDOWN_DRAIN_TIMEOUT_SECONDS", "1")

from waitlist.core.settings import settings
from waitlist.db.session import Base, SessionLocal, create_tables, drop_tables, engine
from waitlist.db.session import get_db as app_get_session
from waitlist.core.clock import epoch_ms
from waitlist.main import app as fastapi_app
from waitlist.repositories.participant_repo import ParticipantRepository
from waitlist.schemas.participant import ParticipantRecord
from waitlist.services.cipher import ContactCipher


@pytest.fixture(scope="session", autouse=True)
def database() -> Iterator[None]:
    create_tables()
    try:
        yield
    finally:
        drop_tables()
        engine.dispose()
        if os.path.exists(_DB_PATH):
            os.remove(_DB_PATH)


@pytest.fixture()
def db_session() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def debug_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    """Echo raw tokens from /register so tests can activate without mail."""
    monkeypatch.setattr(settings, "debug", True)


@pytest.fixture()
def cipher() -> ContactCipher:
    return ContactCipher(settings.encryption_key)


@pytest.fixture()
def repository(db_session: Session, cipher: ContactCipher) -> ParticipantRepository:
    return ParticipantRepository(db_session, cipher)


def _make_record(identity: str, referrer: str | None = None, *, timestamp: int | None = None) -> ParticipantRecord:
    return ParticipantRecord(
        identity=identity,
        contact=f"{identity.lower()}@example.com",
        referrer=referrer or identity,
        uuid=str(uuid.uuid4()),
        timestamp=timestamp or epoch_ms(datetime.now(UTC)),
    )


@pytest.fixture()
def make_record():
    """Factory for participant records not yet persisted."""
    return _make_record


@pytest.fixture()
def founder(repository: ParticipantRepository) -> ParticipantRecord:
    """Persist a self-referred founding participant."""
    return repository.persist(_make_record("Founder"))


@pytest.fixture()
def candidate() -> dict[str, str]:
    return {
        "identity": "Alice",
        "contact": "alice@example.com",
        "referrer": "Founder",
    }
