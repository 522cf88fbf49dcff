"""
Test configuration.

Settings are read from the environment at import time, so the overrides below
run before any ``insights`` module is imported. Every test gets a fresh
in-memory SQLite database and a fresh application (and so a fresh profile store).
"""

import os
import tempfile

os.environ["ENVIRONMENT"] = "development"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="sahha-insights-tests-")
os.environ["SAHHA_CLIENT_ID"] = ""
os.environ["SAHHA_CLIENT_SECRET"] = ""
os.environ["SAHHA_WEBHOOK_SECRET"] = ""
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from insights import models  # noqa: F401  (registers tables on Base.metadata)
from insights.api import deps
from insights.core.config import settings
from insights.db.base import Base
from insights.main import create_app


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def no_webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "SAHHA_WEBHOOK_SECRET", None)
    monkeypatch.setattr(settings, "ALLOW_SIGNATURE_BYPASS", True)


@pytest.fixture
def app(session_factory):
    application = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[deps.get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
