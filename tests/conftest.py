"""Shared pytest setup: in-memory SQLite, fresh schema per test."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("AUTH_TOKEN_SECRET", "test-secret-key")
os.environ.setdefault("CRON_SECRET", "cron-test-secret")
os.environ.setdefault("ASAAS_ACCESS_TOKEN", "webhook-test-token")

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.main import app
from app.modules.location.geocoding import set_geocoder
from app.modules.notifications.email import set_email_client
from app.modules.notifications.whatsapp import set_whatsapp_client


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    set_geocoder(None)
    set_email_client(None)
    set_whatsapp_client(None)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)
