from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
API_DIR = ROOT / "API"
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

# Test-mode runtime guards:
# - no MongoDB traffic from the API tests
# - a signing secret long enough for HS256
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("STUDENT_STORE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-signing-secret-with-enough-entropy-0123456789")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "10000")

from app.core.settings import Settings  # noqa: E402
from app.main import create_app  # noqa: E402


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_env="test",
        student_store_backend="memory",
        jwt_secret="test-signing-secret-with-enough-entropy-0123456789",
        password_hash_rounds=10000,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def registered_student(client) -> dict:
    payload = {"studentId": "S1", "name": "Ann", "email": "ann@x.com", "password": "p@ss1234"}
    response = client.post("/students/register", json=payload)
    assert response.status_code == 201
    return payload
