import os

# Configure the app before it is imported: in-memory store, fast hashing.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-projecthub-tests")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from projecthub.database import Base, get_db  # noqa: E402
from projecthub.main import app  # noqa: E402

# In-memory SQLite database shared across connections via StaticPool.
engine_test = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine_test,
)


@pytest.fixture()
def db_session():
    """Fresh schema for every test function."""
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session):
    """TestClient whose requests are served from the in-memory test database."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def register_user(client):
    """Register through the API and return ``(token, user)``."""

    def _register(
        email: str = "ana@example.com",
        name: str = "Ana",
        password: str = "secret1",
    ):
        response = client.post(
            "/api/auth/register",
            json={
                "name": name,
                "email": email,
                "password": password,
                "confirmPassword": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]

    return _register


@pytest.fixture()
def auth_headers(register_user):
    def _headers(email: str = "ana@example.com") -> dict:
        token, _ = register_user(email=email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
