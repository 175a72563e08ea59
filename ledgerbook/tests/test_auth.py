from collections.abc import Iterator
from typing import TYPE_CHECKING

import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledgerbook.api.deps import get_db_session
from ledgerbook.api.routes.auth import _verification_key, refresh_token_store
from ledgerbook.core.config import Settings, get_settings
from ledgerbook.main import create_application
from ledgerbook.models import Base, User, UserRole

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

PHONE = "9876543210"
PASSWORD = "changeme"


@pytest.fixture()
def session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture()
def client(session: Session) -> Iterator["TestClient"]:
    pytest.importorskip("fastapi")
    from fastapi.testclient import TestClient

    app = create_application(Settings(audit_log_sample_rate=0))

    def override_get_db() -> Iterator[Session]:
        try:
            yield session
        finally:
            session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_refresh_store() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


def _register(client: "TestClient") -> tuple[str, str]:
    response = client.post(
        "/api/auth/register",
        json={"name": "Ravi", "phone": PHONE, "password": PASSWORD},
    )
    assert response.status_code == 201
    body = response.json()
    return body["access_token"], body["refresh_token"]


def _login(client: "TestClient", password: str = PASSWORD):
    return client.post("/api/auth/login", json={"phone": PHONE, "password": password})


def test_register_returns_signed_tokens(client: "TestClient") -> None:
    access_token, refresh_token = _register(client)

    settings = get_settings()
    public_key = _verification_key(settings)
    access_payload = jwt.decode(access_token, public_key, algorithms=[settings.jwt_algorithm])
    refresh_payload = jwt.decode(refresh_token, public_key, algorithms=[settings.jwt_algorithm])

    assert access_payload["type"] == "access"
    assert access_payload["role"] == UserRole.USER.value
    assert refresh_payload["type"] == "refresh"
    assert refresh_payload["sub"] == access_payload["sub"]


def test_duplicate_phone_is_conflict(client: "TestClient") -> None:
    _register(client)

    response = client.post(
        "/api/auth/register",
        json={"name": "Someone else", "phone": PHONE, "password": "another-password"},
    )

    assert response.status_code == 409


def test_login_checks_password(client: "TestClient") -> None:
    _register(client)

    assert _login(client).status_code == 200
    rejected = _login(client, password="wrong-password")
    assert rejected.status_code == 401
    assert rejected.json()["detail"] == "Invalid credentials"


def test_refresh_rotates_and_blacklists_tokens(client: "TestClient") -> None:
    _, refresh_token = _register(client)

    first_response = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert first_response.status_code == 200
    new_refresh_token = first_response.json()["refresh_token"]

    # Reusing the same refresh token should be rejected because of rotation
    second_response = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert second_response.status_code == 401

    third_response = client.post("/api/auth/refresh", json={"refresh_token": new_refresh_token})
    assert third_response.status_code == 200


def test_access_token_cannot_refresh(client: "TestClient") -> None:
    access_token, _ = _register(client)

    response = client.post("/api/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 400


def test_me_returns_profile_and_role(client: "TestClient", session: Session) -> None:
    access_token, _ = _register(client)
    headers = {"Authorization": f"Bearer {access_token}"}

    profile = client.get("/api/auth/me", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["phone"] == PHONE
    assert profile.json()["role"] == "USER"

    assert client.get("/api/admin/users", headers=headers).status_code == 403
    user = session.query(User).filter_by(phone=PHONE).one()
    user.role = UserRole.ADMIN
    session.commit()
    promoted = client.post("/api/auth/login", json={"phone": PHONE, "password": PASSWORD}).json()
    admin_headers = {"Authorization": f"Bearer {promoted['access_token']}"}
    assert client.get("/api/admin/users", headers=admin_headers).status_code == 200


def test_rejects_garbage_token(client: "TestClient") -> None:
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
