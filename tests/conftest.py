from __future__ import annotations

import base64
from collections.abc import Callable, Iterator
from io import BytesIO
from pathlib import Path
import sys
from types import SimpleNamespace

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ledgerbook.api.deps import get_db_session
from ledgerbook.api.routes.auth import issue_tokens, refresh_token_store
from ledgerbook.main import create_application
from ledgerbook.models import Base, Customer, PaymentMethod, PaymentMethodType, User, UserRole

PROOF_IMAGE = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nproof").decode("ascii")


class InMemoryS3Client:
    """Simple in-memory S3 stub shared by the audit trail and the proof store."""

    exceptions = SimpleNamespace(NoSuchKey=type("NoSuchKey", (Exception,), {}))

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, BytesIO]:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "NoSuchBucket"}}, "GetObject")
        bucket = self._buckets[Bucket]
        if Key not in bucket:
            raise self.exceptions.NoSuchKey()
        return {"Body": BytesIO(bucket[Key])}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes | str, **_: object) -> dict[str, str]:
        bucket = self._buckets.setdefault(Bucket, {})
        bucket[Key] = Body.encode("utf-8") if isinstance(Body, str) else Body
        return {"ETag": "in-memory"}

    def delete_object(self, *, Bucket: str, Key: str) -> None:
        self._buckets.get(Bucket, {}).pop(Key, None)

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


engine = create_engine(
    "sqlite+pysqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def s3_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[InMemoryS3Client]:
    client = InMemoryS3Client()

    def _client_factory(*args: object, **kwargs: object) -> InMemoryS3Client:
        return client

    monkeypatch.setattr("boto3.client", _client_factory)
    yield client


@pytest.fixture(autouse=True)
def reset_refresh_store() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    counter = iter(range(1, 10_000))

    def _make_user(
        *,
        name: str | None = None,
        phone: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        index = next(counter)
        user = User(
            name=name or f"Owner {index}",
            phone=phone or f"80000{index:05d}",
            hashed_password="!unusable",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def owner(make_user: Callable[..., User]) -> User:
    return make_user(name="Ravi Traders", phone="9000000001")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user(name="Admin", phone="9000000000", role=UserRole.ADMIN)


@pytest.fixture()
def customer(db_session: Session, owner: User) -> Customer:
    record = Customer(owner_id=owner.id, name="Asha", mobile="9990001111")
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture()
def upi_method(db_session: Session, owner: User) -> PaymentMethod:
    method = PaymentMethod(
        owner_id=owner.id,
        type=PaymentMethodType.UPI,
        upi_id="ravi@upi",
        label="Shop UPI",
        is_default=True,
    )
    db_session.add(method)
    db_session.commit()
    db_session.refresh(method)
    return method


def auth_headers_for(user: User) -> dict[str, str]:
    tokens = issue_tokens(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {tokens.access_token}"}


@pytest.fixture()
def owner_headers(owner: User) -> dict[str, str]:
    return auth_headers_for(owner)


@pytest.fixture()
def admin_headers(admin: User) -> dict[str, str]:
    return auth_headers_for(admin)


@pytest.fixture()
def client(db_session: Session, s3_client: InMemoryS3Client) -> Iterator[TestClient]:
    app = create_application()

    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers_for


@pytest.fixture()
def proof_image() -> str:
    return PROOF_IMAGE
