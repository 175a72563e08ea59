"""Registration, login and JWT issuance."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Any, Literal
from uuid import uuid4

import bcrypt
from cryptography.hazmat.primitives import serialization
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session
from ledgerbook.core.config import Settings, get_settings
from ledgerbook.models import User, UserRole
from ledgerbook.schemas import UserRead

router = APIRouter()
security_scheme = HTTPBearer(auto_error=True)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=4, max_length=32)
    email: str | None = Field(default=None, max_length=320)
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    phone: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPayload(BaseModel):
    sub: str
    role: UserRole
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    role: UserRole
    token_id: str

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class RefreshTokenStore:
    """In-memory store tracking active and blacklisted refresh tokens."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._blacklist: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            if token_id in self._blacklist:
                return False
            return self._active.get(subject) == token_id

    def blacklist(self, token_id: str) -> None:
        with self._lock:
            self._blacklist.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._blacklist.clear()


refresh_token_store = RefreshTokenStore()


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(raw_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


@lru_cache(maxsize=4)
def _load_keys(private_pem: str) -> tuple[Any, bytes]:
    private_key = serialization.load_pem_private_key(private_pem.encode("utf-8"), password=None)
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_key, public_pem


def _signing_key(settings: Settings) -> Any:
    try:
        return _load_keys(settings.jwt_private_key)[0]
    except ValueError as exc:  # pragma: no cover - configuration issue
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid JWT signing key",
        ) from exc


def _verification_key(settings: Settings) -> str:
    return _load_keys(settings.jwt_private_key)[1].decode("utf-8")


def _create_token(
    *,
    subject: str,
    role: UserRole,
    settings: Settings,
    expires_delta: timedelta,
    token_type: Literal["access", "refresh"],
) -> tuple[str, str]:
    now = datetime.now(UTC)
    token_id = uuid4().hex
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "role": role.value,
        "type": token_type,
        "jti": token_id,
    }
    encoded = jwt.encode(payload, _signing_key(settings), algorithm=settings.jwt_algorithm)
    return encoded, token_id


def issue_tokens(*, user_id: str, role: UserRole, settings: Settings | None = None) -> TokenResponse:
    """Issue an access/refresh pair and remember the refresh token as the active one."""

    settings = settings or get_settings()
    access_token, _ = _create_token(
        subject=user_id,
        role=role,
        settings=settings,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        token_type="access",
    )
    refresh_token, refresh_id = _create_token(
        subject=user_id,
        role=role,
        settings=settings,
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
        token_type="refresh",
    )
    refresh_token_store.mark_active(user_id, refresh_id)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def _decode_token(*, token: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, _verification_key(settings), algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    try:
        return TokenPayload(**payload)
    except ValidationError as exc:  # pragma: no cover - validation handles data issues
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    session: Session = Depends(get_db_session),
) -> AuthenticatedUser:
    payload = _decode_token(token=credentials.credentials, settings=get_settings())
    if payload.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    if session.get(User, payload.sub) is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account no longer exists")
    request.state.actor_id = payload.sub
    request.state.actor_role = payload.role.value
    return AuthenticatedUser(user_id=payload.sub, role=payload.role, token_id=payload.jti)


def require_role(*roles: UserRole) -> Callable[..., AuthenticatedUser]:
    allowed_roles = set(roles)

    def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admin only.")
        return user

    return dependency


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    user = User(
        name=payload.name.strip(),
        phone=payload.phone.strip(),
        email=payload.email,
        hashed_password=hash_password(payload.password),
        role=UserRole.USER,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this phone number already exists",
        ) from exc
    session.refresh(user)
    return issue_tokens(user_id=user.id, role=user.role)


@router.post("/login", response_model=TokenResponse, summary="Issue JWT access tokens")
def login(payload: LoginRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    user = session.scalar(select(User).where(User.phone == payload.phone.strip()))
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return issue_tokens(user_id=user.id, role=user.role)


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_token(payload: RefreshRequest) -> TokenResponse:
    token = _decode_token(token=payload.refresh_token, settings=get_settings())
    if token.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    if not refresh_token_store.is_active(token.sub, token.jti):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token revoked")

    refresh_token_store.blacklist(token.jti)
    return issue_tokens(user_id=token.sub, role=token.role)


@router.get("/me", response_model=UserRead)
def me(
    user: AuthenticatedUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> UserRead:
    return UserRead.model_validate(session.get(User, user.user_id))


__all__ = [
    "AuthenticatedUser",
    "RefreshTokenStore",
    "TokenResponse",
    "get_current_user",
    "hash_password",
    "issue_tokens",
    "refresh_token_store",
    "require_role",
    "router",
    "verify_password",
]
