# tests/helpers.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.security import PasswordService
from app.models.oauth_account import OAuthAccount
from app.models.refresh_token import RefreshToken
from app.models.user import User, UserStatus

TEST_ADMIN_REF_CODE = "3f0c8b52-6f0e-4c55-9a51-2a7c3f1b9e10"

PASSWORD = "P@ssw0rd1"
NEW_PASSWORD = "N3w!Passw0rd"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def new_device_id() -> str:
    return uuid.uuid4().hex


def new_username(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def register_payload(username: str, password: str = PASSWORD, device_id: str | None = None, **extra) -> dict:
    payload = {
        "username": username,
        "password": password,
        "confirmPassword": password,
        "consentAt": "2026-01-01T12:00:00Z",
        "deviceId": device_id or new_device_id(),
    }
    payload.update(extra)
    return payload


def register_user(client, *, username: str | None = None, password: str = PASSWORD, device_id: str | None = None) -> dict:
    """
    HTTP 회원가입 후 응답 바디 + 사용한 device_id / password 반환
    """
    username = username or new_username()
    device_id = device_id or new_device_id()
    res = client.post("/auth/register", json=register_payload(username, password, device_id))
    assert res.status_code == 201, res.text
    body = res.json()
    body["deviceId"] = device_id
    body["password"] = password
    return body


def login(client, username: str, password: str = PASSWORD, device_id: str | None = None) -> dict:
    device_id = device_id or new_device_id()
    res = client.post("/auth/login", json={"username": username, "password": password, "deviceId": device_id})
    assert res.status_code == 200, res.text
    body = res.json()
    body["deviceId"] = device_id
    return body


def refresh(client, refresh_token: str, device_id: str):
    return client.post("/auth/refresh", json={"refreshToken": refresh_token, "deviceId": device_id})


def create_user_in_db(
    db: Session,
    passwords: PasswordService,
    *,
    username: str | None = None,
    password: str | None = PASSWORD,
    is_admin: bool = False,
    oauth_provider: str | None = None,
) -> User:
    user = User(
        username=username or new_username(),
        password_hash=passwords.hash(password) if password else None,
        is_admin=is_admin,
        status=UserStatus.ACTIVE,
        consent_at=datetime.now(timezone.utc),
        deleted_at=None,
    )
    db.add(user)
    db.flush()
    if oauth_provider:
        db.add(OAuthAccount(user_id=user.id, provider=oauth_provider, provider_id=uuid.uuid4().hex))
    db.commit()
    db.refresh(user)
    return user


def get_user(db: Session, user_id) -> User:
    db.expire_all()
    if isinstance(user_id, str):
        user_id = uuid.UUID(user_id)
    return db.scalar(select(User).where(User.id == user_id))


def live_tokens(db: Session, user_id) -> list[RefreshToken]:
    db.expire_all()
    if isinstance(user_id, str):
        user_id = uuid.UUID(user_id)
    return list(
        db.scalars(
            select(RefreshToken).where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
        ).all()
    )
