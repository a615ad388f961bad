"""
보안 유틸리티 단위 테스트.
- bcrypt 해시/검증, 잘못된 해시 처리,
  Access Token 발급/검증(만료, 변조, 타입), Refresh Token 생성/해시를 확인한다.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.core.security import PasswordService, TokenIssuer, hash_refresh_token
from app.services.errors import AuthenticationError


@pytest.fixture()
def pw():
    return PasswordService(rounds=4)


@pytest.fixture()
def tokens():
    return TokenIssuer("unit-test-secret", access_ttl=timedelta(minutes=15))


def test_password_hash_roundtrip_and_salt(pw):
    h1 = pw.hash("P@ssw0rd1")
    h2 = pw.hash("P@ssw0rd1")

    assert h1 != h2  # 호출마다 salt 다름
    assert "P@ssw0rd1" not in h1
    assert pw.verify("P@ssw0rd1", h1)
    assert pw.verify("P@ssw0rd1", h2)
    assert not pw.verify("P@ssw0rd2", h1)


@pytest.mark.parametrize("bad_hash", [None, "", "not-a-hash", "$2b$04$tooshort"])
def test_password_verify_never_raises_on_malformed_hash(pw, bad_hash):
    assert pw.verify("P@ssw0rd1", bad_hash) is False


def test_access_token_roundtrip(tokens):
    user_id = uuid.uuid4()
    token = tokens.issue_access_token(user_id, True)

    principal = tokens.verify_access_token(token)
    assert principal.user_id == user_id
    assert principal.is_admin is True

    claims = jwt.get_unverified_claims(token)
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_access_tokens_are_unique_within_same_second(tokens):
    user_id = uuid.uuid4()
    now = datetime.now(timezone.utc)
    assert tokens.issue_access_token(user_id, False, now=now) != tokens.issue_access_token(user_id, False, now=now)


def test_expired_access_token_rejected(tokens):
    token = tokens.issue_access_token(uuid.uuid4(), False, now=datetime.now(timezone.utc) - timedelta(hours=1))

    with pytest.raises(AuthenticationError) as exc:
        tokens.verify_access_token(token)
    assert exc.value.message == "Token expired"


def test_access_token_signed_with_other_secret_rejected(tokens):
    other = TokenIssuer("another-secret")
    token = other.issue_access_token(uuid.uuid4(), True)

    with pytest.raises(AuthenticationError):
        tokens.verify_access_token(token)


@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "not-a-uuid", "adm": False, "type": "access"},
        {"sub": str(uuid.uuid4()), "adm": False, "type": "refresh"},
        {"sub": str(uuid.uuid4()), "type": "access"},
        {"adm": False, "type": "access"},
    ],
)
def test_access_token_with_bad_claims_rejected(tokens, claims):
    now = datetime.now(timezone.utc)
    payload = dict(claims, iat=int(now.timestamp()), exp=int((now + timedelta(minutes=5)).timestamp()))
    token = jwt.encode(payload, "unit-test-secret", algorithm="HS256")

    with pytest.raises(AuthenticationError):
        tokens.verify_access_token(token)


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c"])
def test_malformed_access_token_rejected(tokens, garbage):
    with pytest.raises(AuthenticationError):
        tokens.verify_access_token(garbage)


def test_refresh_token_is_random_and_hash_is_stable(tokens):
    a = tokens.issue_refresh_token()
    b = tokens.issue_refresh_token()

    assert a != b
    assert len(a) >= 60
    assert hash_refresh_token(a) == hash_refresh_token(a)
    assert hash_refresh_token(a) != hash_refresh_token(b)
    assert len(hash_refresh_token(a)) == 64
