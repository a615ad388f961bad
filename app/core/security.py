"""
security.py

비밀번호 해싱 및 토큰 생성/검증을 담당하는 보안 유틸리티 모음.

이 파일은 인증(auth) 로직에서 사용하는
저수준(low-level) 보안 기능만을 제공하며,
DB 접근이나 라우터 로직은 포함하지 않는다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt)
- JWT Access Token 생성 / 검증
- 불투명(opaque) Refresh Token 생성 및 해시

설계 원칙:
- Access Token은 서명 + 만료만으로 검증 (I/O 없음)
- Refresh Token은 JWT가 아닌 랜덤 문자열, DB에는 SHA-256 해시만 저장
- 시간 기반(exp / iat) 만료는 UTC 기준으로 처리

NOTE:
- Access Token에는 서버 측 폐기 목록이 없다.
  관리자 권한 변경이나 계정 삭제는 토큰이 만료되거나
  클라이언트가 refresh 할 때까지 반영되지 않는다. (최대 ACCESS_TOKEN_EXPIRE_MINUTES)

관련 파일:
- app.core.config        : 시크릿 키 및 만료 설정
- app.core.deps          : Bearer 토큰 검증 의존성
- app.services.tokens    : Access / Refresh 토큰 발급 + 저장

"""

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from app.core.config import Settings
from app.services.errors import AuthenticationError


"""
비밀번호 해싱 서비스

- bcrypt 해시 (호출마다 랜덤 salt가 해시 문자열에 포함됨)
- rounds: cost factor, 설정값 BCRYPT_ROUNDS
- deprecated="auto"로 향후 알고리즘 교체 가능하도록 설정

"""

class PasswordService:
    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, secret: str) -> str:
        return self._context.hash(secret)

    # 해시가 없거나 형식이 깨져 있으면 예외 대신 False
    def verify(self, secret: str, hashed: str | None) -> bool:
        if not secret or not hashed:
            return False
        try:
            return self._context.verify(secret, hashed)
        except (ValueError, TypeError):
            return False


@dataclass(frozen=True)
class Principal:
    user_id: uuid.UUID
    is_admin: bool


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


"""
Refresh Token 해시 함수

- 클라이언트에게 준 원본 토큰은 저장하지 않음
- DB 유출 시에도 저장된 값으로 토큰 재사용 불가

"""

def hash_refresh_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


"""
토큰 발급기(Token Issuer)

- Access Token : HS256 JWT, sub / adm / type / iat / exp / jti
- Refresh Token: secrets.token_urlsafe 기반 불투명 문자열

"""

class TokenIssuer:
    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=1),
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def issue_access_token(self, user_id: uuid.UUID, is_admin: bool, *, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "adm": bool(is_admin),
            "type": "access",
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.access_ttl).timestamp()),
            # 같은 초에 발급된 토큰끼리도 구분되도록
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_access_token(self, token: str) -> Principal:
        if not token:
            raise AuthenticationError("Not authenticated")
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except JWTError:
            raise AuthenticationError("Invalid token")

        # access 토큰만 허용
        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token")

        try:
            user_id = uuid.UUID(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token")

        is_admin = payload.get("adm")
        if not isinstance(is_admin, bool):
            raise AuthenticationError("Invalid token")

        return Principal(user_id=user_id, is_admin=is_admin)

    def issue_refresh_token(self) -> str:
        return secrets.token_urlsafe(48)

    def refresh_expires_at(self, *, now: datetime | None = None) -> datetime:
        return (now or datetime.now(timezone.utc)) + self.refresh_ttl
