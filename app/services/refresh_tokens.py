"""
services/refresh_tokens.py

기기 단위 Refresh Token 저장소(Refresh Token Store).

주요 기능:
- put          : (user, device) 의 기존 유효 토큰을 폐기하고 새 토큰 저장
- consume      : 토큰을 1회 사용 처리하고 소유자 user_id 반환
- revoke       : 특정 기기 또는 사용자 전체 토큰 폐기
- purge_expired: 만료 / 폐기된 오래된 row 정리 (유지보수 스크립트용)

설계 원칙:
- consume 은 조건부 UPDATE ... RETURNING 한 번으로 처리
  -> 같은 토큰으로 동시에 refresh 해도 성공은 정확히 1번
- 알 수 없는 토큰 / 다른 기기 / 만료 / 폐기 모두 같은 에러 (정보 노출 방지)
- 만료는 조회 시점에 판단, 만료 row를 즉시 지우지 않음
- put 의 commit 은 호출 측(issue_user_tokens)에서 수행

관련 파일:
- app.models.refresh_token : RefreshToken 모델
- app.services.tokens      : 토큰 발급 + put
- app.core.security        : hash_refresh_token

"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import update, delete, or_
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.core.security import hash_refresh_token
from app.models.refresh_token import RefreshToken
from app.services.errors import AuthenticationError

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshTokenStore:
    def __init__(self, db: Session):
        self.db = db

    def put(self, user_id: uuid.UUID, device_id: str, token_hash: str, expires_at: datetime) -> RefreshToken:
        now = _utcnow()
        self.revoke(user_id, device_id, now=now)

        row = RefreshToken(
            user_id=user_id,
            device_id=device_id,
            token_hash=token_hash,
            issued_at=now,
            expires_at=expires_at,
            revoked_at=None,
        )
        self.db.add(row)
        # partial unique index 위반(동시 발급)은 여기서 IntegrityError
        self.db.flush()
        return row

    """
    Refresh Token 사용(consume)

    - 입력 토큰을 해시하여 (hash, device_id, 미폐기, 미만료) 조건으로 조회
    - 조건을 만족하는 row 를 같은 문장에서 폐기 처리 후 즉시 commit
    - 실패 시 AuthenticationError("Invalid token")

    """
    def consume(self, raw_token: str, device_id: str) -> uuid.UUID:
        if not raw_token or not device_id:
            raise AuthenticationError("Invalid token")

        now = _utcnow()
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == hash_refresh_token(raw_token),
                RefreshToken.device_id == device_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .values(revoked_at=now)
            .returning(RefreshToken.user_id)
            .execution_options(synchronize_session=False)
        )
        user_id = self.db.execute(stmt).scalar_one_or_none()
        self.db.commit()

        if user_id is None:
            logger.info("refresh_rejected", device_id=device_id)
            raise AuthenticationError("Invalid token")
        return user_id

    def revoke(self, user_id: uuid.UUID, device_id: str | None = None, *, now: datetime | None = None) -> int:
        stmt = update(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
        )
        if device_id is not None:
            stmt = stmt.where(RefreshToken.device_id == device_id)

        result = self.db.execute(
            stmt.values(revoked_at=now or _utcnow()).execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(
                "refresh_tokens_revoked",
                user_id=str(user_id),
                device_id=device_id,
                count=result.rowcount,
            )
        return result.rowcount

    def purge_expired(self, *, retention: timedelta = timedelta(days=0), now: datetime | None = None) -> int:
        cutoff = (now or _utcnow()) - retention
        result = self.db.execute(
            delete(RefreshToken)
            .where(
                or_(
                    RefreshToken.expires_at <= cutoff,
                    RefreshToken.revoked_at <= cutoff,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
