"""
refresh_token.py

기기(device) 단위 Refresh Token 모델 정의 파일.

한 row 가 하나의 세션 시도(발급 → 사용/폐기)를 나타낸다.

- token_hash : 클라이언트에게 준 원본 토큰의 SHA-256 해시 (원본은 저장하지 않음)
- device_id  : 클라이언트가 보낸 기기 식별자, 세션을 기기 단위로 묶음
- revoked_at : NULL 이면 유효, 값이 있으면 사용(rotation) 또는 폐기된 토큰
- expires_at : 조회 시점에 만료 여부 판단 (만료 row를 즉시 지우지 않음)

설계 원칙:
- (user_id, device_id) 조합마다 revoked_at IS NULL 인 row는 최대 1개
  -> partial unique index 로 DB 차원에서 보장

"""

import uuid
import datetime

from sqlalchemy import String, DateTime, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_id_device_id", "user_id", "device_id"),
        Index(
            "uq_refresh_tokens_user_device_live",
            "user_id",
            "device_id",
            unique=True,
            postgresql_where=text("revoked_at IS NULL"),
            sqlite_where=text("revoked_at IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    device_id: Mapped[str] = mapped_column(String(128), nullable=False)

    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    issued_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    revoked_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
