"""
user.py

사용자(User) 및 계정 상태(UserStatus) 모델 정의 파일.

이 파일은 블로그 사용자의 로그인 정보(username / 비밀번호 해시),
관리자 여부, 약관 동의 시각, 탈퇴 상태(Soft Delete)를 관리한다.

모든 인증, 세션, 관리자 전환 기능의 기준이 되는 핵심 모델이다.

"""

import uuid
import datetime
from enum import Enum

from sqlalchemy import String, Boolean, DateTime, Uuid, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.oauth_account import OAuthAccount  # noqa: F401  (relationship 대상 매퍼 등록)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


"""
계정 상태(UserStatus) 정의

- ACTIVE   : 정상 계정
- DELETED  : 탈퇴(삭제) 처리된 계정, deleted_at 과 함께 기록

"""

class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


"""
사용자(User) 모델

- username 은 고유 식별자 (대소문자 구분, 탈퇴 후에도 재사용 불가)
- password_hash 가 없으면 로컬 비밀번호 없는 계정 (외부 IdP 가입) -> 로그인 불가
- is_admin 은 join-admin 으로 한 번 True가 되면 자동으로 되돌리지 않음
- consent_at 은 가입 시점에 기록, 이후 변경하지 않음
- status / deleted_at 으로 Soft Delete 지원

"""

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(200), nullable=True)

    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[UserStatus] = mapped_column(
        SAEnum(UserStatus, name="user_status"), nullable=False, default=UserStatus.ACTIVE, index=True
    )
    deleted_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    consent_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    oauth_accounts = relationship(
        "OAuthAccount",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None

    @property
    def oauth_providers(self) -> list[str]:
        return sorted(a.provider for a in self.oauth_accounts)
