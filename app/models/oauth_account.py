"""
oauth_account.py

외부 IdP(OAuth) 계정 연결 모델.

연결(link) 흐름 자체는 이 서비스의 범위가 아니며,
프로필 응답의 oauthProviders 목록과
회원 탈퇴 시 연결 해제에만 사용한다.

"""

import uuid

from sqlalchemy import String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class OAuthAccount(Base):
    __tablename__ = "oauth_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_oauth_accounts_provider_provider_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)

    user = relationship("User", back_populates="oauth_accounts")
