"""
services/credentials.py

사용자 자격 증명 저장소(Credential Store).

이 파일은 users / oauth_accounts 테이블에 대한
조회 / 생성 / 수정 / Soft Delete 를 담당한다.

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 트랜잭션 커밋은 호출 측(SessionService, 라우터)에서 수행
- 탈퇴(DELETED) 계정은 관리자 감사용 조회를 제외한 모든 조회에서 없는 것으로 취급
- username 중복(IntegrityError)은 ConflictError 로 변환

관련 파일:
- app.models.user          : User / UserStatus 모델
- app.models.oauth_account : OAuthAccount 모델
- app.services.session     : 세션 서비스

"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User, UserStatus
from app.models.oauth_account import OAuthAccount
from app.services.errors import ConflictError


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def get_active(self, user_id: uuid.UUID) -> User | None:
        return self.db.scalar(
            select(User).where(User.id == user_id, User.status == UserStatus.ACTIVE)
        )

    def get_active_by_username(self, username: str) -> User | None:
        return self.db.scalar(
            select(User).where(User.username == username, User.status == UserStatus.ACTIVE)
        )

    # 탈퇴 계정의 username 도 예약 상태이므로 전체 row 기준
    def username_exists(self, username: str) -> bool:
        return self.db.scalar(select(User.id).where(User.username == username)) is not None

    def list_active(self) -> list[User]:
        return list(
            self.db.scalars(
                select(User).where(User.status == UserStatus.ACTIVE).order_by(User.created_at, User.username)
            ).all()
        )

    """
    신규 사용자 생성

    - 관리자 아님(is_admin=False), ACTIVE 상태로 생성
    - flush 시점에 username unique 위반이면 ConflictError
    - commit 은 호출 측 책임

    """
    def create(
        self,
        *,
        username: str,
        password_hash: str | None,
        consent_at: datetime,
        avatar_url: str | None = None,
    ) -> User:
        if self.username_exists(username):
            raise ConflictError("User already exists")

        user = User(
            username=username,
            password_hash=password_hash,
            avatar_url=avatar_url,
            is_admin=False,
            status=UserStatus.ACTIVE,
            consent_at=consent_at,
            deleted_at=None,
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User already exists")
        return user

    def update_profile(self, user: User, *, username: str | None = None, avatar_url: str | None = None) -> User:
        if username is not None and username != user.username:
            if self.username_exists(username):
                raise ConflictError("Username already taken")
            user.username = username
        if avatar_url is not None:
            user.avatar_url = avatar_url
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username already taken")
        return user

    def set_password_hash(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash

    def grant_admin(self, user: User) -> None:
        user.is_admin = True

    """
    Soft Delete

    - status=DELETED, deleted_at 기록
    - 외부 IdP(OAuth) 연결 해제
    - Refresh Token 폐기는 RefreshTokenStore 가 담당

    """
    def soft_delete(self, user: User) -> None:
        user.status = UserStatus.DELETED
        user.deleted_at = datetime.now(timezone.utc)
        self.db.execute(
            delete(OAuthAccount)
            .where(OAuthAccount.user_id == user.id)
            .execution_options(synchronize_session=False)
        )
        self.db.expire(user, ["oauth_accounts"])
