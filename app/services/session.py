"""
services/session.py

인증 / 세션 수명 주기 비즈니스 로직(Session Service).

이 파일은 회원 가입, 로그인, 토큰 재발급, 로그아웃,
비밀번호 변경/설정, 관리자 전환, 회원 삭제를
Credential Store / Password Service / Token Issuer / Refresh Token Store 를 조합하여 처리한다.

설계 원칙:
- HTTP / FastAPI 의존성 없음, 실패는 app.services.errors 예외로 전달
- 어떤 연산도 재시도하지 않음 (토큰 rotation 충돌의 제한된 재시도만 예외)
- 로그인 실패 사유(없는 사용자 / 탈퇴 / 비밀번호 없음 / 불일치)는 외부에서 구분 불가
- 비밀번호 변경 / 관리자 전환 시 모든 기기의 Refresh Token 폐기 후 호출 기기에 새 토큰 발급
- 권한 판단이 필요한 경우 토큰 claim 이 아니라 DB 상태 기준으로 재확인

관련 파일:
- app.services.credentials    : CredentialStore
- app.services.refresh_tokens : RefreshTokenStore
- app.services.tokens         : issue_user_tokens
- app.core.security           : PasswordService / TokenIssuer
- app.routers.auth            : 인증 API

"""

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.core.security import PasswordService, Principal, TokenIssuer, TokenPair
from app.models.user import User
from app.services.credentials import CredentialStore
from app.services.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    GoneError,
    NotFoundError,
    ServerError,
    ServiceError,
)
from app.services.refresh_tokens import RefreshTokenStore
from app.services.tokens import issue_user_tokens

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass
class AuthSession:
    user: User
    tokens: TokenPair


class SessionService:
    def __init__(
        self,
        db: Session,
        *,
        passwords: PasswordService,
        issuer: TokenIssuer,
        admin_ref_code: str | None = None,
    ):
        self.db = db
        self.passwords = passwords
        self.issuer = issuer
        self.admin_ref_code = admin_ref_code
        self.users = CredentialStore(db)
        self.refresh_tokens = RefreshTokenStore(db)

    def _issue(self, user: User, device_id: str, *, revoke_all: bool = False, apply_changes=None) -> AuthSession:
        tokens = issue_user_tokens(
            self.db, self.issuer, user, device_id, revoke_all=revoke_all, apply_changes=apply_changes
        )
        self.db.refresh(user)
        return AuthSession(user=user, tokens=tokens)

    """
    회원 가입

    - username 중복이면 409
    - 사용자 row 를 먼저 commit 한 뒤 토큰 발급
    - 토큰 발급이 실패하면 500 (사용자 row 는 남음)

    """
    def register(
        self,
        *,
        username: str,
        password: str,
        consent_at: datetime,
        device_id: str,
        avatar_url: str | None = None,
    ) -> AuthSession:
        try:
            user = self.users.create(
                username=username,
                password_hash=self.passwords.hash(password),
                consent_at=consent_at,
                avatar_url=avatar_url,
            )
            self.db.commit()
        except ConflictError:
            self.db.rollback()
            logger.info("register_conflict", username=username)
            raise

        logger.info("user_registered", user_id=str(user.id))

        try:
            return self._issue(user, device_id)
        except ServiceError:
            raise
        except Exception:
            self.db.rollback()
            logger.exception("register_token_issue_failed", user_id=str(user.id))
            raise ServerError("Could not issue tokens")

    def login(self, *, username: str, password: str, device_id: str) -> AuthSession:
        user = self.users.get_active_by_username(username)

        if (
            user is None  # 없는 사용자 또는 탈퇴 계정
            or not user.has_password  # 외부 IdP 가입 계정
            or not self.passwords.verify(password, user.password_hash)
        ):
            logger.info("login_failed", username=username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        # 로그인은 해당 기기 토큰만 교체
        session = self._issue(user, device_id)
        logger.info("login_succeeded", user_id=str(user.id), device_id=device_id)
        return session

    """
    토큰 재발급 (rotation)

    - 기존 Refresh Token 1회 사용 처리 (재사용 불가)
    - 소유자가 탈퇴했으면 401
    - 같은 기기로 새 Access / Refresh Token 발급

    """
    def refresh(self, *, refresh_token: str, device_id: str) -> TokenPair:
        user_id = self.refresh_tokens.consume(refresh_token, device_id)

        user = self.users.get_active(user_id)
        if user is None:
            logger.info("refresh_rejected_inactive_user", user_id=str(user_id))
            raise AuthenticationError("Invalid token")

        return self._issue(user, device_id).tokens

    def logout(self, principal: Principal, *, device_id: str | None = None) -> None:
        if device_id is not None and not device_id.strip():
            raise BadRequestError("Device id must not be empty")

        user = self.users.get_active(principal.user_id)
        if user is None:
            raise NotFoundError("User not found")

        # device_id 가 없으면 모든 기기 로그아웃
        self.refresh_tokens.revoke(user.id, device_id)
        self.db.commit()
        logger.info("logout", user_id=str(user.id), device_id=device_id)

    """
    비밀번호 변경

    - 현재 비밀번호 확인 실패 / 비밀번호 없는 계정 / 탈퇴 계정 -> 401
    - 새 비밀번호가 현재와 같으면 400
    - 모든 기기의 Refresh Token 폐기 후 호출 기기에만 새 토큰 발급

    """
    def change_password(
        self,
        principal: Principal,
        *,
        current_password: str,
        new_password: str,
        device_id: str,
    ) -> AuthSession:
        user = self.users.get_active(principal.user_id)
        if user is None or not self.passwords.verify(current_password, user.password_hash):
            raise AuthenticationError("Invalid password")

        if new_password == current_password:
            raise BadRequestError("New password must be different")

        # 새 해시 저장 + 전체 폐기 + 새 토큰 저장을 한 번에 commit
        new_hash = self.passwords.hash(new_password)
        session = self._issue(
            user,
            device_id,
            revoke_all=True,
            apply_changes=lambda u: self.users.set_password_hash(u, new_hash),
        )
        logger.info("password_changed", user_id=str(user.id), device_id=device_id)
        return session

    """
    비밀번호 설정 (로컬 비밀번호가 없는 계정 전용)

    - 이미 비밀번호가 있으면 권한 에러가 아니라 "해당 없음" 으로 보고 404

    """
    def set_password(self, principal: Principal, *, new_password: str, device_id: str) -> AuthSession:
        user = self.users.get_active(principal.user_id)
        if user is None or user.has_password:
            raise NotFoundError("User not found, or already has password")

        new_hash = self.passwords.hash(new_password)
        session = self._issue(user, device_id, apply_changes=lambda u: self.users.set_password_hash(u, new_hash))
        logger.info("password_set", user_id=str(user.id))
        return session

    """
    관리자 전환(join-admin)

    - ADMIN_REF_CODE 미설정 -> 410
    - 참조 코드 불일치 -> 400 (상수 시간 비교)
    - 이미 관리자 -> 400 (토큰 claim 이 아니라 DB 기준)
    - 탈퇴 / 없는 사용자 -> 404
    - 새 Access Token 에 관리자 claim 이 바로 반영되도록 전체 폐기 후 재발급

    """
    def join_admin(self, principal: Principal, *, reference_code: str, device_id: str) -> AuthSession:
        if not (self.admin_ref_code or "").strip():
            raise GoneError("Admin registration is currently disabled")

        if not secrets.compare_digest(reference_code.strip().encode("utf-8"), self.admin_ref_code.encode("utf-8")):
            logger.warning("admin_join_rejected", user_id=str(principal.user_id))
            raise BadRequestError("Invalid reference code")

        user = self.users.get_active(principal.user_id)
        if user is None:
            raise NotFoundError("User not found")

        if user.is_admin:
            raise BadRequestError("Already an admin")

        session = self._issue(user, device_id, revoke_all=True, apply_changes=self.users.grant_admin)
        logger.info("admin_joined", user_id=str(user.id))
        return session

    """
    회원 삭제 (본인 또는 관리자)

    - 호출자가 없거나 탈퇴 상태 -> 401
    - 다른 사용자를 삭제하려면 호출자가 (DB 기준) 관리자여야 함 -> 아니면 403
    - 대상이 없거나 이미 탈퇴 -> 404
    - Soft Delete + OAuth 연결 해제 + 모든 Refresh Token 폐기를 한 트랜잭션으로 처리

    """
    def delete_user(self, principal: Principal, target_user_id: uuid.UUID) -> None:
        caller = self.users.get_active(principal.user_id)
        if caller is None:
            raise AuthenticationError("Invalid token")

        if caller.id != target_user_id and not caller.is_admin:
            raise ForbiddenError("Forbidden: only admin or the user itself can delete")

        target = caller if caller.id == target_user_id else self.users.get_active(target_user_id)
        if target is None:
            raise NotFoundError("User not found")

        self.users.soft_delete(target)
        self.refresh_tokens.revoke(target.id)
        self.db.commit()
        logger.info("user_deleted", user_id=str(target.id), actor_id=str(caller.id))

    def check_username(self, username: str) -> bool:
        return self.users.username_exists(username)
