"""
services/tokens.py

Access / Refresh 토큰 발급 + Refresh Token 저장(rotation)을 하나로 묶는 서비스.

- 기본: 해당 기기(device)의 기존 토큰만 폐기 후 새 토큰 저장
- revoke_all=True: 사용자의 모든 기기 토큰을 폐기 후 새 토큰 저장
  (비밀번호 변경, 관리자 전환)
- apply_changes: 사용자 row 변경(비밀번호 해시, 관리자 전환)을
  토큰 폐기 / 저장과 같은 트랜잭션에서 commit 할 때 사용

폐기 + 저장은 하나의 트랜잭션에서 commit 되므로
한 기기에 유효한 Refresh Token 이 두 개 존재하는 구간이 없다.
동시 발급으로 partial unique index 충돌이 나면 제한된 횟수만 재시도한다.
rollback 되면 apply_changes 의 변경도 함께 취소되므로 매 시도마다 다시 적용한다.

"""

from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.core.security import TokenIssuer, TokenPair, hash_refresh_token
from app.models.user import User
from app.services.errors import ServerError
from app.services.refresh_tokens import RefreshTokenStore

logger = get_logger(__name__)

MAX_ISSUE_ATTEMPTS = 3


def issue_user_tokens(
    db: Session,
    issuer: TokenIssuer,
    user: User,
    device_id: str,
    *,
    revoke_all: bool = False,
    apply_changes: Optional[Callable[[User], None]] = None,
) -> TokenPair:
    # rollback 후에도 쓸 수 있도록 먼저 꺼내 둠
    user_id = user.id
    store = RefreshTokenStore(db)

    for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
        refresh_token = issuer.issue_refresh_token()
        try:
            if apply_changes is not None:
                apply_changes(user)
            # 관리자 전환이 반영된 값으로 claim 생성
            is_admin = user.is_admin
            if revoke_all:
                store.revoke(user_id)
            store.put(user_id, device_id, hash_refresh_token(refresh_token), issuer.refresh_expires_at())
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("refresh_token_issue_conflict", user_id=str(user_id), device_id=device_id, attempt=attempt)
            continue

        return TokenPair(
            access_token=issuer.issue_access_token(user_id, is_admin),
            refresh_token=refresh_token,
        )

    logger.error("refresh_token_issue_failed", user_id=str(user_id), device_id=device_id)
    raise ServerError("Could not issue tokens")
