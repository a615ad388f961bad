"""
users.py

사용자 프로필 조회 / 수정 API 모음.

주요 기능:
- 본인 프로필 조회
- 본인 프로필 수정 (username, avatarUrl)
- 전체 활성 사용자 목록 조회 (관리자 전용)

설계 원칙:
- Access Token 의 principal 로 본인을 식별하되, 실제 데이터는 DB 기준
- Soft Delete(status=DELETED)된 회원은 조회 대상에서 제외
- 관리자 전용 API 는 get_current_admin 의존성으로 보호

관련 파일:
- app.services.credentials : CredentialStore
- app.core.deps            : 인증 의존성(get_current_principal / get_current_admin)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_current_principal, get_db
from app.core.security import Principal
from app.schemas.user import UpdateProfileRequest, UserResponse
from app.services.credentials import CredentialStore
from app.services.errors import NotFoundError

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def profile(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    user = CredentialStore(db).get_active(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
def update_profile(
    data: UpdateProfileRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    store = CredentialStore(db)
    user = store.get_active(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")

    store.update_profile(user, username=data.username, avatar_url=data.avatar_url)
    db.commit()
    db.refresh(user)
    return UserResponse.model_validate(user)


"""
전체 사용자 목록 조회 API (관리자용)

- 활성 사용자만, 가입 순 정렬

"""
@router.get("", response_model=list[UserResponse])
def list_users(
    admin: Principal = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return [UserResponse.model_validate(u) for u in CredentialStore(db).list_active()]
