"""
auth.py

인증(Authentication) 및 세션 관리 API 모음.

이 파일은 회원 가입, 로그인, 토큰 재발급, 로그아웃,
비밀번호 변경/설정, 관리자 전환, 회원 삭제, username 중복 확인을 담당한다.
Access Token(JWT) + 기기 단위 Refresh Token(불투명 문자열) 구조를 따른다.

설계 원칙:
- Access Token은 Authorization Header(Bearer)로 전달
- Refresh Token과 deviceId 는 요청 바디로 전달
- 라우터는 요청 검증과 응답 변환만 담당, 실제 규칙은 SessionService
- 회원 삭제는 Hard Delete가 아닌 Soft Delete 방식 사용

관련 파일:
- app.services.session     : SessionService
- app.core.deps            : 인증 의존성(get_current_principal)
- app.schemas.auth         : 인증 관련 요청/응답

"""

import uuid

from fastapi import APIRouter, Depends, Response, status

from app.core.deps import get_current_principal, get_session_service
from app.core.security import Principal
from app.schemas.auth import (
    RegisterRequest, LoginRequest, RefreshRequest, LogoutRequest,
    ChangePasswordRequest, SetPasswordRequest, JoinAdminRequest,
    AuthResponse, TokenResponse, UsernameExistsResponse,
)
from app.services.session import AuthSession, SessionService

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(session: AuthSession) -> AuthResponse:
    user = session.user
    return AuthResponse(
        id=user.id,
        username=user.username,
        avatar_url=user.avatar_url,
        is_admin=user.is_admin,
        has_password=user.has_password,
        oauth_providers=user.oauth_providers,
        consent_at=user.consent_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
        access_token=session.tokens.access_token,
        refresh_token=session.tokens.refresh_token,
    )


"""
회원 가입 API

- username 중복이면 409
- 가입 시 기본 권한은 일반 사용자 (is_admin=False)
- 요청한 기기(deviceId)로 Access / Refresh Token 발급

"""

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: SessionService = Depends(get_session_service)):
    session = service.register(
        username=data.username,
        password=data.password,
        consent_at=data.consent_at,
        device_id=data.device_id,
        avatar_url=data.avatar_url,
    )
    return _auth_response(session)


"""
로그인 API

- 없는 사용자 / 탈퇴 계정 / 비밀번호 없는 계정 / 비밀번호 불일치 모두 같은 401

"""

@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, service: SessionService = Depends(get_session_service)):
    session = service.login(username=data.username, password=data.password, device_id=data.device_id)
    return _auth_response(session)


"""
토큰 재발급 API

- Refresh Token 은 1회용, 사용 즉시 폐기되고 새 토큰 쌍 발급 (rotation)
- 다른 기기에서 발급된 토큰이면 401

"""

@router.post("/refresh", response_model=TokenResponse)
def refresh(data: RefreshRequest, service: SessionService = Depends(get_session_service)):
    tokens = service.refresh(refresh_token=data.refresh_token, device_id=data.device_id)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


"""
로그아웃 API

- deviceId 가 있으면 해당 기기만, 없으면 모든 기기의 Refresh Token 폐기

"""

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    data: LogoutRequest | None = None,
    principal: Principal = Depends(get_current_principal),
    service: SessionService = Depends(get_session_service),
):
    service.logout(principal, device_id=data.device_id if data else None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/change-password", response_model=AuthResponse)
def change_password(
    data: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
    service: SessionService = Depends(get_session_service),
):
    session = service.change_password(
        principal,
        current_password=data.current_password,
        new_password=data.password,
        device_id=data.device_id,
    )
    return _auth_response(session)


@router.post("/set-password", response_model=AuthResponse)
def set_password(
    data: SetPasswordRequest,
    principal: Principal = Depends(get_current_principal),
    service: SessionService = Depends(get_session_service),
):
    session = service.set_password(principal, new_password=data.password, device_id=data.device_id)
    return _auth_response(session)


"""
관리자 전환 API

- 배포 환경에 설정된 참조 코드(ADMIN_REF_CODE)와 정확히 일치해야 함
- 성공 시 관리자 claim 이 담긴 새 토큰 쌍 반환

"""

@router.put("/join-admin", response_model=AuthResponse)
def join_admin(
    data: JoinAdminRequest,
    principal: Principal = Depends(get_current_principal),
    service: SessionService = Depends(get_session_service),
):
    session = service.join_admin(principal, reference_code=data.reference_code, device_id=data.device_id)
    return _auth_response(session)


@router.get("/username/{username}", response_model=UsernameExistsResponse)
def check_username(username: str, service: SessionService = Depends(get_session_service)):
    return UsernameExistsResponse(exists=service.check_username(username))


"""
회원 삭제 API

- 본인 또는 관리자만 가능
- Soft Delete + OAuth 연결 해제 + 모든 Refresh Token 폐기

"""

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: SessionService = Depends(get_session_service),
):
    service.delete_user(principal, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
