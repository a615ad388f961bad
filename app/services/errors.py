"""
services/errors.py

서비스 계층 예외(Exception) 정의.

서비스 함수는 FastAPI / HTTPException에 의존하지 않고
아래 예외를 발생시키며, app.core.error_handlers 에서
HTTP 상태 코드와 {"detail", "code"} 응답으로 변환한다.

- 400 validation_error : 잘못된 입력, 비밀번호 미변경, 빈 device id, 잘못된 참조 코드
- 401 unauthorized     : 토큰/비밀번호 인증 실패
- 403 forbidden        : 권한 부족
- 404 not_found        : 대상 없음 (이미 비밀번호가 있는 set-password 포함)
- 409 conflict         : username 중복
- 410 gone             : 관리자 전환 기능 비활성화
- 500 server_error     : 저장소 / 불변식 실패

"""

from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(self, message: str, *, detail: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(ServiceError):
    status_code = 400
    error_code = "validation_error"


class BadRequestError(ValidationError):
    pass


class AuthenticationError(ServiceError):
    status_code = 401
    error_code = "unauthorized"


class ForbiddenError(ServiceError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    status_code = 409
    error_code = "conflict"


class GoneError(ServiceError):
    status_code = 410
    error_code = "gone"


class ServerError(ServiceError):
    status_code = 500
    error_code = "server_error"


__all__ = [
    "ServiceError",
    "ValidationError",
    "BadRequestError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "GoneError",
    "ServerError",
]
