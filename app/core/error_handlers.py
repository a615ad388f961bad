"""
error_handlers.py

서비스 예외 / 요청 검증 예외를 일관된 JSON 응답으로 변환하는 핸들러 등록.

응답 형식:
- {"detail": <message>, "code": <error_code>}
- 요청 검증 실패는 422 대신 400, "errors" 목록 포함
- 예상하지 못한 예외는 서버 로그에만 상세 기록, 클라이언트에는 일반 500 메시지

"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.services.errors import ServiceError

logger = get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        log_fn(
            "service_error",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
        )
        content = {"detail": exc.message, "code": exc.error_code}
        if exc.detail:
            content["errors"] = exc.detail
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.info("request_validation_error", path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "code": "validation_error", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error", "code": "server_error"},
        )
