"""
main.py

FastAPI 애플리케이션 진입점(Entry Point).

주요 역할:
- create_app(settings) 팩토리로 FastAPI 앱 인스턴스 생성
- DB 엔진 / 세션 팩토리, PasswordService, TokenIssuer 를 명시적으로 만들어 app.state 에 보관
- 로깅 / 예외 핸들러 / CORS / request_id 미들웨어 설정
- auth, users 라우터 등록
- 헬스 체크 및 DB 연결 상태 확인용 엔드포인트 제공

설계 원칙:
- import 시점에 DB 연결이나 Settings 를 만들지 않음 (모듈 전역 싱글톤 없음)
- 엔진 종료(dispose)는 lifespan 종료 시점에 수행
- 비즈니스 로직은 포함하지 않고 설정/조립 역할만 수행

실행:
- uvicorn app.main:create_app --factory

관련 파일:
- app.core.config        : 환경 변수 및 설정 로드
- app.core.deps          : DB 세션 / 인증 의존성
- app.routers.*          : 기능별 API 라우터

"""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.core.config import Settings, get_settings
from app.core.deps import get_db
from app.core.error_handlers import register_exception_handlers
from app.core.logging import configure_logging, get_logger
from app.core.security import PasswordService, TokenIssuer
from app.db.session import build_engine, build_session_factory
from app.routers import auth, users

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    engine = build_engine(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_startup")
        yield
        engine.dispose()
        logger.info("app_shutdown")

    app = FastAPI(title="Blog Auth Backend", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_service = PasswordService(rounds=settings.BCRYPT_ROUNDS)
    app.state.token_issuer = TokenIssuer.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 요청마다 request_id 를 로그 컨텍스트에 바인딩
    @app.middleware("http")
    async def bind_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)

    """
    서버 헬스 체크 엔드포인트

    - 애플리케이션 프로세스가 정상 동작 중인지 확인

    """
    @app.get("/health")
    def health():
        return {"status": "ok"}

    """
    데이터베이스 연결 상태 확인 엔드포인트

    - 간단한 SELECT 1 쿼리를 통해 DB 연결 여부 확인

    """
    @app.get("/db-ping")
    def db_ping(db: Session = Depends(get_db)):
        value = db.execute(text("SELECT 1")).scalar_one()
        return {"db": "ok", "value": value}

    return app
