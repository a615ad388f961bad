"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

이 파일은 .env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
인증 코어 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT Access Token 시크릿 및 만료 정책
- Refresh Token 만료 정책
- bcrypt cost factor
- 관리자 전환(join-admin) 참조 코드
- 로깅 / CORS 옵션

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- Settings 인스턴스는 import 시점이 아니라 create_app()에서 생성
- 설정 값은 런타임 중 변경되지 않는 불변 객체로 취급

관련 파일:
- app.main               : create_app(settings) 에서 사용
- app.core.security      : 토큰 / 비밀번호 설정 사용
- app.db.session         : DATABASE_URL 사용

"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


# .env 파일에 정의된 환경 변수를 로드하는 설정 클래스
# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 1

    # 검증 1회에 수십 ms 정도 걸리도록 조정 (테스트에서는 4로 낮춤)
    BCRYPT_ROUNDS: int = 12

    # 비어 있으면 관리자 전환 기능 비활성화
    ADMIN_REF_CODE: str | None = None

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # CORS 허용 도메인 (프론트엔드 주소)
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]


# 프로세스 진입점(uvicorn factory, scripts)에서 한 번만 생성
@lru_cache
def get_settings() -> Settings:
    return Settings()
