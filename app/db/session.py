"""
session.py

데이터베이스 엔진 및 세션(Session) 팩토리 생성 파일.

이 파일은 SQLAlchemy Engine과 세션 팩토리를 만드는 함수만 제공한다.
실제 생성은 import 시점이 아니라 프로세스 진입점(create_app, scripts)에서
명시적으로 수행하고, 엔진 종료(dispose) 역시 진입점이 책임진다.

설계 원칙:
- DB 연결 설정은 한 곳에서만 정의
- 세션 생성/종료 책임을 명확히 분리
- pool_pre_ping=True로 유휴 연결 오류 방지

관련 파일:
- app.main               : create_app()에서 엔진/세션 팩토리 생성
- app.core.deps          : get_db 의존성

"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    # SQLite는 threadpool에서 실행되는 동기 엔드포인트와 함께 쓰기 위해 필요
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    # pool_pre_ping=True:
    #   장시간 idle 후 끊어진 DB 커넥션을 자동으로 감지/재연결
    return create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


# 요청 단위로 사용할 세션 팩토리
def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
