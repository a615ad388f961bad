import os

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.base import Base
from app.main import create_app
from app.services.session import SessionService

# ✅ 모델 import (Base.metadata에 테이블 등록)
from app.models.user import User  # noqa: F401
from app.models.oauth_account import OAuthAccount  # noqa: F401
from app.models.refresh_token import RefreshToken  # noqa: F401

from tests.helpers import TEST_ADMIN_REF_CODE


@pytest.fixture()
def settings(tmp_path):
    """TEST_DATABASE_URL 이 있으면 그 DB, 없으면 테스트마다 새 SQLite 파일"""
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+pysqlite:///{tmp_path / 'test.db'}"
    return Settings(
        _env_file=None,
        DATABASE_URL=url,
        SECRET_KEY="test-secret-key-please-change",
        BCRYPT_ROUNDS=4,
        ADMIN_REF_CODE=TEST_ADMIN_REF_CODE,
        LOG_LEVEL="WARNING",
        LOG_JSON=False,
    )


@pytest.fixture()
def fastapi_app(settings):
    """테스트마다 스키마 생성/삭제"""
    application = create_app(settings)
    engine = application.state.engine
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield application
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(fastapi_app):
    """테스트에서 직접 DB 조작할 때 쓰는 세션"""
    session = fastapi_app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def passwords(fastapi_app):
    return fastapi_app.state.password_service


@pytest.fixture()
def issuer(fastapi_app):
    return fastapi_app.state.token_issuer


@pytest.fixture()
def service(db, passwords, issuer, settings):
    return SessionService(db, passwords=passwords, issuer=issuer, admin_ref_code=settings.ADMIN_REF_CODE)


@pytest.fixture()
def client(fastapi_app):
    with TestClient(fastapi_app) as c:
        yield c
