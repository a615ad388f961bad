"""

관리자 초기 계정 생성 스크립트.

- 서버 최초 세팅 시 단 한 번 실행하는 용도
- .env에 정의된 ADMIN_* 환경 변수를 읽어
  관리자(is_admin=True) 계정을 생성한다.
- 같은 username 이 이미 있으면 생성하지 않고 종료한다.

사용 목적:
- join-admin 참조 코드 없이도 관리자 전용 API에 접근할 수 있는
  최초 관리자 계정을 안전하게 초기화하기 위함

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.create_admin

"""

import os
from datetime import datetime, timezone

from dotenv import load_dotenv
load_dotenv()

from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.core.security import PasswordService
from app.db.session import build_engine, build_session_factory
from app.services.credentials import CredentialStore

logger = get_logger(__name__)


def main():
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_output=False)

    engine = build_engine(settings.DATABASE_URL)
    db = build_session_factory(engine)()
    try:
        store = CredentialStore(db)

        username = os.environ["ADMIN_USERNAME"]
        password = os.environ["ADMIN_PASSWORD"]

        if store.username_exists(username):
            logger.info("admin_bootstrap_skipped", username=username)
            return

        user = store.create(
            username=username,
            password_hash=PasswordService(rounds=settings.BCRYPT_ROUNDS).hash(password),
            consent_at=datetime.now(timezone.utc),
        )
        store.grant_admin(user)
        db.commit()

        logger.info("admin_bootstrap_created", username=username, user_id=str(user.id))

    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
