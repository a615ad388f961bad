"""

만료 / 폐기된 Refresh Token 정리 스크립트.

- 유효성 판단은 조회 시점에 하므로 정리하지 않아도 동작에는 문제 없음
- 테이블이 계속 커지는 것을 막기 위해 cron 등으로 주기 실행
- 보존 기간(일)은 인자로 지정, 기본 7일

사용 방법
- (.venv) ~\backend~$ python -m scripts.purge_refresh_tokens --retention-days 7

"""

import argparse
from datetime import timedelta

from dotenv import load_dotenv
load_dotenv()

from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.db.session import build_engine, build_session_factory
from app.services.refresh_tokens import RefreshTokenStore

logger = get_logger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Delete expired or revoked refresh tokens")
    parser.add_argument("--retention-days", type=int, default=7)
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_output=False)

    engine = build_engine(settings.DATABASE_URL)
    db = build_session_factory(engine)()
    try:
        deleted = RefreshTokenStore(db).purge_expired(retention=timedelta(days=args.retention_days))
        db.commit()
        logger.info("refresh_tokens_purged", count=deleted, retention_days=args.retention_days)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
