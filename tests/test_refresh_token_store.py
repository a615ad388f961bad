"""
Refresh Token 저장소 단위 테스트.
- 기기당 1개 유효 토큰 유지, consume 1회성, 만료 / 기기 불일치 거부,
  기기 / 전체 폐기, 오래된 row 정리, (Postgres 에서) 동시 consume 을 확인한다.
"""

import os
import threading
from datetime import datetime, timedelta, timezone

import pytest

from app.core.security import hash_refresh_token
from app.services.errors import AuthenticationError
from app.services.refresh_tokens import RefreshTokenStore
from tests.helpers import create_user_in_db, live_tokens, new_device_id


def _future(days=1):
    return datetime.now(timezone.utc) + timedelta(days=days)


def _put(db, store, user_id, device_id, raw, expires_at=None):
    store.put(user_id, device_id, hash_refresh_token(raw), expires_at or _future())
    db.commit()


def test_put_replaces_live_token_for_same_device(db, passwords):
    user = create_user_in_db(db, passwords)
    store = RefreshTokenStore(db)
    device_id = new_device_id()

    _put(db, store, user.id, device_id, "first-token-value-000000")
    _put(db, store, user.id, device_id, "second-token-value-00000")

    tokens = live_tokens(db, user.id)
    assert len(tokens) == 1
    assert tokens[0].token_hash == hash_refresh_token("second-token-value-00000")

    with pytest.raises(AuthenticationError):
        store.consume("first-token-value-000000", device_id)


def test_put_keeps_other_devices(db, passwords):
    user = create_user_in_db(db, passwords)
    store = RefreshTokenStore(db)

    _put(db, store, user.id, new_device_id(), "device-one-token-000000")
    _put(db, store, user.id, new_device_id(), "device-two-token-000000")

    assert len(live_tokens(db, user.id)) == 2


def test_consume_is_single_use(db, passwords):
    user = create_user_in_db(db, passwords)
    store = RefreshTokenStore(db)
    device_id = new_device_id()
    _put(db, store, user.id, device_id, "single-use-token-000000")

    assert store.consume("single-use-token-000000", device_id) == user.id

    with pytest.raises(AuthenticationError) as exc:
        store.consume("single-use-token-000000", device_id)
    assert exc.value.message == "Invalid token"
    assert live_tokens(db, user.id) == []


def test_consume_rejects_wrong_device_and_expired(db, passwords):
    user = create_user_in_db(db, passwords)
    store = RefreshTokenStore(db)
    device_id = new_device_id()
    expired_device = new_device_id()

    _put(db, store, user.id, device_id, "bound-token-0000000000")
    _put(db, store, user.id, expired_device, "expired-token-00000000", expires_at=_future(days=-1))

    with pytest.raises(AuthenticationError):
        store.consume("bound-token-0000000000", new_device_id())
    with pytest.raises(AuthenticationError):
        store.consume("expired-token-00000000", expired_device)
    with pytest.raises(AuthenticationError):
        store.consume("", device_id)

    # 실패한 시도는 원래 토큰을 건드리지 않음
    assert store.consume("bound-token-0000000000", device_id) == user.id


def test_revoke_device_and_all(db, passwords):
    user = create_user_in_db(db, passwords)
    other = create_user_in_db(db, passwords)
    store = RefreshTokenStore(db)
    d1, d2 = new_device_id(), new_device_id()

    _put(db, store, user.id, d1, "user-d1-token-000000000")
    _put(db, store, user.id, d2, "user-d2-token-000000000")
    _put(db, store, other.id, d1, "other-d1-token-00000000")

    assert store.revoke(user.id, d1) == 1
    db.commit()
    assert [t.device_id for t in live_tokens(db, user.id)] == [d2]

    assert store.revoke(user.id) == 1
    db.commit()
    assert live_tokens(db, user.id) == []

    # 다른 사용자의 같은 device_id 토큰은 영향 없음
    assert len(live_tokens(db, other.id)) == 1
    assert store.revoke(user.id) == 0


def test_purge_expired(db, passwords):
    user = create_user_in_db(db, passwords)
    store = RefreshTokenStore(db)
    d_live, d_expired, d_revoked = new_device_id(), new_device_id(), new_device_id()

    _put(db, store, user.id, d_live, "live-token-000000000000")
    _put(db, store, user.id, d_expired, "expired-token-000000000", expires_at=_future(days=-10))
    _put(db, store, user.id, d_revoked, "revoked-token-000000000")
    store.revoke(user.id, d_revoked)
    db.commit()

    # 보존 기간 안의 폐기 row 는 남김
    assert store.purge_expired(retention=timedelta(days=7)) == 1
    db.commit()

    assert store.purge_expired() == 1
    db.commit()

    assert [t.device_id for t in live_tokens(db, user.id)] == [d_live]
    assert store.consume("live-token-000000000000", d_live) == user.id


@pytest.mark.skipif(
    not (os.getenv("TEST_DATABASE_URL") or "").startswith("postgresql"),
    reason="concurrent consume needs a database with row-level locking",
)
def test_concurrent_consume_succeeds_once(fastapi_app, db, passwords):
    user = create_user_in_db(db, passwords)
    device_id = new_device_id()
    _put(db, RefreshTokenStore(db), user.id, device_id, "concurrent-token-000000")

    results = []
    barrier = threading.Barrier(8)

    def worker():
        session = fastapi_app.state.session_factory()
        try:
            barrier.wait()
            results.append(RefreshTokenStore(session).consume("concurrent-token-000000", device_id))
        except AuthenticationError:
            results.append(None)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [r for r in results if r is not None] == [user.id]
