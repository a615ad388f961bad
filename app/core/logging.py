"""
logging.py

structlog 기반 로깅 설정.

- create_app() / scripts 에서 configure_logging()을 한 번 호출
- 요청 단위 request_id는 structlog.contextvars로 바인딩 (app.main 미들웨어)
- password / token / secret 계열 키는 출력 전에 마스킹

"""

from __future__ import annotations

import logging
from typing import Any, Dict

import structlog

_REDACT_KEYS = ("password", "secret", "token", "authorization", "reference_code")


def _redact_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key in list(event_dict.keys()):
        lower_key = key.lower()
        if any(k in lower_key for k in _REDACT_KEYS) and event_dict[key] is not None:
            event_dict[key] = "***"
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=log_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None):
    return structlog.get_logger(name)
