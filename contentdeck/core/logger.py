"""JSON logging for ContentDeck built on structlog contextvars.

Every event carries the service name and environment, plus the request id
and acting user id when a request is in flight. The request middleware
binds both, taking the user id from the X-User-Id header.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

from contentdeck.core.config import get_settings


CONTEXT_KEYS = ("request_id", "user_id")

_CONFIGURED = False


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _stamp_service(service: str, env: str):
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        del logger, method_name
        event_dict.setdefault("service", service)
        event_dict.setdefault("env", env)
        for key in CONTEXT_KEYS:
            event_dict.setdefault(key, None)
        return event_dict

    return processor


def configure_logging() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = get_settings()
    level = resolve_log_level(settings.log_level)
    logging.basicConfig(level=level, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _stamp_service(settings.app_name, settings.env),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


def bind_request_context(request_id: str) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id, user_id=None)


def bind_user_context(user_id: int) -> None:
    structlog.contextvars.bind_contextvars(user_id=user_id)


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars(*CONTEXT_KEYS)
