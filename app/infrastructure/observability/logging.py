"""
Logging for the ready plans service.

Every line is one JSON object stamped with the service name, level, logger
and ISO timestamp. Request-scoped fields (request_id, client_ip) are bound
by RequestContextMiddleware through structlog contextvars and merged here,
so plan generation logs can be joined to the request that triggered them.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

SERVICE_NAME = "ready-plans"

# Chatty at INFO; their failures still surface through our own error logs
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "psycopg.pool")


def _add_service_name(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog JSON output at the given level (DEBUG, INFO, ...)."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_name,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_health_check(
    dependency: str, healthy: bool, latency_ms: float, error: str | None = None
) -> None:
    """One line per readiness check of a dependency (database, redis)."""
    logger = get_logger("health")
    fields: dict[str, Any] = {"dependency": dependency, "healthy": healthy, "latency_ms": latency_ms}
    if error:
        fields["error"] = error
    if healthy:
        logger.info("Dependency check passed", **fields)
    else:
        logger.error("Dependency check failed", **fields)


def log_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Access log line; 4xx and 5xx are warnings so rejected plan requests stand out."""
    logger = get_logger("http")
    level = logger.warning if status_code >= 400 else logger.info
    level(
        "HTTP request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )
