"""Centralized logging setup."""

import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import WatchedFileHandler
from typing import Optional


request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)-5s] [%(name)-20s] [%(request_id)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "apscheduler.executors.default")


class RequestIdFilter(logging.Filter):
    """Stamps each record with the id of the request being served ('-' outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def _find_handler(
    logger: logging.Logger, handler_type: type, *, filename: Optional[str] = None
) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if type(handler) is not handler_type:
            continue
        if filename is None or getattr(handler, "baseFilename", None) == filename:
            return handler
    return None


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(RequestIdFilter())
    logger.addHandler(handler)


def configure_logging(*, environment: str, log_level: str) -> int:
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    if _find_handler(root, logging.StreamHandler) is None:
        _attach(root, logging.StreamHandler(sys.stdout), level)

    app_log_path = os.getenv("APP_LOG_PATH", "").strip()
    if app_log_path:
        try:
            log_dir = os.path.dirname(app_log_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            if _find_handler(root, WatchedFileHandler, filename=os.path.abspath(app_log_path)) is None:
                _attach(root, WatchedFileHandler(app_log_path), level)
        except OSError as exc:
            root.warning("Failed to configure APP_LOG_PATH logging for %s: %s", app_log_path, exc)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
        uv_logger.setLevel(level)

    # The request middleware already logs every response
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if environment == "development":
        logging.getLogger("db.slow_query").setLevel(logging.DEBUG)

    return level
