from __future__ import annotations

import logging
from typing import Iterable

from flask import Flask

DEV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
PROD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class TenantContextFilter(logging.Filter):
    """Attach the tenant segment of the current request path to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "tenant_id", None) is None:
            record.tenant_id = _current_tenant_id()
        return True


def _current_tenant_id():
    from flask import has_request_context, request

    if not has_request_context():
        return None
    return (request.view_args or {}).get("tenant_id")


def configure_logging(app: Flask) -> None:
    level = _coerce_level(app.config.get("LOG_LEVEL", "DEBUG" if app.debug else "INFO"))
    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)
    logging.getLogger("bomtrack").setLevel(level)

    if level > logging.DEBUG:
        for noisy in ("werkzeug", "flask_limiter", "sqlalchemy.engine", "bomtrack.blueprints_registry"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    if not logging.getLogger().handlers:
        logging.getLogger().addHandler(logging.StreamHandler())

    is_production = app.config.get("ENV") == "production" and not app.debug
    formatter = logging.Formatter(PROD_FORMAT if is_production else DEV_FORMAT)
    _apply_formatter(logging.getLogger().handlers, formatter)
    _apply_formatter(app.logger.handlers, formatter)


def _apply_formatter(handlers: Iterable[logging.Handler], formatter: logging.Formatter) -> None:
    for handler in handlers:
        handler.setFormatter(formatter)
        if not any(isinstance(f, TenantContextFilter) for f in handler.filters):
            handler.addFilter(TenantContextFilter())


def _coerce_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    if isinstance(raw_level, str):
        candidate = raw_level.strip().upper()
        return getattr(logging, candidate, logging.INFO)
    return logging.INFO
