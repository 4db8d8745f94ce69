from __future__ import annotations

from flask import request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

__all__ = [
    "db",
    "cache",
    "limiter",
]

db = SQLAlchemy()
cache = Cache()


def default_rate_limits(config_value):
    """Normalize the configured default rate limits or fall back to safe defaults."""
    if isinstance(config_value, str) and config_value.strip():
        normalized = (
            config_value.replace(",", ";")
            .replace("|", ";")
            .split(";")
        )
        limits = [entry.strip() for entry in normalized if entry.strip()]
        if limits:
            return limits
    return ["2000 per hour", "300 per minute"]


def _limiter_key_func():
    """Key tenant-scoped API traffic by tenant; fall back to IP address."""
    view_args = request.view_args or {}
    tenant_id = view_args.get("tenant_id")
    if tenant_id:
        return f"tenant:{tenant_id}"
    return get_remote_address()


limiter = Limiter(key_func=_limiter_key_func)
