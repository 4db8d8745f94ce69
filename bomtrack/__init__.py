import logging
import os
from typing import Any

from flask import Flask, jsonify
from sqlalchemy.pool import StaticPool

from .blueprints_registry import register_blueprints
from .config import ENV_DIAGNOSTICS
from .extensions import cache, db, default_rate_limits, limiter
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

_TESTING_OVERRIDES = (
    ("CACHE_TYPE", "NullCache"),
    ("RATELIMIT_ENABLED", False),
    ("BOM_DASHBOARD_CACHE_TTL", 0),
)


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    os.makedirs(app.instance_path, exist_ok=True)

    _load_base_config(app, config)
    _apply_sqlalchemy_env_overrides(app)
    _configure_sqlite_engine_options(app)

    db.init_app(app)
    _configure_cache(app)
    _configure_rate_limiter(app)

    from . import models  # noqa: F401  # ensure models registered on the metadata

    register_blueprints(app)
    _add_core_routes(app)
    configure_logging(app)
    _install_global_resilience_handlers(app)

    from .management import register_commands

    register_commands(app)
    _run_optional_create_all(app)

    return app


def _load_base_config(app: Flask, config: dict[str, Any] | None) -> None:
    app.config.from_object("bomtrack.config.Config")
    if config:
        app.config.update(config)
    app.config["ENV_DIAGNOSTICS"] = ENV_DIAGNOSTICS
    for warning in ENV_DIAGNOSTICS.get("warnings", ()):
        logger.warning("Environment configuration warning: %s", warning)

    if app.config.get("TESTING"):
        for key, value in _TESTING_OVERRIDES:
            if not (config and key in config):
                app.config[key] = value

    if config and "DATABASE_URL" in config:
        app.config["SQLALCHEMY_DATABASE_URI"] = config["DATABASE_URL"]

    from .services.bom_engine import EngineSettings

    # Fail at startup rather than on the first forecast request.
    EngineSettings.from_mapping(app.config)


def _apply_sqlalchemy_env_overrides(app: Flask) -> None:
    engine_opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}) or {})
    changed = False

    def _apply_int(env_key: str, option_key: str):
        nonlocal changed
        value = os.environ.get(env_key)
        if value in (None, ""):
            return
        try:
            engine_opts[option_key] = int(value)
            changed = True
        except ValueError:
            logger.warning("Invalid integer for %s: %s", env_key, value)

    _apply_int("SQLALCHEMY_POOL_SIZE", "pool_size")
    _apply_int("SQLALCHEMY_MAX_OVERFLOW", "max_overflow")

    if changed:
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_opts


def _configure_sqlite_engine_options(app: Flask) -> None:
    """Configure SQLite engine options for testing/memory databases"""
    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if app.config.get("TESTING") or uri.startswith("sqlite"):
        opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}))
        # SQLite pools reject sizing arguments
        for key in ("pool_size", "max_overflow", "pool_timeout"):
            opts.pop(key, None)
        if uri == "sqlite:///:memory:":
            opts["poolclass"] = StaticPool
            opts["connect_args"] = {"check_same_thread": False}
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts


def _configure_cache(app: Flask) -> None:
    cache_type = app.config.get("CACHE_TYPE") or "SimpleCache"
    redis_url = app.config.get("CACHE_REDIS_URL")
    cache_config = {
        "CACHE_DEFAULT_TIMEOUT": app.config.get("CACHE_DEFAULT_TIMEOUT", 120),
        "CACHE_TYPE": cache_type,
    }

    if cache_type != "NullCache" and redis_url:
        cache_config["CACHE_TYPE"] = "RedisCache"
        cache_config["CACHE_REDIS_URL"] = redis_url
        cache_config["CACHE_KEY_PREFIX"] = "bomtrack:"
        logger.info("Redis cache configured for dashboard summaries")
    else:
        logger.info("Using %s (no Redis URL configured)", cache_type)

    cache.init_app(app, config=cache_config)


def _configure_rate_limiter(app: Flask) -> None:
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI") or "memory://"
    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    app.config["RATELIMIT_DEFAULT"] = ";".join(default_rate_limits(app.config.get("RATELIMIT_DEFAULT")))
    limiter.init_app(app)

    if app.config.get("ENV") == "production" and storage_uri.startswith("memory://"):
        logger.warning("Rate limiter is using in-process memory storage in production.")


def _run_optional_create_all(app: Flask) -> None:
    def _env_flag(key: str):
        value = os.environ.get(key)
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        return None

    create_all_flag = _env_flag("SQLALCHEMY_CREATE_ALL")
    if create_all_flag is None:
        logger.info("db.create_all() not enabled; run `flask init-db` to create tables")
        return
    if create_all_flag is False:
        logger.info("db.create_all() disabled via SQLALCHEMY_CREATE_ALL=0")
        return

    logger.info("Creating tables via db.create_all() (SQLALCHEMY_CREATE_ALL)")
    with app.app_context():
        db.create_all()
        logger.info("Database tables created/verified")


def _install_global_resilience_handlers(app: Flask) -> None:
    """Install global DB rollback and JSON maintenance handler."""
    from sqlalchemy.exc import DBAPIError, OperationalError

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            db.session.rollback()

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def _db_error_handler(e):
        logger.error("Database unavailable: %s", e)
        db.session.rollback()
        return jsonify({
            'success': False,
            'message': 'Service temporarily unavailable. Please try again shortly.',
            'errors': {},
        }), 503


def _add_core_routes(app: Flask) -> None:
    """Add core application routes"""

    @app.route("/health")
    @limiter.exempt
    def health():
        return jsonify({'status': 'ok', 'environment': app.config.get("ENV")})
