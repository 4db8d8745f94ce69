from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .utils.timezone_utils import TimezoneUtils

_DEFAULT_ENV = "development"
_ENV_KEY = "FLASK_ENV"
_VALID_ENVS = {"development", "testing", "staging", "production"}
_FORBIDDEN_ENV_KEYS = ("APP_ENV", "BOMTRACK_ENV", "ENVIRONMENT")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EnvironmentInfo:
    name: str
    source: str
    raw_value: str


class EnvReader:
    def __init__(self, data: Mapping[str, str] | None = None):
        self._data = dict(data or os.environ)
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def _value(self, key: str) -> str | None:
        value = self._data.get(key)
        if value is None:
            return None
        stripped = value.strip()
        return stripped if stripped else None

    def str(self, key: str, default: str | None = None) -> str | None:
        value = self._value(key)
        return value if value is not None else default

    def int(self, key: str, default: int = 0) -> int:
        value = self._value(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            self.warn(f"{key} expected integer but received {value!r}; falling back to {default}.")
            return default

    def float(self, key: str, default: float = 0.0) -> float:
        value = self._value(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            self.warn(f"{key} expected float but received {value!r}; falling back to {default}.")
            return default

    def bool(self, key: str, default: bool = False) -> bool:
        value = self._value(key)
        if value is None:
            return default
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        self.warn(f"{key} expected boolean but received {value!r}; falling back to {default}.")
        return default

    def timezone(self, key: str, default: str = "UTC") -> str:
        value = self._value(key)
        if value is None:
            return default
        if not TimezoneUtils.validate_timezone(value):
            self.warn(f"{key} is not a known timezone ({value!r}); falling back to {default}.")
            return default
        return value

    def raw(self, key: str) -> str | None:
        return self._data.get(key)


def _normalized_env(value: str | None, *, default: str = _DEFAULT_ENV) -> str:
    if not value:
        return default
    return value.strip().lower() or default


def _normalize_db_url(url: str | None) -> str | None:
    if not url:
        return None
    return 'postgresql://' + url[len('postgres://'):] if url.startswith('postgres://') else url


def _resolve_ratelimit_uri(reader: EnvReader) -> str:
    candidate = reader.str('RATELIMIT_STORAGE_URI')
    if candidate:
        return candidate
    redis_url = reader.str('REDIS_URL')
    if redis_url:
        return redis_url
    return 'memory://'


def _resolve_environment(reader: EnvReader) -> EnvironmentInfo:
    for key in _FORBIDDEN_ENV_KEYS:
        if reader.raw(key) not in (None, ""):
            raise RuntimeError(
                f"{key} is not supported. Set {_ENV_KEY} to one of {sorted(_VALID_ENVS)} instead."
            )

    raw_value = reader.str(_ENV_KEY, _DEFAULT_ENV) or _DEFAULT_ENV
    normalized = _normalized_env(raw_value)
    if normalized not in _VALID_ENVS:
        raise RuntimeError(
            f"Invalid {_ENV_KEY}={raw_value!r}. Expected one of {sorted(_VALID_ENVS)}."
        )
    return EnvironmentInfo(name=normalized, source=_ENV_KEY, raw_value=raw_value)


env = EnvReader()
ENV_INFO = _resolve_environment(env)


class BaseConfig:
    FLASK_ENV = ENV_INFO.name
    SECRET_KEY = env.str('FLASK_SECRET_KEY', 'devkey-please-change-in-production')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    RATELIMIT_STORAGE_URI = _resolve_ratelimit_uri(env)
    RATELIMIT_ENABLED = env.bool('RATELIMIT_ENABLED', True)
    RATELIMIT_DEFAULT = env.str('RATELIMIT_DEFAULT', '2000 per hour;300 per minute')

    CACHE_TYPE = env.str('CACHE_TYPE', 'SimpleCache')
    CACHE_REDIS_URL = env.str('CACHE_REDIS_URL') or env.str('REDIS_URL')
    CACHE_DEFAULT_TIMEOUT = env.int('CACHE_DEFAULT_TIMEOUT', 120)

    LOG_LEVEL = env.str('LOG_LEVEL', 'WARNING') or 'WARNING'

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': env.int('SQLALCHEMY_POOL_SIZE', 20),
        'max_overflow': env.int('SQLALCHEMY_MAX_OVERFLOW', 10),
        'pool_pre_ping': True,
        'pool_recycle': env.int('SQLALCHEMY_POOL_RECYCLE', 1800),
        'pool_timeout': env.int('SQLALCHEMY_POOL_TIMEOUT', 30),
    }

    # BOM engine tunables; translated into EngineSettings per request.
    BOM_USAGE_WINDOW_DAYS = env.int('BOM_USAGE_WINDOW_DAYS', 30)
    BOM_USAGE_TIMEZONE = env.timezone('BOM_USAGE_TIMEZONE', 'UTC')
    BOM_DEFAULT_FORECAST_DAYS = env.int('BOM_DEFAULT_FORECAST_DAYS', 7)
    BOM_FORECAST_DAYS_MAX = env.int('BOM_FORECAST_DAYS_MAX', 90)
    BOM_DEFAULT_TARGET_DAYS = env.int('BOM_DEFAULT_TARGET_DAYS', 30)
    BOM_TARGET_DAYS_MAX = env.int('BOM_TARGET_DAYS_MAX', 365)
    BOM_REPORT_DAYS_MAX = env.int('BOM_REPORT_DAYS_MAX', 365)
    BOM_CAPACITY_LOW_THRESHOLD = env.int('BOM_CAPACITY_LOW_THRESHOLD', 10)
    BOM_CAPACITY_MODERATE_THRESHOLD = env.int('BOM_CAPACITY_MODERATE_THRESHOLD', 50)
    BOM_PREDICTIVE_CRITICAL_DAYS = env.int('BOM_PREDICTIVE_CRITICAL_DAYS', 3)
    BOM_REORDER_URGENT_DAYS = env.int('BOM_REORDER_URGENT_DAYS', 7)
    BOM_REORDER_SOON_DAYS = env.int('BOM_REORDER_SOON_DAYS', 14)
    BOM_DASHBOARD_TOP_N = env.int('BOM_DASHBOARD_TOP_N', 10)
    BOM_BULK_MAX_WORKERS = env.int('BOM_BULK_MAX_WORKERS', 4)
    BOM_BULK_MAX_PRODUCTS = env.int('BOM_BULK_MAX_PRODUCTS', 200)
    BOM_DASHBOARD_CACHE_TTL = env.int('BOM_DASHBOARD_CACHE_TTL', 60)


class DevelopmentConfig(BaseConfig):
    ENV = 'development'
    DEBUG = True
    DEVELOPMENT = True

    _db_url = _normalize_db_url(env.str('DATABASE_URL'))
    if _db_url:
        SQLALCHEMY_DATABASE_URI = _db_url
    else:
        instance_path = os.path.join(os.path.abspath(os.path.dirname(__file__)), '..', 'instance')
        os.makedirs(instance_path, exist_ok=True)
        SQLALCHEMY_DATABASE_URI = 'sqlite:///' + os.path.join(instance_path, 'bomtrack.db')

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 3600,
        'echo': False,
    }
    RATELIMIT_STORAGE_URI = env.str('RATELIMIT_STORAGE_URI') or 'memory://'
    LOG_LEVEL = env.str('LOG_LEVEL', 'INFO') or 'INFO'


class TestingConfig(BaseConfig):
    ENV = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_ENABLED = False
    CACHE_TYPE = 'NullCache'
    BOM_DASHBOARD_CACHE_TTL = 0


class StagingConfig(BaseConfig):
    ENV = 'staging'
    DEBUG = False
    TESTING = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL'))
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 10,
        'max_overflow': 20,
        'pool_pre_ping': True,
        'pool_recycle': 1800,
    }


class ProductionConfig(BaseConfig):
    ENV = 'production'
    DEBUG = False
    TESTING = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL'))
    LOG_LEVEL = env.str('LOG_LEVEL', 'INFO') or 'INFO'


config_map = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'staging': StagingConfig,
    'production': ProductionConfig,
}


def get_active_config_name() -> str:
    return ENV_INFO.name


def get_config():
    return config_map[get_active_config_name()]


Config = config_map[ENV_INFO.name]
ENV_DIAGNOSTICS = {
    'active': ENV_INFO.name,
    'source': ENV_INFO.source,
    'variables': {ENV_INFO.source: ENV_INFO.raw_value},
    'warnings': tuple(env.warnings),
}
