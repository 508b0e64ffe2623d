from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_DEFAULT_ENV = "development"
_ENV_KEY = "FLASK_ENV"
_VALID_ENVS = {"development", "testing", "staging", "production"}
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

    def int(self, key: str, default: int = 0, *, minimum: int | None = None) -> int:
        value = self._value(key)
        if value is None:
            return default
        try:
            parsed = int(value)
        except ValueError:
            self.warn(f"{key} expected integer but received {value!r}; falling back to {default}.")
            return default
        if minimum is not None and parsed < minimum:
            self.warn(f"{key} must be at least {minimum} but received {parsed}; falling back to {default}.")
            return default
        return parsed

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


def _normalized_env(value: str | None, *, default: str = _DEFAULT_ENV) -> str:
    if not value:
        return default
    return value.strip().lower() or default


def _normalize_db_url(url: str | None) -> str | None:
    if not url:
        return None
    return 'postgresql://' + url[len('postgres://'):] if url.startswith('postgres://') else url


def _resolve_environment(reader: EnvReader) -> EnvironmentInfo:
    raw_value = reader.str(_ENV_KEY, _DEFAULT_ENV) or _DEFAULT_ENV
    normalized = _normalized_env(raw_value)
    if normalized not in _VALID_ENVS:
        raise RuntimeError(
            f"Invalid {_ENV_KEY}={raw_value!r}. Expected one of {sorted(_VALID_ENVS)}."
        )
    return EnvironmentInfo(name=normalized, source=_ENV_KEY, raw_value=raw_value)


def _resolve_plant_timezone(reader: EnvReader) -> str:
    import pytz

    value = reader.str('PLANT_TIMEZONE', 'Europe/Prague') or 'Europe/Prague'
    if value not in pytz.all_timezones_set:
        reader.warn(f"PLANT_TIMEZONE {value!r} is not a known timezone; falling back to Europe/Prague.")
        return 'Europe/Prague'
    return value


env = EnvReader()
ENV_INFO = _resolve_environment(env)


class BaseConfig:
    FLASK_ENV = ENV_INFO.name
    SECRET_KEY = env.str('FLASK_SECRET_KEY', 'devkey-please-change-in-production')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = env.str('LOG_LEVEL', 'INFO') or 'INFO'
    LOG_REDACT_PII = env.bool('LOG_REDACT_PII', True)

    # Production planning
    PLANT_TIMEZONE = _resolve_plant_timezone(env)
    DEFAULT_EXPIRATION_MONTHS = env.int('DEFAULT_EXPIRATION_MONTHS', 12, minimum=1)
    DEFAULT_SALES_WINDOW_DAYS = env.int('DEFAULT_SALES_WINDOW_DAYS', 30, minimum=1)
    MANUFACTURE_ORDER_PREFIX = (env.str('MANUFACTURE_ORDER_PREFIX', 'MO') or 'MO').upper()

    # ERP integration
    ERP_BASE_URL = env.str('ERP_BASE_URL')
    ERP_API_TOKEN = env.str('ERP_API_TOKEN')
    ERP_TIMEOUT_SECONDS = env.float('ERP_TIMEOUT_SECONDS', 30.0)

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': env.int('SQLALCHEMY_POOL_RECYCLE', 1800),
    }


class DevelopmentConfig(BaseConfig):
    ENV = 'development'
    DEBUG = True

    _db_url = _normalize_db_url(env.str('DATABASE_URL'))
    if _db_url:
        SQLALCHEMY_DATABASE_URI = _db_url
    else:
        instance_path = os.path.join(os.path.abspath(os.path.dirname(__file__)), '..', 'instance')
        os.makedirs(instance_path, exist_ok=True)
        SQLALCHEMY_DATABASE_URI = 'sqlite:///' + os.path.join(instance_path, 'batchdesk.db')
    LOG_LEVEL = env.str('LOG_LEVEL', 'DEBUG') or 'DEBUG'


class TestingConfig(BaseConfig):
    ENV = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }


class _ServerConfig(BaseConfig):
    """Shared by staging and production: Postgres from DATABASE_URL, pooled."""
    DEBUG = False
    TESTING = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL'))
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': env.int('SQLALCHEMY_POOL_SIZE', 10, minimum=1),
        'max_overflow': env.int('SQLALCHEMY_MAX_OVERFLOW', 10, minimum=0),
        'pool_timeout': env.int('SQLALCHEMY_POOL_TIMEOUT', 30, minimum=1),
        'pool_pre_ping': True,
        'pool_recycle': env.int('SQLALCHEMY_POOL_RECYCLE', 1800),
    }


class StagingConfig(_ServerConfig):
    ENV = 'staging'


class ProductionConfig(_ServerConfig):
    ENV = 'production'


config_map = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'staging': StagingConfig,
    'production': ProductionConfig,
}


Config = config_map[ENV_INFO.name]
ENV_DIAGNOSTICS = {
    'active': ENV_INFO.name,
    'source': ENV_INFO.source,
    'variables': {ENV_INFO.source: ENV_INFO.raw_value},
    'warnings': tuple(env.warnings),
}
