"""
Configuration management for the flight search proxy.

Loads settings from environment variables with sensible defaults.
The configuration is built once at process start by ``load_config()`` and
handed to the application factory, which passes it on to the proxy service.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {'1', 'true', 'yes', 'on'}


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in _TRUTHY


def _parse_int(environ: Mapping[str, str], name: str, default: int) -> int:
    """Read an integer setting, falling back to the default if invalid."""
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f'Invalid value for {name}: {raw!r}, using {default}')
        return default
    if value <= 0:
        logger.warning(f'{name} must be positive, using {default}')
        return default
    return value


def _parse_level(value: Optional[str]) -> Optional[str]:
    """Normalize a level name, or None if unset or unknown."""
    name = (value or '').strip().upper()
    if not name:
        return None
    if not isinstance(logging.getLevelName(name), int):
        logger.warning(f'Unknown LOG_LEVEL {value!r}, ignoring')
        return None
    return name


@dataclass(frozen=True)
class AviationStackConfig:
    """AviationStack API configuration."""
    api_key: Optional[str] = None
    # Free tier only supports HTTP, paid tiers support HTTPS
    base_url: str = 'http://api.aviationstack.com/v1'
    timeout_seconds: int = 15

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def protocol(self) -> str:
        return self.base_url.split('://', 1)[0]


@dataclass(frozen=True)
class CacheConfig:
    """Response cache settings."""
    backend: str = 'memory'  # memory | redis
    ttl_minutes: int = 15
    max_entries: int = 500
    redis_url: str = 'redis://localhost:6379/0'

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_minutes * 60


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings."""
    # Root level name; None means DEBUG in debug mode, INFO otherwise
    level: Optional[str] = None
    # Upstream traffic is mirrored to this file when debug mode is on
    debug_log_file: Optional[str] = None

    def resolve_level(self, debug: bool) -> int:
        if self.level:
            return logging.getLevelName(self.level)
        return logging.DEBUG if debug else logging.INFO


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    aviationstack: AviationStackConfig = field(default_factory=AviationStackConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Flask settings
    secret_key: str = 'dev-key-change-in-prod'
    debug: bool = False


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Load and validate all configuration.

    Args:
        environ: Mapping to read settings from. Defaults to ``os.environ``
                 after loading any ``.env`` file.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    backend = environ.get('CACHE_BACKEND', 'memory').strip().lower()
    if backend not in ('memory', 'redis'):
        logger.warning(f'Unknown CACHE_BACKEND {backend!r}, using memory')
        backend = 'memory'

    return AppConfig(
        aviationstack=AviationStackConfig(
            api_key=environ.get('AVIATIONSTACK_API_KEY') or None,
            base_url=(environ.get('AVIATIONSTACK_BASE_URL') or 'http://api.aviationstack.com/v1').rstrip('/'),
            timeout_seconds=_parse_int(environ, 'AVIATIONSTACK_TIMEOUT', 15),
        ),
        cache=CacheConfig(
            backend=backend,
            ttl_minutes=_parse_int(environ, 'AVIATIONSTACK_CACHE_TIME', 15),
            max_entries=_parse_int(environ, 'CACHE_MAX_ENTRIES', 500),
            redis_url=environ.get('REDIS_URL') or 'redis://localhost:6379/0',
        ),
        logging=LoggingConfig(
            level=_parse_level(environ.get('LOG_LEVEL')),
            debug_log_file=environ.get('AVIATIONSTACK_LOG_FILE') or None,
        ),
        secret_key=environ.get('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=_parse_bool(environ.get('APP_DEBUG')),
    )
