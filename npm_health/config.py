"""
Runtime configuration

Settings are read from NPM_HEALTH_* environment variables so the same
code can point at mirrors or test doubles without changes.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Upstream endpoints and transport tuning"""
    registry_url: str = "https://registry.npmjs.org"
    downloads_url: str = "https://api.npmjs.org/downloads/point/last-week"
    github_api_url: str = "https://api.github.com"
    npm_web_url: str = "https://www.npmjs.com/package"
    timeout: float = 30.0
    revalidate_seconds: int = 3600
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name, "").strip()
    return raw or default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def get_settings() -> Settings:
    """
    Build settings from the environment

    Returns:
        Settings with defaults for anything unset or invalid
    """
    defaults = Settings()
    return Settings(
        registry_url=_env_str("NPM_HEALTH_REGISTRY_URL", defaults.registry_url).rstrip("/"),
        downloads_url=_env_str("NPM_HEALTH_DOWNLOADS_URL", defaults.downloads_url).rstrip("/"),
        github_api_url=_env_str("NPM_HEALTH_GITHUB_API_URL", defaults.github_api_url).rstrip("/"),
        npm_web_url=_env_str("NPM_HEALTH_NPM_WEB_URL", defaults.npm_web_url).rstrip("/"),
        timeout=_env_float("NPM_HEALTH_TIMEOUT", defaults.timeout),
        revalidate_seconds=max(0, _env_int("NPM_HEALTH_REVALIDATE_SECONDS", defaults.revalidate_seconds)),
        log_level=_env_str("NPM_HEALTH_LOG_LEVEL", defaults.log_level).upper(),
        host=_env_str("NPM_HEALTH_HOST", defaults.host),
        port=_env_int("NPM_HEALTH_PORT", defaults.port),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and the server"""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    # httpx logs every request at INFO; keep it quiet unless debugging
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
