# doctenancy/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from doctenancy.errors import ConfigurationError
from doctenancy.logs.logging_config import get_core_logger
from doctenancy.store.tenancy import FIELD_TENANT_ID

logger = get_core_logger("settings")


def _dotenv_enabled() -> bool:
    value = os.getenv("DOCTENANCY_LOAD_DOTENV")
    if value is None:
        return True
    return value.strip().lower() not in {"0", "false", "no", "off"}


# Load environment variables from a local .env for dev/test (never override process env).
if _dotenv_enabled():
    load_dotenv(override=False)


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, value, default)
        return default


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    tenant_field_name: str = FIELD_TENANT_ID
    request_id_header: str = "X-Request-ID"
    jwt_cookie_name: str = "JWT"
    access_log_max_errors: int = 5
    client_ip_proxy_depth: int = 0
    log_level: str = "INFO"
    logs_as_json: bool = False

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    def validate(self) -> None:
        if not self.tenant_field_name:
            raise ConfigurationError("DOCTENANCY_TENANT_FIELD must not be empty")
        if self.tenant_field_name.startswith("$") or "." in self.tenant_field_name:
            raise ConfigurationError(
                f"DOCTENANCY_TENANT_FIELD is not a valid document key: {self.tenant_field_name!r}"
            )
        if not self.request_id_header:
            raise ConfigurationError("DOCTENANCY_REQUEST_ID_HEADER must not be empty")
        if self.client_ip_proxy_depth < 0:
            raise ConfigurationError("DOCTENANCY_CLIENT_IP_PROXY_DEPTH must be >= 0")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid LOG_LEVEL: '{self.log_level}' (expected one of: {', '.join(sorted(_LOG_LEVELS))})"
            )


def load_settings() -> Settings:
    env = (_env_str("ENV", "development") or "development").lower()
    settings = Settings(
        env=env,
        tenant_field_name=_env_str("DOCTENANCY_TENANT_FIELD", FIELD_TENANT_ID) or FIELD_TENANT_ID,
        request_id_header=_env_str("DOCTENANCY_REQUEST_ID_HEADER", "X-Request-ID") or "X-Request-ID",
        jwt_cookie_name=_env_str("DOCTENANCY_JWT_COOKIE", "JWT") or "JWT",
        access_log_max_errors=_env_int("DOCTENANCY_ACCESSLOG_MAX_ERRORS", 5),
        client_ip_proxy_depth=_env_int("DOCTENANCY_CLIENT_IP_PROXY_DEPTH", 0),
        log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        logs_as_json=_env_bool("LOGS_AS_JSON", default=env == "production"),
    )
    settings.validate()
    return settings


settings = load_settings()


def get_settings() -> Settings:
    return settings
