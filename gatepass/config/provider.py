"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

VALID_BACKENDS = ("redis", "memory")
VALID_SAME_SITE = ("lax", "strict", "none")
VALID_ERROR_FORMATS = ("json", "jsonrpc")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class SessionConfig:
    """Session storage and cookie configuration."""
    backend: str
    cookie_name: str
    ttl: int
    secure: bool
    same_site: str
    redis_url: Optional[str]

    @property
    def uses_redis(self) -> bool:
        """Check if sessions are stored in Redis."""
        return self.backend == "redis"


@dataclass
class AuthConfig:
    """Authentication configuration."""
    session_key: str
    user_property: str
    error_format: str


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        backend = os.getenv("SESSION_BACKEND", "memory").lower()
        if backend not in VALID_BACKENDS:
            raise ValueError(
                f"SESSION_BACKEND must be one of {', '.join(VALID_BACKENDS)}, got {backend!r}"
            )

        same_site = os.getenv("SESSION_SAME_SITE", "lax").lower()
        if same_site not in VALID_SAME_SITE:
            raise ValueError(
                f"SESSION_SAME_SITE must be one of {', '.join(VALID_SAME_SITE)}, got {same_site!r}"
            )

        redis_url = os.getenv("REDIS_URL")
        if backend == "redis" and not redis_url:
            # Same default the redis client would use
            redis_url = "redis://localhost:6379/0"

        return SessionConfig(
            backend=backend,
            cookie_name=os.getenv("SESSION_COOKIE_NAME", "gatepass.sid"),
            ttl=int(os.getenv("SESSION_TTL", "3600")),
            secure=_env_bool("SESSION_SECURE"),
            same_site=same_site,
            redis_url=redis_url,
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        error_format = os.getenv("AUTH_ERROR_FORMAT", "json").lower()
        if error_format not in VALID_ERROR_FORMATS:
            raise ValueError(
                f"AUTH_ERROR_FORMAT must be one of {', '.join(VALID_ERROR_FORMATS)}, got {error_format!r}"
            )

        return AuthConfig(
            session_key=os.getenv("AUTH_SESSION_KEY", "auth"),
            user_property=os.getenv("AUTH_USER_PROPERTY", "user"),
            error_format=error_format,
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=int(os.getenv("API_PORT", "8080")),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=_env_bool("API_DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
