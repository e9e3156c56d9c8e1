from .provider import APIConfig, AuthConfig, ConfigProvider, EnvConfigProvider, SessionConfig

__all__ = ["APIConfig", "AuthConfig", "ConfigProvider", "EnvConfigProvider", "SessionConfig"]
