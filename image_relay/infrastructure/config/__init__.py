"""Configuration Infrastructure"""

from .settings import (
    Settings,
    ServerConfig,
    PollingConfig,
    HttpConfig,
    ProviderConfig,
    AuthConfig,
    UserConfig,
    LoggingConfig,
    load_settings,
)

__all__ = [
    "Settings",
    "ServerConfig",
    "PollingConfig",
    "HttpConfig",
    "ProviderConfig",
    "AuthConfig",
    "UserConfig",
    "LoggingConfig",
    "load_settings",
]
