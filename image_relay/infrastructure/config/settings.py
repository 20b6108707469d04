"""Configuration Management - Infrastructure Layer"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import yaml

CONFIG_ENV_VAR = "IMAGE_RELAY_CONFIG"


@dataclass
class ServerConfig:
    """Server configuration"""
    name: str = "image-relay"


@dataclass
class PollingConfig:
    """Job polling configuration"""
    interval: float = 1.5
    max_attempts: int = 60


@dataclass
class HttpConfig:
    """Outbound HTTP configuration"""
    timeout: float = 120.0


@dataclass
class ProviderConfig:
    """Image provider configuration

    Provider API keys are not configured here: callers send their own key
    with every request.
    """
    adapter: str = ""
    base_url: str = ""
    model: str = ""
    version: str = ""
    enabled: bool = True
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class UserConfig:
    """Login user with a bcrypt password hash"""
    username: str = ""
    password_hash: str = ""


@dataclass
class AuthConfig:
    """Login handler configuration"""
    users: List[UserConfig] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "json"


@dataclass
class Settings:
    """Application configuration"""
    server: ServerConfig = field(default_factory=ServerConfig)
    default_provider: str = ""
    polling: PollingConfig = field(default_factory=PollingConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load configuration

        Args:
            config_path: Config file path (optional)

        Returns:
            Settings object
        """
        # 1. Resolve the config file path
        if config_path is None:
            env_path = os.getenv(CONFIG_ENV_VAR)
            if env_path:
                config_path = Path(env_path)
            else:
                # default: <project root>/config/config.yaml
                project_root = Path(__file__).parent.parent.parent.parent
                config_path = project_root / "config" / "config.yaml"

        # 2. Load YAML
        config_data = {}
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Settings":
        """Build settings from parsed YAML, applying environment overrides."""
        # 1. Server
        server_data = config_data.get("server") or {}
        server = ServerConfig(name=server_data.get("name", "image-relay"))

        # 2. Polling (environment overrides)
        polling_data = config_data.get("polling") or {}
        polling = PollingConfig(
            interval=float(os.getenv("IMAGE_RELAY_POLL_INTERVAL", polling_data.get("interval", 1.5))),
            max_attempts=int(os.getenv("IMAGE_RELAY_POLL_MAX_ATTEMPTS", polling_data.get("max_attempts", 60))),
        )

        http_data = config_data.get("http") or {}
        http = HttpConfig(timeout=float(http_data.get("timeout", 120.0)))

        # 3. Providers; the adapter type defaults to the provider name
        providers = {}
        providers_data = config_data.get("providers") or {}

        for provider_name, provider_data in providers_data.items():
            provider_data = provider_data or {}
            providers[provider_name] = ProviderConfig(
                adapter=provider_data.get("adapter", provider_name),
                base_url=provider_data.get("base_url", ""),
                model=provider_data.get("model", ""),
                version=provider_data.get("version", "") or "",
                enabled=provider_data.get("enabled", True),
                options=dict(provider_data.get("options") or {}),
            )

        default_provider = os.getenv(
            "IMAGE_RELAY_DEFAULT_PROVIDER", config_data.get("default_provider", "") or ""
        )

        # 4. Login users
        auth_data = config_data.get("auth") or {}
        users = [
            UserConfig(
                username=str(user.get("username", "")),
                password_hash=str(user.get("password_hash", "")),
            )
            for user in auth_data.get("users") or []
        ]

        # 5. Logging
        logging_data = config_data.get("logging") or {}
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", "INFO")),
            format=logging_data.get("format", "json"),
        )

        return cls(
            server=server,
            default_provider=default_provider,
            polling=polling,
            http=http,
            providers=providers,
            auth=AuthConfig(users=users),
            logging=logging_config,
        )


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Convenience wrapper around Settings.load

    Args:
        config_path: Config file path (optional)

    Returns:
        Settings object
    """
    return Settings.load(config_path)
