"""
Unified Configuration System for the WorkZen portal

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
from pathlib import Path


DEFAULT_API_URL = "http://localhost:8080/api/v1"


@dataclass
class APIConfig:
    """Backend API configuration settings"""
    base_url: str = field(default_factory=lambda: os.getenv("WORKZEN_API_URL", DEFAULT_API_URL))
    timeout_seconds: Optional[float] = None  # None keeps the transport default

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        # In test environment, prefer environment variables
        if os.getenv("PYTEST_CURRENT_TEST") is not None:
            return cls._from_env()

        try:
            return cls(
                base_url=st.secrets.get("WORKZEN_API_URL", os.getenv("WORKZEN_API_URL", DEFAULT_API_URL)),
                timeout_seconds=_parse_timeout(st.secrets.get("WORKZEN_API_TIMEOUT", os.getenv("WORKZEN_API_TIMEOUT")))
            )
        except Exception:
            # Fallback to environment variables if secrets not available
            return cls._from_env()

    @classmethod
    def _from_env(cls) -> 'APIConfig':
        return cls(
            base_url=os.getenv("WORKZEN_API_URL", DEFAULT_API_URL),
            timeout_seconds=_parse_timeout(os.getenv("WORKZEN_API_TIMEOUT"))
        )


def _parse_timeout(value) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "WorkZen"
    page_icon: str = "🏢"
    tagline: str = "HRMS Solution"
    show_demo_credentials: bool = False
    demo_credentials: List[Dict[str, str]] = field(default_factory=lambda: [
        {"username": "superadmin", "password": "SuperAdmin@123"},
        {"username": "demoadmin", "password": "Admin@123"},
    ])


@dataclass
class AuthConfig:
    """Authentication and session configuration"""
    enabled: bool = True
    allow_self_registration: bool = True
    password_min_length: int = 8
    logout_reload_delay_seconds: float = 0.1


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(filename)s:%(lineno)d]"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"
    log_api_requests: bool = True


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Build the configuration, reading API settings from secrets or the environment"""
        config = cls()

        # Load API configuration from secrets/environment
        config.api = APIConfig.from_secrets()

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if not self.api.base_url:
            errors.append("API base URL is required")
        elif not self.api.base_url.startswith(("http://", "https://")):
            errors.append(f"API base URL must be an http(s) URL: {self.api.base_url}")

        if self.api.timeout_seconds is not None and self.api.timeout_seconds <= 0:
            errors.append("API timeout must be positive")

        if self.auth.password_min_length < 1:
            errors.append("Password minimum length must be at least 1")

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Non-secret view of the configuration, for diagnostics"""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_base_url": self.api.base_url,
            "api_timeout_seconds": self.api.timeout_seconds,
            "auth_enabled": self.auth.enabled,
            "log_level": self.logging.level,
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        # Environment overrides live in config.environments
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()
