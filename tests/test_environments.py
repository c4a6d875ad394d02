"""
Tests for environment-specific configurations
"""

import pytest
from config.environments import get_environment_config
from config.environments.development import DevelopmentConfig, get_development_config
from config.environments.production import ProductionConfig, get_production_config
from config.app_config import AppConfig


class TestDevelopmentConfig:
    """Test development environment configuration"""

    def test_development_overrides(self):
        """Test development-specific settings"""
        config = get_development_config()

        assert isinstance(config, DevelopmentConfig)
        assert config.environment == "development"
        assert config.debug is True
        assert config.logging.level == "DEBUG"
        assert config.logging.log_file == "logs/dev-app.log"
        assert "DEV" in config.ui.app_title
        assert config.ui.show_demo_credentials is True


class TestProductionConfig:
    """Test production environment configuration"""

    def test_production_overrides(self):
        """Test production-specific settings"""
        config = get_production_config()

        assert isinstance(config, ProductionConfig)
        assert config.environment == "production"
        assert config.debug is False
        assert config.logging.level == "INFO"
        assert config.logging.log_file == "logs/prod-app.log"
        assert config.ui.app_title == "WorkZen"
        assert config.ui.show_demo_credentials is False

    def test_slower_logout_reload(self):
        """Test the production reload delay after logout"""
        assert get_production_config().auth.logout_reload_delay_seconds == 0.5


class TestEnvironmentSelection:
    """Test environment-based configuration selection"""

    def test_development_selection(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "development")
        assert isinstance(get_environment_config(), DevelopmentConfig)

    def test_production_selection(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "PRODUCTION")
        assert isinstance(get_environment_config(), ProductionConfig)

    def test_unknown_environment_uses_base(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "staging")
        config = get_environment_config()

        assert type(config) is AppConfig
        assert config.environment == "staging"


if __name__ == "__main__":
    pytest.main([__file__])
