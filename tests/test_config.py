"""
Tests for configuration system
"""
import os
import pytest
from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config
)


@pytest.mark.unit
class TestBaseConfig:
    """Tests for base configuration"""

    def test_base_config_has_secret_key(self):
        """Test that base config has a secret key"""
        config = Config()
        assert config.SECRET_KEY is not None

    def test_base_config_has_max_content_length(self):
        """Test that base config caps request bodies at 5MB"""
        assert Config.MAX_CONTENT_LENGTH == 5 * 1024 * 1024

    def test_base_config_has_cors_settings(self):
        """Test that base config has CORS settings"""
        config = Config()
        assert 'GET' in config.CORS_METHODS
        assert 'PUT' in config.CORS_METHODS
        assert 'Content-Type' in config.CORS_ALLOW_HEADERS

    def test_base_config_has_ai_models(self):
        """Test that only the Claude model is configured"""
        assert list(Config.AI_MODELS) == ['claude']
        assert Config.AI_MODELS['claude']['max_tokens'] == 4096
        assert Config.AI_TIMEOUT > 0

    def test_base_config_has_billing_defaults(self):
        """Test the billing defaults used by field purchases and invoices"""
        assert Config.FIELD_PURCHASE_MARKUP == 1.5
        assert Config.DEFAULT_PAYMENT_TERMS_DAYS > 0

    def test_base_config_has_store_settings(self):
        """Test that mock store latency is a non-negative integer"""
        assert isinstance(Config.STORE_LATENCY_MS, int)
        assert Config.STORE_LATENCY_MS >= 0

    def test_base_config_has_logging_settings(self):
        """Test that base config has logging settings"""
        assert Config.LOG_TO_FILE is True
        assert '%(levelname)s' in Config.LOG_FORMAT


@pytest.mark.unit
class TestDevelopmentConfig:
    """Tests for development configuration"""

    def test_development_debug_enabled(self):
        """Test that development mode has debug enabled"""
        assert DevelopmentConfig.DEBUG is True
        assert DevelopmentConfig.TESTING is False

    def test_development_allows_all_cors(self):
        """Test that development allows all CORS origins"""
        assert DevelopmentConfig.CORS_ORIGINS == ['*']

    def test_development_log_level(self):
        assert DevelopmentConfig.LOG_LEVEL == 'DEBUG'


@pytest.mark.unit
class TestProductionConfig:
    """Tests for production configuration"""

    def test_production_debug_disabled(self):
        """Test that production mode has debug disabled"""
        assert ProductionConfig.DEBUG is False
        assert ProductionConfig.TESTING is False

    def test_production_secure_cookies(self):
        """Test that production uses secure cookies"""
        assert ProductionConfig.SESSION_COOKIE_SECURE is True
        assert ProductionConfig.SESSION_COOKIE_HTTPONLY is True
        assert ProductionConfig.SESSION_COOKIE_SAMESITE == 'Lax'

    def test_production_https_scheme(self):
        """Test that production prefers HTTPS"""
        assert ProductionConfig.PREFERRED_URL_SCHEME == 'https'

    def test_production_has_no_artificial_latency(self):
        assert ProductionConfig.STORE_LATENCY_MS == 0


@pytest.mark.unit
class TestTestingConfig:
    """Tests for testing configuration"""

    def test_testing_mode_enabled(self):
        """Test that testing mode is enabled"""
        assert TestingConfig.TESTING is True

    def test_testing_has_no_latency_or_log_file(self):
        """Test that tests run without store latency or a log file"""
        assert TestingConfig.STORE_LATENCY_MS == 0
        assert TestingConfig.LOG_TO_FILE is False

    def test_testing_has_no_ai_keys(self):
        """Test that tests never reach the real AI providers"""
        assert TestingConfig.ANTHROPIC_API_KEY is None
        assert TestingConfig.TAVILY_API_KEY is None

    def test_testing_seeds_demo_data(self):
        assert TestingConfig.SEED_DEFAULT_DATA is True
        assert TestingConfig.SEED_DATA_FOLDER is None


@pytest.mark.unit
class TestGetConfig:
    """Tests for get_config function"""

    def test_get_config_development(self, monkeypatch):
        """Test getting development config"""
        monkeypatch.setenv('FLASK_ENV', 'development')
        assert get_config() == DevelopmentConfig

    def test_get_config_production(self, monkeypatch):
        """Test getting production config"""
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert get_config() == ProductionConfig

    def test_get_config_testing(self, monkeypatch):
        """Test getting testing config"""
        monkeypatch.setenv('FLASK_ENV', 'testing')
        assert get_config() == TestingConfig

    def test_get_config_default(self, monkeypatch):
        """Test that an unset FLASK_ENV falls back to development"""
        monkeypatch.delenv('FLASK_ENV', raising=False)
        assert get_config() == DevelopmentConfig

    def test_get_config_unknown(self, monkeypatch):
        """Test that an unknown environment falls back to development"""
        monkeypatch.setenv('FLASK_ENV', 'staging')
        assert get_config() == DevelopmentConfig

    def test_env_vars_fixture_sets_testing(self, test_env_vars):
        """Test that the env var fixture selects the testing config"""
        assert os.environ['FLASK_ENV'] == 'testing'
        assert get_config() == TestingConfig
