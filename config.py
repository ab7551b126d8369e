"""
Centralized Configuration for the ServiceRig Dashboard
Manages environment-specific settings, secrets, and service configurations.
"""
import os


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB max request body

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Mock Store Settings
    STORE_LATENCY_MS = int(os.environ.get('STORE_LATENCY_MS', '50'))
    SEED_DEFAULT_DATA = os.environ.get('SEED_DEFAULT_DATA', 'true').lower() == 'true'
    SEED_DATA_FOLDER = os.environ.get('SEED_DATA_FOLDER')

    # Billing Defaults
    DEFAULT_PAYMENT_TERMS_DAYS = int(os.environ.get('DEFAULT_PAYMENT_TERMS_DAYS', '30'))
    FIELD_PURCHASE_MARKUP = 1.5
    LABOR_RATE_PER_HOUR = float(os.environ.get('LABOR_RATE_PER_HOUR', '95'))

    # AI Service API Keys
    ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY')
    TAVILY_API_KEY = os.environ.get('TAVILY_API_KEY')

    # AI Model Configuration
    AI_MODELS = {
        'claude': {
            'model': os.environ.get('CLAUDE_MODEL', 'claude-sonnet-4-20250514'),
            'max_tokens': 4096,
            'temperature': 0.7,
        },
    }
    AI_TIMEOUT = int(os.environ.get('AI_TIMEOUT', '120'))  # seconds
    AI_SEARCH_MAX_RESULTS = int(os.environ.get('AI_SEARCH_MAX_RESULTS', '5'))

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')
    LOG_TO_FILE = True


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://servicerig.com').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    STORE_LATENCY_MS = 0


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    STORE_LATENCY_MS = 0
    SEED_DEFAULT_DATA = True
    SEED_DATA_FOLDER = None
    LOG_TO_FILE = False
    ANTHROPIC_API_KEY = None
    TAVILY_API_KEY = None


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
