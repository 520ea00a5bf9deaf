import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    """Base configuration"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JSON_SORT_KEYS = False

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Identity is resolved upstream; the profile id arrives in this header
    PROFILE_HEADER = 'X-Profile-Id'

    # Activity tiers (days since last visit)
    ACTIVE_WINDOW_DAYS = 7
    MODERATE_WINDOW_DAYS = 30

    # Check-ins for the same member inside this window are collapsed (0 disables)
    VISIT_DEDUPE_SECONDS = int(os.environ.get('VISIT_DEDUPE_SECONDS', 60))

    # Dashboard
    DASHBOARD_MAX_WORKERS = int(os.environ.get('DASHBOARD_MAX_WORKERS', 5))
    DASHBOARD_ALERT_LIMIT = 5

    # Pagination
    ITEMS_PER_PAGE = 20


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, '..', 'instance', 'gymsuite.db')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, '..', 'instance', 'gymsuite.db')

    # Fix for Railway/Render PostgreSQL URL
    if SQLALCHEMY_DATABASE_URI and SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'WARNING'
    VISIT_DEDUPE_SECONDS = 0
    # The in-memory database is a single shared connection
    DASHBOARD_MAX_WORKERS = 1


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
