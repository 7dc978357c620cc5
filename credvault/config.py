import os


def _flag(value):
    return str(value).lower() in ['true', '1', 'yes']


class Config:
    """Settings read from the environment once, at import of the app factory."""

    ENCRYPTION_KEY = os.environ.get('ENCRYPTION_KEY')
    JWT_SECRET = os.environ.get('JWT_SECRET')
    BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', 12))

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLITE_DB', 'sqlite:///credvault.sqlite3')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    DEBUG = _flag(os.environ.get('FLASK_DEBUG', 'false'))
    BASE_URL = os.environ.get('HOSTNAME') or 'http://127.0.0.1:5000/'

    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '100 per minute')
    RATELIMIT_AUTH = os.environ.get('RATELIMIT_AUTH', '5 per minute')
    RATELIMIT_ENABLED = _flag(os.environ.get('RATELIMIT_ENABLED', 'true'))
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


def allowed_origins(config):
    origins = [config['BASE_URL'], 'http://localhost:5000', 'http://127.0.0.1:5000']
    if config.get('DEBUG'):
        origins.append('*')
    return origins
