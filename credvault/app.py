import logging
from dataclasses import dataclass

from flask import Flask, jsonify

from .accounts import AccountService
from .cipher import CipherEngine
from .config import Config, allowed_origins
from .database import db
from .errors import VaultError
from .extensions import cors, limiter, migrate
from .gate import AccessGate
from .keys import KeyManager
from .routes import passwords, users
from .store import EntryStore, UserStore
from .tokens import TokenService
from .vault import VaultService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Services:
    keys: KeyManager
    tokens: TokenService
    gate: AccessGate
    vault: VaultService
    accounts: AccountService


def build_services(config) -> Services:
    """Wire the core once per process; KeyConfigurationError stops startup."""
    keys = KeyManager.from_config(config)
    tokens = TokenService(keys.signing_secret)
    return Services(
        keys=keys,
        tokens=tokens,
        gate=AccessGate(tokens),
        vault=VaultService(EntryStore(), CipherEngine(), keys.encryption_key),
        accounts=AccountService(UserStore(), tokens, rounds=config['BCRYPT_ROUNDS']),
    )


def configure_logging(app):
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def handle_vault_error(exc):
    if exc.status_code >= 500:
        logger.error('%s: %s', exc.__class__.__name__, exc)
    return jsonify({'error': exc.public_message}), exc.status_code


def add_security_headers(response):
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
    response.headers["Cache-Control"] = "no-store"
    return response


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    app.extensions['credvault'] = build_services(app.config)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": allowed_origins(app.config)}})

    app.register_blueprint(users)
    app.register_blueprint(passwords)
    app.register_error_handler(VaultError, handle_vault_error)
    app.after_request(add_security_headers)

    with app.app_context():
        db.create_all()

    logger.info("Starting server with %s, and debug mode set to %s", app.config['BASE_URL'], app.config['DEBUG'])
    return app
