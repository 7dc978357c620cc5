import pytest

from credvault import create_app
from credvault.cipher import CipherEngine
from credvault.keys import derive_encryption_key

ENCRYPTION_KEY = 'correct-horse-battery-staple-0123456789'
JWT_SECRET = 'jwt-signing-secret-for-tests-only-0123456789'

TEST_CONFIG = {
    'TESTING': True,
    'ENCRYPTION_KEY': ENCRYPTION_KEY,
    'JWT_SECRET': JWT_SECRET,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'RATELIMIT_ENABLED': False,
    'BCRYPT_ROUNDS': 4,
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    yield app


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions['credvault']


@pytest.fixture
def engine():
    return CipherEngine()


@pytest.fixture
def key():
    return derive_encryption_key(ENCRYPTION_KEY)


def register(client, email='alice@example.com', password='s3cret-pass', username='alice'):
    response = client.post('/api/user/register', json={
        'username': username,
        'email': email,
        'password': password,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def bearer(token):
    return {'Authorization': f'Bearer {token}'}
