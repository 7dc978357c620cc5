import logging

import bcrypt

from .errors import InvalidCredentials, NotFoundError
from .models import User
from .schemas import AuthResult, LoginRequest, RegisterRequest, UserView
from .store import UserStore
from .tokens import TokenService

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72  # bcrypt ignores or rejects anything longer


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode('utf-8')
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode('utf-8'))
    except ValueError:
        logger.error('Stored password hash is not a valid bcrypt hash')
        return False


class AccountService:
    def __init__(self, store: UserStore, tokens: TokenService, rounds: int = BCRYPT_ROUNDS):
        self._store = store
        self._tokens = tokens
        self._rounds = rounds
        # Compared against when the email is unknown, so both paths cost a bcrypt check.
        self._dummy_hash = hash_password('credvault-dummy-password', rounds)

    def _result(self, user: User) -> AuthResult:
        return AuthResult(token=self._tokens.issue(user.id), user=UserView.model_validate(user))

    def register(self, data: RegisterRequest) -> AuthResult:
        user = self._store.insert(User(
            username=data.username,
            email=data.email.strip().lower(),
            password_hash=hash_password(data.password, self._rounds),
        ))
        logger.info('Registered user %s', user.id)
        return self._result(user)

    def login(self, data: LoginRequest) -> AuthResult:
        user = self._store.find_by_email(data.email.strip().lower())
        if user is None:
            verify_password(data.password, self._dummy_hash)
            raise InvalidCredentials()
        if not verify_password(data.password, user.password_hash):
            raise InvalidCredentials()
        return self._result(user)

    def get_profile(self, identity_id: str) -> UserView:
        user = self._store.get(identity_id)
        if user is None:
            raise NotFoundError('User not found')
        return UserView.model_validate(user)
