"""Exception taxonomy shared by the vault core and the HTTP layer."""

from enum import Enum


class VaultError(Exception):
    status_code = 500
    public_message = 'Internal error'


class ValidationError(VaultError):
    status_code = 400

    def __init__(self, message='Invalid request'):
        super().__init__(message)
        self.public_message = message


class AuthFailure(str, Enum):
    UNAUTHORIZED = 'Unauthorized'
    TOKEN_EXPIRED = 'TokenExpired'
    SIGNATURE_INVALID = 'SignatureInvalid'
    MALFORMED = 'Malformed'


class AuthError(VaultError):
    status_code = 401
    public_message = 'Unauthorized'

    def __init__(self, reason=AuthFailure.UNAUTHORIZED):
        super().__init__(reason.value)
        self.reason = reason


class InvalidCredentials(AuthError):
    public_message = 'Invalid credentials'

    def __init__(self):
        super().__init__(AuthFailure.UNAUTHORIZED)


class NotFoundError(VaultError):
    status_code = 404

    def __init__(self, message='Not found'):
        super().__init__(message)
        self.public_message = message


class ConflictError(VaultError):
    status_code = 409

    def __init__(self, message):
        super().__init__(message)
        self.public_message = message


class EmailTaken(ConflictError):
    def __init__(self):
        super().__init__('Email already registered')


# Crypto failures stay opaque to clients; details only reach the log.

class CryptoError(VaultError):
    pass


class InvalidKeyLength(CryptoError):
    pass


class InvalidIVLength(CryptoError):
    pass


class InvalidCiphertextLength(CryptoError):
    pass


class PaddingValidationFailed(CryptoError):
    def __init__(self):
        super().__init__('Padding validation failed')


class EncodingError(CryptoError):
    pass


class PersistenceError(VaultError):
    def __init__(self, message, transient=False):
        super().__init__(message)
        self.transient = transient
        self.status_code = 503 if transient else 500
        self.public_message = 'Service unavailable' if transient else 'Internal error'
