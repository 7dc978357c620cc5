"""
Process-wide key material.

The encryption key and the token signing secret are read once from configuration
when the application is built. Both are validated before anything else starts:
a deployment with missing or short material must not come up at all.

The configured encryption key is a passphrase-like string, so it is stretched to
exactly KEY_LENGTH bytes with HKDF-SHA256 instead of being cut down to size.
"""

import logging
from dataclasses import dataclass, field

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

logger = logging.getLogger(__name__)

KEY_LENGTH = 32  # AES-256
MIN_MATERIAL_LENGTH = 32
ENCRYPTION_KEY_INFO = b'credvault-entry-encryption'


class KeyConfigurationError(RuntimeError):
    pass


def derive_encryption_key(raw: str) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,  # the key must be stable across restarts
        info=ENCRYPTION_KEY_INFO,
    )
    return hkdf.derive(raw.encode('utf-8'))


@dataclass(frozen=True)
class KeyMaterial:
    encryption_key: bytes = field(repr=False)
    signing_secret: bytes = field(repr=False)


class KeyManager:
    """Read-only holder for the deployment's key material."""

    def __init__(self, material: KeyMaterial):
        if len(material.encryption_key) != KEY_LENGTH:
            raise KeyConfigurationError(f'Encryption key must be exactly {KEY_LENGTH} bytes')
        self._material = material

    @classmethod
    def from_config(cls, config) -> 'KeyManager':
        encryption_key = _require(config, 'ENCRYPTION_KEY')
        signing_secret = _require(config, 'JWT_SECRET')
        manager = cls(KeyMaterial(
            encryption_key=derive_encryption_key(encryption_key),
            signing_secret=signing_secret.encode('utf-8'),
        ))
        logger.info('Key material loaded')
        return manager

    @property
    def encryption_key(self) -> bytes:
        return self._material.encryption_key

    @property
    def signing_secret(self) -> bytes:
        return self._material.signing_secret

    def __repr__(self):
        return 'KeyManager(<redacted>)'


def _require(config, name: str) -> str:
    value = config.get(name)
    if not value:
        raise KeyConfigurationError(f'{name} not set in environment')
    if len(value) < MIN_MATERIAL_LENGTH:
        raise KeyConfigurationError(f'{name} must be at least {MIN_MATERIAL_LENGTH} characters long')
    return value
