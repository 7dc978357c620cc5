"""
Encryption-at-rest for vault secrets.

Secrets are PKCS#7 padded and encrypted in CBC chaining over a single-block
AES-256 transform. The transform itself comes from the ``cryptography`` package;
only the chaining lives here, so the primitive can be swapped by handing the engine
a different ``BlockCipher`` factory.

Security Note:
    Never log plaintext, ciphertext or keys.
    Every encryption draws a fresh 16-byte iv from os.urandom.
    All padding defects raise the same PaddingValidationFailed.
"""

import os
from typing import Callable, Protocol, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import (
    EncodingError,
    InvalidCiphertextLength,
    InvalidIVLength,
    InvalidKeyLength,
    PaddingValidationFailed,
)

BLOCK_SIZE = 16
KEY_LENGTH = 32


class BlockCipher(Protocol):
    block_size: int

    def encrypt_block(self, block: bytes) -> bytes: ...

    def decrypt_block(self, block: bytes) -> bytes: ...


class AESBlockCipher:
    """Raw AES applied to exactly one block at a time."""

    block_size = BLOCK_SIZE

    def __init__(self, key: bytes):
        cipher = Cipher(algorithms.AES(key), modes.ECB())
        self._encryptor = cipher.encryptor()
        self._decryptor = cipher.decryptor()

    def encrypt_block(self, block: bytes) -> bytes:
        return self._encryptor.update(block)

    def decrypt_block(self, block: bytes) -> bytes:
        return self._decryptor.update(block)


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right))


class CipherEngine:
    def __init__(self, primitive: Callable[[bytes], BlockCipher] = AESBlockCipher,
                 key_length: int = KEY_LENGTH):
        self._primitive = primitive
        self._key_length = key_length

    def _block_cipher(self, key: bytes) -> BlockCipher:
        if len(key) != self._key_length:
            raise InvalidKeyLength(f'Key must be exactly {self._key_length} bytes')
        return self._primitive(key)

    def encrypt(self, plaintext: bytes, key: bytes) -> Tuple[bytes, bytes]:
        """
        Encrypt plaintext under key.

        Returns:
            Tuple of (ciphertext, iv); the ciphertext is always a whole number of
            blocks and at least one block long.
        """
        block_cipher = self._block_cipher(key)
        size = block_cipher.block_size
        iv = os.urandom(size)

        padder = padding.PKCS7(size * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()

        blocks = []
        previous = iv
        for start in range(0, len(padded), size):
            previous = block_cipher.encrypt_block(_xor(padded[start:start + size], previous))
            blocks.append(previous)
        return b''.join(blocks), iv

    def decrypt(self, ciphertext: bytes, iv: bytes, key: bytes) -> bytes:
        block_cipher = self._block_cipher(key)
        size = block_cipher.block_size
        if len(iv) != size:
            raise InvalidIVLength(f'IV must be exactly {size} bytes')
        if not ciphertext or len(ciphertext) % size:
            raise InvalidCiphertextLength(f'Ciphertext length must be a non-zero multiple of {size}')

        recovered = []
        previous = iv
        for start in range(0, len(ciphertext), size):
            current = ciphertext[start:start + size]
            recovered.append(_xor(block_cipher.decrypt_block(current), previous))
            previous = current

        unpadder = padding.PKCS7(size * 8).unpadder()
        try:
            return unpadder.update(b''.join(recovered)) + unpadder.finalize()
        except ValueError:
            raise PaddingValidationFailed() from None

    def seal(self, secret: str, key: bytes) -> Tuple[str, str]:
        """Encrypt a text secret into the (ciphertext_hex, iv_hex) pair we store."""
        ciphertext, iv = self.encrypt(secret.encode('utf-8'), key)
        return ciphertext.hex(), iv.hex()

    def unseal(self, ciphertext_hex: str, iv_hex: str, key: bytes) -> str:
        try:
            ciphertext = bytes.fromhex(ciphertext_hex)
            iv = bytes.fromhex(iv_hex)
        except (TypeError, ValueError):
            raise EncodingError('Stored secret is not valid hex') from None
        plaintext = self.decrypt(ciphertext, iv, key)
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError:
            raise EncodingError('Decrypted secret is not valid UTF-8') from None
