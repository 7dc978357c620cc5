"""Tests for credvault.cipher: CBC chaining, padding and storage encoding."""

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from credvault.cipher import BLOCK_SIZE, CipherEngine
from credvault.errors import (
    CryptoError,
    EncodingError,
    InvalidCiphertextLength,
    InvalidIVLength,
    InvalidKeyLength,
    PaddingValidationFailed,
)


class PassthroughBlockCipher:
    """Leaves blocks untouched so the chaining is visible in the output."""

    block_size = BLOCK_SIZE

    def __init__(self, key):
        self.key = key

    def encrypt_block(self, block):
        return block

    def decrypt_block(self, block):
        return block


def _xor(left, right):
    return bytes(a ^ b for a, b in zip(left, right))


class TestRoundTrip:
    @pytest.mark.parametrize('plaintext', [
        b'',
        b'hunter2',
        b'x' * 15,
        b'x' * 16,
        b'x' * 17,
        'pässwörd-ünïcode'.encode('utf-8'),
        bytes(range(256)),
    ])
    def test_decrypt_recovers_plaintext(self, engine, key, plaintext):
        ciphertext, iv = engine.encrypt(plaintext, key)
        assert engine.decrypt(ciphertext, iv, key) == plaintext

    def test_hunter2_is_one_block(self, engine):
        key = ('0123456789abcdef' * 2).encode('utf-8')
        ciphertext, iv = engine.encrypt(b'hunter2', key)
        assert len(ciphertext) == 16
        assert len(iv) == 16
        assert engine.decrypt(ciphertext, iv, key) == b'hunter2'

    def test_aligned_plaintext_gets_full_padding_block(self, engine, key):
        ciphertext, _ = engine.encrypt(b'a' * 32, key)
        assert len(ciphertext) == 48

    def test_matches_reference_cbc(self, engine, key):
        plaintext = b'site password with several blocks of text'
        ciphertext, iv = engine.encrypt(plaintext, key)

        padder = padding.PKCS7(128).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        assert ciphertext == encryptor.update(padded) + encryptor.finalize()


class TestIV:
    def test_fresh_iv_per_call(self, engine, key):
        first = engine.encrypt(b'hunter2', key)
        second = engine.encrypt(b'hunter2', key)
        assert first[1] != second[1]
        assert first[0] != second[0]


class TestChaining:
    def test_first_block_uses_iv_then_previous_ciphertext(self, key):
        engine = CipherEngine(primitive=PassthroughBlockCipher)
        plaintext = b'A' * 16 + b'B' * 16
        ciphertext, iv = engine.encrypt(plaintext, key)

        c0, c1, c2 = ciphertext[:16], ciphertext[16:32], ciphertext[32:]
        assert c0 == _xor(b'A' * 16, iv)
        assert c1 == _xor(b'B' * 16, c0)
        assert c2 == _xor(bytes([16]) * 16, c1)
        assert engine.decrypt(ciphertext, iv, key) == plaintext


class TestTampering:
    def test_any_bit_flip_is_detected_or_changes_output(self, engine, key):
        ciphertext, iv = engine.encrypt(b'hunter2', key)
        for target in ('ciphertext', 'iv'):
            data = ciphertext if target == 'ciphertext' else iv
            for bit in range(len(data) * 8):
                flipped = bytearray(data)
                flipped[bit // 8] ^= 1 << (bit % 8)
                args = (bytes(flipped), iv) if target == 'ciphertext' else (ciphertext, bytes(flipped))
                try:
                    result = engine.decrypt(*args, key)
                except PaddingValidationFailed:
                    continue
                assert result != b'hunter2'

    def test_wrong_key_does_not_recover_plaintext(self, engine, key):
        ciphertext, iv = engine.encrypt(b'hunter2', key)
        other = bytes(32)
        try:
            assert engine.decrypt(ciphertext, iv, other) != b'hunter2'
        except PaddingValidationFailed:
            pass

    def test_padding_errors_are_uniform(self, key):
        engine = CipherEngine(primitive=PassthroughBlockCipher)
        iv = bytes(16)
        zero_pad = b'x' * 15 + b'\x00'
        too_long = b'x' * 15 + b'\x11'
        inconsistent = b'x' * 13 + b'\x01\x03\x03'
        messages = set()
        for block in (zero_pad, too_long, inconsistent):
            with pytest.raises(PaddingValidationFailed) as excinfo:
                engine.decrypt(block, iv, key)
            messages.add(str(excinfo.value))
        assert len(messages) == 1


class TestValidation:
    @pytest.mark.parametrize('length', [0, 16, 31, 33])
    def test_key_length(self, engine, length):
        with pytest.raises(InvalidKeyLength):
            engine.encrypt(b'secret', b'k' * length)
        with pytest.raises(InvalidKeyLength):
            engine.decrypt(bytes(16), bytes(16), b'k' * length)

    @pytest.mark.parametrize('length', [0, 8, 15, 17, 32])
    def test_iv_length(self, engine, key, length):
        with pytest.raises(InvalidIVLength):
            engine.decrypt(bytes(16), bytes(length), key)

    @pytest.mark.parametrize('length', [0, 1, 15, 17, 31])
    def test_ciphertext_length(self, engine, key, length):
        with pytest.raises(InvalidCiphertextLength):
            engine.decrypt(bytes(length), bytes(16), key)

    def test_errors_share_a_base(self):
        for exc in (InvalidKeyLength, InvalidIVLength, InvalidCiphertextLength,
                    PaddingValidationFailed, EncodingError):
            assert issubclass(exc, CryptoError)


class TestStorageEncoding:
    def test_seal_produces_hex(self, engine, key):
        ciphertext_hex, iv_hex = engine.seal('hunter2', key)
        assert len(ciphertext_hex) == 32
        assert len(iv_hex) == 32
        int(ciphertext_hex, 16)
        int(iv_hex, 16)

    def test_unseal_recovers_text(self, engine, key):
        assert engine.unseal(*engine.seal('pässwörd', key), key) == 'pässwörd'

    def test_unseal_rejects_bad_hex(self, engine, key):
        _, iv_hex = engine.seal('hunter2', key)
        with pytest.raises(EncodingError):
            engine.unseal('not-hex', iv_hex, key)

    def test_unseal_rejects_non_utf8(self, engine, key):
        ciphertext, iv = engine.encrypt(b'\xff\xfe\xfd', key)
        with pytest.raises(EncodingError):
            engine.unseal(ciphertext.hex(), iv.hex(), key)
