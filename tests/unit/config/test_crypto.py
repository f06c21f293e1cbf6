"""Unit tests for credential encryption."""

import base64
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from dbadmin.config.crypto import (
    FALLBACK_KEY,
    KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    CredentialCipher,
    EncryptionKey,
)
from dbadmin.core.exceptions import AuthenticationFailedError, SecurityError


def _unavailable(size):
    raise NotImplementedError("no entropy")


@pytest.fixture
def cipher():
    return CredentialCipher(EncryptionKey.from_bytes(bytes(range(KEY_SIZE))))


class TestEncryptionKey:
    """Test key loading, generation and degraded mode."""

    def test_generated_lazily(self, fixed_random):
        key = EncryptionKey(random_source=fixed_random)

        assert not key.is_materialized
        material = key.material()

        assert key.is_materialized
        assert material == fixed_random(KEY_SIZE)
        assert key.generated is True
        assert key.degraded is False
        assert key.material() is material

    def test_loaded_from_hex(self):
        key = EncryptionKey("0f" * KEY_SIZE)

        assert key.material() == bytes([0x0F] * KEY_SIZE)
        assert key.hex == "0f" * KEY_SIZE
        assert key.generated is False

    def test_invalid_hex_generates_new_key(self, fixed_random):
        key = EncryptionKey("not-hex", random_source=fixed_random)
        key._logger = MagicMock()

        assert key.material() == fixed_random(KEY_SIZE)
        assert key.generated is True
        key._logger.warning.assert_called_once()

    def test_short_hex_generates_new_key(self, fixed_random):
        key = EncryptionKey("ab" * 16, random_source=fixed_random)

        assert len(key.material()) == KEY_SIZE
        assert key.generated is True

    def test_random_source_unavailable_uses_fallback(self):
        key = EncryptionKey(random_source=_unavailable)
        key._logger = MagicMock()

        assert key.material() == FALLBACK_KEY
        assert key.degraded is True
        key._logger.critical.assert_called_once()

    def test_persisted_fallback_key_is_flagged(self):
        key = EncryptionKey(FALLBACK_KEY.hex())
        key._logger = MagicMock()

        assert key.material() == FALLBACK_KEY
        assert key.degraded is True
        assert key.generated is False
        key._logger.warning.assert_called_once()

    def test_wrong_length_random_source(self):
        key = EncryptionKey(random_source=lambda size: b"short")

        with pytest.raises(SecurityError) as exc_info:
            key.material()

        assert exc_info.value.code == "ENCRYPTION_FAILED"

    def test_from_bytes_validates_length(self):
        with pytest.raises(ValueError):
            EncryptionKey.from_bytes(b"too short")

    def test_fallback_key_shape(self):
        assert len(FALLBACK_KEY) == KEY_SIZE
        assert FALLBACK_KEY.startswith(b"godbadmin-fallback-key-32bytes!")


class TestCredentialCipher:
    """Test AES-GCM token encryption."""

    @pytest.mark.parametrize("plaintext", ["", "hunter2", "pässwörd-日本語", "x" * 1000])
    def test_round_trip(self, cipher, plaintext):
        assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext

    def test_token_layout(self, cipher):
        raw = base64.b64decode(cipher.encrypt("abc"))

        assert len(raw) == NONCE_SIZE + len("abc") + TAG_SIZE

    def test_fresh_nonce_per_call(self, cipher):
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_nonce_source_used(self):
        key = EncryptionKey.from_bytes(bytes(KEY_SIZE))
        cipher = CredentialCipher(key, nonce_source=lambda size: b"\x01" * size)

        raw = base64.b64decode(cipher.encrypt("abc"))

        assert raw[:NONCE_SIZE] == b"\x01" * NONCE_SIZE

    def test_nonce_failure(self):
        cipher = CredentialCipher(EncryptionKey.from_bytes(bytes(KEY_SIZE)), nonce_source=_unavailable)

        with pytest.raises(SecurityError) as exc_info:
            cipher.encrypt("abc")

        assert exc_info.value.code == "ENCRYPTION_FAILED"

    def test_tampered_ciphertext_rejected(self, cipher):
        raw = bytearray(base64.b64decode(cipher.encrypt("hunter2")))
        raw[-1] ^= 0x01

        with pytest.raises(AuthenticationFailedError):
            cipher.decrypt(base64.b64encode(bytes(raw)).decode("ascii"))

    def test_tampered_nonce_rejected(self, cipher):
        raw = bytearray(base64.b64decode(cipher.encrypt("hunter2")))
        raw[0] ^= 0x80

        with pytest.raises(AuthenticationFailedError):
            cipher.decrypt(base64.b64encode(bytes(raw)).decode("ascii"))

    def test_every_single_character_edit_rejected(self, cipher):
        token = cipher.encrypt("pw")
        alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/="

        for index, original in enumerate(token):
            replacement = "A" if original != "A" else "B"
            assert replacement in alphabet
            tampered = token[:index] + replacement + token[index + 1:]
            with pytest.raises(AuthenticationFailedError):
                cipher.decrypt(tampered)

    def test_wrong_key_rejected(self, cipher):
        other = CredentialCipher(EncryptionKey.from_bytes(b"\xff" * KEY_SIZE))

        with pytest.raises(AuthenticationFailedError):
            other.decrypt(cipher.encrypt("hunter2"))

    @pytest.mark.parametrize("token", ["not base64!", "abc", "", base64.b64encode(b"x" * 27).decode()])
    def test_malformed_tokens_rejected(self, cipher, token):
        with pytest.raises(AuthenticationFailedError):
            cipher.decrypt(token)

    def test_non_utf8_payload_rejected(self):
        key = EncryptionKey.from_bytes(bytes(KEY_SIZE))
        cipher = CredentialCipher(key)

        nonce = b"\x00" * NONCE_SIZE
        token = base64.b64encode(nonce + AESGCM(key.material()).encrypt(nonce, b"\xff\xfe", None)).decode()

        with pytest.raises(AuthenticationFailedError):
            cipher.decrypt(token)
