"""Password encryption for persisted server profiles.

Passwords are sealed with AES-256-GCM. A ciphertext token is the base64
text of ``nonce || ciphertext || tag`` so it can live in a JSON string field
unaltered. Every call to ``encrypt`` draws a fresh 96-bit nonce.

Classes:
    EncryptionKey: Lazily materialized 256-bit key owned by a store
    CredentialCipher: Encrypts and decrypts ciphertext tokens

Example:
    >>> key = EncryptionKey()
    >>> cipher = CredentialCipher(key)
    >>> token = cipher.encrypt("s3cret")
    >>> cipher.decrypt(token)
    's3cret'
"""

import base64
import binascii
import os
import threading
from typing import Callable, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.exceptions import AuthenticationFailedError, ErrorCodes, SecurityError
from ..core.utils import ValidationUtils
from ..logging import get_logger

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

# Used only when the operating system cannot supply random bytes. Files
# written in this mode are readable by anyone who has this constant.
FALLBACK_KEY = b"godbadmin-fallback-key-32bytes!".ljust(KEY_SIZE, b"\0")

RandomSource = Callable[[int], bytes]


class EncryptionKey:
    """256-bit secret used to seal profile passwords.

    The key is materialized on first use: decoded from ``key_hex`` when that
    is valid hex of exactly 32 bytes, otherwise generated from
    ``random_source``. Once materialized it never changes for the lifetime of
    the object.

    If the random source is unavailable the fixed ``FALLBACK_KEY`` is used
    instead and ``degraded`` becomes True. This is logged at CRITICAL because
    every password saved afterwards is only obfuscated, not protected.

    Attributes:
        degraded: True when the key is the fallback key
        generated: True when the key was generated rather than loaded
    """

    def __init__(self, key_hex: Optional[str] = None, *, random_source: RandomSource = os.urandom) -> None:
        """Initialize encryption key.

        Args:
            key_hex: Persisted key as hex text, if any
            random_source: Callable returning n random bytes
        """
        self._key_hex = key_hex
        self._random_source = random_source
        self._material: Optional[bytes] = None
        self._lock = threading.Lock()
        self.degraded = False
        self.generated = False
        self._logger = get_logger("config.crypto")

    @classmethod
    def from_bytes(cls, material: bytes) -> "EncryptionKey":
        """Build a key from raw bytes.

        Raises:
            ValueError: If ``material`` is not 32 bytes long
        """
        if len(material) != KEY_SIZE:
            raise ValueError(f"Encryption key must be {KEY_SIZE} bytes, got {len(material)}")
        return cls(material.hex())

    @property
    def is_materialized(self) -> bool:
        return self._material is not None

    def material(self) -> bytes:
        """Return the raw key bytes, materializing them on first call."""
        if self._material is None:
            with self._lock:
                if self._material is None:
                    self._material = self._materialize()
        return self._material

    @property
    def hex(self) -> str:
        """Key as lowercase hex, the persisted form."""
        return self.material().hex()

    def _materialize(self) -> bytes:
        if self._key_hex is not None:
            if ValidationUtils.validate_hex(self._key_hex, length=KEY_SIZE):
                material = bytes.fromhex(self._key_hex)
                if material == FALLBACK_KEY:
                    self.degraded = True
                    self._logger.warning(
                        "Persisted encryption key is the fallback key; stored passwords are not protected"
                    )
                return material

            self._logger.warning(
                "Persisted encryption key is not valid 32-byte hex; generating a new key",
                key_length=len(self._key_hex),
            )

        self.generated = True
        try:
            material = self._random_source(KEY_SIZE)
        except (NotImplementedError, OSError) as e:
            self.degraded = True
            self._logger.critical(
                "Random source unavailable; using fallback encryption key",
                error_type=type(e).__name__,
            )
            return FALLBACK_KEY

        if len(material) != KEY_SIZE:
            raise SecurityError(
                "Random source returned a key of the wrong length",
                code=ErrorCodes.ENCRYPTION_FAILED,
                context={"expected": KEY_SIZE, "actual": len(material)},
            )
        return material

    def __repr__(self) -> str:
        return f"EncryptionKey(materialized={self.is_materialized}, degraded={self.degraded})"


class CredentialCipher:
    """AES-256-GCM cipher producing self-contained text tokens.

    Example:
        >>> cipher = CredentialCipher(EncryptionKey())
        >>> token = cipher.encrypt("hunter2")
        >>> cipher.decrypt(token)
        'hunter2'
    """

    def __init__(self, key: EncryptionKey, *, nonce_source: RandomSource = os.urandom) -> None:
        self.key = key
        self._nonce_source = nonce_source

    def encrypt(self, plaintext: str) -> str:
        """Seal ``plaintext`` under a fresh random nonce.

        Raises:
            SecurityError: If no nonce can be drawn (code ENCRYPTION_FAILED)
        """
        try:
            nonce = self._nonce_source(NONCE_SIZE)
        except (NotImplementedError, OSError) as e:
            raise SecurityError(
                "Cannot generate nonce",
                code=ErrorCodes.ENCRYPTION_FAILED,
                cause=e,
            ) from e

        sealed = AESGCM(self.key.material()).encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Open a token produced by ``encrypt``.

        Raises:
            AuthenticationFailedError: If the token is not canonical base64,
                is too short, fails tag verification or is not UTF-8
        """
        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise AuthenticationFailedError("Token is not valid base64", cause=e) from e

        # Non-canonical padding bits would let two texts decode to one payload
        if base64.b64encode(raw).decode("ascii") != token:
            raise AuthenticationFailedError("Token is not canonical base64")

        if len(raw) < NONCE_SIZE + TAG_SIZE:
            raise AuthenticationFailedError(
                "Token too short",
                context={"length": len(raw)},
            )

        nonce, sealed = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            plaintext = AESGCM(self.key.material()).decrypt(nonce, sealed, None)
        except InvalidTag as e:
            raise AuthenticationFailedError("Token failed integrity check", cause=e) from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise AuthenticationFailedError("Decrypted payload is not UTF-8", cause=e) from e
