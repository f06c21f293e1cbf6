"""Persistent, encrypted store of server profiles.

The store keeps profiles in insertion order with plaintext passwords in
memory. On disk every non-empty password is an AES-256-GCM ciphertext token
and the key is persisted next to the profiles:

    {
      "servers": [{"id": "...", "name": "...", "password": "<token>", ...}],
      "encryption_key": "<64 hex chars>"
    }

Classes:
    ConfigurationStore: Thread-safe profile store with JSON persistence

Example:
    >>> store = ConfigurationStore("settings.json")
    >>> store.load()
    >>> store.add_server(ServerProfile(name="local", host="127.0.0.1", user="root"))
    >>> store.save()
"""

import json
import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import SecretStr, ValidationError

from .crypto import CredentialCipher, EncryptionKey, RandomSource
from .models import DEFAULT_SETTINGS_FILE, PersistedSettings, ServerProfile
from ..core.exceptions import (
    AuthenticationFailedError,
    ConfigCorruptError,
    ConfigurationError,
    ErrorCodes,
    PersistenceError,
    SecurityError,
    ServerNotFoundError,
    ValidationFailedError,
    create_error_from_exception,
)
from ..core.locks import ReadWriteLock
from ..logging import get_logger


class ConfigurationStore:
    """Ordered collection of server profiles plus the key protecting them.

    All reads return deep copies, so callers can never mutate stored
    profiles. ``load`` and the mutating operations hold the write lock;
    ``save`` and the getters hold the read lock, so concurrent readers never
    observe a partially applied update.

    Passwords that fail to decrypt during ``load`` are kept verbatim as
    legacy plaintext and become ciphertext at the next ``save``.

    Attributes:
        path: Default file used by ``load`` and ``save``
        legacy_password_count: Passwords taken as plaintext by the last load
    """

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_SETTINGS_FILE,
        *,
        key: Optional[EncryptionKey] = None,
        random_source: RandomSource = os.urandom,
    ) -> None:
        """Initialize an empty store.

        Args:
            path: Default settings file
            key: Encryption key; a lazily generated one is used when omitted
            random_source: Random source for keys generated by this store
        """
        self.path = Path(path)
        self._random_source = random_source
        self._key = key or EncryptionKey(random_source=random_source)
        self._servers: List[ServerProfile] = []
        self._lock = ReadWriteLock()
        self.legacy_password_count = 0
        self._logger = get_logger("config.store")

    @property
    def key(self) -> EncryptionKey:
        return self._key

    @property
    def cipher(self) -> CredentialCipher:
        return CredentialCipher(self._key)

    def load(self, path: Optional[Union[str, Path]] = None) -> None:
        """Replace the in-memory state with the contents of the settings file.

        A missing file leaves the store empty and is not an error. The key
        stored in the file, if any, replaces the current key.

        Args:
            path: File to read; defaults to ``self.path``

        Raises:
            ConfigCorruptError: If the file is not valid JSON or holds invalid records
            ConfigurationError: If the file exists but cannot be read
        """
        target = Path(path) if path is not None else self.path

        with self._lock.write_locked():
            try:
                raw = target.read_bytes()
            except FileNotFoundError:
                self._servers = []
                self.legacy_password_count = 0
                self._logger.info("Settings file not found; starting with no servers", path=str(target))
                return
            except OSError as e:
                raise ConfigurationError(
                    f"Cannot read settings file: {target}",
                    code=ErrorCodes.CONFIG_INVALID,
                    context={"path": str(target)},
                    cause=e,
                ) from e

            document = self._parse(raw, target)

            key = self._key
            if document.encryption_key is not None:
                key = EncryptionKey(document.encryption_key, random_source=self._random_source)
            cipher = CredentialCipher(key)

            servers: List[ServerProfile] = []
            legacy = 0
            for profile in document.servers:
                token = profile.password.get_secret_value()
                if token:
                    try:
                        plaintext = cipher.decrypt(token)
                    except AuthenticationFailedError:
                        # Pre-encryption file: keep the value, it is encrypted on next save
                        legacy += 1
                        plaintext = token
                    profile = profile.model_copy(update={"password": SecretStr(plaintext)})
                servers.append(profile)

            self._key = key
            self._servers = servers
            self.legacy_password_count = legacy

        self._logger.info(
            "Configuration loaded",
            path=str(target),
            server_count=len(servers),
            legacy_password_count=legacy,
        )
        if legacy:
            self._logger.warning(
                "Unencrypted passwords found; they will be encrypted on next save",
                path=str(target),
                legacy_password_count=legacy,
            )

    def _parse(self, raw: bytes, target: Path) -> PersistedSettings:
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigCorruptError(
                f"Settings file is not valid JSON: {target}",
                context={"path": str(target)},
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigCorruptError(
                "Settings file must contain a JSON object",
                context={"path": str(target), "type": type(data).__name__},
            )

        try:
            return PersistedSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigCorruptError(
                f"Settings file holds invalid records: {target}",
                context={"path": str(target), "error_count": e.error_count()},
                cause=e,
            ) from e

    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        """Encrypt every non-empty password and atomically write the settings file.

        The document is written to a temporary file in the target directory
        and moved into place, so a failure leaves the previous file intact.
        The in-memory profiles keep their plaintext passwords.

        Args:
            path: File to write; defaults to ``self.path``

        Raises:
            PersistenceError: If encryption or writing fails
        """
        target = Path(path) if path is not None else self.path

        with self._lock.read_locked():
            snapshot = [profile.model_copy(deep=True) for profile in self._servers]
            try:
                document = self._serialize(snapshot)
            except (SecurityError, UnicodeError) as e:
                # lone surrogates cannot be encoded as UTF-8
                raise PersistenceError(
                    "Cannot encrypt server passwords",
                    code=ErrorCodes.ENCRYPTION_FAILED,
                    context={"path": str(target)},
                    cause=e,
                ) from e

            self._write_atomic(target, json.dumps(document, indent=2, ensure_ascii=False))

        self._logger.info("Configuration saved", path=str(target), server_count=len(snapshot))

    def _serialize(self, profiles: List[ServerProfile]) -> Dict[str, Any]:
        cipher = self.cipher
        records = []
        for profile in profiles:
            plaintext = profile.password.get_secret_value()
            records.append(profile.to_record(password=cipher.encrypt(plaintext) if plaintext else ""))
        return {"servers": records, "encryption_key": self._key.hex}

    def _write_atomic(self, target: Path, text: str) -> None:
        tmp_name: Optional[str] = None
        replaced = False
        try:
            # mkstemp creates the file readable by the owner only
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
            replaced = True
        except UnicodeError as e:
            raise PersistenceError(
                f"Settings contain text that cannot be encoded: {target}",
                code=ErrorCodes.PERSISTENCE_FAILED,
                context={"path": str(target)},
                cause=e,
            ) from e
        except OSError as e:
            raise create_error_from_exception(
                e,
                message=f"Cannot write settings file: {target}",
                code=ErrorCodes.PERSISTENCE_FAILED,
                context={"path": str(target)},
            ) from e
        finally:
            if tmp_name is not None and not replaced:
                with suppress(OSError):
                    os.unlink(tmp_name)

    def add_server(self, profile: ServerProfile) -> None:
        """Append a profile.

        Raises:
            ValidationFailedError: If a profile with the same id exists
        """
        with self._lock.write_locked():
            if any(existing.id == profile.id for existing in self._servers):
                raise ValidationFailedError(
                    f"Server id already exists: {profile.id}",
                    code=ErrorCodes.DUPLICATE_ID,
                    context={"server_id": profile.id},
                )
            self._servers.append(profile.model_copy(deep=True))

        self._logger.debug("Server added", server_id=profile.id)

    def update_server(self, server_id: str, profile: ServerProfile) -> bool:
        """Replace the profile with ``server_id`` in place.

        The stored profile keeps ``server_id`` whatever id ``profile`` carries.

        Returns:
            True if a profile was replaced, False if ``server_id`` is unknown
        """
        replacement = profile.with_id(server_id)
        with self._lock.write_locked():
            for index, existing in enumerate(self._servers):
                if existing.id == server_id:
                    self._servers[index] = replacement
                    break
            else:
                return False

        self._logger.debug("Server updated", server_id=server_id)
        return True

    def delete_server(self, server_id: str) -> bool:
        """Remove the profile with ``server_id``, keeping the order of the rest.

        Returns:
            True if a profile was removed
        """
        with self._lock.write_locked():
            for index, existing in enumerate(self._servers):
                if existing.id == server_id:
                    del self._servers[index]
                    break
            else:
                return False

        self._logger.debug("Server deleted", server_id=server_id)
        return True

    def get_server(self, server_id: str) -> Optional[ServerProfile]:
        """Return a copy of the profile with ``server_id``, or None."""
        with self._lock.read_locked():
            for existing in self._servers:
                if existing.id == server_id:
                    return existing.model_copy(deep=True)
        return None

    def require_server(self, server_id: str) -> ServerProfile:
        """Return a copy of the profile with ``server_id``.

        Raises:
            ServerNotFoundError: If no profile has that id
        """
        profile = self.get_server(server_id)
        if profile is None:
            raise ServerNotFoundError(
                f"Server not found: {server_id}",
                context={"server_id": server_id},
            )
        return profile

    def get_servers(self) -> List[ServerProfile]:
        """Return copies of all profiles in insertion order."""
        with self._lock.read_locked():
            return [existing.model_copy(deep=True) for existing in self._servers]

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._servers)

    def __repr__(self) -> str:
        return f"ConfigurationStore(path={str(self.path)!r}, servers={len(self)})"

