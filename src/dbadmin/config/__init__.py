"""dbadmin configuration management.

Type-safe settings models, password encryption and the persistent store
of server profiles.

Example:
    >>> from dbadmin.config import AppSettings, ConfigurationStore
    >>> settings = AppSettings.from_file("dbadmin.yaml")
    >>> store = ConfigurationStore(settings.settings_file)
    >>> store.load()
"""

from .crypto import FALLBACK_KEY, CredentialCipher, EncryptionKey
from .models import (
    DEFAULT_PORT,
    DEFAULT_ROW_LIMIT,
    AppSettings,
    BaseConfig,
    EnvironmentConfig,
    GatewayConfig,
    LoggingConfig,
    PersistedSettings,
    ServerProfile,
    new_server_id,
)
from .store import ConfigurationStore

__all__ = [
    "AppSettings",
    "BaseConfig",
    "ConfigurationStore",
    "CredentialCipher",
    "DEFAULT_PORT",
    "DEFAULT_ROW_LIMIT",
    "EncryptionKey",
    "EnvironmentConfig",
    "FALLBACK_KEY",
    "GatewayConfig",
    "LoggingConfig",
    "PersistedSettings",
    "ServerProfile",
    "new_server_id",
]
