"""Base class for configured dbadmin components.

Classes:
    BaseComponent: Generic base class for components that own a config object

Example:
    >>> class ConnectionGateway(BaseComponent[GatewayConfig]):
    ...     component_name = "ConnectionGateway"
    ...
    ...     def validate_config(self) -> bool:
    ...         return self.config.connect_timeout > 0
"""

import time
from abc import ABC
from typing import Any, ClassVar, Dict, Generic, TypeVar

from .exceptions import ConfigurationError, ErrorCodes, ValidationFailedError

# Configuration type
T = TypeVar("T")


class BaseComponent(Generic[T], ABC):
    """Base class for dbadmin components.

    Provides configuration ownership, validation on construction and a
    health snapshot.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
        version: Component version
    """

    component_name: ClassVar[str] = "BaseComponent"
    version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ValidationFailedError: If configuration is None
            ConfigurationError: If configuration is invalid
        """
        if config is None:
            raise ValidationFailedError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._creation_time: float = time.time()

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"component": self.component_name},
            )

    @property
    def config(self) -> T:
        """Get component configuration."""
        return self._config

    @property
    def uptime(self) -> float:
        """Seconds since component creation."""
        return time.time() - self._creation_time

    def validate_config(self) -> bool:
        """Validate component configuration.

        Subclasses override this to add component-specific checks.

        Returns:
            True if configuration is valid
        """
        return self._config is not None

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status.

        Returns:
            Dictionary containing component health information
        """
        return {
            "component": self.component_name,
            "version": self.version,
            "uptime_seconds": self.uptime,
            "status": "healthy",
        }

    def __repr__(self) -> str:
        """Return string representation of component."""
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"uptime={self.uptime:.2f}s)"
        )
