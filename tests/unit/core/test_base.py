"""Unit tests for the component base class."""

from unittest.mock import patch

import pytest

from dbadmin.core.base import BaseComponent
from dbadmin.core.exceptions import ConfigurationError, ValidationFailedError


# Test configuration class - NOT a test class (no Test prefix)
class ComponentTestConfig:
    """Test configuration for component testing."""
    def __init__(self, name: str = "test", value: int = 42):
        self.name = name
        self.value = value


class _TestableComponent(BaseComponent[ComponentTestConfig]):
    component_name = "TestComponent"
    version = "2.0.0"

    def validate_config(self) -> bool:
        return self.config.value > 0


class TestBaseComponent:
    """Test BaseComponent functionality."""

    def test_component_initialization(self):
        config = ComponentTestConfig(name="test_component")
        component = _TestableComponent(config)

        assert component.config is config
        assert component.component_name == "TestComponent"
        assert component.version == "2.0.0"
        assert component.uptime >= 0

    def test_construction_does_not_create_loggers(self):
        with patch("structlog.get_logger") as get_logger:
            component = _TestableComponent(ComponentTestConfig())

        get_logger.assert_not_called()
        assert set(vars(component)) == {"_config", "_creation_time"}

    def test_none_config_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            _TestableComponent(None)

        assert exc_info.value.code == "CONFIG_NULL"

    def test_invalid_config_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _TestableComponent(ComponentTestConfig(value=0))

        assert exc_info.value.code == "CONFIG_INVALID"
        assert exc_info.value.context == {"component": "TestComponent"}

    def test_health_status(self):
        component = _TestableComponent(ComponentTestConfig())

        health = component.get_health_status()

        assert health["component"] == "TestComponent"
        assert health["version"] == "2.0.0"
        assert health["status"] == "healthy"
        assert health["uptime_seconds"] >= 0

    def test_repr(self):
        component = _TestableComponent(ComponentTestConfig())

        assert repr(component).startswith("_TestableComponent(name='TestComponent'")
