from __future__ import annotations

from formwire import BodyError, ConfigurationError, EncodingError
from formwire.config_loader import ConfigError


def test_runtime_exception_hierarchy() -> None:
    assert issubclass(BodyError, RuntimeError)
    assert issubclass(ConfigurationError, BodyError)
    assert issubclass(EncodingError, BodyError)
    assert not issubclass(EncodingError, ConfigurationError)


def test_configuration_errors_are_value_errors() -> None:
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(ConfigError, ValueError)
    assert not issubclass(ConfigError, BodyError)
