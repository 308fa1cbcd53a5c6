"""
Error hierarchy for configuration processing.

Every error raised while normalizing a service definition is a
ConfigError. When the error happens inside Processor.load_definitions,
it is re-raised with the service name attached so the final message
points at the offending entry:

    Service 'mailer': Unknown key 'facotry' in definition of service, did you mean 'factory'?
"""

from __future__ import annotations

import pathlib as _pathlib


class ConfigError(Exception):
    """Base class for configuration processing errors."""

    def __init__(self, message: str, *, service: str | None = None) -> None:
        self.service = service
        super().__init__(message)

    def for_service(self, name: str) -> ConfigError:
        """
        Return a copy of this error attributed to a service.

        The copy has the same class, the message prefixed with the service
        name and the ``service`` attribute set.
        """
        return type(self)(f"Service '{name}': {self}", service=name)


class ShapeError(ConfigError):
    """A node has the wrong kind or an unexpected key."""


class ServiceReferenceError(ConfigError):
    """A named service or type cannot be resolved in the registry."""


class ConflictError(ConfigError):
    """Two mutually exclusive options are both present."""


class ConfigFileError(ConfigError):
    """Error loading or parsing a configuration file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")

    def for_service(self, name: str) -> ConfigError:
        return ConfigError(f"Service '{name}': {self}", service=name)
