"""
diconf - service definition configuration for dependency-injection containers

Reads layered configuration documents, resolves call expressions into
Statements, merges fragments and registers normalized service
definitions into a container registry.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("diconf")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from diconf.adapters import YamlAdapter  # noqa: E402
from diconf.definitions import ServiceDefinition  # noqa: E402
from diconf.errors import (  # noqa: E402
    ConfigError,
    ConfigFileError,
    ConflictError,
    ServiceReferenceError,
    ShapeError,
)
from diconf.loader import ConfigLoader  # noqa: E402
from diconf.processor import Processor  # noqa: E402
from diconf.registry import DefinitionRegistry  # noqa: E402
from diconf.resolver import resolve, serialize  # noqa: E402
from diconf.settings import Settings  # noqa: E402
from diconf.statement import CHAIN, Entity, Statement  # noqa: E402

__all__ = [
    "CHAIN",
    "ConfigError",
    "ConfigFileError",
    "ConfigLoader",
    "ConflictError",
    "DefinitionRegistry",
    "Entity",
    "Processor",
    "ServiceDefinition",
    "ServiceReferenceError",
    "Settings",
    "ShapeError",
    "Statement",
    "YamlAdapter",
    "__version__",
    "__version_info__",
    "resolve",
    "serialize",
]
