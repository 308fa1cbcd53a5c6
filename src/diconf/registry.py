"""
Definition registry.

The processor registers service definitions into a registry that
implements the ContainerRegistry protocol. DefinitionRegistry is the
in-memory implementation shipped with diconf; containers can supply
their own.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import typing as _typing

import diconf.definitions as definitions
import diconf.errors as errors

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass(frozen=True, slots=True)
class Literal:
    """Expression passed through parameter expansion verbatim."""

    value: str

    def __str__(self) -> str:
        return self.value


@_typing.runtime_checkable
class ContainerRegistry(_typing.Protocol):
    """What the processor needs from a container builder."""

    @property
    def parameters(self) -> _typing.Mapping[str, _typing.Any]: ...

    def has_definition(self, name: str) -> bool: ...

    def get_definition(self, name: str) -> definitions.ServiceDefinition: ...

    def add_definition(self, name: str) -> definitions.ServiceDefinition: ...

    def remove_definition(self, name: str) -> None: ...

    def get_by_type(self, type_name: str, required: bool = False) -> str | None: ...

    def get_definitions(self) -> _typing.Mapping[str, definitions.ServiceDefinition]: ...

    def literal(self, expression: str) -> _typing.Any: ...


class DefinitionRegistry:
    """
    In-memory registry of service definitions.

    Definitions are kept in registration order.
    """

    def __init__(self, parameters: _typing.Mapping[str, _typing.Any] | None = None) -> None:
        self._definitions: dict[str, definitions.ServiceDefinition] = {}
        self._parameters: dict[str, _typing.Any] = dict(parameters or {})

    @property
    def parameters(self) -> _typing.Mapping[str, _typing.Any]:
        """Container parameters, read-only."""
        return dict(self._parameters)

    def has_definition(self, name: str) -> bool:
        return name in self._definitions

    def get_definition(self, name: str) -> definitions.ServiceDefinition:
        """
        Get a definition by name.

        Raises:
            ServiceReferenceError: If no definition has that name.
        """
        definition = self._definitions.get(name)
        if definition is None:
            raise errors.ServiceReferenceError(f"Service '{name}' not found.")
        return definition

    def add_definition(self, name: str) -> definitions.ServiceDefinition:
        """
        Create and register an empty definition.

        Raises:
            ConflictError: If a definition with that name already exists.
        """
        if name in self._definitions:
            raise errors.ConflictError(f"Service '{name}' has already been added.")
        definition = definitions.ServiceDefinition(name=name)
        self._definitions[name] = definition
        _logger.debug("Added service definition %r", name)
        return definition

    def remove_definition(self, name: str) -> None:
        """Remove a definition. Removing an unknown name is a no-op."""
        if self._definitions.pop(name, None) is not None:
            _logger.debug("Removed service definition %r", name)

    def get_by_type(self, type_name: str, required: bool = False) -> str | None:
        """
        Find the single definition declaring a type.

        Args:
            type_name: Declared type to look for.
            required: Raise instead of returning None when nothing matches.

        Returns:
            Name of the matching definition, or None.

        Raises:
            ServiceReferenceError: If several definitions match, or none
                matches and ``required`` is set.
        """
        names = [
            name
            for name, definition in self._definitions.items()
            if definition.type == type_name
        ]
        if len(names) > 1:
            raise errors.ServiceReferenceError(
                f"Multiple services of type {type_name} found: {', '.join(names)}."
            )
        if not names:
            if required:
                raise errors.ServiceReferenceError(
                    f"Service of type {type_name} not found."
                )
            return None
        return names[0]

    def get_definitions(self) -> dict[str, definitions.ServiceDefinition]:
        return dict(self._definitions)

    @staticmethod
    def literal(expression: str) -> Literal:
        return Literal(expression)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> _typing.Iterator[str]:
        return iter(self._definitions)
