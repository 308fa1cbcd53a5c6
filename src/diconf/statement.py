"""
Call-expression node types.

Two node types describe calls in a configuration tree:

- Entity: a call expression as the document parser produced it. Its
  ``value`` is the call target and ``attributes`` the raw arguments.
- Statement: the canonical call the container consumes, "call this
  entity with these arguments".

Chained calls are written in documents as an Entity whose value is the
CHAIN sentinel and whose attributes are the individual steps:

    factory: !!chain
        - !Factory [1]
        - !::create [x]

They resolve to nested Statements, where the entity of each step is the
pair ``[previous_statement, method_name]``:

    Statement([Statement("Factory", [1]), "create"], ["x"])
"""

from __future__ import annotations

import dataclasses as _dataclasses
import typing as _typing


class _ChainType:
    """Sentinel type marking an Entity as a chain of calls."""

    __slots__ = ()

    _instance: _ChainType | None = None

    def __new__(cls) -> _ChainType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CHAIN"

    def __reduce__(self) -> tuple[_typing.Callable[[], _ChainType], tuple[()]]:
        """Pickle support: ensure singleton is preserved."""
        return (_get_chain_singleton, ())


def _get_chain_singleton() -> _ChainType:
    """Return the CHAIN singleton. Used by pickle."""
    return CHAIN


CHAIN = _ChainType()

Arguments: _typing.TypeAlias = list[_typing.Any] | dict[_typing.Any, _typing.Any]


@_dataclasses.dataclass(frozen=True, slots=True)
class Entity:
    """Raw call expression as decoded from a document."""

    value: _typing.Any
    attributes: Arguments = _dataclasses.field(default_factory=list)

    @property
    def is_chain(self) -> bool:
        return self.value is CHAIN


@_dataclasses.dataclass(frozen=True, slots=True)
class Statement:
    """
    Canonical call: entity plus arguments.

    The entity is one of:
    - a string (class name, function, "Class::method", "@service::method")
    - None (arguments only, the target is decided later)
    - a Statement (call the result of another call)
    - a two-item list ``[target, method]`` where target is a string or a Statement
    """

    entity: _typing.Any
    arguments: Arguments = _dataclasses.field(default_factory=list)

    def with_arguments(self, arguments: Arguments) -> Statement:
        """Return a copy with the arguments replaced."""
        return _dataclasses.replace(self, arguments=arguments)

    @property
    def is_chained(self) -> bool:
        """Whether the entity is a ``[Statement, method]`` pair."""
        entity = self.entity
        return (
            isinstance(entity, list)
            and len(entity) == 2
            and isinstance(entity[0], Statement)
        )


def is_callable(value: _typing.Any) -> bool:
    """
    Check whether a value has the shape of a callable reference.

    Callables are non-empty strings and ``[target, method]`` pairs whose
    target is a string or a Statement and whose method is a string.
    """
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, list) and len(value) == 2:
        target, method = value
        return isinstance(target, (str, Statement)) and isinstance(method, str)
    return False
