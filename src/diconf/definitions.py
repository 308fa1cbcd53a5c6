"""
Service definition record.

A ServiceDefinition is created empty by the registry and then updated
field by field as configuration fragments are applied. Fields not
mentioned by a fragment keep their previous value.
"""

from __future__ import annotations

import typing as _typing

import pydantic as _pydantic

import diconf.statement as statement

INJECT_TAG = "diconf.inject"
"""Tag recording the ``inject`` option."""

Autowired: _typing.TypeAlias = bool | str | list[_typing.Any]


class ServiceDefinition(_pydantic.BaseModel):
    """
    Normalized definition of a single service.

    The factory is a Statement whose arguments double as the constructor
    arguments of the service; ``arguments`` is a view of them.
    """

    model_config = _pydantic.ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    name: str
    """Service name as registered."""

    type: str | None = None
    """Declared class of the service, if known."""

    factory: _pydantic.InstanceOf[statement.Statement] | None = None
    """How the service is created."""

    setup: list[_pydantic.InstanceOf[statement.Statement]] = _pydantic.Field(
        default_factory=list
    )
    """Calls made on the service after creation, in order."""

    parameters: list[_typing.Any] | dict[_typing.Any, _typing.Any] = _pydantic.Field(
        default_factory=dict
    )
    """Parameters of a parametrized service."""

    implement: str | None = None
    """Interface generated by the container for this service."""

    autowired: Autowired = True
    """Whether (or as which types) the service takes part in autowiring."""

    external: bool = False
    """Service instance is supplied at runtime, the container never creates it."""

    tags: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)
    """Tag name to tag attributes."""

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def set_type(self, type_name: str | None) -> None:
        self.type = type_name

    def set_factory(
        self,
        factory: _typing.Any,
        arguments: statement.Arguments | None = None,
    ) -> None:
        """
        Set the factory.

        Args:
            factory: A Statement, a callable reference, or None to clear it.
            arguments: Arguments used when ``factory`` is not a Statement.
        """
        if factory is None or isinstance(factory, statement.Statement):
            self.factory = factory
        else:
            self.factory = statement.Statement(factory, arguments or [])

    @property
    def arguments(self) -> statement.Arguments:
        """Arguments of the factory (empty when there is no factory)."""
        return self.factory.arguments if self.factory is not None else []

    def set_arguments(self, arguments: statement.Arguments) -> None:
        """Replace the factory arguments, creating an anonymous factory if needed."""
        if self.factory is None:
            self.factory = statement.Statement(None, arguments)
        else:
            self.factory = self.factory.with_arguments(arguments)

    def set_setup(self, setup: list[statement.Statement]) -> None:
        self.setup = list(setup)

    def add_setup(
        self,
        entity: _typing.Any,
        arguments: statement.Arguments | None = None,
    ) -> None:
        """Append a setup call."""
        if not isinstance(entity, statement.Statement):
            entity = statement.Statement(entity, arguments or [])
        self.setup = [*self.setup, entity]

    def set_parameters(
        self, parameters: list[_typing.Any] | dict[_typing.Any, _typing.Any]
    ) -> None:
        self.parameters = parameters

    def set_implement(self, interface: str | None) -> None:
        self.implement = interface

    def set_autowired(self, autowired: Autowired) -> None:
        self.autowired = autowired

    def set_external(self, external: bool) -> None:
        self.external = external

    def set_tags(self, tags: dict[str, _typing.Any]) -> None:
        self.tags = dict(tags)

    def add_tag(self, tag: str, attributes: _typing.Any = True) -> None:
        self.tags = {**self.tags, tag: attributes}

    def get_tag(self, tag: str) -> _typing.Any:
        return self.tags.get(tag)

    @property
    def inject(self) -> bool:
        """Whether the inject option is enabled."""
        return bool(self.tags.get(INJECT_TAG, False))

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to a plain dictionary (for inspection and dumping)."""
        return {
            "type": self.type,
            "factory": self.factory,
            "setup": list(self.setup),
            "parameters": self.parameters,
            "implement": self.implement,
            "autowired": self.autowired,
            "external": self.external,
            "tags": dict(self.tags),
        }
