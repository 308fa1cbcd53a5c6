"""
Registration of service definitions.

The Processor takes the ``services`` section of a resolved and merged
configuration and registers every entry into a ContainerRegistry:

- integer keys are anonymous services and get generated names
  ("1_App_Mailer")
- ``@Type`` keys address the existing service declaring that type
- ``false`` removes a service
- ``alteration: true`` updates a service that must already exist

Registration is not atomic: entries before a failing one stay registered.
"""

from __future__ import annotations

import logging as _logging
import re as _re
import typing as _typing

import diconf.definitions as definitions
import diconf.deprecations as deprecations
import diconf.errors as errors
import diconf.merge as merge
import diconf.normalizer as normalizer
import diconf.registry as registry
import diconf.settings as diconf_settings
import diconf.statement as statement

_logger = _logging.getLogger(__name__)

Expander = _typing.Callable[[_typing.Any, _typing.Mapping[str, _typing.Any]], _typing.Any]

EXTENSION_REFERENCE = "@extension"
"""Reference to the extension's own namespace inside namespaced definitions."""

_TYPE_NAME = _re.compile(r"^@[\w.]+\Z")
_NON_WORD = _re.compile(r"\W+", _re.ASCII)


def _no_expansion(value: _typing.Any, parameters: _typing.Mapping[str, _typing.Any]) -> _typing.Any:  # noqa: ARG001
    return value


class Processor:
    """
    Normalizes, merges and registers service definitions.

    Example:
        >>> builder = registry.DefinitionRegistry()
        >>> Processor(builder).load_definitions({"mailer": {"factory": "App.Mailer"}})
        >>> builder.get_definition("mailer").factory
        Statement(entity='App.Mailer', arguments=[])
    """

    def __init__(
        self,
        builder: registry.ContainerRegistry,
        *,
        settings: diconf_settings.Settings | None = None,
        interface_exists: normalizer.InterfaceCheck | None = None,
        expander: Expander | None = None,
    ) -> None:
        """
        Initialize the processor.

        Args:
            builder: Registry receiving the definitions.
            settings: Processing options. Defaults to Settings() read from
                the environment.
            interface_exists: Predicate for interface names. Defaults to
                normalizer.interface_exists.
            expander: Parameter expansion applied to each entry before it
                is normalized. Defaults to no expansion.
        """
        self._builder = builder
        self._settings = settings if settings is not None else diconf_settings.Settings()
        self._interface_exists = interface_exists or normalizer.interface_exists
        self._expander = expander or _no_expansion
        self._on_deprecation = deprecations.reporter_for(self._settings.deprecations)

    @property
    def builder(self) -> registry.ContainerRegistry:
        return self._builder

    @property
    def settings(self) -> diconf_settings.Settings:
        return self._settings

    def merge(self, main_config: _typing.Any, config: _typing.Any) -> _typing.Any:
        """Merge ``config`` over ``main_config``."""
        return merge.merge(main_config, config)

    def normalize_structure(
        self, definition: _typing.Any
    ) -> dict[_typing.Any, _typing.Any] | list[_typing.Any]:
        """Bring a raw service entry into mapping form (see normalizer)."""
        return normalizer.normalize_structure(
            definition, interface_exists=self._interface_exists
        )

    def update_definition(
        self,
        definition: definitions.ServiceDefinition,
        config: _typing.Mapping[str, _typing.Any],
        name: str | None = None,
    ) -> None:
        """Apply a normalized mapping to a definition (see normalizer)."""
        normalizer.update_definition(
            definition, config, name, on_deprecation=self._on_deprecation
        )

    def load_definitions(
        self,
        services: _typing.Mapping[_typing.Any, _typing.Any] | _typing.Sequence[_typing.Any],
    ) -> None:
        """
        Register service entries into the registry.

        Args:
            services: Name to entry mapping, or a sequence of anonymous entries.

        Raises:
            ConfigError: With the service name attached, for the first entry
                that fails. Earlier entries remain registered.
        """
        items = enumerate(services) if isinstance(services, list) else services.items()
        for name, definition in items:
            if name == merge.OVERWRITE_KEY:
                continue
            self._load_definition(name, definition)

    def _load_definition(self, name: _typing.Any, definition: _typing.Any) -> None:
        try:
            definition = self.normalize_structure(definition)
        except errors.ConfigError as e:
            raise e.for_service(str(name)) from e

        try:
            name = self._resolve_name(name, definition)
        except errors.ConfigError as e:
            raise e.for_service(str(name)) from e

        if normalizer.is_removal(definition):
            self._builder.remove_definition(name)
            _logger.debug("Service %r removed by configuration", name)
            return

        assert isinstance(definition, dict)
        definition = self._expander(definition, self._fold_parameters(definition))

        if definition.get("alteration") and not self._builder.has_definition(name):
            raise errors.ServiceReferenceError(
                f"Service '{name}': missing original definition for alteration.",
                service=name,
            )

        replace, definition = merge.take_parent(definition)
        if replace:
            self._builder.remove_definition(name)

        service = (
            self._builder.get_definition(name)
            if self._builder.has_definition(name)
            else self._builder.add_definition(name)
        )

        try:
            self.update_definition(service, definition, name)
        except errors.ConfigError as e:
            raise e.for_service(name) from e
        _logger.debug("Service %r registered", name)

    def _resolve_name(self, name: _typing.Any, definition: _typing.Any) -> str:
        """Generate names for anonymous entries and resolve ``@Type`` names."""
        if isinstance(name, int):
            factory = definition.get("factory") if isinstance(definition, dict) else None
            if isinstance(factory, statement.Statement) and isinstance(factory.entity, str):
                postfix = "." + factory.entity
            elif isinstance(factory, (str, int, float)) and not isinstance(factory, bool):
                postfix = f".{factory}"
            else:
                postfix = ""
            count = len(self._builder.get_definitions())
            return f"{count + 1}{_NON_WORD.sub('_', postfix)}"

        name = str(name)
        if _TYPE_NAME.match(name):
            found = self._builder.get_by_type(name[1:], True)
            assert found is not None
            return found
        return name

    def _fold_parameters(self, definition: dict[_typing.Any, _typing.Any]) -> dict[str, _typing.Any]:
        """
        Container parameters plus placeholders for the entry's own parameters.

        ``parameters: [string $name, $count]`` declares ``name`` and
        ``count``; their values stay literal (``$name``) until the service
        is created.
        """
        params = dict(self._builder.parameters)
        declared = definition.get("parameters")
        if declared is None:
            return params
        if not isinstance(declared, (list, dict)):
            declared = [declared]
        items = enumerate(declared) if isinstance(declared, list) else declared.items()
        for key, value in items:
            if key == merge.OVERWRITE_KEY:
                continue
            declaration = str(value if isinstance(key, int) else key)
            parameter = declaration.split(" ")[-1].lstrip("$")
            params[parameter] = self._builder.literal("$" + parameter)
        return params

    def apply_namespace(
        self,
        services: _typing.Mapping[_typing.Any, _typing.Any],
        namespace: str,
    ) -> dict[_typing.Any, _typing.Any]:
        """
        Move named services into a namespace.

        String names become ``namespace.name``; ``@extension`` references
        inside the definitions point at the namespace.

        Args:
            services: Name to entry mapping.
            namespace: Namespace, usually the extension name.

        Returns:
            New mapping with prefixed names.
        """
        result: dict[_typing.Any, _typing.Any] = {}
        for name, definition in services.items():
            definition = prefix_service_name(definition, namespace)
            if isinstance(name, str) and name != merge.OVERWRITE_KEY:
                name = f"{namespace}.{name}"
            result[name] = definition
        return result


def prefix_service_name(config: _typing.Any, namespace: str) -> _typing.Any:
    """Replace ``@extension`` references with ``@namespace`` throughout a tree."""
    if isinstance(config, str):
        if config == EXTENSION_REFERENCE:
            return f"@{namespace}"
        if config.startswith(EXTENSION_REFERENCE + "."):
            return f"@{namespace}.{config[len(EXTENSION_REFERENCE) + 1:]}"
        return config
    if isinstance(config, statement.Statement):
        return statement.Statement(
            prefix_service_name(config.entity, namespace),
            prefix_service_name(config.arguments, namespace),
        )
    if isinstance(config, dict):
        return {key: prefix_service_name(value, namespace) for key, value in config.items()}
    if isinstance(config, list):
        items = [prefix_service_name(value, namespace) for value in config]
        return merge.OverwriteList(items) if isinstance(config, merge.OverwriteList) else items
    return config