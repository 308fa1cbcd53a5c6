"""
Service definition normalization.

Service entries in documents are loosely shaped:

    services:
        - App.Mailer                    # factory only
        logger: !App.FileLogger [/tmp]  # factory statement
        cache:                          # full definition
            class: App.Cache            # alias of "type"
            setup:
                - setDir: /var/cache

normalize_structure() brings every entry into mapping form and folds
aliases. update_definition() validates a normalized mapping and applies
it to a ServiceDefinition, touching only the options it contains.
"""

from __future__ import annotations

import importlib as _importlib
import inspect as _inspect
import typing as _typing

import pydantic as _pydantic

import diconf.definitions as definitions
import diconf.deprecations as deprecations
import diconf.errors as errors
import diconf.merge as merge
import diconf.statement as statement
import diconf.utils as utils

InterfaceCheck = _typing.Callable[[str], bool]

ALIASES: dict[str, str] = {"class": "type", "dynamic": "external"}
"""Alias option name to canonical option name."""

KNOWN_KEYS: tuple[str, ...] = (
    "type",
    "factory",
    "arguments",
    "setup",
    "autowired",
    "external",
    "inject",
    "parameters",
    "implement",
    "tags",
    "alteration",
)

_StrictStr = _pydantic.StrictStr
_StrictBool = _pydantic.StrictBool
_AnyStatement = _pydantic.InstanceOf[statement.Statement]

# (validator, description used in error messages)
_FIELD_TYPES: dict[str, tuple[_pydantic.TypeAdapter[_typing.Any], str]] = {
    "type": (
        _pydantic.TypeAdapter(_StrictStr | _AnyStatement | None),
        "string, Statement or null",
    ),
    "factory": (
        _pydantic.TypeAdapter(_StrictStr | _AnyStatement | list[_typing.Any] | None),
        "callable, Statement or null",
    ),
    "arguments": (
        _pydantic.TypeAdapter(list[_typing.Any] | dict[_typing.Any, _typing.Any]),
        "array",
    ),
    "setup": (_pydantic.TypeAdapter(list[_typing.Any]), "list"),
    "parameters": (
        _pydantic.TypeAdapter(list[_typing.Any] | dict[_typing.Any, _typing.Any]),
        "array",
    ),
    "implement": (_pydantic.TypeAdapter(_StrictStr), "string"),
    "autowired": (
        _pydantic.TypeAdapter(_StrictBool | _StrictStr | list[_typing.Any]),
        "bool, string or array",
    ),
    "external": (_pydantic.TypeAdapter(_StrictBool), "bool"),
    "inject": (_pydantic.TypeAdapter(_StrictBool), "bool"),
    "tags": (
        _pydantic.TypeAdapter(list[_typing.Any] | dict[_typing.Any, _typing.Any]),
        "array",
    ),
    "alteration": (_pydantic.TypeAdapter(_StrictBool), "bool"),
}


def interface_exists(name: str) -> bool:
    """
    Check whether a dotted path names an interface.

    An interface is an abstract class or a typing.Protocol. The module
    part of the path is imported; names that cannot be imported are not
    interfaces.

    Args:
        name: Dotted path such as ``"collections.abc.Sized"``.
    """
    module_name, _, attribute = name.rpartition(".")
    if not module_name or not attribute.isidentifier():
        return False
    try:
        module = _importlib.import_module(module_name)
    except ImportError:
        return False
    candidate = getattr(module, attribute, None)
    if not _inspect.isclass(candidate):
        return False
    return _inspect.isabstract(candidate) or bool(getattr(candidate, "_is_protocol", False))


def is_removal(definition: _typing.Any) -> bool:
    """Check for the normalized removal entry ``[False]``."""
    return (
        isinstance(definition, list)
        and len(definition) == 1
        and definition[0] is False
    )


def normalize_structure(
    definition: _typing.Any,
    *,
    interface_exists: InterfaceCheck = interface_exists,
) -> dict[_typing.Any, _typing.Any] | list[_typing.Any]:
    """
    Bring a raw service entry into mapping form.

    Args:
        definition: The entry as written in the document (after resolve()).
        interface_exists: Predicate deciding whether a name is an interface.

    Returns:
        The normalized mapping, or ``[False]`` for a removal entry.

    Raises:
        ConflictError: If an option and its alias are both present.
    """
    if definition is None:
        return {}
    if definition is False or is_removal(definition):
        return [False]

    if isinstance(definition, str) and interface_exists(definition):
        return {"implement": definition}

    if (
        isinstance(definition, statement.Statement)
        and isinstance(definition.entity, str)
        and interface_exists(definition.entity)
    ):
        # Only the first argument becomes the factory; the rest are dropped
        arguments = definition.arguments
        if isinstance(arguments, dict):
            arguments = list(arguments.values())
        return {
            "implement": definition.entity,
            "factory": arguments[0] if arguments else None,
        }

    if isinstance(definition, dict) and 0 in definition and 1 in definition:
        return {"factory": [definition[0], definition[1]]}
    if not isinstance(definition, dict):
        return {"factory": definition}

    result = dict(definition)
    for alias, original in ALIASES.items():
        if alias in result:
            if original in result:
                raise errors.ConflictError(
                    f"Options '{alias}' and '{original}' are aliases, use only '{original}'."
                )
            result[original] = result.pop(alias)
    return result


def _check_known_keys(config: _typing.Mapping[_typing.Any, _typing.Any]) -> None:
    unknown = [key for key in config if key not in KNOWN_KEYS]
    if not unknown:
        return
    hints = [
        hint
        for hint in (utils.get_suggestion(KNOWN_KEYS, str(key)) for key in unknown)
        if hint
    ]
    hint = f", did you mean '{', '.join(hints)}'?" if hints else "."
    names = "', '".join(str(key) for key in unknown)
    raise errors.ShapeError(f"Unknown key '{names}' in definition of service{hint}")


def _describe(value: _typing.Any) -> str:
    if isinstance(value, str):
        return f"string '{value}'"
    if value is None:
        return "null"
    return type(value).__name__


def _assert_field(key: str, value: _typing.Any) -> None:
    """
    Validate the type of one option.

    Raises:
        ShapeError: Naming the option, the expected type and the given value.
    """
    adapter, expected = _FIELD_TYPES[key]
    try:
        adapter.validate_python(value, strict=True)
    except _pydantic.ValidationError:
        raise errors.ShapeError(
            f"The option '{key}' expects to be {expected}, {_describe(value)} given."
        ) from None
    if key == "factory" and isinstance(value, list) and not statement.is_callable(value):
        raise errors.ShapeError(
            f"The option '{key}' expects to be {expected}, {_describe(value)} given."
        )


def _setup_item(index: int, item: _typing.Any) -> statement.Statement:
    if isinstance(item, statement.Statement):
        return item
    if statement.is_callable(item):
        return statement.Statement(item, [])
    if isinstance(item, dict) and len(item) == 1:
        ((entity, value),) = item.items()
        return statement.Statement(entity, [value])
    raise errors.ShapeError(
        f"The setup item #{index} expects to be callable, Statement or array:1, "
        f"{_describe(item)} given."
    )


def _as_mapping(arguments: statement.Arguments) -> dict[_typing.Any, _typing.Any]:
    return dict(enumerate(arguments)) if isinstance(arguments, list) else dict(arguments)


def update_definition(
    definition: definitions.ServiceDefinition,
    config: _typing.Mapping[str, _typing.Any],
    name: str | None = None,
    *,
    on_deprecation: deprecations.Reporter = deprecations.report,
) -> None:
    """
    Apply a normalized mapping to a definition.

    Options absent from ``config`` leave the definition untouched, so
    several fragments can update one definition in turn.

    Args:
        definition: Definition to update in place.
        config: Normalized mapping (see normalize_structure).
        name: Service name, used in deprecation messages.
        on_deprecation: Receives a message for each deprecated option.

    Raises:
        ShapeError: If an option is unknown or has the wrong type.
    """
    _check_known_keys(config)
    for key, value in config.items():
        # Options other than type and factory treat null as absent
        if key not in ("arguments", "setup", "tags") and (
            value is not None or key in ("type", "factory")
        ):
            _assert_field(key, value)

    if "type" in config or "factory" in config:
        definition.set_type(None)
        definition.set_factory(None)

    if "type" in config:
        type_value = config["type"]
        if isinstance(type_value, statement.Statement):
            on_deprecation(
                f"Service '{name}': option 'type' or 'class' should be changed to 'factory'."
            )
        else:
            definition.set_type(type_value)
        definition.set_factory(type_value)

    if "factory" in config:
        definition.set_factory(config["factory"])

    if config.get("arguments") is not None:
        replace, arguments = merge.take_parent(config["arguments"])
        _assert_field("arguments", arguments)
        if not replace and not merge.is_list(arguments) and definition.factory is not None:
            previous = _as_mapping(definition.arguments)
            arguments = {**arguments, **{k: v for k, v in previous.items() if k not in arguments}}
        definition.set_arguments(arguments)

    if config.get("setup") is not None:
        replace, setup = merge.take_parent(config["setup"])
        if replace:
            definition.set_setup([])
        if isinstance(setup, dict) and not setup:
            setup = []
        _assert_field("setup", setup)
        for index, item in enumerate(setup):
            definition.add_setup(_setup_item(index, item))

    if config.get("parameters") is not None:
        definition.set_parameters(merge.strip_overwrite(config["parameters"]))

    if config.get("implement") is not None:
        definition.set_implement(config["implement"])
        definition.set_autowired(True)

    if config.get("autowired") is not None:
        definition.set_autowired(config["autowired"])

    if config.get("external") is not None:
        definition.set_external(config["external"])

    if config.get("inject") is not None:
        definition.add_tag(definitions.INJECT_TAG, config["inject"])

    if config.get("tags") is not None:
        replace, tags = merge.take_parent(config["tags"])
        if replace:
            definition.set_tags({})
        _assert_field("tags", tags)
        items = enumerate(tags) if isinstance(tags, list) else tags.items()
        for tag, attributes in items:
            if isinstance(tag, int) and isinstance(attributes, str):
                definition.add_tag(attributes)
            elif isinstance(tag, str):
                definition.add_tag(tag, attributes)
            else:
                raise errors.ShapeError(
                    f"The tag #{tag} expects to be string, {_describe(attributes)} given."
                )
