"""
YAML loader and dumper for service configuration documents.

Provides:
- DiconfLoader: YAML loader that decodes call tags into Entity nodes
- DiconfDumper: YAML dumper that encodes Entity nodes as call tags
- YamlAdapter: load/dump entry points (decode + resolve, serialize + encode)

Custom tags:
- !Name args: call ``Name`` with ``args``. Arguments are a sequence
  (positional), a mapping (named) or a scalar (one positional argument,
  none if empty).
- !!chain [steps]: chained calls; steps after the first are written as
  ``!::method args``.

Example YAML:
    services:
        mailer: !App.SmtpMailer
            host: smtp.example.com
        client: !!chain
            - !App.ClientFactory [default]
            - !::create []
        cache!:                 # replace, don't merge with earlier fragments
            factory: App.NullCache
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import yaml as _yaml

import diconf.deprecations as deprecations
import diconf.errors as errors
import diconf.resolver as resolver
import diconf.settings as diconf_settings
import diconf.statement as statement

_logger = _logging.getLogger(__name__)

CALL_TAG_PREFIX = "!"
CHAIN_TAG = "tag:yaml.org,2002:chain"


# =============================================================================
# YAML Constructors
# =============================================================================


def _call_constructor(
    loader: _yaml.SafeLoader,
    tag_suffix: str,
    node: _yaml.Node,
) -> statement.Entity:
    """
    Construct an Entity from a ``!Name`` tag.

        factory: !App.Mailer                # no arguments
        factory: !App.Mailer [a, b]         # positional
        factory: !App.Mailer {host: x}      # named
        factory: !App.Mailer smtp://x       # single positional
    """
    attributes: statement.Arguments
    if isinstance(node, _yaml.MappingNode):
        attributes = loader.construct_mapping(node, deep=True)
    elif isinstance(node, _yaml.SequenceNode):
        attributes = loader.construct_sequence(node, deep=True)
    elif isinstance(node, _yaml.ScalarNode) and node.value == "" and node.style is None:
        attributes = []
    else:
        # Re-resolve the scalar as if it were untagged so numbers and
        # booleans keep their types
        tag = loader.resolve(_yaml.ScalarNode, node.value, (node.style is None, False))
        plain = _yaml.ScalarNode(tag, node.value, node.start_mark, node.end_mark, node.style)
        attributes = [loader.construct_object(plain, deep=True)]
    return statement.Entity(tag_suffix, attributes)


def _chain_constructor(
    loader: _yaml.SafeLoader,
    node: _yaml.Node,
) -> statement.Entity:
    """Construct a chain Entity from a ``!!chain`` sequence."""
    if not isinstance(node, _yaml.SequenceNode):
        raise _yaml.constructor.ConstructorError(
            None,
            None,
            "expected a sequence of calls after !!chain",
            node.start_mark,
        )
    return statement.Entity(statement.CHAIN, loader.construct_sequence(node, deep=True))


# =============================================================================
# Loader / Dumper
# =============================================================================


class DiconfLoader(_yaml.SafeLoader):
    """
    YAML loader for service configuration documents.

    Extends SafeLoader with call tags (``!Name``) and ``!!chain``.
    """

    pass


DiconfLoader.add_multi_constructor(CALL_TAG_PREFIX, _call_constructor)
DiconfLoader.add_constructor(CHAIN_TAG, _chain_constructor)


def _represent_entity(dumper: _yaml.SafeDumper, entity: statement.Entity) -> _yaml.Node:
    if entity.is_chain:
        return dumper.represent_sequence(CHAIN_TAG, list(entity.attributes))
    target = entity.value
    if isinstance(target, list) and len(target) == 2 and all(isinstance(part, str) for part in target):
        target = "::".join(target)
    if not isinstance(target, str) or not target:
        raise errors.ShapeError(
            f"Call target must be a non-empty string to be written as a tag, "
            f"{type(target).__name__} given."
        )
    tag = CALL_TAG_PREFIX + target
    if isinstance(entity.attributes, dict):
        return dumper.represent_mapping(tag, entity.attributes)
    return dumper.represent_sequence(tag, list(entity.attributes))


class DiconfDumper(_yaml.SafeDumper):
    """YAML dumper writing Entity nodes as call tags."""

    pass


DiconfDumper.add_representer(statement.Entity, _represent_entity)


# =============================================================================
# Adapter
# =============================================================================


class YamlAdapter:
    """
    Reads and writes YAML configuration documents.

    Loading decodes the document and resolves call expressions; dumping
    serializes Statements back into call tags.
    """

    def __init__(self, settings: diconf_settings.Settings | None = None) -> None:
        self._settings = settings if settings is not None else diconf_settings.Settings()
        self._on_deprecation = deprecations.reporter_for(self._settings.deprecations)

    def load(self, path: _pathlib.Path | str) -> dict[_typing.Any, _typing.Any]:
        """
        Read a configuration file.

        Args:
            path: Path to the YAML file.

        Returns:
            Resolved configuration mapping; an empty file gives ``{}``.

        Raises:
            ConfigFileError: If the file cannot be read, is malformed YAML,
                or is not a mapping at the top level.
        """
        path = _pathlib.Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise errors.ConfigFileError(path, f"cannot read file: {e}") from e

        try:
            data = self.decode(content)
        except _yaml.YAMLError as e:
            raise errors.ConfigFileError(path, f"invalid YAML: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise errors.ConfigFileError(
                path,
                f"config must be a YAML mapping (dict), got {type(data).__name__}",
            )
        _logger.debug("Loaded config file %s", path)
        return self.process(data)

    def decode(self, content: str) -> _typing.Any:
        """Decode YAML text without resolving call expressions."""
        return _yaml.load(content, Loader=DiconfLoader)  # noqa: S506 - DiconfLoader extends SafeLoader

    def process(self, data: dict[_typing.Any, _typing.Any]) -> dict[_typing.Any, _typing.Any]:
        """Resolve call expressions and override keys in decoded data."""
        result: dict[_typing.Any, _typing.Any] = resolver.resolve(
            data, on_deprecation=self._on_deprecation
        )
        return result

    def dump(self, data: _typing.Any) -> str:
        """
        Generate a YAML document.

        Args:
            data: Resolved configuration tree.

        Returns:
            Block-style YAML prefixed with the generated-file header.
        """
        content = _yaml.dump(
            resolver.serialize(data),
            Dumper=DiconfDumper,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
            indent=self._settings.dump_indent,
        )
        header = self._settings.dump_header
        return f"{header}\n\n{content}" if header else content
