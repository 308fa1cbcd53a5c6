"""
Call-expression resolution.

resolve() turns a decoded document tree into the canonical form the
rest of the pipeline works on:

- keys with the ``!`` suffix are renamed and their values marked for
  overwrite (see diconf.merge)
- Entity nodes become Statements; chained entities are folded into
  nested Statements

serialize() is the inverse used when dumping: Statements become Entity
nodes again and overwrite-marked values get their ``!`` suffix back.
"""

from __future__ import annotations

import typing as _typing

import diconf.deprecations as deprecations
import diconf.errors as errors
import diconf.merge as merge
import diconf.statement as statement

OPTIONAL_OPERATOR = "?"
"""Deprecated operator for optional calls, e.g. ``@logger::setLevel?``."""

CHAIN_METHOD_PREFIX = "::"
"""Prefix of chained method steps, e.g. ``!::create``."""


def resolve(
    node: _typing.Any,
    *,
    on_deprecation: deprecations.Reporter = deprecations.report,
) -> _typing.Any:
    """
    Resolve call expressions and override keys in a tree.

    Children are resolved before their parent, so call arguments may
    contain further calls.

    Args:
        node: Decoded document tree.
        on_deprecation: Receives a message for each deprecated construct.

    Returns:
        A new tree with Entities replaced by Statements.

    Raises:
        ShapeError: If ``!`` is applied to a scalar, or a chain step is
            not a call.
    """
    if isinstance(node, dict):
        return _resolve_mapping(node, on_deprecation)
    if isinstance(node, list):
        items = [resolve(item, on_deprecation=on_deprecation) for item in node]
        return merge.OverwriteList(items) if isinstance(node, merge.OverwriteList) else items
    if isinstance(node, statement.Entity):
        return _resolve_entity(node, on_deprecation)
    return node


def _resolve_mapping(
    mapping: dict[_typing.Any, _typing.Any],
    on_deprecation: deprecations.Reporter,
) -> dict[_typing.Any, _typing.Any]:
    result: dict[_typing.Any, _typing.Any] = {}
    for key, value in mapping.items():
        if isinstance(key, str) and key.endswith(merge.OVERRIDE_SUFFIX):
            value = merge.mark_overwrite(value, key)
            key = key[: -len(merge.OVERRIDE_SUFFIX)]
        result[key] = resolve(value, on_deprecation=on_deprecation)
    return result


def _resolve_entity(
    entity: statement.Entity,
    on_deprecation: deprecations.Reporter,
) -> statement.Statement:
    if entity.is_chain:
        return _fold_chain(entity, on_deprecation)

    target = resolve(entity.value, on_deprecation=on_deprecation)
    if isinstance(target, str) and OPTIONAL_OPERATOR in target:
        on_deprecation("Operator ? is deprecated in config files.")
    return statement.Statement(
        target, resolve(entity.attributes, on_deprecation=on_deprecation)
    )


def _fold_chain(
    entity: statement.Entity,
    on_deprecation: deprecations.Reporter,
) -> statement.Statement:
    steps = resolve(entity.attributes, on_deprecation=on_deprecation)
    if isinstance(steps, dict):
        steps = list(steps.values())

    result: statement.Statement | None = None
    for index, step in enumerate(steps):
        if not isinstance(step, statement.Statement):
            raise errors.ShapeError(
                f"Chained call step #{index} must be a call, {type(step).__name__} given."
            )
        if result is None:
            result = statement.Statement(step.entity, step.arguments)
        else:
            if not isinstance(step.entity, str):
                raise errors.ShapeError(
                    f"Chained call step #{index} must name a method."
                )
            result = statement.Statement(
                [result, step.entity.lstrip(":")], step.arguments
            )

    if result is None:
        raise errors.ShapeError("Chained call must have at least one step.")
    return result


def serialize(node: _typing.Any) -> _typing.Any:
    """
    Convert Statements in a tree back to Entity nodes.

    Overwrite-marked values are written back under a ``!``-suffixed key;
    a marker on the root mapping is dropped.

    Args:
        node: Tree as produced by resolve().

    Returns:
        A new tree containing only plain containers, scalars and Entities.
    """
    if isinstance(node, dict):
        result: dict[_typing.Any, _typing.Any] = {}
        for key, value in node.items():
            if key == merge.OVERWRITE_KEY:
                continue
            if isinstance(key, str) and merge.is_overwrite(value):
                key = key + merge.OVERRIDE_SUFFIX
            result[key] = serialize(value)
        return result
    if isinstance(node, list):
        return [serialize(item) for item in node]
    if isinstance(node, statement.Statement):
        return _statement_to_entity(node)
    return node


def _statement_to_entity(stmt: statement.Statement) -> statement.Entity:
    arguments = serialize(stmt.arguments)
    if stmt.is_chained:
        inner, method = stmt.entity
        return statement.Entity(
            statement.CHAIN,
            [
                _statement_to_entity(inner),
                statement.Entity(CHAIN_METHOD_PREFIX + method, arguments),
            ],
        )
    return statement.Entity(serialize(stmt.entity), arguments)
