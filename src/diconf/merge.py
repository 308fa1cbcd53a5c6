"""
Deep merge of configuration fragments.

Fragments are merged recursively: mappings merge key by key, sequences
append, and scalars from the override win. A value carrying the
overwrite marker replaces the base value exactly, without merging.

Documents request an overwrite by suffixing a key with ``!``:

    services:
        mailer!:            # discard every earlier definition of mailer
            factory: SmtpMailer

The resolver rewrites such keys and marks their values (see
mark_overwrite); merge() accepts unresolved suffixed keys as well.
Mappings carry the marker as the OVERWRITE_KEY entry, sequences by
being an OverwriteList.

Example:
    >>> merge({"a": {"x": 1}, "b": [1]}, {"a": {"y": 2}, "b": [2]})
    {'a': {'x': 1, 'y': 2}, 'b': [1, 2]}
"""

from __future__ import annotations

import typing as _typing

import diconf.errors as errors

OVERRIDE_SUFFIX = "!"
"""Key suffix requesting that a value replaces, not merges with, the base."""

OVERWRITE_KEY = "_overwrite"
"""Reserved mapping key carrying the overwrite marker."""


class OverwriteList(list):  # type: ignore[type-arg]
    """A sequence that replaces the base sequence instead of extending it."""

    def __repr__(self) -> str:
        return f"OverwriteList({list.__repr__(self)})"


def is_overwrite(value: _typing.Any) -> bool:
    """Check whether a value carries the overwrite marker."""
    if isinstance(value, OverwriteList):
        return True
    return isinstance(value, dict) and value.get(OVERWRITE_KEY) is True


def mark_overwrite(value: _typing.Any, key: str) -> _typing.Any:
    """
    Attach the overwrite marker to a value.

    Args:
        value: Mapping, sequence or None found under ``key``.
        key: The document key (with suffix), used in error messages.

    Returns:
        A marked copy. None becomes an empty marked mapping.

    Raises:
        ShapeError: If the value is not a collection or None.
    """
    if value is None:
        return {OVERWRITE_KEY: True}
    if isinstance(value, dict):
        return {**value, OVERWRITE_KEY: True}
    if isinstance(value, list):
        return OverwriteList(value)
    raise errors.ShapeError(
        f"Replacing operator is available only for arrays, item '{key}' is not array."
    )


def strip_overwrite(value: _typing.Any) -> _typing.Any:
    """Return the value without the overwrite marker."""
    if isinstance(value, OverwriteList):
        return list(value)
    if isinstance(value, dict) and OVERWRITE_KEY in value:
        return {k: v for k, v in value.items() if k != OVERWRITE_KEY}
    return value


def take_parent(value: _typing.Any) -> tuple[bool, _typing.Any]:
    """
    Split the overwrite marker off a value.

    Returns:
        Tuple of (was_marked, value_without_marker).
    """
    if is_overwrite(value):
        return True, strip_overwrite(value)
    return False, value


def is_list(value: _typing.Any) -> bool:
    """Check whether a value is positional: a list, or a dict keyed 0..n-1."""
    if isinstance(value, list):
        return True
    if isinstance(value, dict):
        return all(
            type(key) is int and key == index for index, key in enumerate(value)
        )
    return False


def _next_index(mapping: dict[_typing.Any, _typing.Any]) -> int:
    """Next free integer key, following the largest integer key present."""
    indexes = [key for key in mapping if type(key) is int]
    return max(indexes) + 1 if indexes else 0


def _merge_mappings(
    base: dict[_typing.Any, _typing.Any],
    override: dict[_typing.Any, _typing.Any],
) -> dict[_typing.Any, _typing.Any]:
    result = dict(base)
    index = 0
    for key, value in override.items():
        if isinstance(key, str) and key.endswith(OVERRIDE_SUFFIX):
            value = mark_overwrite(value, key)
            key = key[: -len(OVERRIDE_SUFFIX)]
        if type(key) is int and key == index:
            # Positional entries are appended, never merged by position
            result[_next_index(result)] = merge(None, value)
            index += 1
        else:
            result[key] = merge(result.get(key), value)
    return result


def merge(base: _typing.Any, override: _typing.Any) -> _typing.Any:
    """
    Merge ``override`` into ``base``.

    Neither input is modified; merged containers are new objects while
    leaf values are shared. Suffixed keys (``key!``) anywhere in the
    override are resolved, whether or not the base has a value there.

    Args:
        base: The earlier fragment.
        override: The later fragment (takes priority).

    Returns:
        The merged value.
    """
    if is_overwrite(override):
        return merge(None, strip_overwrite(override))

    if isinstance(override, dict):
        if isinstance(base, dict):
            return _merge_mappings(base, override)
        if isinstance(base, list):
            return _merge_mappings(dict(enumerate(base)), override)
        return _merge_mappings({}, override)

    if isinstance(override, list):
        items = [merge(None, item) for item in override]
        if isinstance(base, list):
            return [*base, *items]
        if isinstance(base, dict):
            return _merge_mappings(base, dict(enumerate(override)))
        return items

    if override is None and isinstance(base, (dict, list)):
        return base

    return override
