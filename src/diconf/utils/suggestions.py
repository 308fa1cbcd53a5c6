"""
"Did you mean" suggestions for mistyped names.

Uses a weighted Levenshtein distance: insertions and deletions cost 10,
substitutions 11, so a single typo is always preferred over a longer
rewrite. A candidate is suggested only when it is close relative to the
length of the mistyped name.
"""

from __future__ import annotations

import typing as _typing

INSERT_COST = 10
REPLACE_COST = 11
DELETE_COST = 10


def levenshtein(
    source: str,
    target: str,
    *,
    insert_cost: int = INSERT_COST,
    replace_cost: int = REPLACE_COST,
    delete_cost: int = DELETE_COST,
) -> int:
    """Weighted edit distance turning ``source`` into ``target``."""
    previous = [j * insert_cost for j in range(len(target) + 1)]
    for i, source_char in enumerate(source, start=1):
        current = [i * delete_cost]
        for j, target_char in enumerate(target, start=1):
            current.append(
                min(
                    previous[j] + delete_cost,
                    current[j - 1] + insert_cost,
                    previous[j - 1] + (0 if source_char == target_char else replace_cost),
                )
            )
        previous = current
    return previous[-1]


def get_suggestion(possibilities: _typing.Iterable[str], value: str) -> str | None:
    """
    Find the possibility closest to a mistyped value.

    Args:
        possibilities: Valid names.
        value: The name that was not recognized.

    Returns:
        The closest valid name, or None if nothing is close enough.
    """
    best: str | None = None
    threshold = (len(value) / 4 + 1) * 10 + 0.1
    for item in dict.fromkeys(possibilities):
        if item == value:
            continue
        distance = levenshtein(item, value)
        if distance < threshold:
            threshold = distance
            best = item
    return best
