"""Recursive merging of descriptor values.

Descriptor documents are trees of three kinds of value: scalars, mappings,
and sequences.  Merging a source tree into a target tree combines mappings
key by key and lets the source win everywhere else, so a sequence is
replaced whole rather than concatenated.
"""

import enum
from typing import Any, Iterable


class ValueKind(enum.Enum):
    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


def kind_of(value: Any) -> ValueKind:
    """Classify a loaded YAML/JSON value."""
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.SCALAR


def plain(value: Any) -> Any:
    """Deep copy `value` into builtin dict/list/scalar types, dropping any
    ruamel.yaml round-trip wrappers.
    """
    kind = kind_of(value)
    if kind is ValueKind.MAPPING:
        return {key: plain(val) for key, val in value.items()}
    if kind is ValueKind.SEQUENCE:
        return [plain(item) for item in value]
    return value


def deep_merge(target: Any, source: Any) -> Any:
    """Return a new value which is `source` merged into `target`.

    Neither argument is modified.
    """
    if kind_of(target) is ValueKind.MAPPING and kind_of(source) is ValueKind.MAPPING:
        result = plain(target)
        for key, value in source.items():
            if key in result:
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = plain(value)
        return result
    return plain(source)


def merge_all(fragments: Iterable[Any]) -> dict:
    """Fold `fragments` left to right into one mapping, later ones winning."""
    merged: dict = {}
    for fragment in fragments:
        merged = deep_merge(merged, fragment)
    return merged
