"""
Typed lookups over a pool config tree.

The tree is whatever the pool source hands us: nested mappings whose values
are integers, lists of integers, strings, sub-trees or lists of sub-trees,
keyed by the names libzfs uses for its config nvlists. Nothing here copies or
mutates the tree.

Every lookup raises KeyNotFoundError when the key is absent, unless a default
is given, and WrongTypeError when the value has the wrong type.
"""
from typing import Any, Callable, List, Mapping, Sequence

from .errors import KeyNotFoundError, WrongTypeError

# config keys
VDEV_TREE = "vdev_tree"
VDEV_STATS = "vdev_stats"
VDEV_STATS_EX = "vdev_stats_ex"
SCAN_STATS = "scan_stats"
CHILDREN = "children"
TYPE = "type"
ID = "id"
PATH = "path"

UINT64_MAX = (1 << 64) - 1

_MISSING = object()


def _is_uint64(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= UINT64_MAX


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _lookup(tree: Mapping, key: str, default: Any, check: Callable[[Any], bool], expected: str):
    if key not in tree:
        if default is _MISSING:
            raise KeyNotFoundError(key)
        return default
    value = tree[key]
    if not check(value):
        raise WrongTypeError(key, expected, value)
    return value


def lookup_uint64(tree: Mapping, key: str, default: Any = _MISSING) -> int:
    return _lookup(tree, key, default, _is_uint64, "uint64")


def lookup_uint64_array(tree: Mapping, key: str, default: Any = _MISSING) -> Sequence[int]:
    return _lookup(
        tree, key, default,
        lambda v: _is_array(v) and all(_is_uint64(x) for x in v),
        "uint64 array",
    )


def lookup_string(tree: Mapping, key: str, default: Any = _MISSING) -> str:
    return _lookup(tree, key, default, lambda v: isinstance(v, str), "string")


def lookup_tree(tree: Mapping, key: str, default: Any = _MISSING) -> Mapping:
    return _lookup(tree, key, default, lambda v: isinstance(v, Mapping), "nvlist")


def lookup_tree_array(tree: Mapping, key: str, default: Any = _MISSING) -> List[Mapping]:
    return _lookup(
        tree, key, default,
        lambda v: _is_array(v) and all(isinstance(x, Mapping) for x in v),
        "nvlist array",
    )
