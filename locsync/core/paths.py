"""
Path codec - flattens JSON-like trees into path -> string mappings and back.

A structural path is a tuple of segments: ``str`` segments are mapping keys,
``int`` segments are array indices. Keys are kept verbatim, so a key with a
literal dot (``"app.title"``) or one that looks like an index (``"[0]"``) is
still exactly one segment.

Only translatable leaf strings end up in a flat mapping. Numbers, booleans,
nulls and strings such as ``"42"`` or ``"{{count}}"`` are dropped, which
means ``unflatten(flatten(tree))`` rebuilds the string skeleton only. Use
``overlay()`` to put translated strings back onto the original tree when the
other leaves have to survive.

Usage:
    flat = flatten({"nav": {"home": "Home"}, "items": ["One", "Two"]})
    # {("nav", "home"): "Home", ("items", 0): "One", ("items", 1): "Two"}

    tree = unflatten(flat)

    encode_path(("app.title", 0))   # -> "app\\.title[0]"
    decode_path("app\\.title[0]")   # -> ("app.title", 0)
"""

from __future__ import annotations

import copy
import re
from typing import Any, Mapping, Union


Segment = Union[str, int]
Path = tuple[Segment, ...]
FlatMapping = dict[Path, str]

# A whole-string {{...}} expression with no second "}}" inside it
_TEMPLATE_ONLY = re.compile(r"\{\{(?:(?!\}\}).)*\}\}")
_INDEX_TOKEN = re.compile(r"\[(0|[1-9][0-9]*)\]")

_ESCAPE = "\\"
_ESCAPABLE = frozenset("\\.[")
_EMPTY_KEY = "\\0"


class PathDecodeError(ValueError):
    """A path string or segment that cannot be decoded."""
    pass


class StructuralConflictError(ValueError):
    """Two paths disagree about the shape of the tree."""
    pass


# =============================================================================
# Translatable predicate
# =============================================================================


def is_translatable(text: str) -> bool:
    """
    Whether a leaf string should be sent for translation.

    True iff the string holds at least one alphabetic character and is not
    a single ``{{...}}`` template expression spanning the whole string.
    """
    if not any(ch.isalpha() for ch in text):
        return False
    return _TEMPLATE_ONLY.fullmatch(text) is None


# =============================================================================
# Flatten / Unflatten
# =============================================================================


def flatten(value: Any) -> FlatMapping:
    """
    Collect translatable leaf strings keyed by their structural path.

    Paths come out in depth-first, left-to-right order. Non-string mapping
    keys (possible in YAML) are converted with ``str()``.

    Raises:
        TypeError: for values that are not JSON-like
    """
    result: FlatMapping = {}
    _flatten_into(value, (), result)
    return result


def _flatten_into(value: Any, prefix: Path, result: FlatMapping) -> None:
    match value:
        case str():
            if is_translatable(value):
                result[prefix] = value
        case bool() | int() | float() | None:
            pass
        case list() | tuple():
            for index, item in enumerate(value):
                _flatten_into(item, (*prefix, index), result)
        case dict():
            for key, item in value.items():
                segment = key if isinstance(key, str) else str(key)
                _flatten_into(item, (*prefix, segment), result)
        case _:
            raise TypeError(f"Unsupported value in document tree: {type(value).__name__}")


def unflatten(flat: Mapping[Path, str]) -> Any:
    """
    Rebuild a tree from a flat mapping.

    Missing intermediate containers are created from the kind of the next
    segment: an index creates a list, a key creates a dict. Lists with
    index gaps are padded with ``None``.

    Raises:
        PathDecodeError: a path holds a segment that is neither key nor index
        StructuralConflictError: paths disagree about the tree shape
    """
    root: Any = None

    for raw_path, leaf in flat.items():
        path = _validate_path(raw_path)

        if not path:
            if root is not None:
                raise StructuralConflictError("Root leaf conflicts with other entries")
            root = leaf
            continue

        if root is None:
            root = _new_container(path[0])
        elif isinstance(root, str):
            raise StructuralConflictError(f"Path {encode_path(path)!r} descends into the root leaf")

        node = root
        for depth, segment in enumerate(path[:-1]):
            _check_kind(node, segment, path)
            child = _get_slot(node, segment)
            if child is None:
                child = _new_container(path[depth + 1])
                _set_slot(node, segment, child)
            elif isinstance(child, str):
                raise StructuralConflictError(
                    f"Path {encode_path(path)!r} descends into leaf at {encode_path(path[:depth + 1])!r}"
                )
            node = child

        last = path[-1]
        _check_kind(node, last, path)
        if _get_slot(node, last) is not None:
            raise StructuralConflictError(f"Path {encode_path(path)!r} is already occupied")
        _set_slot(node, last, leaf)

    return {} if root is None else root


def overlay(tree: Any, flat: Mapping[Path, str]) -> Any:
    """
    Write flat-mapping strings onto a copy of the original tree.

    Unlike ``unflatten``, every leaf the flat mapping does not mention is
    kept, including numbers, booleans and nulls.

    Raises:
        StructuralConflictError: a path does not exist in the tree
    """
    result = copy.deepcopy(tree)

    for raw_path, leaf in flat.items():
        path = _validate_path(raw_path)
        if not path:
            if not isinstance(result, str):
                raise StructuralConflictError("Root leaf given for a container document")
            result = leaf
            continue

        node = result
        for segment in path[:-1]:
            node = node[_existing_slot(node, segment, path)]
        node[_existing_slot(node, path[-1], path)] = leaf

    return result


def _validate_path(raw_path: Any) -> Path:
    path = tuple(raw_path)
    for segment in path:
        if isinstance(segment, str):
            continue
        if type(segment) is int and segment >= 0:
            continue
        raise PathDecodeError(f"Invalid path segment {segment!r} in {path!r}")
    return path


def _new_container(segment: Segment) -> list | dict:
    return [] if isinstance(segment, int) else {}


def _check_kind(node: Any, segment: Segment, path: Path) -> None:
    expected = list if isinstance(segment, int) else dict
    if not isinstance(node, expected):
        raise StructuralConflictError(
            f"Path {encode_path(path)!r} expects a {expected.__name__} "
            f"but found {type(node).__name__}"
        )


def _get_slot(node: list | dict, segment: Segment) -> Any:
    if isinstance(segment, int):
        return node[segment] if segment < len(node) else None
    return node.get(segment)


def _set_slot(node: list | dict, segment: Segment, value: Any) -> None:
    if isinstance(segment, int) and segment >= len(node):
        node.extend([None] * (segment + 1 - len(node)))
    node[segment] = value


def _existing_slot(node: Any, segment: Segment, path: Path) -> Any:
    """Index or key of an existing child; non-string keys match by their str() form."""
    _check_kind(node, segment, path)
    if isinstance(segment, int):
        if segment < len(node):
            return segment
    elif segment in node:
        return segment
    else:
        for key in node:
            if not isinstance(key, str) and str(key) == segment:
                return key
    raise StructuralConflictError(f"Path {encode_path(path)!r} not found in document")


# =============================================================================
# Path strings
# =============================================================================


def encode_path(path: Path) -> str:
    """
    Render a path as a printable string.

    Keys are joined with ``.``, indices are written ``[n]`` right after
    their parent. Inside keys ``\\``, ``.`` and ``[`` are backslash-escaped
    and an empty key is written ``\\0``.
    """
    parts: list[str] = []
    for segment in _validate_path(path):
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
            continue
        text = _escape_key(segment)
        parts.append(f".{text}" if parts else text)
    return "".join(parts)


def decode_path(text: str) -> Path:
    """
    Parse a string produced by ``encode_path`` back into a path.

    Raises:
        PathDecodeError: on bad escapes, malformed index tokens or empty segments
    """
    segments: list[Segment] = []
    pos = 0
    length = len(text)

    while pos < length:
        if text[pos] == "[":
            match = _INDEX_TOKEN.match(text, pos)
            if match is None:
                raise PathDecodeError(f"Malformed index token at offset {pos} in {text!r}")
            segments.append(int(match.group(1)))
            pos = match.end()
        else:
            key, pos = _read_key(text, pos)
            segments.append(key)

        if pos < length:
            if text[pos] == ".":
                pos += 1
                if pos == length or text[pos] == "[":
                    raise PathDecodeError(f"Empty segment at offset {pos} in {text!r}")
            elif text[pos] != "[":
                raise PathDecodeError(
                    f"Unexpected {text[pos]!r} after index at offset {pos} in {text!r}"
                )

    return tuple(segments)


def _escape_key(key: str) -> str:
    if key == "":
        return _EMPTY_KEY
    return key.replace("\\", "\\\\").replace(".", "\\.").replace("[", "\\[")


def _read_key(text: str, pos: int) -> tuple[str, int]:
    length = len(text)

    if text.startswith(_EMPTY_KEY, pos):
        end = pos + len(_EMPTY_KEY)
        if end == length or text[end] in ".[":
            return "", end
        raise PathDecodeError(f"Empty-key marker must stand alone at offset {pos} in {text!r}")

    chars: list[str] = []
    while pos < length and text[pos] not in ".[":
        ch = text[pos]
        if ch == _ESCAPE:
            if pos + 1 >= length:
                raise PathDecodeError(f"Dangling escape at end of {text!r}")
            escaped = text[pos + 1]
            if escaped not in _ESCAPABLE:
                raise PathDecodeError(f"Invalid escape '\\{escaped}' at offset {pos} in {text!r}")
            chars.append(escaped)
            pos += 2
        else:
            chars.append(ch)
            pos += 1

    if not chars:
        raise PathDecodeError(f"Empty segment at offset {pos} in {text!r}")
    return "".join(chars), pos
