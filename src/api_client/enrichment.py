"""Attach server field messages to the leaves of a UI state tree.

The state tree is plain data: mappings, lists/tuples and scalars. A mapping is
an addressable leaf when its ``kind`` is a ``LeafKind`` and it has a
``messages`` slot. Mappings tagged with any other ``kind`` are recursed into
like any other mapping. Any mapping may carry a ``path_part``; it extends the
address of everything beneath it, the mapping itself included.

``enrich`` never mutates its input. It returns a structural copy in which
every addressed leaf's ``messages`` holds exactly the field messages whose
path equals the leaf's full path, in input order.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Sequence

from .errors import UnknownLeafKindError
from .schemas import FieldMessage, Message, PathSegment

KIND_KEY = "kind"
PATH_PART_KEY = "path_part"
MESSAGES_KEY = "messages"

Path = tuple[PathSegment, ...]


class LeafKind(str, Enum):
    TEXT = "text"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    SELECT = "select"
    DATE = "date"


class NodeType(str, Enum):
    VALUE = "value"
    LEAF = "leaf"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


def classify(node: Any, *, strict: bool = False) -> NodeType:
    """Tell leaves, composites and plain values apart.

    A mapping with an unrecognized ``kind`` is an ordinary mapping, so
    enrichment recurses into it. With ``strict=True`` it raises
    ``UnknownLeafKindError`` instead, provided it has a ``messages`` slot.
    """
    if isinstance(node, Mapping):
        kind = node.get(KIND_KEY)
        if kind is None or MESSAGES_KEY not in node:
            return NodeType.MAPPING
        try:
            LeafKind(kind)
        except ValueError:
            if strict:
                raise UnknownLeafKindError(kind) from None
            return NodeType.MAPPING
        return NodeType.LEAF
    if isinstance(node, (list, tuple)):
        return NodeType.SEQUENCE
    return NodeType.VALUE


def leaf(
    kind: LeafKind | str,
    path_part: Sequence[PathSegment] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Build an addressable leaf node with an empty ``messages`` slot."""
    node: dict[str, Any] = {KIND_KEY: LeafKind(kind), MESSAGES_KEY: [], **fields}
    if path_part is not None:
        node[PATH_PART_KEY] = list(path_part)
    return node


def group(path_part: Sequence[PathSegment] | None = None, **children: Any) -> dict[str, Any]:
    """Build a composite node, optionally addressed by ``path_part``."""
    node: dict[str, Any] = dict(children)
    if path_part is not None:
        node[PATH_PART_KEY] = list(path_part)
    return node


def enrich(
    tree: Any,
    messages: Iterable[FieldMessage],
    prefix_path: Sequence[PathSegment] = (),
) -> Any:
    return _enrich(tree, tuple(messages), tuple(prefix_path))


def leaf_paths(tree: Any, prefix_path: Sequence[PathSegment] = ()) -> list[Path]:
    """Full path of every addressed leaf, in traversal order."""
    return [path for _, path in _walk_leaves(tree, tuple(prefix_path))]


def unmatched_messages(
    tree: Any,
    messages: Iterable[FieldMessage],
    prefix_path: Sequence[PathSegment] = (),
) -> list[FieldMessage]:
    """Field messages that no leaf in ``tree`` would receive."""
    known = {_path_key(path) for path in leaf_paths(tree, prefix_path)}
    return [message for message in messages if _path_key(message.path) not in known]


def _enrich(node: Any, messages: tuple[FieldMessage, ...], prefix: Path) -> Any:
    node_type = classify(node)
    if node_type is NodeType.VALUE:
        return node

    if node_type is NodeType.LEAF:
        if node.get(PATH_PART_KEY) is None:
            return node
        full_path = prefix + _as_path(node[PATH_PART_KEY])
        return {**node, MESSAGES_KEY: _messages_for(full_path, messages)}

    if node_type is NodeType.MAPPING:
        own = _extend(prefix, node)
        return {key: _enrich(child, messages, own) for key, child in node.items()}

    children = [_enrich(child, messages, prefix) for child in node]
    return tuple(children) if isinstance(node, tuple) else children


def _walk_leaves(node: Any, prefix: Path) -> Iterator[tuple[Mapping[str, Any], Path]]:
    node_type = classify(node)
    if node_type is NodeType.LEAF:
        if node.get(PATH_PART_KEY) is not None:
            yield node, prefix + _as_path(node[PATH_PART_KEY])
    elif node_type is NodeType.MAPPING:
        own = _extend(prefix, node)
        for child in node.values():
            yield from _walk_leaves(child, own)
    elif node_type is NodeType.SEQUENCE:
        for child in node:
            yield from _walk_leaves(child, prefix)


def _extend(prefix: Path, node: Mapping[str, Any]) -> Path:
    path_part = node.get(PATH_PART_KEY)
    if path_part is None:
        return prefix
    return prefix + _as_path(path_part)


def _as_path(value: Any) -> Path:
    if isinstance(value, (str, int)):
        return (value,)
    return tuple(value)


def _messages_for(path: Path, messages: tuple[FieldMessage, ...]) -> list[Message]:
    key = _path_key(path)
    return [field_message.message for field_message in messages if _path_key(field_message.path) == key]


def _path_key(path: Iterable[PathSegment]) -> tuple[tuple[str, PathSegment], ...]:
    # 0 and "0" are different segments.
    return tuple((type(segment).__name__, segment) for segment in path)
