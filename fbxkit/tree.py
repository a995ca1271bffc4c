"""In-memory FBX node tree (FBX 7.4 and later) and its attribute values."""

from __future__ import annotations

import enum
import math
import struct
from dataclasses import dataclass, field
from itertools import zip_longest
from typing import Any, Iterable, Iterator, Optional


class AttributeKind(enum.Enum):
    """Type of a node attribute value."""

    BOOL = "Bool"
    I16 = "I16"
    I32 = "I32"
    I64 = "I64"
    F32 = "F32"
    F64 = "F64"
    ARR_BOOL = "ArrBool"
    ARR_I32 = "ArrI32"
    ARR_I64 = "ArrI64"
    ARR_F32 = "ArrF32"
    ARR_F64 = "ArrF64"
    BINARY = "Binary"
    STRING = "String"

    @property
    def is_array(self) -> bool:
        return self in _ELEMENT_KINDS


_ELEMENT_KINDS = {
    AttributeKind.ARR_BOOL: AttributeKind.BOOL,
    AttributeKind.ARR_I32: AttributeKind.I32,
    AttributeKind.ARR_I64: AttributeKind.I64,
    AttributeKind.ARR_F32: AttributeKind.F32,
    AttributeKind.ARR_F64: AttributeKind.F64,
}

_INT_BITS = {AttributeKind.I16: 16, AttributeKind.I32: 32, AttributeKind.I64: 64}

_FLOAT_FORMATS = {AttributeKind.F32: "<f", AttributeKind.F64: "<d"}


def _int_fits(value: int, bits: int) -> bool:
    return -(1 << (bits - 1)) <= value <= (1 << (bits - 1)) - 1


def _normalize_scalar(kind: AttributeKind, value: Any) -> Any:
    if kind is AttributeKind.BOOL:
        if not isinstance(value, bool):
            raise TypeError(f"expected a bool, got {type(value).__name__}")
        return value
    if kind in _INT_BITS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected an int, got {type(value).__name__}")
        if not _int_fits(value, _INT_BITS[kind]):
            raise ValueError(f"{value} does not fit in {kind.value}")
        return value
    if kind in _FLOAT_FORMATS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected a float, got {type(value).__name__}")
        value = float(value)
        if kind is AttributeKind.F32:
            try:
                (value,) = struct.unpack("<f", struct.pack("<f", value))
            except OverflowError as exc:
                raise ValueError(f"{value} does not fit in F32") from exc
        return value
    raise ValueError(f"{kind.value} is not a scalar kind")


def _float_bits(fmt: str, value: float) -> bytes:
    return struct.pack(fmt, value)


@dataclass(frozen=True, repr=False)
class AttributeValue:
    """A typed node attribute value.

    Arrays are held as tuples, binary data as bytes.
    """

    kind: AttributeKind
    value: Any

    def __post_init__(self) -> None:
        kind = self.kind
        if not isinstance(kind, AttributeKind):
            raise TypeError(f"expected an AttributeKind, got {type(kind).__name__}")
        value = self.value
        if kind is AttributeKind.BINARY:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeError(f"expected bytes, got {type(value).__name__}")
            value = bytes(value)
        elif kind is AttributeKind.STRING:
            if not isinstance(value, str):
                raise TypeError(f"expected a str, got {type(value).__name__}")
        elif kind.is_array:
            if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Iterable):
                raise TypeError(f"expected an iterable of elements, got {type(value).__name__}")
            element_kind = _ELEMENT_KINDS[kind]
            value = tuple(_normalize_scalar(element_kind, v) for v in value)
        else:
            value = _normalize_scalar(kind, value)
        object.__setattr__(self, "value", value)

    def __repr__(self) -> str:
        return f"{self.kind.value}({self.value!r})"

    @classmethod
    def coerce(cls, value: Any) -> "AttributeValue":
        """Turns a plain Python value into an attribute value, inferring its kind.

        bool gives Bool, int gives I32 (I64 when out of I32 range), float gives
        F64, str gives String, bytes-like gives Binary, and a non-empty list or
        tuple gives the matching array kind.
        """
        if isinstance(value, AttributeValue):
            return value
        if isinstance(value, bool):
            return cls(AttributeKind.BOOL, value)
        if isinstance(value, int):
            kind = AttributeKind.I32 if _int_fits(value, 32) else AttributeKind.I64
            return cls(kind, value)
        if isinstance(value, float):
            return cls(AttributeKind.F64, value)
        if isinstance(value, str):
            return cls(AttributeKind.STRING, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(AttributeKind.BINARY, value)
        if isinstance(value, (list, tuple)):
            items = tuple(value)
            if not items:
                raise ValueError("cannot infer the element type of an empty array")
            if all(isinstance(v, bool) for v in items):
                return cls(AttributeKind.ARR_BOOL, items)
            if any(isinstance(v, bool) for v in items):
                raise TypeError("array mixes booleans with other values")
            if all(isinstance(v, int) for v in items):
                fits = all(_int_fits(v, 32) for v in items)
                return cls(AttributeKind.ARR_I32 if fits else AttributeKind.ARR_I64, items)
            if all(isinstance(v, (int, float)) for v in items):
                return cls(AttributeKind.ARR_F64, items)
            raise TypeError("array elements must all be booleans or numbers")
        raise TypeError(f"cannot make an attribute value from {type(value).__name__}")

    def strict_eq(self, other: "AttributeValue") -> bool:
        """Compares with another value, floats bitwise."""
        if self.kind is not other.kind:
            return False
        fmt = _FLOAT_FORMATS.get(_ELEMENT_KINDS.get(self.kind, self.kind))
        if fmt is None:
            return self.value == other.value
        if self.kind.is_array:
            if len(self.value) != len(other.value):
                return False
            return all(
                _float_bits(fmt, a) == _float_bits(fmt, b)
                for a, b in zip(self.value, other.value)
            )
        return _float_bits(fmt, self.value) == _float_bits(fmt, other.value)


@dataclass(frozen=True)
class NodeId:
    """Identifier of a node inside a tree."""

    index: int

    def to_handle(self, tree: "Tree") -> "NodeHandle":
        """Returns a handle to this node in the given tree."""
        return NodeHandle(tree, self)


@dataclass
class _NodeData:
    name: str
    attributes: list = field(default_factory=list)
    parent: Optional[int] = None
    first_child: Optional[int] = None
    last_child: Optional[int] = None
    previous_sibling: Optional[int] = None
    next_sibling: Optional[int] = None


class Tree:
    """FBX data tree with an implicit, unnamed root node."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {"": ""}
        self._nodes: list[_NodeData] = [_NodeData("")]
        self._root_id = NodeId(0)

    def _data(self, node_id: NodeId) -> _NodeData:
        if not isinstance(node_id, NodeId) or not 0 <= node_id.index < len(self._nodes):
            raise ValueError(f"the node id is not used in the tree: {node_id!r}")
        return self._nodes[node_id.index]

    def _new_node(self, name: str) -> int:
        if not isinstance(name, str):
            raise TypeError(f"node name must be a str, got {type(name).__name__}")
        name = self._names.setdefault(name, name)
        self._nodes.append(_NodeData(name))
        return len(self._nodes) - 1

    def _check_not_root(self, node_id: NodeId, what: str) -> None:
        if node_id == self._root_id:
            raise ValueError(f"the root node should have no {what}")

    def root(self) -> "NodeHandle":
        """Returns the root node."""
        return NodeHandle(self, self._root_id)

    def append_new(self, parent: NodeId, name: str) -> NodeId:
        """Creates a node as the last child of ``parent``."""
        parent_data = self._data(parent)
        index = self._new_node(name)
        child = self._nodes[index]
        child.parent = parent.index
        child.previous_sibling = parent_data.last_child
        if parent_data.last_child is None:
            parent_data.first_child = index
        else:
            self._nodes[parent_data.last_child].next_sibling = index
        parent_data.last_child = index
        return NodeId(index)

    def prepend_new(self, parent: NodeId, name: str) -> NodeId:
        """Creates a node as the first child of ``parent``."""
        parent_data = self._data(parent)
        index = self._new_node(name)
        child = self._nodes[index]
        child.parent = parent.index
        child.next_sibling = parent_data.first_child
        if parent_data.first_child is None:
            parent_data.last_child = index
        else:
            self._nodes[parent_data.first_child].previous_sibling = index
        parent_data.first_child = index
        return NodeId(index)

    def insert_new_after(self, sibling: NodeId, name: str) -> NodeId:
        """Creates a node right after ``sibling``."""
        self._check_not_root(sibling, "siblings")
        sibling_data = self._data(sibling)
        index = self._new_node(name)
        node = self._nodes[index]
        node.parent = sibling_data.parent
        node.previous_sibling = sibling.index
        node.next_sibling = sibling_data.next_sibling
        if sibling_data.next_sibling is None:
            self._nodes[sibling_data.parent].last_child = index
        else:
            self._nodes[sibling_data.next_sibling].previous_sibling = index
        sibling_data.next_sibling = index
        return NodeId(index)

    def insert_new_before(self, sibling: NodeId, name: str) -> NodeId:
        """Creates a node right before ``sibling``."""
        self._check_not_root(sibling, "siblings")
        sibling_data = self._data(sibling)
        index = self._new_node(name)
        node = self._nodes[index]
        node.parent = sibling_data.parent
        node.next_sibling = sibling.index
        node.previous_sibling = sibling_data.previous_sibling
        if sibling_data.previous_sibling is None:
            self._nodes[sibling_data.parent].first_child = index
        else:
            self._nodes[sibling_data.previous_sibling].next_sibling = index
        sibling_data.previous_sibling = index
        return NodeId(index)

    def append_attribute(self, node_id: NodeId, value: Any) -> None:
        """Appends an attribute to a (non-root) node."""
        self._check_not_root(node_id, "attributes")
        self._data(node_id).attributes.append(AttributeValue.coerce(value))

    def strict_eq(self, other: "Tree") -> bool:
        """Compares tree contents, floats bitwise."""
        return self.root().strict_eq(other.root())

    def debug_tree(self) -> str:
        """Returns a pretty-printed view of the tree; the format may change."""
        return "\n".join(_debug_lines(self.root(), 0))


class NodeHandle:
    """A node of a tree, seen through the tree it belongs to."""

    __slots__ = ("_tree", "_node_id")

    def __init__(self, tree: Tree, node_id: NodeId) -> None:
        tree._data(node_id)
        self._tree = tree
        self._node_id = node_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeHandle):
            return NotImplemented
        return self._tree is other._tree and self._node_id == other._node_id

    def __hash__(self) -> int:
        return hash((id(self._tree), self._node_id))

    def __repr__(self) -> str:
        return f"NodeHandle(name={self.name()!r}, node_id={self._node_id!r})"

    def _data(self) -> _NodeData:
        return self._tree._nodes[self._node_id.index]

    def _related(self, index: Optional[int]) -> Optional["NodeHandle"]:
        return None if index is None else NodeHandle(self._tree, NodeId(index))

    def tree(self) -> Tree:
        return self._tree

    def node_id(self) -> NodeId:
        return self._node_id

    def name(self) -> str:
        return self._data().name

    def attributes(self) -> tuple:
        return tuple(self._data().attributes)

    def children(self) -> Iterator["NodeHandle"]:
        """Yields the children in order."""
        nodes = self._tree._nodes
        index = nodes[self._node_id.index].first_child
        while index is not None:
            yield NodeHandle(self._tree, NodeId(index))
            index = nodes[index].next_sibling

    def children_by_name(self, name: str) -> Iterator["NodeHandle"]:
        """Yields the children with the given name."""
        return (child for child in self.children() if child.name() == name)

    def first_child_by_name(self, name: str) -> Optional["NodeHandle"]:
        return next(self.children_by_name(name), None)

    def strict_eq(self, other: "NodeHandle") -> bool:
        """Compares the subtrees, floats bitwise."""
        return _nodes_strict_eq(self, other)

    def parent(self) -> Optional["NodeHandle"]:
        return self._related(self._data().parent)

    def first_child(self) -> Optional["NodeHandle"]:
        return self._related(self._data().first_child)

    def last_child(self) -> Optional["NodeHandle"]:
        return self._related(self._data().last_child)

    def previous_sibling(self) -> Optional["NodeHandle"]:
        return self._related(self._data().previous_sibling)

    def next_sibling(self) -> Optional["NodeHandle"]:
        return self._related(self._data().next_sibling)


def _nodes_strict_eq(left: NodeHandle, right: NodeHandle) -> bool:
    if left.name() != right.name():
        return False
    left_attrs, right_attrs = left.attributes(), right.attributes()
    if len(left_attrs) != len(right_attrs):
        return False
    if not all(a.strict_eq(b) for a, b in zip(left_attrs, right_attrs)):
        return False
    for l_child, r_child in zip_longest(left.children(), right.children()):
        if l_child is None or r_child is None:
            return False
        if not _nodes_strict_eq(l_child, r_child):
            return False
    return True


def _debug_lines(node: NodeHandle, depth: int) -> list[str]:
    pad = "    " * depth
    inner = pad + "    "
    attrs = ", ".join(repr(a) for a in node.attributes())
    lines = [
        f"{pad}Node {{",
        f"{inner}name: {node.name()!r},",
        f"{inner}attributes: [{attrs}],",
    ]
    children = list(node.children())
    if children:
        lines.append(f"{inner}children: [")
        for child in children:
            lines.extend(_debug_lines(child, depth + 2))
            lines[-1] += ","
        lines.append(f"{inner}],")
    else:
        lines.append(f"{inner}children: [],")
    lines.append(f"{pad}}}")
    return lines


def _split_entry(entry: Any) -> tuple[str, Iterable[Any], Iterable[Any]]:
    if not isinstance(entry, tuple) or len(entry) not in (2, 3):
        raise TypeError(
            "a node entry must be (name, children) or (name, attributes, children)"
        )
    if len(entry) == 2:
        name, children = entry
        attributes: Iterable[Any] = ()
    else:
        name, attributes, children = entry
    if not isinstance(name, str):
        raise TypeError(f"node name must be a str, got {type(name).__name__}")
    return name, attributes, children


def _build_into(tree: Tree, parent: NodeId, spec: Iterable[Any]) -> None:
    for entry in spec:
        name, attributes, children = _split_entry(entry)
        node = tree.append_new(parent, name)
        for attribute in attributes:
            tree.append_attribute(node, attribute)
        _build_into(tree, node, children)


def build_tree(spec: Iterable[Any]) -> Tree:
    """Builds a tree from nested entries.

    Each entry is ``(name, children)`` or ``(name, attributes, children)``,
    where ``children`` is again a sequence of entries and each attribute is
    an ``AttributeValue`` or a value accepted by ``AttributeValue.coerce``.
    """
    tree = Tree()
    _build_into(tree, tree.root().node_id(), spec)
    return tree