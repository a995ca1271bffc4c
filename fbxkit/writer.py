"""Binary writer for FBX 7.4 and later."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, ClassVar, Iterable, Optional

from fbxkit.attributes import AttributesWriter
from fbxkit.errors import (
    AttributeTooLongError,
    FileTooLargeError,
    NodeNameTooLongError,
    NoNodesToCloseError,
    TooManyAttributesError,
    UnclosedNodeError,
    UnsupportedFbxVersionError,
)
from fbxkit.footer import FbxFooter
from fbxkit.tree import AttributeKind, AttributeValue, NodeHandle, Tree

MAGIC = b"Kaydara FBX Binary  \x00\x1a\x00"

_U32_MAX = 0xFFFF_FFFF
_NODE_HEADER_32 = struct.Struct("<IIIB")
_NODE_HEADER_64 = struct.Struct("<QQQB")
_VERSION = struct.Struct("<I")
_FOOTER_ZEROES = 120


@dataclass(frozen=True, order=True)
class FbxVersion:
    """FBX version as its raw number, e.g. 7400 for 7.4."""

    raw: int

    V7_4: ClassVar["FbxVersion"]
    V7_5: ClassVar["FbxVersion"]

    def __post_init__(self) -> None:
        if isinstance(self.raw, bool) or not isinstance(self.raw, int):
            raise TypeError(f"FBX version must be an int, got {type(self.raw).__name__}")
        if not 0 <= self.raw <= _U32_MAX:
            raise ValueError(f"FBX version out of range: {self.raw}")

    @property
    def major(self) -> int:
        return self.raw // 1000

    @property
    def minor(self) -> int:
        return self.raw % 1000 // 100

    def __repr__(self) -> str:
        return f"FbxVersion({self.raw})"


FbxVersion.V7_4 = FbxVersion(7400)
FbxVersion.V7_5 = FbxVersion(7500)


@dataclass
class _OpenNode:
    """State of a node whose header is not written yet."""

    header_pos: int
    body_pos: int
    bytelen_name: int
    num_attributes: int = 0
    bytelen_attributes: int = 0
    has_child: bool = False
    is_attrs_finalized: bool = False


_APPENDERS: dict[AttributeKind, Callable[[AttributesWriter, Any], None]] = {
    AttributeKind.BOOL: AttributesWriter.append_bool,
    AttributeKind.I16: AttributesWriter.append_i16,
    AttributeKind.I32: AttributesWriter.append_i32,
    AttributeKind.I64: AttributesWriter.append_i64,
    AttributeKind.F32: AttributesWriter.append_f32,
    AttributeKind.F64: AttributesWriter.append_f64,
    AttributeKind.ARR_BOOL: AttributesWriter.append_arr_bool,
    AttributeKind.ARR_I32: AttributesWriter.append_arr_i32,
    AttributeKind.ARR_I64: AttributesWriter.append_arr_i64,
    AttributeKind.ARR_F32: AttributesWriter.append_arr_f32,
    AttributeKind.ARR_F64: AttributesWriter.append_arr_f64,
    AttributeKind.BINARY: AttributesWriter.append_binary,
    AttributeKind.STRING: AttributesWriter.append_string,
}


def _write_attribute(attrs: AttributesWriter, value: Any) -> None:
    attribute = AttributeValue.coerce(value)
    _APPENDERS[attribute.kind](attrs, attribute.value)


class Writer:
    """Writes FBX binary data to a seekable binary sink.

    Nodes are opened with ``new_node`` and closed with ``close_node``; the
    file is completed with ``finalize`` or ``finalize_and_flush``, which is
    never done implicitly.
    """

    def __init__(self, sink: BinaryIO, fbx_version: Any) -> None:
        if not isinstance(fbx_version, FbxVersion):
            fbx_version = FbxVersion(fbx_version)
        if fbx_version.major != 7:
            raise UnsupportedFbxVersionError(fbx_version)
        self._sink = sink
        self._fbx_version = fbx_version
        self._open_nodes: list[_OpenNode] = []
        self._attrs: Optional[AttributesWriter] = None
        self._finished = False

        sink.seek(0)
        sink.write(MAGIC)
        sink.write(_VERSION.pack(fbx_version.raw))

    @property
    def fbx_version(self) -> FbxVersion:
        return self._fbx_version

    @property
    def depth(self) -> int:
        """Number of nodes currently open."""
        return len(self._open_nodes)

    def _check_usable(self) -> None:
        if self._finished:
            raise RuntimeError("the writer has already been finalized")

    def _release_attributes(self) -> None:
        if self._attrs is not None:
            self._attrs._close()
            self._attrs = None

    def _write_node_header(
        self,
        end_offset: int = 0,
        num_attributes: int = 0,
        bytelen_attributes: int = 0,
        bytelen_name: int = 0,
    ) -> None:
        if self._fbx_version.raw < 7500:
            if end_offset > _U32_MAX:
                raise FileTooLargeError(end_offset)
            if num_attributes > _U32_MAX:
                raise TooManyAttributesError(num_attributes)
            if bytelen_attributes > _U32_MAX:
                raise AttributeTooLongError(bytelen_attributes)
            layout = _NODE_HEADER_32
        else:
            layout = _NODE_HEADER_64
        self._sink.write(
            layout.pack(end_offset, num_attributes, bytelen_attributes, bytelen_name)
        )

    def _finalize_attributes(self) -> None:
        self._release_attributes()
        if not self._open_nodes:
            return
        node = self._open_nodes[-1]
        if node.is_attrs_finalized:
            return
        node.bytelen_attributes = self._sink.tell() - node.body_pos
        node.is_attrs_finalized = True

    def new_node(self, name: str) -> AttributesWriter:
        """Opens a new child of the current node and returns its attribute writer."""
        self._check_usable()
        self._finalize_attributes()
        if self._open_nodes:
            self._open_nodes[-1].has_child = True

        encoded = name.encode("utf-8")
        if len(encoded) > 0xFF:
            raise NodeNameTooLongError(len(encoded))

        header_pos = self._sink.tell()
        self._write_node_header(bytelen_name=len(encoded))
        self._sink.write(encoded)
        node = _OpenNode(
            header_pos=header_pos,
            body_pos=self._sink.tell(),
            bytelen_name=len(encoded),
        )
        self._open_nodes.append(node)
        self._attrs = AttributesWriter(self._sink, node)
        return self._attrs

    def close_node(self) -> None:
        """Closes the current node."""
        self._check_usable()
        self._finalize_attributes()
        if not self._open_nodes:
            raise NoNodesToCloseError()
        node = self._open_nodes.pop()

        if node.has_child or node.num_attributes == 0:
            self._write_node_header()

        end_pos = self._sink.tell()
        if (node.num_attributes == 0) != (node.bytelen_attributes == 0):
            raise AssertionError(
                "length of attributes can be zero iff there are no attributes"
            )
        self._sink.seek(node.header_pos)
        self._write_node_header(
            end_offset=end_pos,
            num_attributes=node.num_attributes,
            bytelen_attributes=node.bytelen_attributes,
            bytelen_name=node.bytelen_name,
        )
        self._sink.seek(end_pos)

    def write_tree(self, tree: Tree) -> None:
        """Writes every node of the tree below the current node."""
        for child in tree.root().children():
            self._write_subtree(child)

    def _write_subtree(self, node: NodeHandle) -> None:
        attrs = self.new_node(node.name())
        for attribute in node.attributes():
            _write_attribute(attrs, attribute)
        for child in node.children():
            self._write_subtree(child)
        self.close_node()

    def _finalize(self, footer: Optional[FbxFooter]) -> None:
        self._check_usable()
        if footer is None:
            footer = FbxFooter()
        self._release_attributes()
        if self._open_nodes:
            raise UnclosedNodeError(len(self._open_nodes))

        # End of the implicit root node.
        self._write_node_header()

        sink = self._sink
        sink.write(footer.unknown1_or_default())
        if footer.padding_len is None:
            padding = -sink.tell() & 0x0F
        else:
            padding = footer.padding_len
        sink.write(bytes(padding))
        sink.write(footer.unknown2_or_default())
        sink.write(_VERSION.pack(self._fbx_version.raw))
        sink.write(bytes(_FOOTER_ZEROES))
        sink.write(footer.unknown3_or_default())
        self._finished = True

    def finalize(self, footer: Optional[FbxFooter] = None) -> BinaryIO:
        """Writes the end of the file and the footer, and returns the sink."""
        self._finalize(footer)
        return self._sink

    def finalize_and_flush(self, footer: Optional[FbxFooter] = None) -> BinaryIO:
        """Like ``finalize``, and flushes the sink before returning it."""
        self._finalize(footer)
        self._sink.flush()
        return self._sink


def _split_entry(entry: Any) -> tuple[str, Iterable[Any], Iterable[Any]]:
    if not isinstance(entry, tuple) or len(entry) not in (2, 3):
        raise TypeError(
            "a node entry must be (name, children) or (name, attributes, children)"
        )
    if len(entry) == 2:
        name, children = entry
        return name, (), children
    return entry


def write_nodes(writer: Writer, spec: Iterable[Any]) -> None:
    """Writes nested node entries through ``writer``.

    Each entry is ``(name, children)`` or ``(name, attributes, children)``;
    attributes are ``AttributeValue`` objects or values accepted by
    ``AttributeValue.coerce``.
    """
    for entry in spec:
        name, attributes, children = _split_entry(entry)
        attrs = writer.new_node(name)
        for attribute in attributes:
            _write_attribute(attrs, attribute)
        write_nodes(writer, children)
        writer.close_node()