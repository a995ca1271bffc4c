"""Writing node attributes into an FBX binary stream."""

from __future__ import annotations

import enum
import struct
import zlib
from typing import Any, BinaryIO, Iterable, Iterator, Optional

from fbxkit.errors import (
    AttributeTooLongError,
    CompressionError,
    TooManyArrayAttributeElementsError,
    TooManyAttributesError,
    UserDefinedError,
)

_U32_MAX = 0xFFFF_FFFF
_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF
_ARRAY_HEADER = struct.Struct("<III")
_SPECIAL_HEADER = struct.Struct("<I")
_READ_CHUNK = 64 * 1024


class AttributeType(enum.Enum):
    """Attribute type with its one-byte type code."""

    BOOL = "C"
    I16 = "Y"
    I32 = "I"
    I64 = "L"
    F32 = "F"
    F64 = "D"
    ARR_BOOL = "b"
    ARR_I32 = "i"
    ARR_I64 = "l"
    ARR_F32 = "f"
    ARR_F64 = "d"
    BINARY = "R"
    STRING = "S"

    @property
    def code(self) -> bytes:
        """The type code as written to the stream."""
        return self.value.encode("ascii")


class ArrayAttributeEncoding(enum.IntEnum):
    """Storage encoding of array attribute elements."""

    DIRECT = 0
    ZLIB = 1


_FORMATS = {
    AttributeType.I16: "<h",
    AttributeType.I32: "<i",
    AttributeType.I64: "<q",
    AttributeType.F32: "<f",
    AttributeType.F64: "<d",
}

_ARRAY_ELEMENTS = {
    AttributeType.ARR_BOOL: AttributeType.BOOL,
    AttributeType.ARR_I32: AttributeType.I32,
    AttributeType.ARR_I64: AttributeType.I64,
    AttributeType.ARR_F32: AttributeType.F32,
    AttributeType.ARR_F64: AttributeType.F64,
}


def _encode(ty: AttributeType, value: Any) -> bytes:
    if ty is AttributeType.BOOL:
        return b"Y" if value else b"T"
    try:
        return struct.pack(_FORMATS[ty], value)
    except (struct.error, OverflowError) as exc:
        raise ValueError(f"{value!r} cannot be stored as {ty.name}") from exc


def _user_items(iterable: Iterable[Any]) -> Iterator[Any]:
    """Yields from ``iterable``, wrapping errors it raises in UserDefinedError."""
    try:
        iterator = iter(iterable)
    except TypeError:
        raise
    while True:
        try:
            item = next(iterator)
        except StopIteration:
            return
        except UserDefinedError:
            raise
        except Exception as exc:
            raise UserDefinedError(exc) from exc
        yield item


class AttributesWriter:
    """Appends attributes to the node most recently opened by a writer.

    ``node`` is the open node's state; its ``num_attributes`` field is
    incremented for each attribute written. Once the writer moves on to
    another node this object is closed and refuses further writes.
    """

    def __init__(self, sink: BinaryIO, node: Any) -> None:
        self._sink = sink
        self._node = node
        self._open = True

    def _close(self) -> None:
        self._open = False

    def _begin(self, ty: AttributeType) -> None:
        if not self._open:
            raise RuntimeError("attributes of this node can no longer be written")
        count = self._node.num_attributes
        if count >= _U64_MAX:
            raise TooManyAttributesError(count)
        self._node.num_attributes = count + 1
        self._sink.write(ty.code)

    def _patch(self, position: int, data: bytes) -> None:
        end = self._sink.tell()
        self._sink.seek(position)
        self._sink.write(data)
        self._sink.seek(end)

    def _append_scalar(self, ty: AttributeType, value: Any) -> None:
        encoded = _encode(ty, value)
        self._begin(ty)
        self._sink.write(encoded)

    def append_bool(self, value: bool) -> None:
        """Writes a single boolean attribute."""
        self._append_scalar(AttributeType.BOOL, value)

    def append_i16(self, value: int) -> None:
        """Writes a single 16-bit integer attribute."""
        self._append_scalar(AttributeType.I16, value)

    def append_i32(self, value: int) -> None:
        """Writes a single 32-bit integer attribute."""
        self._append_scalar(AttributeType.I32, value)

    def append_i64(self, value: int) -> None:
        """Writes a single 64-bit integer attribute."""
        self._append_scalar(AttributeType.I64, value)

    def append_f32(self, value: float) -> None:
        """Writes a single 32-bit float attribute."""
        self._append_scalar(AttributeType.F32, value)

    def append_f64(self, value: float) -> None:
        """Writes a single 64-bit float attribute."""
        self._append_scalar(AttributeType.F64, value)

    def _append_array(
        self,
        ty: AttributeType,
        values: Iterable[Any],
        encoding: Optional[ArrayAttributeEncoding],
    ) -> None:
        encoding = (
            ArrayAttributeEncoding.DIRECT
            if encoding is None
            else ArrayAttributeEncoding(encoding)
        )
        element_type = _ARRAY_ELEMENTS[ty]
        chunks = [_encode(element_type, value) for value in _user_items(values)]
        count = len(chunks)
        if count > _U32_MAX:
            raise TooManyArrayAttributeElementsError(count)
        payload = b"".join(chunks)
        if encoding is ArrayAttributeEncoding.ZLIB:
            try:
                payload = zlib.compress(payload)
            except zlib.error as exc:
                raise CompressionError(exc) from exc
        if len(payload) > _U32_MAX:
            raise AttributeTooLongError(len(payload))

        self._begin(ty)
        header_pos = self._sink.tell()
        self._sink.write(_ARRAY_HEADER.pack(0, encoding, 0))
        start = self._sink.tell()
        self._sink.write(payload)
        bytelen = self._sink.tell() - start
        self._patch(header_pos, _ARRAY_HEADER.pack(count, encoding, bytelen))

    def append_arr_bool(
        self, values: Iterable[bool], encoding: Optional[ArrayAttributeEncoding] = None
    ) -> None:
        """Writes a boolean array attribute."""
        self._append_array(AttributeType.ARR_BOOL, values, encoding)

    def append_arr_i32(
        self, values: Iterable[int], encoding: Optional[ArrayAttributeEncoding] = None
    ) -> None:
        """Writes a 32-bit integer array attribute."""
        self._append_array(AttributeType.ARR_I32, values, encoding)

    def append_arr_i64(
        self, values: Iterable[int], encoding: Optional[ArrayAttributeEncoding] = None
    ) -> None:
        """Writes a 64-bit integer array attribute."""
        self._append_array(AttributeType.ARR_I64, values, encoding)

    def append_arr_f32(
        self, values: Iterable[float], encoding: Optional[ArrayAttributeEncoding] = None
    ) -> None:
        """Writes a 32-bit float array attribute."""
        self._append_array(AttributeType.ARR_F32, values, encoding)

    def append_arr_f64(
        self, values: Iterable[float], encoding: Optional[ArrayAttributeEncoding] = None
    ) -> None:
        """Writes a 64-bit float array attribute."""
        self._append_array(AttributeType.ARR_F64, values, encoding)

    def _append_special(self, ty: AttributeType, data: bytes) -> None:
        if len(data) > _U32_MAX:
            raise AttributeTooLongError(len(data))
        self._begin(ty)
        self._sink.write(_SPECIAL_HEADER.pack(len(data)))
        self._sink.write(data)

    def append_binary(self, data: bytes) -> None:
        """Writes a binary attribute."""
        self._append_special(AttributeType.BINARY, bytes(data))

    def append_binary_from_reader(self, reader: BinaryIO) -> None:
        """Writes a binary attribute with everything read from ``reader``."""
        self._begin(AttributeType.BINARY)
        header_pos = self._sink.tell()
        self._sink.write(_SPECIAL_HEADER.pack(0))
        written = 0
        for chunk in iter(lambda: reader.read(_READ_CHUNK), b""):
            self._sink.write(chunk)
            written += len(chunk)
        if written > _U32_MAX:
            raise AttributeTooLongError(written)
        self._patch(header_pos, _SPECIAL_HEADER.pack(written))

    def append_binary_from_iter(self, iterable: Iterable[int]) -> None:
        """Writes a binary attribute from an iterable of byte values."""
        self._append_special(AttributeType.BINARY, bytes(_user_items(iterable)))

    def append_string(self, text: str) -> None:
        """Writes a string attribute, UTF-8 encoded."""
        self._append_special(AttributeType.STRING, text.encode("utf-8"))

    def append_string_from_iter(self, chars: Iterable[str]) -> None:
        """Writes a string attribute from an iterable of characters."""
        text = "".join(_user_items(chars))
        self._append_special(AttributeType.STRING, text.encode("utf-8"))