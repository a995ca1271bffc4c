"""Errors raised while writing FBX binary data."""

from __future__ import annotations

from typing import Any


class WriteError(Exception):
    """Base class of all errors raised while writing FBX binary data."""


class AttributeTooLongError(WriteError):
    """A node attribute is longer than the format can describe."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Node attribute is too long: {length} bytes")
        self.length = length


class CompressionError(WriteError):
    """Compressing an array attribute failed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Compression error: Zlib compression error: {cause}")
        self.cause = cause
        self.__cause__ = cause


class FileTooLargeError(WriteError):
    """The file grew beyond what the chosen FBX version can address."""

    def __init__(self, size: int) -> None:
        super().__init__(f"File is too large: {size} bytes")
        self.size = size


class NoNodesToCloseError(WriteError):
    """A node was closed while no node was open."""

    def __init__(self) -> None:
        super().__init__("There are no nodes to close")


class NodeNameTooLongError(WriteError):
    """A node name does not fit in 255 bytes."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Node name is too long: {length} bytes")
        self.length = length


class TooManyArrayAttributeElementsError(WriteError):
    """An array attribute has more elements than the format allows."""

    def __init__(self, count: int) -> None:
        super().__init__(
            f"Too many array elements for a single node attribute: count={count}"
        )
        self.count = count


class TooManyAttributesError(WriteError):
    """A node has more attributes than the format allows."""

    def __init__(self, count: int) -> None:
        super().__init__(f"Too many attributes: count={count}")
        self.count = count


class UnclosedNodeError(WriteError):
    """The writer was finalized while nodes were still open."""

    def __init__(self, depth: int) -> None:
        super().__init__(f"There remains unclosed nodes: depth={depth}")
        self.depth = depth


class UnsupportedFbxVersionError(WriteError):
    """The requested FBX version cannot be written."""

    def __init__(self, version: Any) -> None:
        super().__init__(f"Unsupported FBX version: {version!r}")
        self.version = version


class UserDefinedError(WriteError):
    """An error raised by user-supplied data while it was being written."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"User-defined error: {cause}")
        self.cause = cause
        self.__cause__ = cause