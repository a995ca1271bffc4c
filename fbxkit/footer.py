"""FBX 7.4 footer description."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_UNKNOWN1 = bytes(
    [
        0xF0, 0xB1, 0xA2, 0x03, 0xD4, 0xC5, 0xD6, 0x67,
        0xB8, 0x79, 0xFA, 0x8B, 0x1C, 0xFD, 0x2E, 0x7F,
    ]
)
DEFAULT_UNKNOWN2 = bytes(4)
DEFAULT_UNKNOWN3 = bytes(
    [
        0xF8, 0x5A, 0x8C, 0x6A, 0xDE, 0xF5, 0xD9, 0x7E,
        0xEC, 0xE9, 0x0C, 0xE3, 0x75, 0x8F, 0x29, 0x0B,
    ]
)


def _check_bytes(name: str, value: Optional[bytes], length: int) -> Optional[bytes]:
    if value is None:
        return None
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes, got {type(value).__name__}")
    value = bytes(value)
    if len(value) != length:
        raise ValueError(f"{name} must be {length} bytes long, got {len(value)}")
    return value


@dataclass(frozen=True)
class FbxFooter:
    """Footer fields of an FBX 7.4 binary; ``None`` selects the default.

    ``unknown1`` is 16 semi-random bytes, ``unknown2`` 4 bytes and
    ``unknown3`` 16 fixed bytes. ``padding_len`` of ``None`` pads to the
    next 16-byte boundary; an integer in 0..255 forces that many zero bytes.
    """

    unknown1: Optional[bytes] = None
    padding_len: Optional[int] = None
    unknown2: Optional[bytes] = None
    unknown3: Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "unknown1", _check_bytes("unknown1", self.unknown1, 16))
        object.__setattr__(self, "unknown2", _check_bytes("unknown2", self.unknown2, 4))
        object.__setattr__(self, "unknown3", _check_bytes("unknown3", self.unknown3, 16))
        padding = self.padding_len
        if padding is not None:
            if isinstance(padding, bool) or not isinstance(padding, int):
                raise TypeError(f"padding_len must be an int, got {type(padding).__name__}")
            if not 0 <= padding <= 0xFF:
                raise ValueError(f"padding_len must be in 0..255, got {padding}")

    def unknown1_or_default(self) -> bytes:
        """Returns the first unknown field, or its default."""
        return DEFAULT_UNKNOWN1 if self.unknown1 is None else self.unknown1

    def unknown2_or_default(self) -> bytes:
        """Returns the second unknown field, or its default."""
        return DEFAULT_UNKNOWN2 if self.unknown2 is None else self.unknown2

    def unknown3_or_default(self) -> bytes:
        """Returns the third unknown field, or its default."""
        return DEFAULT_UNKNOWN3 if self.unknown3 is None else self.unknown3