"""Endianness codec for fixed-width numbers.

Values are packed in the host's native byte order and the raw bytes are
reversed only when the requested wire order differs.  The host order is
detected once, at import.
"""

from __future__ import annotations

import struct
import sys
from typing import Dict, Union

from ._constants import (
    FLOAT32,
    FLOAT64,
    INT8,
    INT16,
    INT32,
    INT64,
    UINT16,
    SerializationFlag,
)

Number = Union[int, float]

HOST_LITTLE_ENDIAN: bool = sys.byteorder == "little"

# Native-order, standard-size formats.  "=" gives native byte order without
# native alignment or native sizes.
_STRUCTS: Dict[str, struct.Struct] = {
    INT8: struct.Struct("=b"),
    INT16: struct.Struct("=h"),
    UINT16: struct.Struct("=H"),
    INT32: struct.Struct("=i"),
    INT64: struct.Struct("=q"),
    FLOAT32: struct.Struct("=f"),
    FLOAT64: struct.Struct("=d"),
}


def width(kind: str) -> int:
    """Byte width of a fixed-width wire kind."""
    return _STRUCTS[kind].size


def _needs_swap(flags: int) -> bool:
    wire_little = bool(flags & SerializationFlag.LITTLE_ENDIAN)
    return wire_little != HOST_LITTLE_ENDIAN


def write_wire(kind: str, value: Number, flags: int) -> bytes:
    """Pack `value` as `kind` in the wire order selected by `flags`."""
    raw = _STRUCTS[kind].pack(value)
    if len(raw) > 1 and _needs_swap(flags):
        return raw[::-1]
    return raw


def read_wire(kind: str, data: Union[bytes, memoryview], offset: int,
              flags: int) -> Number:
    """Unpack one `kind` value at `offset`.

    The caller is responsible for bounds checking; the decoder does it in
    DecodeContext before calling here.
    """
    s = _STRUCTS[kind]
    raw = bytes(data[offset:offset + s.size])
    if s.size > 1 and _needs_swap(flags):
        raw = raw[::-1]
    return s.unpack(raw)[0]
