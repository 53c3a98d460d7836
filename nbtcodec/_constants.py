"""NBT constants: tag type ids, serialization flags, value ranges and limits.

Type ids are the wire values written as the first byte of every tag.
"""

from __future__ import annotations

import enum


class TagType(enum.IntEnum):
    """Discriminant of a Tag.  The integer value is the wire type id."""

    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


class SerializationFlag(enum.IntFlag):
    """Wire variant bits.  Combine with ``|``.

    The default (NONE) is the big-endian Java edition format with a named
    root.  BEDROCK switches every multi-byte number to little-endian.
    JAVA_NETWORK drops the root Compound's name, as the Java protocol does
    for NBT sent over the network.
    """

    NONE = 0x0
    LITTLE_ENDIAN = 0x1
    UNNAMED_ROOT_COMPONENT = 0x2

    BEDROCK = LITTLE_ENDIAN
    JAVA_NETWORK = UNNAMED_ROOT_COMPONENT


# ── Fixed-width wire kinds ───────────────────────────────────
# Keys of the endianness codec.  Scalar tag kinds map onto these; the
# length prefixes use UINT16 (names, strings) and INT32 (arrays, lists).
INT8: str = "int8"
INT16: str = "int16"
UINT16: str = "uint16"
INT32: str = "int32"
INT64: str = "int64"
FLOAT32: str = "float32"
FLOAT64: str = "float64"

SCALAR_WIRE_KIND = {
    TagType.BYTE: INT8,
    TagType.SHORT: INT16,
    TagType.INT: INT32,
    TagType.LONG: INT64,
    TagType.FLOAT: FLOAT32,
    TagType.DOUBLE: FLOAT64,
}

ARRAY_WIRE_KIND = {
    TagType.BYTE_ARRAY: INT8,
    TagType.INT_ARRAY: INT32,
    TagType.LONG_ARRAY: INT64,
}

# ── Signed integer ranges ────────────────────────────────────
# Python ints are unbounded; tag payloads are wrapped into these on
# construction, the way a C++ narrowing cast would.
INT_BITS = {
    TagType.BYTE: 8,
    TagType.SHORT: 16,
    TagType.INT: 32,
    TagType.LONG: 64,
    TagType.BYTE_ARRAY: 8,
    TagType.INT_ARRAY: 32,
    TagType.LONG_ARRAY: 64,
}

# ── Limits ───────────────────────────────────────────────────
# Names and strings carry a uint16 byte length on the wire.
MAX_STRING_BYTES: int = 0xFFFF

# Containers nested deeper than this are rejected by the decoder.  512 is
# the limit the Java edition itself enforces.
MAX_DEPTH: int = 512

# Rendered for an END tag by the text formatter.
END_SENTINEL: str = "%TAG_END%"
