"""nbtcodec — NBT (Named Binary Tag) encoder, decoder and text renderer.

Build a tree, encode it, decode it back:

    >>> from nbtcodec import Tag, serialize, deserialize
    >>> data = serialize(Tag.int(4, name="int"))
    >>> data.hex(" ")
    '03 00 03 69 6e 74 00 00 00 04'
    >>> deserialize(data).int_value()
    4

Wire variants are chosen with SerializationFlag: the default is the
big-endian Java layout, BEDROCK is little-endian, JAVA_NETWORK omits the
root compound's name.  Flags combine with ``|``.

Decoding never raises on malformed input.  A truncated or corrupt buffer
yields a tag whose ``is_valid()`` is False, holding whatever was parsed
before the fault:

    >>> deserialize(data[:6]).is_valid()
    False

Use deserialize_strict() to get an NbtDecodeError instead.
"""

from __future__ import annotations

from ._constants import MAX_DEPTH, SerializationFlag, TagType
from ._decode import DecodeContext, deserialize, deserialize_strict
from ._encode import serialize
from ._errors import (
    ERR_LIMIT_DEPTH,
    ERR_LIST_TYPE,
    ERR_TRAILING,
    ERR_TRUNCATED,
    ERR_TYPE_MISMATCH,
    ERR_UNKNOWN_TYPE,
    NbtDecodeError,
    NbtError,
    TagTypeMismatch,
)
from ._format import stringify
from ._tag import Tag

__version__ = "1.0.0"

__all__ = [
    # Model
    "Tag",
    "TagType",
    "SerializationFlag",
    # Codec
    "serialize",
    "deserialize",
    "deserialize_strict",
    "stringify",
    "DecodeContext",
    "MAX_DEPTH",
    # Exceptions
    "NbtError",
    "NbtDecodeError",
    "TagTypeMismatch",
    # Fault codes
    "ERR_TRUNCATED",
    "ERR_UNKNOWN_TYPE",
    "ERR_LIST_TYPE",
    "ERR_LIMIT_DEPTH",
    "ERR_TRAILING",
    "ERR_TYPE_MISMATCH",
]
