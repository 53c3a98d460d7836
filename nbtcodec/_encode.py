"""NBT binary encoder.

Layout of one tag:

    kind        1 byte, the TagType id
    name        uint16 byte length + UTF-8 bytes (omitted for list elements
                and for an unnamed network root)
    payload     depends on kind, see _encode_tag

All multi-byte numbers go through the endianness codec, so one code path
writes both the Java (big-endian) and Bedrock (little-endian) variants.

The encoder never validates.  A LIST whose children disagree on kind is
written as-is, with the first child's kind as the element kind; the decoder
is where that is caught.
"""

from __future__ import annotations

import logging
from typing import List

from ._constants import (
    ARRAY_WIRE_KIND,
    INT8,
    INT32,
    MAX_STRING_BYTES,
    SCALAR_WIRE_KIND,
    UINT16,
    SerializationFlag,
    TagType,
)
from ._endian import write_wire
from ._tag import Tag

logger = logging.getLogger(__name__)

_EMPTY_LIST = b"\x00\x00\x00\x00\x00"  # element kind END, count 0


def _encode_char(ch: str) -> bytes:
    if "\udc80" <= ch <= "\udcff":
        return bytes([ord(ch) - 0xDC00])
    return ch.encode("utf-8", errors="surrogatepass")


def _utf8(text: str) -> bytes:
    """Encode text for a uint16-prefixed field, truncating past 65535 bytes.

    surrogateescape lets strings that came out of the decoder with invalid
    UTF-8 re-encode to their original bytes.  Other lone surrogates are
    written as their 3-byte form; the decoder reads those back as three
    escape characters, so such strings do not round-trip.
    """
    try:
        raw = text.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        raw = b"".join(_encode_char(ch) for ch in text)
    if len(raw) <= MAX_STRING_BYTES:
        return raw
    cut = MAX_STRING_BYTES
    # Back up to a character boundary (skip continuation bytes 10xxxxxx).
    while cut > 0 and (raw[cut] & 0xC0) == 0x80:
        cut -= 1
    logger.warning("string of %d bytes truncated to %d bytes", len(raw), cut)
    return raw[:cut]


def _write_text(out: List[bytes], text: str, flags: int) -> None:
    raw = _utf8(text)
    out.append(write_wire(UINT16, len(raw), flags))
    out.append(raw)


def _encode_tag(tag: Tag, flags: int, hide_name: bool, out: List[bytes]) -> None:
    kind = tag.kind
    out.append(bytes([kind]))

    if not hide_name:
        _write_text(out, tag.name, flags)

    value = tag.value

    if kind in SCALAR_WIRE_KIND:
        out.append(write_wire(SCALAR_WIRE_KIND[kind], value, flags))
        return

    if kind == TagType.STRING:
        _write_text(out, value, flags)
        return

    if kind == TagType.BYTE_ARRAY:
        out.append(write_wire(INT32, len(value), flags))
        out.append(bytes(b & 0xFF for b in value))
        return

    if kind in ARRAY_WIRE_KIND:
        wire_kind = ARRAY_WIRE_KIND[kind]
        out.append(write_wire(INT32, len(value), flags))
        for item in value:
            out.append(write_wire(wire_kind, item, flags))
        return

    if kind == TagType.LIST:
        if not value:
            out.append(_EMPTY_LIST)
            return
        out.append(bytes([value[0].kind]))
        out.append(write_wire(INT32, len(value), flags))
        for child in value:
            _encode_tag(child, flags, True, out)
        return

    if kind == TagType.COMPOUND:
        for child in value:
            _encode_tag(child, flags, False, out)
        out.append(bytes([TagType.END]))
        return

    if kind == TagType.END:
        out.append(write_wire(INT8, 0, flags))
        return

    raise AssertionError("unhandled tag kind {!r}".format(kind))


def serialize(tag: Tag, flags: int = SerializationFlag.NONE) -> bytes:
    """Encode a tag tree to NBT bytes.

    With UNNAMED_ROOT_COMPONENT (JAVA_NETWORK) set, a COMPOUND root is
    written without its name.  Any other root keeps its name.

    END children are not representable: inside a COMPOUND the END kind
    byte reads back as the terminator, so the decoder ends the compound
    there and drops the members after it.
    """
    hide_name = (tag.kind == TagType.COMPOUND
                 and bool(flags & SerializationFlag.UNNAMED_ROOT_COMPONENT))
    out: List[bytes] = []
    _encode_tag(tag, flags, hide_name, out)
    return b"".join(out)
