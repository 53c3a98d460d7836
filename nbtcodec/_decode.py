"""NBT binary decoder.

The decoder never raises on bad input.  It always returns a Tag; faults
mark the tag (and every enclosing tag) invalid and keep whatever structure
was parsed before the fault.

All reads go through a DecodeContext holding the cursor and the exclusive
range end.  Every read checks ``pos + size <= end`` first and, if that
fails, records the fault and leaves the cursor where it is.  Nothing is
ever read past ``end``, whatever the length fields claim.

Loops are bounded by the range, not by the length fields:

  * array lengths are clamped to >= 0 and only elements that fit are read;
  * a list stops once a child consumes no bytes (range exhausted);
  * a compound stops at its END terminator or at the first faulted child.

Nesting deeper than ``max_depth`` is a fault as well.  Each nesting level
costs one Python frame (_read_tag), so the default limit sits well inside
the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple, Union

from ._constants import (
    ARRAY_WIRE_KIND,
    INT32,
    MAX_DEPTH,
    SCALAR_WIRE_KIND,
    UINT16,
    SerializationFlag,
    TagType,
)
from ._endian import Number, read_wire, width
from ._errors import (
    ERR_LIMIT_DEPTH,
    ERR_LIST_TYPE,
    ERR_TRAILING,
    ERR_TRUNCATED,
    ERR_UNKNOWN_TYPE,
    NbtDecodeError,
)
from ._tag import Tag

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]

_MAX_TYPE_ID = max(TagType)


def _default_payload(kind: TagType) -> Any:
    """Zero value of a kind, used when its payload could not be read."""
    if kind in (TagType.FLOAT, TagType.DOUBLE):
        return 0.0
    if kind in SCALAR_WIRE_KIND:
        return 0
    if kind == TagType.STRING:
        return ""
    if kind == TagType.END:
        return None
    return ()


class DecodeContext:
    """Cursor state for one decode call.

    Created fresh per call, so concurrent decodes of different buffers share
    nothing.  ``fault``/``fault_offset`` hold the first fault seen anywhere
    in the tree; per-tag validity lives on the tags themselves.
    """

    __slots__ = ("data", "pos", "end", "flags", "max_depth",
                 "fault", "fault_offset")

    def __init__(self, data: Buffer, range_end: Optional[int] = None,
                 flags: int = SerializationFlag.NONE,
                 max_depth: int = MAX_DEPTH) -> None:
        view = memoryview(data)
        if view.ndim != 1 or view.format != "B":
            view = view.cast("B")
        self.data = view
        limit = len(view)
        if range_end is None or range_end > limit:
            range_end = limit
        self.end = max(range_end, 0)
        self.pos = 0
        self.flags = flags
        self.max_depth = max_depth
        self.fault: Optional[str] = None
        self.fault_offset = 0

    @property
    def remaining(self) -> int:
        return self.end - self.pos

    def fail(self, tag: Tag, code: str) -> None:
        """Mark `tag` invalid and remember the first fault of the whole decode."""
        tag._mark_invalid(code)
        if self.fault is None:
            self.fault = code
            self.fault_offset = self.pos
            logger.debug("decode fault %s at offset %d", code, self.pos)

    def read_u8(self) -> Optional[int]:
        if self.pos + 1 > self.end:
            return None
        b = self.data[self.pos]
        self.pos += 1
        return b

    def read_number(self, kind: str) -> Optional[Number]:
        size = width(kind)
        if self.pos + size > self.end:
            return None
        val = read_wire(kind, self.data, self.pos, self.flags)
        self.pos += size
        return val

    def read_bytes(self, n: int) -> Optional[memoryview]:
        if self.pos + n > self.end:
            return None
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def read_text(self) -> Optional[str]:
        """uint16 byte length followed by that many UTF-8 bytes."""
        n = self.read_number(UINT16)
        if n is None:
            return None
        raw = self.read_bytes(n)
        if raw is None:
            return None
        # No well-formedness check; surrogateescape keeps the bytes intact.
        return bytes(raw).decode("utf-8", errors="surrogateescape")


def _read_array(ctx: DecodeContext, tag: Tag, kind: TagType) -> Tuple[int, ...]:
    n = ctx.read_number(INT32)
    if n is None:
        ctx.fail(tag, ERR_TRUNCATED)
        return ()
    # A negative length is corruption, not a request for a huge buffer.
    n = max(n, 0)

    if kind == TagType.BYTE_ARRAY:
        fit = min(n, ctx.remaining)
        values = tuple(ctx.read_bytes(fit).cast("b"))
    else:
        wire_kind = ARRAY_WIRE_KIND[kind]
        fit = min(n, ctx.remaining // width(wire_kind))
        values = tuple(ctx.read_number(wire_kind) for _ in range(fit))

    if fit < n:
        ctx.fail(tag, ERR_TRUNCATED)
    return values


def _read_tag(ctx: DecodeContext, hide_name: bool, is_root: bool, depth: int) -> Tag:
    type_id = ctx.read_u8()
    if type_id is None:
        tag = Tag._make(TagType.END, None)
        ctx.fail(tag, ERR_TRUNCATED)
        return tag
    if type_id > _MAX_TYPE_ID:
        tag = Tag._make(TagType.END, None)
        ctx.fail(tag, ERR_UNKNOWN_TYPE)
        return tag
    kind = TagType(type_id)

    if kind == TagType.END:
        hide_name = True
    elif (is_root and kind == TagType.COMPOUND
          and ctx.flags & SerializationFlag.UNNAMED_ROOT_COMPONENT):
        hide_name = True

    tag = Tag._make(kind, _default_payload(kind), None if hide_name else "")
    if not hide_name:
        name = ctx.read_text()
        if name is None:
            ctx.fail(tag, ERR_TRUNCATED)
            return tag
        tag._name = name

    if kind in SCALAR_WIRE_KIND:
        val = ctx.read_number(SCALAR_WIRE_KIND[kind])
        if val is None:
            ctx.fail(tag, ERR_TRUNCATED)
        else:
            tag._value = val

    elif kind == TagType.STRING:
        text = ctx.read_text()
        if text is None:
            ctx.fail(tag, ERR_TRUNCATED)
        else:
            tag._value = text

    elif kind in ARRAY_WIRE_KIND:
        tag._value = _read_array(ctx, tag, kind)

    elif kind == TagType.LIST:
        if depth + 1 > ctx.max_depth:
            ctx.fail(tag, ERR_LIMIT_DEPTH)
            return tag
        elem_id = ctx.read_u8()
        count = None if elem_id is None else ctx.read_number(INT32)
        if count is None:
            ctx.fail(tag, ERR_TRUNCATED)
            return tag

        children: List[Tag] = []
        for _ in range(max(count, 0)):
            before = ctx.pos
            child = _read_tag(ctx, True, False, depth + 1)
            # Bad elements are kept and decoding goes on; the list is just
            # marked invalid.
            if not child.is_valid():
                tag._mark_invalid(child.fault)
            elif child.kind != elem_id:
                ctx.fail(tag, ERR_LIST_TYPE)
            children.append(child)
            if ctx.pos == before:
                break
        tag._value = tuple(children)

    elif kind == TagType.COMPOUND:
        if depth + 1 > ctx.max_depth:
            ctx.fail(tag, ERR_LIMIT_DEPTH)
            return tag
        children = []
        while True:
            child = _read_tag(ctx, False, False, depth + 1)
            if not child.is_valid():
                tag._mark_invalid(child.fault)
            if child.kind == TagType.END:
                break
            children.append(child)
            if not tag.is_valid():
                break
        tag._value = tuple(children)

    # END: no payload bytes.
    return tag


def deserialize(data: Buffer, range_end: Optional[int] = None,
                flags: int = SerializationFlag.NONE, *,
                max_depth: int = MAX_DEPTH) -> Tag:
    """Decode one tag tree from ``data[:range_end]``.

    Never raises for malformed input: check ``is_valid()`` on the result.
    ``range_end`` defaults to ``len(data)`` and is clamped to it.  Bytes
    after the root tag are ignored.
    """
    ctx = DecodeContext(data, range_end, flags, max_depth)
    return _read_tag(ctx, False, True, 0)


def deserialize_strict(data: Buffer, range_end: Optional[int] = None,
                       flags: int = SerializationFlag.NONE, *,
                       max_depth: int = MAX_DEPTH,
                       allow_trailing: bool = True) -> Tag:
    """Like deserialize(), but raise NbtDecodeError on the first fault.

    With ``allow_trailing=False`` bytes left in the range after the root
    tag are an error too (ERR_TRAILING).
    """
    ctx = DecodeContext(data, range_end, flags, max_depth)
    tag = _read_tag(ctx, False, True, 0)
    if ctx.fault is not None:
        raise NbtDecodeError(ctx.fault, ctx.fault_offset, tag=tag)
    if not allow_trailing and ctx.pos != ctx.end:
        raise NbtDecodeError(
            ERR_TRAILING, ctx.pos,
            "{} trailing bytes after root tag".format(ctx.end - ctx.pos),
            tag=tag)
    return tag
