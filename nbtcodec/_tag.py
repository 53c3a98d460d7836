"""The NBT tag tree model.

A Tag is one node: a kind (TagType), a payload that always agrees with the
kind, an optional name, and a sticky validity flag set by the decoder.

Payload domains, by kind:

    END                           None
    BYTE / SHORT / INT / LONG     int, wrapped to 8/16/32/64-bit signed
    FLOAT                         float, rounded to binary32
    DOUBLE                        float
    BYTE_ARRAY                    tuple of int, each 8-bit signed
    STRING                        str
    LIST / COMPOUND               tuple of Tag
    INT_ARRAY / LONG_ARRAY        tuple of int, each 32/64-bit signed

Constructors coerce into these domains instead of failing, so a tree built
in memory always serializes.  Passing a value of the wrong Python type (a
str where a number belongs, a non-Tag child) is a programmer error and
raises TypeError.

Sequences are stored as tuples, so a payload can only be changed by
building a new tag.
"""

from __future__ import annotations

import math
import numbers
import operator
import struct
from typing import Any, Iterable, Optional, SupportsFloat, SupportsInt, Tuple, Union

from ._constants import INT_BITS, TagType
from ._errors import TagTypeMismatch

_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")


# ── Value coercion ───────────────────────────────────────────

def _wrap_int(value: Any, bits: int) -> int:
    """Two's-complement wrap of an integer into `bits` signed bits."""
    v = operator.index(value)
    mask = (1 << bits) - 1
    v &= mask
    if v >> (bits - 1):
        v -= 1 << bits
    return v


def _check_real(value: Any) -> float:
    if not isinstance(value, numbers.Real):
        raise TypeError("expected a real number, got {}".format(type(value).__name__))
    return float(value)


def _to_float32(value: Any) -> float:
    """Round to the nearest binary32 value.  Out-of-range values saturate to inf."""
    v = _check_real(value)
    try:
        return _F32.unpack(_F32.pack(v))[0]
    except OverflowError:
        return math.copysign(math.inf, v)


def _coerce_int(kind: TagType, value: Any) -> int:
    return _wrap_int(value, INT_BITS[kind])


def _coerce_ints(kind: TagType, value: Iterable[Any]) -> Tuple[int, ...]:
    # bytes iterate as unsigned 0..255; wrapping maps them onto -128..127.
    bits = INT_BITS[kind]
    return tuple(_wrap_int(v, bits) for v in value)


def _coerce_children(value: Iterable["Tag"]) -> Tuple["Tag", ...]:
    children = tuple(value)
    for child in children:
        if not isinstance(child, Tag):
            raise TypeError("container children must be Tag, got {}".format(
                type(child).__name__))
    return children


def _check_name(name: Optional[str]) -> Optional[str]:
    if name is not None and not isinstance(name, str):
        raise TypeError("tag name must be str or None")
    return name


def _float_bits(kind: TagType, value: float) -> bytes:
    return (_F32 if kind == TagType.FLOAT else _F64).pack(value)


class Tag:
    """One node of an NBT tree.

    Build trees with the typed classmethods::

        Tag.compound([
            Tag.int(4, name="int"),
            Tag.list([Tag.string("a"), Tag.string("b")], name="letters"),
        ], name="root")

    and read payloads back with the matching ``*_value()`` accessor.  An
    accessor for another kind raises TagTypeMismatch.
    """

    __slots__ = ("_kind", "_value", "_name", "_has_name", "_valid", "_fault")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        raise TypeError("build tags with the typed constructors, e.g. Tag.int(4)")

    @classmethod
    def _make(cls, kind: TagType, value: Any, name: Optional[str] = None) -> "Tag":
        # Unchecked: value must already be in kind's domain.
        tag = cls.__new__(cls)
        tag._kind = kind
        tag._value = value
        tag._has_name = name is not None
        tag._name = name if name is not None else ""
        tag._valid = True
        tag._fault = None
        return tag

    # ── Introspection ─────────────────────────────────────────

    @property
    def kind(self) -> TagType:
        return self._kind

    @property
    def value(self) -> Any:
        """The raw payload, whatever the kind."""
        return self._value

    @property
    def name(self) -> str:
        return self._name

    @property
    def has_name(self) -> bool:
        return self._has_name

    def set_name(self, name: Optional[str]) -> None:
        """Rename the tag.  None removes the name (has_name becomes False)."""
        _check_name(name)
        self._has_name = name is not None
        self._name = name if name is not None else ""

    def is_valid(self) -> bool:
        return self._valid

    @property
    def fault(self) -> Optional[str]:
        """ERR_* code of the first decode fault on this node, if any."""
        return self._fault

    def _mark_invalid(self, code: str) -> None:
        # Sticky: the first code wins and validity is never restored.
        if self._valid:
            self._valid = False
            self._fault = code

    # ── Typed accessors ───────────────────────────────────────

    def _expect(self, kind: TagType) -> Any:
        if self._kind != kind:
            raise TagTypeMismatch(kind, self._kind)
        return self._value

    def byte_value(self) -> int:
        return self._expect(TagType.BYTE)

    def short_value(self) -> int:
        return self._expect(TagType.SHORT)

    def int_value(self) -> int:
        return self._expect(TagType.INT)

    def long_value(self) -> int:
        return self._expect(TagType.LONG)

    def float_value(self) -> float:
        return self._expect(TagType.FLOAT)

    def double_value(self) -> float:
        return self._expect(TagType.DOUBLE)

    def byte_array_value(self) -> Tuple[int, ...]:
        return self._expect(TagType.BYTE_ARRAY)

    def string_value(self) -> str:
        return self._expect(TagType.STRING)

    def list_value(self) -> Tuple["Tag", ...]:
        return self._expect(TagType.LIST)

    def compound_value(self) -> Tuple["Tag", ...]:
        return self._expect(TagType.COMPOUND)

    def int_array_value(self) -> Tuple[int, ...]:
        return self._expect(TagType.INT_ARRAY)

    def long_array_value(self) -> Tuple[int, ...]:
        return self._expect(TagType.LONG_ARRAY)

    # ── Codec shortcuts ───────────────────────────────────────
    # Late imports: the codec modules import this one.

    def serialize(self, flags: int = 0) -> bytes:
        from ._encode import serialize
        return serialize(self, flags)

    def stringify(self) -> str:
        from ._format import stringify
        return stringify(self)

    @staticmethod
    def deserialize(data: Union[bytes, bytearray, memoryview],
                    range_end: Optional[int] = None, flags: int = 0) -> "Tag":
        from ._decode import deserialize
        return deserialize(data, range_end, flags)

    # ── Comparison and display ────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        if (self._kind != other._kind or self._has_name != other._has_name
                or self._name != other._name):
            return False
        if self._kind in (TagType.FLOAT, TagType.DOUBLE):
            # Bit-exact, so NaN payloads compare equal to themselves.
            return (_float_bits(self._kind, self._value)
                    == _float_bits(other._kind, other._value))
        return self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        parts = [self._kind.name]
        if self._has_name:
            parts.append("name={!r}".format(self._name))
        if self._kind == TagType.LIST or self._kind == TagType.COMPOUND:
            parts.append("children={}".format(len(self._value)))
        elif self._kind != TagType.END:
            parts.append("value={!r}".format(self._value))
        if not self._valid:
            parts.append("fault={}".format(self._fault))
        return "Tag({})".format(", ".join(parts))

    def __str__(self) -> str:
        return self.stringify()

    # ── Typed constructors ────────────────────────────────────
    # Kept last in the class body: several of them share a name with a
    # builtin type.

    @classmethod
    def end(cls) -> "Tag":
        return cls._make(TagType.END, None)

    @classmethod
    def byte(cls, value: SupportsInt, name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.BYTE, _coerce_int(TagType.BYTE, value), _check_name(name))

    @classmethod
    def short(cls, value: SupportsInt, name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.SHORT, _coerce_int(TagType.SHORT, value), _check_name(name))

    @classmethod
    def int(cls, value: SupportsInt, name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.INT, _coerce_int(TagType.INT, value), _check_name(name))

    @classmethod
    def long(cls, value: SupportsInt, name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.LONG, _coerce_int(TagType.LONG, value), _check_name(name))

    @classmethod
    def float(cls, value: SupportsFloat, name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.FLOAT, _to_float32(value), _check_name(name))

    @classmethod
    def double(cls, value: SupportsFloat, name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.DOUBLE, _check_real(value), _check_name(name))

    @classmethod
    def byte_array(cls, value: Union[bytes, bytearray, Iterable[SupportsInt]],
                   name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.BYTE_ARRAY, _coerce_ints(TagType.BYTE_ARRAY, value),
                         _check_name(name))

    @classmethod
    def string(cls, value: str, name: Optional[str] = None) -> "Tag":
        if not isinstance(value, str):
            raise TypeError("string tag payload must be str")
        return cls._make(TagType.STRING, value, _check_name(name))

    @classmethod
    def list(cls, value: Iterable["Tag"], name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.LIST, _coerce_children(value), _check_name(name))

    @classmethod
    def compound(cls, value: Iterable["Tag"], name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.COMPOUND, _coerce_children(value), _check_name(name))

    @classmethod
    def int_array(cls, value: Iterable[SupportsInt], name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.INT_ARRAY, _coerce_ints(TagType.INT_ARRAY, value),
                         _check_name(name))

    @classmethod
    def long_array(cls, value: Iterable[SupportsInt], name: Optional[str] = None) -> "Tag":
        return cls._make(TagType.LONG_ARRAY, _coerce_ints(TagType.LONG_ARRAY, value),
                         _check_name(name))
