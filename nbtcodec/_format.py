"""Canonical text rendering of a tag tree, for debugging and test output.

    Tag.compound([Tag.int(4, name="a"), Tag.string("x", name="b")], name="r")
    -> r: {a: 4, b: "x"}

Numbers carry an SNBT-like suffix (b, s, l, f); arrays use the [B;...],
[I;...] and [L;...] forms.  Floating values use the six-significant-digit
general format (%g), so 3.14159265359 renders as 3.14159.
"""

from __future__ import annotations

from typing import List

from ._constants import END_SENTINEL, TagType
from ._tag import Tag

_ESCAPES = str.maketrans({
    '"': '\\"',
    "\\": "\\\\",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
})

_SCALAR_SUFFIX = {
    TagType.BYTE: "b",
    TagType.SHORT: "s",
    TagType.INT: "",
    TagType.LONG: "l",
}

_ARRAY_FORM = {
    TagType.BYTE_ARRAY: ("[B;", "b"),
    TagType.INT_ARRAY: ("[I;", ""),
    TagType.LONG_ARRAY: ("[L;", "l"),
}


def _quote(text: str) -> str:
    return '"' + text.translate(_ESCAPES) + '"'


def _render(tag: Tag, out: List[str]) -> None:
    if tag.has_name:
        out.append(tag.name)
        out.append(": ")

    kind = tag.kind
    value = tag.value

    if kind in _SCALAR_SUFFIX:
        out.append("{}{}".format(value, _SCALAR_SUFFIX[kind]))
    elif kind == TagType.FLOAT:
        out.append("%gf" % value)
    elif kind == TagType.DOUBLE:
        out.append("%g" % value)
    elif kind == TagType.STRING:
        out.append(_quote(value))
    elif kind in _ARRAY_FORM:
        prefix, suffix = _ARRAY_FORM[kind]
        out.append(prefix)
        out.append(", ".join("{}{}".format(v, suffix) for v in value))
        out.append("]")
    elif kind == TagType.LIST or kind == TagType.COMPOUND:
        out.append("[" if kind == TagType.LIST else "{")
        for i, child in enumerate(value):
            if i:
                out.append(", ")
            _render(child, out)
        out.append("]" if kind == TagType.LIST else "}")
    elif kind == TagType.END:
        out.append(END_SENTINEL)
    else:
        raise AssertionError("unhandled tag kind {!r}".format(kind))


def stringify(tag: Tag) -> str:
    """Render a tag tree as text.  Pure; the same tree always gives the same string."""
    out: List[str] = []
    _render(tag, out)
    return "".join(out)
