"""NBT fault codes and exception classes.

Two fault classes exist and must not be confused:

* Decode faults (truncated input, bad type ids, heterogeneous lists,
  excessive nesting).  ``deserialize`` never raises for these; it marks the
  affected tags invalid and records the first fault's code.  Only the strict
  entry point turns them into an ``NbtDecodeError``.
* Programmer faults (asking a tag for a payload of the wrong kind).  These
  always raise ``TagTypeMismatch``.
"""

from __future__ import annotations

from typing import Any, Optional

# ── Decode fault codes ───────────────────────────────────────

ERR_TRUNCATED: str = "ERR_TRUNCATED"          # read past the range end
ERR_UNKNOWN_TYPE: str = "ERR_UNKNOWN_TYPE"    # type id outside 0..12
ERR_LIST_TYPE: str = "ERR_LIST_TYPE"          # list element of the wrong kind
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"      # nesting beyond max_depth
ERR_TRAILING: str = "ERR_TRAILING"            # bytes after the root (strict)

# ── Programmer fault codes ───────────────────────────────────

ERR_TYPE_MISMATCH: str = "ERR_TYPE_MISMATCH"  # typed accessor on wrong kind


class NbtError(Exception):
    """Base class for nbtcodec errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


class TagTypeMismatch(NbtError, TypeError):
    """A typed accessor was called on a tag of a different kind."""

    def __init__(self, expected: Any, actual: Any) -> None:
        super().__init__(
            ERR_TYPE_MISMATCH,
            "expected {} tag, got {}".format(expected.name, actual.name),
        )
        self.expected = expected
        self.actual = actual


class NbtDecodeError(NbtError, ValueError):
    """Raised by the strict decoder for the first recorded decode fault."""

    def __init__(self, code: str, offset: int, msg: str = "",
                 tag: Optional[Any] = None) -> None:
        super().__init__(code, msg or "{} at offset {}".format(code, offset))
        self.offset = offset
        # The partially decoded tree, for callers that want to inspect it.
        self.tag = tag
