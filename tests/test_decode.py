"""Decoder tests: round trips, truncation safety, corrupt lengths, list
leniency, nesting limits and the strict entry point.
"""

from __future__ import annotations

import math
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nbtcodec import (
    ERR_LIMIT_DEPTH,
    ERR_LIST_TYPE,
    ERR_TRAILING,
    ERR_TRUNCATED,
    ERR_UNKNOWN_TYPE,
    NbtDecodeError,
    SerializationFlag,
    Tag,
    TagType,
    deserialize,
    deserialize_strict,
    serialize,
    stringify,
)

ALL_FLAGS = [
    SerializationFlag.NONE,
    SerializationFlag.BEDROCK,
    SerializationFlag.JAVA_NETWORK,
    SerializationFlag.BEDROCK | SerializationFlag.JAVA_NETWORK,
]


def hx(s: str) -> bytes:
    return bytes.fromhex(s)


def sample_tree(name="root"):
    """One of everything, with lists of several element kinds."""
    return Tag.compound([
        Tag.byte(-128, name="byte"),
        Tag.short(-32768, name="short"),
        Tag.int(2**31 - 1, name="int"),
        Tag.long(-(2**63), name="long"),
        Tag.float(0.1, name="float"),
        Tag.double(math.pi, name="double"),
        Tag.double(math.nan, name="nan"),
        Tag.byte_array(b"\x00\x7f\x80\xff", name="bytes"),
        Tag.string("héllo ☃", name="string"),
        Tag.string("", name=""),
        Tag.list([Tag.int(1), Tag.int(2), Tag.int(3)], name="ints"),
        Tag.list([
            Tag.compound([Tag.string("a", name="id")]),
            Tag.compound([]),
        ], name="compounds"),
        Tag.list([Tag.list([Tag.short(1)]), Tag.list([])], name="nested"),
        Tag.list([], name="empty"),
        Tag.compound([Tag.compound([Tag.long(7, name="deep")], name="inner")], name="outer"),
        Tag.int_array([0, -1, 2**31 - 1], name="int_array"),
        Tag.long_array([-(2**63), 2**63 - 1], name="long_array"),
    ], name=name)


# ── Round trips ───────────────────────────────────────────────

class TestRoundTrip(unittest.TestCase):
    def test_sample_tree_all_flags(self):
        for flags in ALL_FLAGS:
            with self.subTest(flags=flags):
                decoded = deserialize(serialize(sample_tree(), flags), flags=flags)
                self.assertTrue(decoded.is_valid())
                if flags & SerializationFlag.JAVA_NETWORK:
                    self.assertEqual(decoded, sample_tree(name=None))
                else:
                    self.assertEqual(decoded, sample_tree())

    def test_scalar_roots_all_flags(self):
        roots = [
            Tag.byte(5, name="b"),
            Tag.short(-300, name="s16"),
            Tag.int(123456, name=""),
            Tag.long(2**40, name="l"),
            Tag.float(-1.5, name="f"),
            Tag.double(1e-300, name="d"),
            Tag.string("x" * 300, name="s"),
            Tag.int_array([], name="ia"),
        ]
        for flags in ALL_FLAGS:
            for tag in roots:
                with self.subTest(flags=flags, kind=tag.kind):
                    decoded = deserialize(serialize(tag, flags), flags=flags)
                    self.assertTrue(decoded.is_valid())
                    self.assertEqual(decoded, tag)

    def test_unnamed_scalar_root_gets_empty_name(self):
        decoded = deserialize(serialize(Tag.int(1)))
        self.assertTrue(decoded.has_name)
        self.assertEqual(decoded.name, "")

    def test_exact_layout_decodes(self):
        tag = deserialize(hx("03 0003 696e74 00000004"))
        self.assertTrue(tag.is_valid())
        self.assertEqual(tag.kind, TagType.INT)
        self.assertEqual(tag.name, "int")
        self.assertEqual(tag.int_value(), 4)

    def test_static_method_matches_function(self):
        data = serialize(sample_tree())
        self.assertEqual(Tag.deserialize(data), deserialize(data))

    def test_unnamed_root_is_read_without_name(self):
        data = serialize(Tag.compound([Tag.int(1, name="a")], name="root"),
                         SerializationFlag.JAVA_NETWORK)
        decoded = deserialize(data, flags=SerializationFlag.JAVA_NETWORK)
        self.assertTrue(decoded.is_valid())
        self.assertFalse(decoded.has_name)
        self.assertEqual(decoded.compound_value()[0].int_value(), 1)

    def test_buffer_types(self):
        data = serialize(sample_tree())
        for buf in (bytearray(data), memoryview(data)):
            with self.subTest(type=type(buf).__name__):
                self.assertEqual(deserialize(buf), sample_tree())

    def test_invalid_utf8_survives_round_trip(self):
        data = hx("08 0000 0002 fffe")
        tag = deserialize(data)
        self.assertTrue(tag.is_valid())
        self.assertEqual(serialize(tag), data)


# ── Truncation and range bounds ───────────────────────────────

class TestTruncation(unittest.TestCase):
    def test_every_prefix_is_invalid(self):
        for flags in ALL_FLAGS:
            full = serialize(sample_tree(), flags)
            for k in range(len(full)):
                with self.subTest(flags=flags, k=k):
                    self.assertFalse(deserialize(full[:k], flags=flags).is_valid())
            self.assertTrue(deserialize(full, flags=flags).is_valid())

    def test_range_end_bounds_reads(self):
        """Decoding with range_end behaves exactly like decoding the prefix."""
        full = serialize(sample_tree())
        for k in range(0, len(full), 7):
            with self.subTest(k=k):
                bounded = deserialize(full, k)
                prefix = deserialize(full[:k])
                self.assertFalse(bounded.is_valid())
                self.assertEqual(bounded.fault, prefix.fault)
                self.assertEqual(stringify(bounded), stringify(prefix))

    def test_empty_input(self):
        tag = deserialize(b"")
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.kind, TagType.END)
        self.assertEqual(tag.fault, ERR_TRUNCATED)

    def test_partial_structure_is_kept(self):
        full = serialize(Tag.compound([
            Tag.int(1, name="a"),
            Tag.int(2, name="b"),
        ], name="c"))
        tag = deserialize(full[:-3])
        self.assertFalse(tag.is_valid())
        children = tag.compound_value()
        self.assertEqual(children[0], Tag.int(1, name="a"))
        self.assertFalse(children[1].is_valid())
        self.assertEqual(children[1].name, "b")

    def test_fault_propagates_to_root(self):
        full = serialize(Tag.compound([
            Tag.list([Tag.compound([Tag.long(1, name="x")])], name="l"),
        ], name="r"))
        tag = deserialize(full[:-5])
        self.assertFalse(tag.is_valid())
        inner_list = tag.compound_value()[0]
        self.assertFalse(inner_list.is_valid())
        self.assertFalse(inner_list.list_value()[0].is_valid())

    def test_range_end_shorter_than_buffer(self):
        first = serialize(Tag.int(4, name="int"))
        data = first + b"\xde\xad\xbe\xef"
        self.assertTrue(deserialize(data, len(first)).is_valid())
        self.assertFalse(deserialize(data, len(first) - 1).is_valid())

    def test_range_end_past_buffer_is_clamped(self):
        data = serialize(Tag.int(4, name="int"))
        self.assertTrue(deserialize(data, len(data) + 100).is_valid())
        self.assertFalse(deserialize(data[:-1], len(data) + 100).is_valid())

    def test_fault_is_logged(self):
        with self.assertLogs("nbtcodec._decode", "DEBUG") as logs:
            deserialize(hx("03 0000 0000"))
        self.assertIn(ERR_TRUNCATED, logs.output[0])


# ── Corrupt length fields ─────────────────────────────────────

class TestLengths(unittest.TestCase):
    def test_negative_int_array_length_clamps_to_zero(self):
        tag = deserialize(hx("0b 0000 80000000"))
        self.assertEqual(tag.int_array_value(), ())
        self.assertTrue(tag.is_valid())

    def test_negative_byte_array_and_list_lengths(self):
        self.assertEqual(deserialize(hx("07 0000 ffffffff")).byte_array_value(), ())
        self.assertEqual(deserialize(hx("0c 0000 80000000")).long_array_value(), ())
        self.assertEqual(deserialize(hx("09 0000 03 ffffffff")).list_value(), ())

    def test_oversized_array_keeps_what_was_read(self):
        tag = deserialize(hx("0b 0000 7fffffff 00000001 00000002 0000"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.fault, ERR_TRUNCATED)
        self.assertEqual(tag.int_array_value(), (1, 2))

    def test_oversized_byte_array(self):
        tag = deserialize(hx("07 0000 7fffffff 01 02 ff"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.byte_array_value(), (1, 2, -1))

    def test_oversized_list_count_stops_at_range_end(self):
        tag = deserialize(hx("09 0000 03 7fffffff 03 00000001"))
        self.assertFalse(tag.is_valid())
        children = tag.list_value()
        self.assertEqual(children[0].int_value(), 1)
        self.assertLessEqual(len(children), 2)

    def test_string_longer_than_range(self):
        tag = deserialize(hx("08 0000 0010 6869"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.string_value(), "")

    def test_truncated_name_keeps_kind(self):
        tag = deserialize(hx("03 0005 6869"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.kind, TagType.INT)
        self.assertEqual(tag.int_value(), 0)


# ── List element kinds ────────────────────────────────────────

class TestListTypes(unittest.TestCase):
    def test_heterogeneous_list_is_invalid(self):
        tag = deserialize(hx("09 0000 03 00000002 03 00000001 08 0002 6869"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.fault, ERR_LIST_TYPE)

    def test_decoding_continues_after_mismatch(self):
        tag = deserialize(hx(
            "09 0000 03 00000003 03 00000001 08 0002 6869 03 00000003"))
        self.assertFalse(tag.is_valid())
        children = tag.list_value()
        self.assertEqual(len(children), 3)
        self.assertEqual(children[1].string_value(), "hi")
        self.assertTrue(children[1].is_valid())
        self.assertEqual(children[2].int_value(), 3)

    def test_declared_kind_must_match_every_element(self):
        tag = deserialize(hx("09 0000 08 00000001 03 00000001"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.list_value()[0].int_value(), 1)

    def test_missing_element_kind_byte(self):
        tag = deserialize(hx("09 0000"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.list_value(), ())


# ── Unknown type ids ──────────────────────────────────────────

class TestUnknownType(unittest.TestCase):
    def test_root(self):
        tag = deserialize(hx("0d 0000"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.fault, ERR_UNKNOWN_TYPE)
        self.assertEqual(tag.kind, TagType.END)

    def test_inside_compound(self):
        tag = deserialize(hx("0a 0000 03 0001 61 00000001 ff 00"))
        self.assertFalse(tag.is_valid())
        self.assertEqual(tag.fault, ERR_UNKNOWN_TYPE)
        self.assertEqual(tag.compound_value(), (Tag.int(1, name="a"),))


# ── Nesting limit ─────────────────────────────────────────────

def nested_lists(levels: int) -> Tag:
    tag = Tag.list([])
    for _ in range(levels):
        tag = Tag.list([tag])
    return tag


class TestDepthLimit(unittest.TestCase):
    def test_at_limit(self):
        tag = nested_lists(9)
        self.assertTrue(deserialize(serialize(tag), max_depth=10).is_valid())

    def test_past_limit(self):
        decoded = deserialize(serialize(nested_lists(10)), max_depth=10)
        self.assertFalse(decoded.is_valid())
        self.assertEqual(decoded.fault, ERR_LIMIT_DEPTH)

    def test_compounds_count_too(self):
        tag = Tag.compound([])
        for i in range(5):
            tag = Tag.compound([tag], name="c{}".format(i))
        self.assertFalse(deserialize(serialize(tag), max_depth=3).is_valid())
        self.assertTrue(deserialize(serialize(tag), max_depth=6).is_valid())

    def test_default_limit_stops_deep_input(self):
        decoded = deserialize(serialize(nested_lists(600)))
        self.assertFalse(decoded.is_valid())
        self.assertEqual(decoded.fault, ERR_LIMIT_DEPTH)

    def test_hand_built_deep_input(self):
        """No RecursionError for input far deeper than the limit."""
        data = hx("09 0000 09 00000001") + hx("09 09 00000001") * 5000
        decoded = deserialize(data)
        self.assertFalse(decoded.is_valid())


# ── Strict mode ───────────────────────────────────────────────

class TestStrict(unittest.TestCase):
    def test_valid(self):
        data = serialize(sample_tree())
        self.assertEqual(deserialize_strict(data), sample_tree())

    def test_truncated(self):
        data = serialize(sample_tree())
        with self.assertRaises(NbtDecodeError) as ctx:
            deserialize_strict(data[:-1])
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)
        self.assertEqual(ctx.exception.offset, len(data) - 1)
        self.assertIsNotNone(ctx.exception.tag)

    def test_is_a_value_error(self):
        with self.assertRaises(ValueError):
            deserialize_strict(b"")

    def test_trailing_bytes(self):
        data = serialize(Tag.int(1, name="a")) + b"\x00"
        self.assertTrue(deserialize_strict(data).is_valid())
        with self.assertRaises(NbtDecodeError) as ctx:
            deserialize_strict(data, allow_trailing=False)
        self.assertEqual(ctx.exception.code, ERR_TRAILING)
        self.assertEqual(ctx.exception.offset, len(data) - 1)


if __name__ == "__main__":
    unittest.main()
