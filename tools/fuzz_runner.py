#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Decoder robustness fuzzing.
#
# Each round picks one of:
#   A) a random well-formed tree -> serialize -> deserialize, must round-trip
#   B) that tree's bytes with random byte flips / truncation / insertion,
#      deserialize must return a Tag and never raise
#   C) pure random bytes, same requirement as B
#
# Any violation prints a minimal repro payload and exits non-zero.

import os, sys, base64, random
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from nbtcodec import SerializationFlag, Tag, TagType, deserialize, serialize

SEED = int(os.environ.get("NBT_SEED", "4242"))
ROUNDS = int(os.environ.get("NBT_FUZZ_ROUNDS", "5000"))
MAX_GEN_DEPTH = int(os.environ.get("NBT_GEN_MAX_DEPTH", "5"))

random.seed(SEED)

FLAG_CHOICES = [0, 1, 2, 3]

def b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def violation(label: str, ctx: Dict[str, Any]) -> None:
    print("VIOLATION:", label)
    for k, v in ctx.items():
        print("  {}: {}".format(k, v))
    raise SystemExit(1)

# --- generators ---

def rand_name() -> str:
    n = random.randint(0, 10)
    return "".join(chr(random.randint(0x20, 0x7E)) for _ in range(n))

def rand_text() -> str:
    out = []
    for _ in range(random.randint(0, 20)):
        r = random.random()
        if r < 0.8:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0xA0, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_int(bits: int) -> int:
    return random.randint(-(2 ** (bits - 1)), 2 ** (bits - 1) - 1)

SCALAR_KINDS = [TagType.BYTE, TagType.SHORT, TagType.INT, TagType.LONG,
                TagType.FLOAT, TagType.DOUBLE, TagType.BYTE_ARRAY,
                TagType.STRING, TagType.INT_ARRAY, TagType.LONG_ARRAY]

def rand_scalar(kind: TagType, name) -> Tag:
    if kind == TagType.BYTE:
        return Tag.byte(rand_int(8), name=name)
    if kind == TagType.SHORT:
        return Tag.short(rand_int(16), name=name)
    if kind == TagType.INT:
        return Tag.int(rand_int(32), name=name)
    if kind == TagType.LONG:
        return Tag.long(rand_int(64), name=name)
    if kind == TagType.FLOAT:
        return Tag.float(random.uniform(-1e6, 1e6), name=name)
    if kind == TagType.DOUBLE:
        return Tag.double(random.uniform(-1e300, 1e300), name=name)
    if kind == TagType.BYTE_ARRAY:
        return Tag.byte_array(bytes(random.getrandbits(8) for _ in range(random.randint(0, 16))), name=name)
    if kind == TagType.STRING:
        return Tag.string(rand_text(), name=name)
    if kind == TagType.INT_ARRAY:
        return Tag.int_array([rand_int(32) for _ in range(random.randint(0, 8))], name=name)
    return Tag.long_array([rand_int(64) for _ in range(random.randint(0, 8))], name=name)

def rand_tag(depth: int, kind=None, name=None) -> Tag:
    if kind is None:
        r = random.random()
        if depth >= MAX_GEN_DEPTH or r < 0.5:
            kind = random.choice(SCALAR_KINDS)
        elif r < 0.75:
            kind = TagType.COMPOUND
        else:
            kind = TagType.LIST
    if kind == TagType.COMPOUND:
        children = [rand_tag(depth + 1, name=rand_name()) for _ in range(random.randint(0, 5))]
        return Tag.compound(children, name=name)
    if kind == TagType.LIST:
        # Homogeneous: one element kind per list.
        n = random.randint(0, 5)
        elem_kind = random.choice(SCALAR_KINDS + [TagType.COMPOUND, TagType.LIST])
        if depth >= MAX_GEN_DEPTH:
            elem_kind = random.choice(SCALAR_KINDS)
        return Tag.list([rand_tag(depth + 1, kind=elem_kind) for _ in range(n)], name=name)
    return rand_scalar(kind, name)

def mutate(data: bytes) -> bytes:
    b = bytearray(data)
    for _ in range(random.randint(1, 4)):
        r = random.random()
        if r < 0.5 and b:
            i = random.randrange(len(b))
            b[i] = random.getrandbits(8)
        elif r < 0.75 and b:
            del b[random.randrange(len(b)):]
        else:
            i = random.randint(0, len(b))
            b[i:i] = bytes(random.getrandbits(8) for _ in range(random.randint(1, 4)))
    return bytes(b)

def check_no_raise(label: str, data: bytes, flags: int, ctx: Dict[str, Any]) -> None:
    try:
        tag = deserialize(data, flags=flags)
    except Exception as e:  # any exception at all is the bug being hunted
        ctx.update({"flags": flags, "input_b64": b64(data), "error": repr(e)})
        violation(label, ctx)
    if not isinstance(tag, Tag):
        ctx.update({"flags": flags, "input_b64": b64(data)})
        violation(label + " (no Tag returned)", ctx)

def main() -> int:
    for i in range(ROUNDS):
        flags = random.choice(FLAG_CHOICES)
        tree = rand_tag(0, kind=TagType.COMPOUND, name=rand_name())
        data = serialize(tree, flags)
        r = random.random()

        # A) round trip
        if r < 0.40:
            back = deserialize(data, flags=flags)
            if flags & SerializationFlag.JAVA_NETWORK:
                tree.set_name(None)
            if not back.is_valid() or back != tree:
                violation("A round trip", {"round": i, "flags": flags, "input_b64": b64(data)})
            continue

        # B) mutated encodings
        if r < 0.85:
            check_no_raise("B mutated", mutate(data), flags, {"round": i})
            continue

        # C) random bytes
        raw = bytes(random.getrandbits(8) for _ in range(random.randint(0, 64)))
        check_no_raise("C random", raw, flags, {"round": i})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no violations)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
