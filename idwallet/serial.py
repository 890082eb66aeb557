# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/serial.py

"""
Canonical binary and JSON encoding driven by per-type field tables.

Every encodable structure is a dataclass with a `FIELDS` class attribute that
lists `(field_name, codec)` pairs in wire order. A codec knows how to put a
value to bytes, read it back, and map it to and from JSON. Collections carry
an explicit fixed-width big-endian length prefix whose width is part of the
codec, so two implementations that agree on the tables produce identical
bytes for identical values.

Example:

    @dataclass
    class Cipher:
        c1: str
        c2: str

        FIELDS = (("c1", G1), ("c2", G1))

    compose(Cipher(a, b))        # 96 bytes
    decompose(Cipher, raw)       # Cipher(a, b)
"""

from typing import Any

from idwallet.bls12381 import G1_SIZE, G2_SIZE, SCALAR_SIZE, curve_order, uncompress
from idwallet.errors import SerialError


class Reader:
    """Cursor over a byte string that fails loudly on truncated input."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def take(self, n: int) -> bytes:
        if self.offset + n > len(self.data):
            raise SerialError(
                f"Unexpected end of input: wanted {n} bytes at offset {self.offset}"
            )
        chunk = self.data[self.offset : self.offset + n]
        self.offset += n
        return chunk

    def done(self) -> bool:
        return self.offset == len(self.data)


class Codec:
    def put(self, value: Any) -> bytes:
        raise NotImplementedError

    def get(self, reader: Reader) -> Any:
        raise NotImplementedError

    def to_json(self, value: Any) -> Any:
        return value

    def from_json(self, value: Any) -> Any:
        return value


class UInt(Codec):
    def __init__(self, width: int):
        if width not in (1, 2, 4, 8):
            raise ValueError("Length info must be a power of two between 1 and 8 inclusive.")
        self.width = width

    def put(self, value: int) -> bytes:
        try:
            return int(value).to_bytes(self.width, "big")
        except OverflowError as e:
            raise SerialError(f"{value} does not fit in {self.width} bytes") from e

    def get(self, reader: Reader) -> int:
        return int.from_bytes(reader.take(self.width), "big")

    def from_json(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise SerialError(f"Expected an integer, got {type(value).__name__}")
        try:
            n = int(value)
        except ValueError as e:
            raise SerialError(f"Expected an integer, got {value!r}") from e
        if n < 0 or n >= 1 << (8 * self.width):
            raise SerialError(f"{n} out of range for a {8 * self.width} bit integer")
        return n


class FixedBytes(Codec):
    def __init__(self, size: int):
        self.size = size

    def put(self, value: bytes) -> bytes:
        if len(value) != self.size:
            raise SerialError(f"Expected {self.size} bytes, got {len(value)}")
        return bytes(value)

    def get(self, reader: Reader) -> bytes:
        return reader.take(self.size)

    def to_json(self, value: bytes) -> str:
        return value.hex()

    def from_json(self, value: Any) -> bytes:
        return self.put(_from_hex(value))


class VarBytes(Codec):
    def __init__(self, width: int):
        self.length = UInt(width)

    def put(self, value: bytes) -> bytes:
        return self.length.put(len(value)) + bytes(value)

    def get(self, reader: Reader) -> bytes:
        return reader.take(self.length.get(reader))

    def to_json(self, value: bytes) -> str:
        return value.hex()

    def from_json(self, value: Any) -> bytes:
        return _from_hex(value)


class String(Codec):
    def __init__(self, width: int):
        self.length = UInt(width)

    def put(self, value: str) -> bytes:
        raw = value.encode("utf-8")
        return self.length.put(len(raw)) + raw

    def get(self, reader: Reader) -> str:
        raw = reader.take(self.length.get(reader))
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerialError(f"Invalid utf-8 string: {e}") from e

    def from_json(self, value: Any) -> str:
        if not isinstance(value, str):
            raise SerialError(f"Expected a string, got {type(value).__name__}")
        return value


class Point(Codec):
    """
    A compressed curve point kept as its hex string, the representation used by
    `idwallet.bls12381`. Decoding checks that the bytes are a valid point.
    """

    def __init__(self, size: int):
        self.size = size

    def put(self, value: str) -> bytes:
        raw = _from_hex(value)
        if len(raw) != self.size:
            raise SerialError(f"Expected a {self.size} byte point, got {len(raw)}")
        return raw

    def get(self, reader: Reader) -> str:
        element = reader.take(self.size).hex()
        uncompress(element)
        return element

    def from_json(self, value: Any) -> str:
        raw = self.put(value.lower() if isinstance(value, str) else value)
        uncompress(raw.hex())
        return raw.hex()


class Scalar(Codec):
    def put(self, value: int) -> bytes:
        return (value % curve_order).to_bytes(SCALAR_SIZE, "big")

    def get(self, reader: Reader) -> int:
        value = int.from_bytes(reader.take(SCALAR_SIZE), "big")
        if value >= curve_order:
            raise SerialError("Scalar is not reduced modulo the curve order")
        return value

    def to_json(self, value: int) -> str:
        return self.put(value).hex()

    def from_json(self, value: Any) -> int:
        return self.get(Reader(FixedBytes(SCALAR_SIZE).from_json(value)))


class ListOf(Codec):
    def __init__(self, item: Codec, width: int):
        self.item = item
        self.length = UInt(width)

    def put(self, value: list) -> bytes:
        return self.length.put(len(value)) + b"".join(self.item.put(v) for v in value)

    def get(self, reader: Reader) -> list:
        return [self.item.get(reader) for _ in range(self.length.get(reader))]

    def to_json(self, value: list) -> list:
        return [self.item.to_json(v) for v in value]

    def from_json(self, value: Any) -> list:
        if not isinstance(value, list):
            raise SerialError(f"Expected a list, got {type(value).__name__}")
        return [self.item.from_json(v) for v in value]


class MapOf(Codec):
    """
    Mapping with unsigned integer keys, always written in ascending key order.
    Decoding rejects unsorted or repeated keys.
    """

    def __init__(self, key: Codec, value: Codec, width: int):
        self.key = key
        self.value = value
        self.length = UInt(width)

    def put(self, value: dict) -> bytes:
        out = self.length.put(len(value))
        for k in sorted(value):
            out += self.key.put(k) + self.value.put(value[k])
        return out

    def get(self, reader: Reader) -> dict:
        out: dict = {}
        last = None
        for _ in range(self.length.get(reader)):
            k = self.key.get(reader)
            if last is not None and k <= last:
                raise SerialError("Map keys must be strictly increasing")
            out[k] = self.value.get(reader)
            last = k
        return out

    def to_json(self, value: dict) -> dict:
        return {str(self.key.to_json(k)): self.value.to_json(value[k]) for k in sorted(value)}

    def from_json(self, value: Any) -> dict:
        if not isinstance(value, dict):
            raise SerialError(f"Expected an object, got {type(value).__name__}")
        out: dict = {}
        for k, v in value.items():
            key = self.key.from_json(k)
            if key in out:
                raise SerialError(f"Duplicate map key {k!r}")
            out[key] = self.value.from_json(v)
        return out


class Struct(Codec):
    def __init__(self, cls: type):
        self.cls = cls

    def put(self, value: Any) -> bytes:
        return compose(value)

    def get(self, reader: Reader) -> Any:
        return read(self.cls, reader)

    def to_json(self, value: Any) -> Any:
        return to_json(value)

    def from_json(self, value: Any) -> Any:
        return from_json(self.cls, value)


class Tagged(Codec):
    """
    Two or more variants distinguished by a leading tag byte. JSON form is
    `{"type": <name>, "contents": <variant>}`.
    """

    def __init__(self, variants: dict[int, tuple[str, type]]):
        self.variants = variants

    def _lookup(self, value: Any) -> tuple[int, str]:
        for tag, (name, cls) in self.variants.items():
            if isinstance(value, cls):
                return tag, name
        raise SerialError(f"No variant for {type(value).__name__}")

    def put(self, value: Any) -> bytes:
        tag, _ = self._lookup(value)
        return bytes([tag]) + compose(value)

    def get(self, reader: Reader) -> Any:
        tag = reader.take(1)[0]
        if tag not in self.variants:
            raise SerialError(f"Unknown variant tag {tag}")
        return read(self.variants[tag][1], reader)

    def to_json(self, value: Any) -> dict:
        _, name = self._lookup(value)
        return {"type": name, "contents": to_json(value)}

    def from_json(self, value: Any) -> Any:
        if not isinstance(value, dict) or "type" not in value:
            raise SerialError("Expected a tagged object")
        for name, cls in self.variants.values():
            if name == value["type"]:
                return from_json(cls, value.get("contents", {}))
        raise SerialError(f"Unknown variant {value['type']!r}")


U8 = UInt(1)
U16 = UInt(2)
U32 = UInt(4)
U64 = UInt(8)
G1 = Point(G1_SIZE)
G2 = Point(G2_SIZE)
SCALAR = Scalar()


def _from_hex(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise SerialError(f"Expected a hex string, got {type(value).__name__}")
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise SerialError(f"Could not decode hex: {e}") from e


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def compose(obj: Any) -> bytes:
    """
    Serialize a structure field by field following its `FIELDS` table.
    """
    return b"".join(codec.put(getattr(obj, name)) for name, codec in obj.FIELDS)


def read(cls: type, reader: Reader) -> Any:
    values = {name: codec.get(reader) for name, codec in cls.FIELDS}
    return cls(**values)


def decompose(cls: type, data: bytes) -> Any:
    """
    Parse `data` as an instance of `cls`. Trailing bytes are an error.

    Raises:
        SerialError: On truncated, trailing or invalid input.
    """
    reader = Reader(data)
    obj = read(cls, reader)
    if not reader.done():
        raise SerialError(f"{len(data) - reader.offset} trailing bytes after {cls.__name__}")
    return obj


def to_json(obj: Any) -> Any:
    """
    JSON form of a structure: an object with camelCase keys, or the hex of its
    canonical bytes for types that set `JSON_HEX = True`.
    """
    if getattr(obj, "JSON_HEX", False):
        return compose(obj).hex()
    return {_camel(name): codec.to_json(getattr(obj, name)) for name, codec in obj.FIELDS}


def from_json(cls: type, value: Any) -> Any:
    if getattr(cls, "JSON_HEX", False):
        return decompose(cls, _from_hex(value))
    if not isinstance(value, dict):
        raise SerialError(f"Expected an object for {cls.__name__}")
    values = {}
    for name, codec in cls.FIELDS:
        key = _camel(name)
        if key not in value:
            raise SerialError(f"Field {key} not present, but should be.")
        values[name] = codec.from_json(value[key])
    return cls(**values)


def versioned(obj: Any, version: int = 0) -> dict:
    return {"v": version, "value": to_json(obj)}


def unversioned(cls: type, value: Any, version: int = 0) -> Any:
    if not isinstance(value, dict) or "v" not in value or "value" not in value:
        raise SerialError(f"Expected a versioned {cls.__name__}")
    if value["v"] != version:
        raise SerialError(f"Unsupported version {value['v']} for {cls.__name__}")
    return from_json(cls, value["value"])
