"""Built-in field codecs for primitive types.

Type identities follow the storage engine's type names (``u32``, ``String``,
``Option<u16>`` ...). Numbers are little-endian.
"""

import struct
from typing import Any

from .serialization import DecodeError, EncodeError
from .types import FieldCodec, Width


class IntCodec(FieldCodec):
    """Fixed-width two's complement integer."""

    def __init__(self, type_identity: str, size: int, signed: bool) -> None:
        self.type_identity = type_identity
        self.width = Width.fixed(size)
        self.size = size
        self.signed = signed

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, int):
            raise EncodeError(f"{self.type_identity} expects int, got {type(value).__name__}")
        try:
            return value.to_bytes(self.size, "little", signed=self.signed)
        except OverflowError as e:
            raise EncodeError(f"{value} out of range for {self.type_identity}") from e

    def decode(self, data: bytes) -> int:
        if len(data) != self.size:
            raise DecodeError(f"{self.type_identity} needs {self.size} bytes, got {len(data)}")
        return int.from_bytes(data, "little", signed=self.signed)


class FloatCodec(FieldCodec):
    """IEEE-754 float."""

    def __init__(self, type_identity: str, fmt: str) -> None:
        self.type_identity = type_identity
        self._struct = struct.Struct(fmt)
        self.width = Width.fixed(self._struct.size)

    def encode(self, value: Any) -> bytes:
        try:
            return self._struct.pack(value)
        except (struct.error, OverflowError) as e:
            raise EncodeError(f"Cannot encode {value!r} as {self.type_identity}: {e}") from e

    def decode(self, data: bytes) -> float:
        if len(data) != self._struct.size:
            raise DecodeError(
                f"{self.type_identity} needs {self._struct.size} bytes, got {len(data)}"
            )
        return self._struct.unpack(data)[0]


class BoolCodec(FieldCodec):
    type_identity = "bool"
    width = Width.fixed(1)

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, bool):
            raise EncodeError(f"bool expects bool, got {type(value).__name__}")
        return b"\x01" if value else b"\x00"

    def decode(self, data: bytes) -> bool:
        if data == b"\x00":
            return False
        if data == b"\x01":
            return True
        raise DecodeError(f"Invalid bool encoding {bytes(data)!r}")


class CharCodec(FieldCodec):
    """A single unicode code point in 3 bytes."""

    type_identity = "char"
    width = Width.fixed(3)

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str) or len(value) != 1:
            raise EncodeError(f"char expects a single character, got {value!r}")
        return ord(value).to_bytes(3, "little")

    def decode(self, data: bytes) -> str:
        if len(data) != 3:
            raise DecodeError(f"char needs 3 bytes, got {len(data)}")
        try:
            return chr(int.from_bytes(data, "little"))
        except ValueError as e:
            raise DecodeError(f"Invalid char encoding {bytes(data)!r}") from e


class StrCodec(FieldCodec):
    """UTF-8 text, variable width."""

    def __init__(self, type_identity: str) -> None:
        self.type_identity = type_identity
        self.width = Width.variable()

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise EncodeError(f"{self.type_identity} expects str, got {type(value).__name__}")
        return value.encode("utf-8")

    def decode(self, data: bytes) -> str:
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid UTF-8 in {self.type_identity}: {e}") from e


class BytesCodec(FieldCodec):
    """Raw bytes, variable width."""

    def __init__(self, type_identity: str) -> None:
        self.type_identity = type_identity
        self.width = Width.variable()

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodeError(f"{self.type_identity} expects bytes, got {type(value).__name__}")
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class OptionCodec(FieldCodec):
    """Optional value: a tag byte followed by the inner encoding.

    When the inner codec is fixed width, ``None`` is padded with zeros so the
    option stays fixed width.
    """

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.type_identity = f"Option<{inner.type_identity}>"
        if inner.width.is_fixed:
            self.width = Width.fixed(inner.width.size + 1)
        else:
            self.width = Width.variable()

    def encode(self, value: Any) -> bytes:
        if value is None:
            if self.width.is_fixed:
                return b"\x00" * self.width.size
            return b"\x00"
        return b"\x01" + self.inner.encode(value)

    def decode(self, data: bytes) -> Any:
        if not data:
            raise DecodeError(f"{self.type_identity} needs a tag byte")
        tag = data[0]
        if tag == 0:
            if len(data) != (self.width.size if self.width.is_fixed else 1):
                raise DecodeError(f"Unexpected payload after None in {self.type_identity}")
            return None
        if tag == 1:
            return self.inner.decode(data[1:])
        raise DecodeError(f"Invalid tag {tag} for {self.type_identity}")

    def sort_key(self, value: Any) -> Any:
        if value is None:
            return (0,)
        key = getattr(self.inner, "sort_key", None)
        return (1, key(value) if key is not None else value)


U8 = IntCodec("u8", 1, signed=False)
U16 = IntCodec("u16", 2, signed=False)
U32 = IntCodec("u32", 4, signed=False)
U64 = IntCodec("u64", 8, signed=False)
U128 = IntCodec("u128", 16, signed=False)
I8 = IntCodec("i8", 1, signed=True)
I16 = IntCodec("i16", 2, signed=True)
I32 = IntCodec("i32", 4, signed=True)
I64 = IntCodec("i64", 8, signed=True)
I128 = IntCodec("i128", 16, signed=True)
F32 = FloatCodec("f32", "<f")
F64 = FloatCodec("f64", "<d")
BOOL = BoolCodec()
CHAR = CharCodec()
STRING = StrCodec("String")
STR = StrCodec("&str")
BYTES = BytesCodec("&[u8]")
BYTE_VEC = BytesCodec("Vec<u8>")

PRIMITIVE_CODECS: dict[str, FieldCodec] = {
    codec.type_identity: codec
    for codec in (
        U8,
        U16,
        U32,
        U64,
        U128,
        I8,
        I16,
        I32,
        I64,
        I128,
        F32,
        F64,
        BOOL,
        CHAR,
        STRING,
        STR,
        BYTES,
        BYTE_VEC,
    )
}
