"""Tuple composition of field codecs into composite value codecs.

Fields are written in declaration order. A fixed-width field is written as
its raw bytes. A variable-width field is preceded by a 4-byte little-endian
length prefix, except when it is the last field, which always extends to the
end of the buffer.
"""

import struct
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .types import FieldCodec, ValueShape, Width

# Wire format of the length prefix for non-final variable-width fields
LENGTH_PREFIX = struct.Struct("<I")


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


class EncodeError(SerializationError):
    """Raised when a value cannot be encoded."""


class DecodeError(SerializationError):
    """Raised when bytes cannot be decoded into a value."""


def _sort_key(codec: Any, value: Any) -> Any:
    key = getattr(codec, "sort_key", None)
    return key(value) if key is not None else value


def pack_fields(codecs: Sequence[Any], values: Sequence[Any]) -> bytes:
    """Encode values positionally with their codecs."""
    if len(codecs) != len(values):
        raise EncodeError(f"Expected {len(codecs)} values, got {len(values)}")

    buf = bytearray()
    last = len(codecs) - 1
    for i, (codec, value) in enumerate(zip(codecs, values)):
        data = codec.encode(value)
        width = codec.width
        if width.is_fixed:
            if len(data) != width.size:
                raise EncodeError(
                    f"{codec.type_identity} encoded {len(data)} bytes, expected {width.size}"
                )
        elif i != last:
            if len(data) > 0xFFFFFFFF:
                raise EncodeError(f"{codec.type_identity} value exceeds {0xFFFFFFFF} bytes")
            buf.extend(LENGTH_PREFIX.pack(len(data)))
        buf.extend(data)
    return bytes(buf)


def unpack_fields(codecs: Sequence[Any], data: bytes | bytearray | memoryview) -> list[Any]:
    """Decode a buffer produced by pack_fields() into a list of values."""
    view = memoryview(data)
    end = len(view)
    o = 0
    values: list[Any] = []
    last = len(codecs) - 1

    for i, codec in enumerate(codecs):
        width = codec.width
        if width.is_fixed:
            n = width.size
            if o + n > end:
                raise DecodeError(
                    f"Truncated buffer: {codec.type_identity} needs {n} bytes at offset {o}, "
                    f"{end - o} remaining"
                )
        elif i == last:
            n = end - o
        else:
            if o + LENGTH_PREFIX.size > end:
                raise DecodeError(f"Truncated buffer: missing length prefix at offset {o}")
            (n,) = LENGTH_PREFIX.unpack_from(view, o)
            o += LENGTH_PREFIX.size
            if o + n > end:
                raise DecodeError(
                    f"Length prefix {n} for {codec.type_identity} exceeds "
                    f"{end - o} remaining bytes"
                )

        values.append(codec.decode(bytes(view[o : o + n])))
        o += n

    if o != end:
        raise DecodeError(f"{end - o} trailing bytes after final field")
    return values


def combine_widths(widths: Sequence[Width]) -> Width:
    """Width of a composition: the sum when every part is fixed, else variable."""
    if all(w.is_fixed for w in widths):
        return Width.fixed(sum(w.size or 0 for w in widths))
    return Width.variable()


def _compare(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


class TupleCodec(FieldCodec):
    """Codec for an anonymous tuple type such as ``(u8,u16)``."""

    def __init__(self, elements: Sequence[Any]) -> None:
        if not elements:
            raise ValueError("Tuple codec needs at least one element")
        self.elements = tuple(elements)
        self.type_identity = "(" + ",".join(e.type_identity for e in self.elements) + ")"
        self.width = combine_widths([e.width for e in self.elements])

    def encode(self, value: Any) -> bytes:
        values = tuple(value)
        if len(values) != len(self.elements):
            raise EncodeError(
                f"{self.type_identity} expects {len(self.elements)} elements, got {len(values)}"
            )
        return pack_fields(self.elements, values)

    def decode(self, data: bytes) -> tuple[Any, ...]:
        return tuple(unpack_fields(self.elements, data))

    def sort_key(self, value: Any) -> Any:
        return tuple(_sort_key(e, v) for e, v in zip(self.elements, value))


class ArrayCodec(FieldCodec):
    """Codec for a fixed-length array type such as ``[u8;4]``.

    Elements are composed with the same rule as tuple fields.
    """

    def __init__(self, element: Any, length: int) -> None:
        if length < 0:
            raise ValueError(f"Array length must be non-negative, got {length}")
        self.element = element
        self.length = length
        self.type_identity = f"[{element.type_identity};{length}]"
        self.width = combine_widths([element.width] * length)

    def encode(self, value: Any) -> bytes:
        values = list(value)
        if len(values) != self.length:
            raise EncodeError(
                f"{self.type_identity} expects {self.length} elements, got {len(values)}"
            )
        return pack_fields([self.element] * self.length, values)

    def decode(self, data: bytes) -> list[Any]:
        return unpack_fields([self.element] * self.length, data)

    def sort_key(self, value: Any) -> Any:
        return tuple(_sort_key(self.element, v) for v in value)


class CompositeCodec(FieldCodec):
    """Codec for a user-declared composite value type.

    Holds the identity string and width computed when the codec was
    generated, the ordered field codecs, and the record type built on
    decode. Instances are immutable and can be shared between threads.

    Example:
        codec = CompositeCodec(
            identity="Point(f64,f64)",
            width=Width.fixed(16),
            shape=ValueShape.TUPLE,
            fields=[(None, F64), (None, F64)],
        )
        data = codec.encode((1.0, 2.0))
        codec.decode(data)  # (1.0, 2.0)
    """

    def __init__(
        self,
        *,
        identity: str,
        width: Width,
        shape: ValueShape,
        fields: Sequence[tuple[str | None, Any]],
        record_type: Callable[..., Any] | None = None,
    ) -> None:
        if not fields:
            raise ValueError(f"{identity} has no fields")
        self.identity = identity
        self.type_identity = identity
        self.width = width
        self.shape = shape
        self.field_names = tuple(name for name, _ in fields)
        self.codecs = tuple(codec for _, codec in fields)
        self.record_type = record_type
        self._by_name = shape != ValueShape.TUPLE and all(self.field_names)

    def fields_of(self, record: Any) -> tuple[Any, ...]:
        """Return the field values of a record in declaration order."""
        if not self._by_name:
            try:
                values = tuple(record)
            except TypeError as e:
                raise EncodeError(
                    f"{self.identity} expects a sequence of {len(self.codecs)} fields, "
                    f"got {type(record).__name__}"
                ) from e
            if len(values) != len(self.codecs):
                raise EncodeError(
                    f"{self.identity} expects {len(self.codecs)} fields, got {len(values)}"
                )
            return values

        if isinstance(record, Mapping):
            try:
                return tuple(record[name] for name in self.field_names)
            except KeyError as e:
                raise EncodeError(f"{self.identity} record is missing field {e}") from e

        try:
            return tuple(getattr(record, name) for name in self.field_names)
        except AttributeError as e:
            raise EncodeError(f"{self.identity} record is missing a field: {e}") from e

    def encode(self, value: Any) -> bytes:
        return pack_fields(self.codecs, self.fields_of(value))

    def decode(self, data: bytes | bytearray | memoryview) -> Any:
        values = unpack_fields(self.codecs, data)
        if self.record_type is None:
            return tuple(values)
        return self.record_type(*values)

    def sort_key(self, value: Any) -> Any:
        return tuple(_sort_key(c, v) for c, v in zip(self.codecs, self.fields_of(value)))

    def compare(self, data1: bytes, data2: bytes) -> int:
        """Order two encoded values by their decoded fields, in declaration order."""
        return _compare(self._decode_key(data1), self._decode_key(data2))

    def _decode_key(self, data: bytes) -> tuple[Any, ...]:
        values = unpack_fields(self.codecs, data)
        return tuple(_sort_key(c, v) for c, v in zip(self.codecs, values))
