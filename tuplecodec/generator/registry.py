"""Lookup of field codecs by type reference."""

from collections.abc import Mapping
from typing import Any

from tuplecodec.runtime.primitives import PRIMITIVE_CODECS, OptionCodec
from tuplecodec.runtime.serialization import ArrayCodec, TupleCodec
from tuplecodec.runtime.types import Width

from .parser import ValidationError, parse_type
from .types import TypeKind, TypeRef


class UnsupportedFieldType(ValidationError):
    """Raised when a field type has no usable codec."""


def supports_codec(obj: Any) -> bool:
    """Check that an object exposes the field codec capability."""
    return (
        isinstance(getattr(obj, "type_identity", None), str)
        and isinstance(getattr(obj, "width", None), Width)
        and callable(getattr(obj, "encode", None))
        and callable(getattr(obj, "decode", None))
    )


class TypeRegistry:
    """Resolve type references to field codecs.

    Starts with the built-in primitives. Composite codecs and custom
    codecs are added with register().
    """

    def __init__(self, codecs: Mapping[str, Any] | None = None) -> None:
        self._codecs: dict[str, Any] = dict(PRIMITIVE_CODECS)
        for name, codec in (codecs or {}).items():
            self.register(name, codec)

    def __contains__(self, name: str) -> bool:
        return name in self._codecs

    def register(self, name: str, codec: Any) -> None:
        """Make a codec available under a type name."""
        if not supports_codec(codec):
            raise UnsupportedFieldType(
                f"{name}: {codec!r} does not provide type_identity, width, encode and decode"
            )
        self._codecs[name] = codec

    def resolve(self, type_text: str) -> Any:
        """Return the codec for a type reference such as ``Option<u16>``."""
        if type_text in self._codecs:
            return self._codecs[type_text]
        try:
            ref = parse_type(type_text)
        except ValidationError as e:
            raise UnsupportedFieldType(f"Unsupported field type {type_text!r}") from e
        return self.build(ref)

    def build(self, ref: TypeRef) -> Any:
        text = str(ref)
        if text in self._codecs:
            return self._codecs[text]

        if ref.kind == TypeKind.ARRAY:
            return ArrayCodec(self.build(ref.args[0]), ref.length or 0)

        if ref.kind == TypeKind.TUPLE:
            if not ref.args:
                raise UnsupportedFieldType("Unit type () is not supported as a field type")
            return TupleCodec([self.build(a) for a in ref.args])

        if ref.name == "Option" and len(ref.args) == 1:
            return OptionCodec(self.build(ref.args[0]))

        raise UnsupportedFieldType(f"Unsupported field type {text!r}")
