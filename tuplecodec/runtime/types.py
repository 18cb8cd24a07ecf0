"""Runtime type descriptors for tuplecodec value codecs.

These describe the width contract and declaration shape of a value type, and
the capability every field codec exposes to the composition engine.
"""

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any


class WidthKind(StrEnum):
    """Classification of an encoded width."""

    FIXED = auto()  # Every instance encodes to the same number of bytes
    VARIABLE = auto()  # Encoded length depends on the instance


@dataclass(frozen=True, slots=True)
class Width:
    """Width contract of a codec."""

    kind: WidthKind
    size: int | None = None  # Only set for FIXED

    @classmethod
    def fixed(cls, size: int) -> "Width":
        if size < 0:
            raise ValueError(f"Fixed width must be non-negative, got {size}")
        return cls(WidthKind.FIXED, size)

    @classmethod
    def variable(cls) -> "Width":
        return cls(WidthKind.VARIABLE)

    @property
    def is_fixed(self) -> bool:
        return self.kind == WidthKind.FIXED

    def __str__(self) -> str:
        if self.is_fixed:
            return f"fixed({self.size})"
        return "variable"


class ValueShape(StrEnum):
    """How the fields of a value type are declared.

    The shape never changes the wire format, only how records are read
    and built.
    """

    NAMED = auto()
    TUPLE = auto()
    SINGLE = auto()


class FieldCodec:
    """Base class for codecs that can be used as a field type.

    Subclasses set ``type_identity`` and ``width`` and implement
    ``encode``/``decode``. Any object with the same four members can be
    used in place of a subclass.
    """

    type_identity: str
    width: Width

    def encode(self, value: Any) -> bytes:
        raise NotImplementedError("encode() must be implemented by subclasses")

    def decode(self, data: bytes) -> Any:
        raise NotImplementedError("decode() must be implemented by subclasses")

    def sort_key(self, value: Any) -> Any:
        """Return a key ordering values the way their encoded form should sort."""
        return value

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.type_identity} {self.width}>"
