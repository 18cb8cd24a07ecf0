"""Type definitions for schema parsing and codec generation."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from tuplecodec.runtime.types import ValueShape, Width


@dataclass
class RawField(DataClassJsonMixin):
    """A field as written in a value-type description.

    ``type`` is the text of a type reference, e.g. ``u32`` or ``Option<u16>``.
    """

    type: str
    name: str | None = None


@dataclass
class RawDescription(DataClassJsonMixin):
    """An unvalidated value-type description.

    shape=None lets the parser pick NAMED, TUPLE or SINGLE from the fields.
    """

    label: str | None
    fields: list[RawField] = field(default_factory=list)
    shape: ValueShape | None = None
    name: str | None = None


@dataclass(frozen=True)
class FieldDescriptor:
    """A field of a validated schema.

    own_width is None until the field has been resolved by the width
    classifier.
    """

    position: int
    name: str | None
    type_identity: str
    own_width: Width | None = None


@dataclass(frozen=True)
class StructSchema:
    """A validated description of a composite value type."""

    custom_name: str
    shape: ValueShape
    fields: tuple[FieldDescriptor, ...]
    name: str

    @property
    def field_names(self) -> list[str | None]:
        return [f.name for f in self.fields]


class TypeKind(StrEnum):
    """Kinds of type expression."""

    PATH = auto()  # u32, String, Option<u16>, Person
    ARRAY = auto()  # [T;N]
    TUPLE = auto()  # (A,B)


@dataclass(frozen=True)
class TypeRef:
    """A parsed type expression."""

    kind: TypeKind
    name: str | None = None
    args: tuple["TypeRef", ...] = ()
    length: int | None = None

    def __str__(self) -> str:
        if self.kind == TypeKind.ARRAY:
            return f"[{self.args[0]};{self.length}]"
        if self.kind == TypeKind.TUPLE:
            return "(" + ",".join(str(a) for a in self.args) + ")"
        if self.args:
            return f"{self.name}<" + ",".join(str(a) for a in self.args) + ">"
        return str(self.name)

    def names(self) -> Iterator[str]:
        """Yield every type name referenced by this expression."""
        if self.kind == TypeKind.PATH and self.name is not None:
            yield self.name
        for arg in self.args:
            yield from arg.names()
