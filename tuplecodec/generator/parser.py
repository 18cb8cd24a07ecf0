"""Value-type description parser using Lark."""

import keyword
import logging
import os
from dataclasses import dataclass
from typing import Any

from lark import Lark, Token
from lark.exceptions import LarkError, VisitError
from lark.visitors import Transformer

from tuplecodec.runtime.types import ValueShape

from .types import FieldDescriptor, RawDescription, RawField, StructSchema, TypeKind, TypeRef

logger = logging.getLogger(__name__)

_g_parser: Lark | None = None


class ValidationError(RuntimeError):
    """Raised when a value-type description is invalid."""


class MissingIdentityLabel(ValidationError):
    """Raised when a description has no identity label."""


class UnsupportedShape(ValidationError):
    """Raised for empty or unit value types, and malformed single-field types."""


@dataclass
class _Annotation:
    name: str
    args: list[tuple[str | None, str]]


@dataclass
class _Body:
    fields: list[RawField]


def _present(args: list[Any]) -> list[Any]:
    return [a for a in args if a is not None]


def _unquote(token: Token) -> str:
    return str(token)[1:-1].replace('\\"', '"')


class TreeTransformer(Transformer):
    """Transform parse tree into raw descriptions and type references."""

    def start(self, args: list[Any]) -> list[RawDescription]:
        return _present(args)

    def value_def(self, args: list[Any]) -> RawDescription:
        annotations = [a for a in args if isinstance(a, _Annotation)]
        name = next(str(a) for a in args if isinstance(a, Token))
        body = next((a for a in args if isinstance(a, _Body)), None)

        label = None
        for annotation in annotations:
            if annotation.name != "label":
                raise ValidationError(f"{name}: unknown annotation @{annotation.name}")
            if len(annotation.args) != 1 or annotation.args[0][0] not in (None, "name"):
                raise ValidationError(f'{name}: @label takes one argument, e.g. @label("{name}")')
            label = annotation.args[0][1]

        return RawDescription(label=label, fields=body.fields if body else [], name=name)

    def named_body(self, args: list[Any]) -> _Body:
        return _Body(fields=_present(args))

    def tuple_body(self, args: list[Any]) -> _Body:
        return _Body(fields=[RawField(type=str(t)) for t in _present(args)])

    def named_field(self, args: list[Any]) -> RawField:
        return RawField(name=str(args[0]), type=str(args[1]))

    def annotation(self, args: list[Any]) -> _Annotation:
        return _Annotation(name=str(args[0]), args=_present(args[1:]))

    def argument_val(self, args: list[Any]) -> tuple[str | None, str]:
        return (None, _unquote(args[0]))

    def argument_kv(self, args: list[Any]) -> tuple[str | None, str]:
        return (str(args[0]), _unquote(args[1]))

    def type_start(self, args: list[Any]) -> TypeRef:
        return args[0]

    def path(self, args: list[Any]) -> TypeRef:
        return TypeRef(kind=TypeKind.PATH, name=str(args[0]), args=tuple(_present(args[1:])))

    def array(self, args: list[Any]) -> TypeRef:
        return TypeRef(kind=TypeKind.ARRAY, args=(args[0],), length=int(args[1]))

    def tuple_type(self, args: list[Any]) -> TypeRef:
        return TypeRef(kind=TypeKind.TUPLE, args=tuple(_present(args)))

    def ref(self, args: list[Any]) -> TypeRef:
        return TypeRef(kind=TypeKind.PATH, name=str(args[0]))


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schema.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, start=["start", "type_start"])

    return _g_parser


def parse(text: str) -> list[RawDescription]:
    """Parse a value-type description file into raw descriptions."""
    try:
        tree = _get_parser().parse(text, start="start")
    except LarkError as e:
        raise ValidationError(f"Syntax error in description: {e}") from e

    try:
        descriptions = TreeTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ValidationError):
            raise e.orig_exc from None
        raise

    logger.debug("Parsed %d value-type descriptions", len(descriptions))
    return descriptions


def parse_type(text: str) -> TypeRef:
    """Parse a single type expression such as ``Option<u16>``."""
    try:
        tree = _get_parser().parse(text, start="type_start")
    except LarkError as e:
        raise ValidationError(f"Invalid type expression {text!r}") from e
    return TreeTransformer().transform(tree)


def _infer_shape(fields: list[RawField]) -> ValueShape:
    if len(fields) == 1:
        return ValueShape.SINGLE
    if any(f.name for f in fields):
        return ValueShape.NAMED
    return ValueShape.TUPLE


def parse_schema(raw: RawDescription) -> StructSchema:
    """Validate a raw description into a StructSchema."""
    label = (raw.label or "").strip()
    if not label:
        raise MissingIdentityLabel(f"{raw.name or 'Value type'} has no identity label")

    if not raw.fields:
        raise UnsupportedShape(
            f"{label} has no fields: empty and unit value types are not supported"
        )

    shape = raw.shape or _infer_shape(raw.fields)
    names = [f.name for f in raw.fields]

    if shape == ValueShape.SINGLE and len(raw.fields) != 1:
        raise UnsupportedShape(f"{label} is a single-field type but has {len(raw.fields)} fields")
    if shape == ValueShape.NAMED and not all(names):
        raise ValidationError(f"{label}: every field of a named value type needs a name")
    if shape == ValueShape.TUPLE and any(names):
        raise ValidationError(f"{label}: tuple fields are positional and cannot be named")

    seen: set[str] = set()
    for name in names:
        if name is None:
            continue
        if not name.isidentifier():
            raise ValidationError(f"{label}: invalid field name {name!r}")
        if keyword.iskeyword(name):
            raise ValidationError(f"{label}: field name {name!r} is a Python keyword")
        if name in seen:
            raise ValidationError(f"{label}: duplicate field {name}")
        seen.add(name)

    fields: list[FieldDescriptor] = []
    for position, raw_field in enumerate(raw.fields):
        type_text = "".join(raw_field.type.split())
        if not type_text:
            raise ValidationError(f"{label}: field {raw_field.name or position} has no type")
        fields.append(
            FieldDescriptor(position=position, name=raw_field.name, type_identity=type_text)
        )

    return StructSchema(
        custom_name=label,
        shape=shape,
        fields=tuple(fields),
        name=raw.name or label,
    )


def parse_schemas(text: str) -> list[StructSchema]:
    """Parse and validate a value-type description file."""
    return [parse_schema(raw) for raw in parse(text)]
