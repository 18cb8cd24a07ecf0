"""Generation of composite codecs from validated schemas."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import make_dataclass, replace
from typing import Any

from tuplecodec.runtime.primitives import PRIMITIVE_CODECS
from tuplecodec.runtime.serialization import CompositeCodec
from tuplecodec.runtime.types import ValueShape

from .identity import schema_identity
from .parser import ValidationError, parse_type
from .registry import TypeRegistry
from .types import StructSchema
from .widths import WidthClassifier

logger = logging.getLogger(__name__)


def make_record_type(schema: StructSchema) -> type | None:
    """Default record type for a schema.

    Named fields decode to a frozen dataclass named after the schema,
    positional fields to plain tuples (None).
    """
    names = schema.field_names
    if schema.shape == ValueShape.TUPLE or not all(names):
        return None
    return make_dataclass(schema.name, [str(n) for n in names], frozen=True)


def generate_codec(
    schema: StructSchema,
    registry: TypeRegistry | None = None,
    record_type: Callable[..., Any] | None = None,
) -> CompositeCodec:
    """Build the codec for a schema.

    Raises:
        UnsupportedFieldType: If a field type cannot be resolved to a codec.
    """
    widths = WidthClassifier(registry).classify(schema)
    identity = schema_identity(replace(schema, fields=widths.fields))

    codec = CompositeCodec(
        identity=identity,
        width=widths.width,
        shape=schema.shape,
        fields=[(f.name, c) for f, c in zip(widths.fields, widths.codecs)],
        record_type=record_type or make_record_type(schema),
    )
    logger.debug("Generated codec %s (%s)", identity, widths.width)
    return codec


def _local_dependencies(schema: StructSchema, local: set[str]) -> list[str]:
    deps: list[str] = []
    for field in schema.fields:
        try:
            ref = parse_type(field.type_identity)
        except ValidationError:
            # Reported as UnsupportedFieldType when the field is resolved
            continue
        deps.extend(n for n in ref.names() if n in local and n not in deps)
    return deps


def dependency_order(schemas: Sequence[StructSchema]) -> list[StructSchema]:
    """Order schemas so every schema comes after the schemas it uses as field types."""
    by_name: dict[str, StructSchema] = {}
    for schema in schemas:
        if schema.name in by_name:
            raise ValidationError(f"Value type {schema.name} declared more than once")
        if schema.name in PRIMITIVE_CODECS:
            raise ValidationError(f"Value type {schema.name} shadows a primitive type")
        by_name[schema.name] = schema

    local = set(by_name)
    ordered: list[StructSchema] = []
    done: set[str] = set()
    visiting: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            cycle = " -> ".join(visiting[visiting.index(name) :] + [name])
            raise ValidationError(f"Recursive value types are not supported: {cycle}")
        visiting.append(name)
        for dep in _local_dependencies(by_name[name], local):
            visit(dep)
        visiting.pop()
        done.add(name)
        ordered.append(by_name[name])

    for schema in schemas:
        visit(schema.name)
    return ordered


def generate_codecs(
    schemas: Sequence[StructSchema],
    registry: TypeRegistry | None = None,
) -> dict[str, CompositeCodec]:
    """Build codecs for related schemas.

    Schemas may use each other as field types. Each generated codec is
    registered under its schema name before dependent schemas are built.
    """
    registry = registry or TypeRegistry()
    codecs: dict[str, CompositeCodec] = {}

    for schema in dependency_order(schemas):
        codec = generate_codec(schema, registry)
        registry.register(schema.name, codec)
        codecs[schema.name] = codec

    return {schema.name: codecs[schema.name] for schema in schemas}
