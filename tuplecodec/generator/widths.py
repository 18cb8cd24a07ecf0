"""Width classification for value-type schemas."""

import logging
from dataclasses import dataclass, replace
from typing import Any

from tuplecodec.runtime.serialization import combine_widths
from tuplecodec.runtime.types import Width

from .registry import TypeRegistry
from .types import FieldDescriptor, StructSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaWidths:
    """Resolved fields of a schema and its overall width."""

    fields: tuple[FieldDescriptor, ...]
    codecs: tuple[Any, ...]
    width: Width


class WidthClassifier:
    """Classify schemas as fixed or variable width.

    Classification is structural: each field's codec is looked up in the
    registry and its width contract read, no data is inspected.
    """

    def __init__(self, registry: TypeRegistry | None = None):
        self.registry = registry or TypeRegistry()

    def classify_field(self, field: FieldDescriptor) -> tuple[FieldDescriptor, Any]:
        """Resolve a field's codec and fill in its identity and own width."""
        codec = self.registry.resolve(field.type_identity)
        resolved = replace(field, type_identity=codec.type_identity, own_width=codec.width)
        return resolved, codec

    def classify(self, schema: StructSchema) -> SchemaWidths:
        fields: list[FieldDescriptor] = []
        codecs: list[Any] = []

        for field in schema.fields:
            resolved, codec = self.classify_field(field)
            fields.append(resolved)
            codecs.append(codec)

        width = combine_widths([f.own_width for f in fields if f.own_width is not None])
        logger.debug("%s is %s", schema.custom_name, width)

        return SchemaWidths(fields=tuple(fields), codecs=tuple(codecs), width=width)


def classify_schema(schema: StructSchema, registry: TypeRegistry | None = None) -> Width:
    """Return the width of a schema."""
    return WidthClassifier(registry).classify(schema).width
