"""Schema identity strings.

The identity is the schema-drift fingerprint stored alongside persisted
data: ``Label(type1,type2,...)``. Composite field types contribute their own
identity, so a change to a nested type changes every identity that uses it.
"""

from collections.abc import Iterable

from .types import StructSchema


def build_identity(custom_name: str, type_identities: Iterable[str]) -> str:
    return f"{custom_name}({','.join(type_identities)})"


def schema_identity(schema: StructSchema) -> str:
    """Identity of a schema from its fields' current type identities.

    Fields should be resolved first (see WidthClassifier) so composite
    field types are expanded to their full identity.
    """
    return build_identity(schema.custom_name, (f.type_identity for f in schema.fields))
