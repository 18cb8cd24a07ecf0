"""Python code generator for value-type codecs."""

import keyword
from collections.abc import Sequence
from dataclasses import dataclass
from importlib import resources

from jinja2 import Environment, PackageLoader

from tuplecodec.runtime.types import ValueShape, Width

from .codec import dependency_order, generate_codecs
from .parser import ValidationError, parse_type
from .registry import UnsupportedFieldType
from .types import StructSchema, TypeKind, TypeRef
from .util import to_constant_name

RUNTIME_FILES = [
    "__init__.py",
    "types.py",
    "primitives.py",
    "serialization.py",
]

env = Environment(
    loader=PackageLoader("tuplecodec.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)
env.filters["pyrepr"] = repr

template = env.get_template("python.py.j2")

# Module-level names of the generated code that value types must not shadow
RESERVED_NAMES = frozenset(
    {
        "dataclass",
        "NamedTuple",
        "OptionCodec",
        "ArrayCodec",
        "CompositeCodec",
        "TupleCodec",
        "ValueShape",
        "Width",
        "CODECS",
        "_p",
        # Builtins used in field annotations
        "int",
        "float",
        "bool",
        "str",
        "bytes",
        "list",
        "tuple",
        "object",
    }
)

# Map primitive type identities to runtime codec constants
PRIMITIVE_CODEC_NAMES = {
    "u8": "U8",
    "u16": "U16",
    "u32": "U32",
    "u64": "U64",
    "u128": "U128",
    "i8": "I8",
    "i16": "I16",
    "i32": "I32",
    "i64": "I64",
    "i128": "I128",
    "f32": "F32",
    "f64": "F64",
    "bool": "BOOL",
    "char": "CHAR",
    "String": "STRING",
    "&str": "STR",
    "&[u8]": "BYTES",
    "Vec<u8>": "BYTE_VEC",
}

# Map primitive type identities to Python type annotations
PRIMITIVE_TYPE_MAP = {
    "u8": "int",
    "u16": "int",
    "u32": "int",
    "u64": "int",
    "u128": "int",
    "i8": "int",
    "i16": "int",
    "i32": "int",
    "i64": "int",
    "i128": "int",
    "f32": "float",
    "f64": "float",
    "bool": "bool",
    "char": "str",
    "String": "str",
    "&str": "str",
    "&[u8]": "bytes",
    "Vec<u8>": "bytes",
}


@dataclass
class _Field:
    name: str | None
    attr: str
    annotation: str
    codec: str


@dataclass
class _Entry:
    name: str
    class_name: str
    constant: str
    identity: str
    width: str
    shape: str
    named: bool
    fields: list[_Field]


def _codec_expr(ref: TypeRef, constants: dict[str, str]) -> str:
    """Python expression constructing the codec for a type."""
    text = str(ref)
    if text in PRIMITIVE_CODEC_NAMES:
        return f"_p.{PRIMITIVE_CODEC_NAMES[text]}"

    if ref.kind == TypeKind.ARRAY:
        return f"ArrayCodec({_codec_expr(ref.args[0], constants)}, {ref.length})"

    if ref.kind == TypeKind.TUPLE and ref.args:
        elements = ", ".join(_codec_expr(a, constants) for a in ref.args)
        return f"TupleCodec([{elements}])"

    if ref.kind == TypeKind.PATH:
        if ref.name == "Option" and len(ref.args) == 1:
            return f"OptionCodec({_codec_expr(ref.args[0], constants)})"
        if not ref.args and ref.name in constants:
            return constants[ref.name]

    raise UnsupportedFieldType(f"Cannot generate Python code for field type {text!r}")


def _map_type(ref: TypeRef, classes: set[str]) -> str:
    """Map a type to a Python type annotation."""
    text = str(ref)
    if text in PRIMITIVE_TYPE_MAP:
        return PRIMITIVE_TYPE_MAP[text]
    if ref.kind == TypeKind.ARRAY:
        return f"list[{_map_type(ref.args[0], classes)}]"
    if ref.kind == TypeKind.TUPLE:
        return "tuple[" + ", ".join(_map_type(a, classes) for a in ref.args) + "]"
    if ref.name == "Option" and len(ref.args) == 1:
        return f"{_map_type(ref.args[0], classes)} | None"
    if ref.name in classes:
        return str(ref.name)
    return "object"


def _constant_name(name: str) -> str:
    return f"{to_constant_name(name)}_CODEC"


def _width_expr(width: Width) -> str:
    if width.is_fixed:
        return f"Width.fixed({width.size})"
    return "Width.variable()"


def render(
    schemas: Sequence[StructSchema],
    runtime_import: str = "tuplecodec.runtime",
) -> str:
    """Render value-type schemas to Python source code."""
    constant_owners: dict[str, str] = {}
    for schema in schemas:
        if not schema.name.isidentifier() or keyword.iskeyword(schema.name):
            raise ValidationError(f"{schema.name!r} cannot be used as a Python class name")
        if schema.name in RESERVED_NAMES:
            raise ValidationError(
                f"{schema.name!r} clashes with a name used by the generated module"
            )
        constant = _constant_name(schema.name)
        if constant in constant_owners and constant_owners[constant] != schema.name:
            raise ValidationError(
                f"{schema.name} and {constant_owners[constant]} both generate {constant}"
            )
        constant_owners[constant] = schema.name

    clashes = sorted(set(constant_owners) & {s.name for s in schemas})
    if clashes:
        raise ValidationError(f"{clashes[0]} is both a value type and a generated constant")

    codecs = generate_codecs(schemas)

    constants: dict[str, str] = {}
    classes: set[str] = set()
    entries: list[_Entry] = []

    for schema in dependency_order(schemas):
        codec = codecs[schema.name]
        named = schema.shape != ValueShape.TUPLE and all(schema.field_names)

        fields: list[_Field] = []
        for field in schema.fields:
            ref = parse_type(field.type_identity)
            fields.append(
                _Field(
                    name=field.name,
                    attr=field.name if named and field.name else f"f{field.position}",
                    annotation=_map_type(ref, classes),
                    codec=_codec_expr(ref, constants),
                )
            )

        entries.append(
            _Entry(
                name=schema.name,
                class_name=schema.name,
                constant=_constant_name(schema.name),
                identity=codec.identity,
                width=_width_expr(codec.width),
                shape=schema.shape.name,
                named=named,
                fields=fields,
            )
        )
        constants[schema.name] = entries[-1].constant
        classes.add(schema.name)

    return template.render(entries=entries, runtime_import=runtime_import)


def runtime() -> dict[str, str]:
    """Return the Python runtime files as a dict of filename -> content."""
    result: dict[str, str] = {}
    for filename in RUNTIME_FILES:
        content = resources.files("tuplecodec.runtime").joinpath(filename).read_text()
        result[filename] = content
    return result
