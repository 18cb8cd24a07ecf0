"""Tuplecodec value-type codec generator."""

from .codec import generate_codec as generate_codec
from .codec import generate_codecs as generate_codecs
from .identity import build_identity as build_identity
from .parser import MissingIdentityLabel as MissingIdentityLabel
from .parser import UnsupportedShape as UnsupportedShape
from .parser import ValidationError as ValidationError
from .parser import parse as parse
from .parser import parse_schema as parse_schema
from .parser import parse_schemas as parse_schemas
from .registry import TypeRegistry as TypeRegistry
from .registry import UnsupportedFieldType as UnsupportedFieldType
from .types import *
from .widths import WidthClassifier as WidthClassifier
