"""Runtime support for tuplecodec value codecs."""

from .primitives import PRIMITIVE_CODECS as PRIMITIVE_CODECS
from .primitives import OptionCodec as OptionCodec
from .serialization import ArrayCodec as ArrayCodec
from .serialization import CompositeCodec as CompositeCodec
from .serialization import DecodeError as DecodeError
from .serialization import EncodeError as EncodeError
from .serialization import SerializationError as SerializationError
from .serialization import TupleCodec as TupleCodec
from .types import FieldCodec as FieldCodec
from .types import ValueShape as ValueShape
from .types import Width as Width
from .types import WidthKind as WidthKind
