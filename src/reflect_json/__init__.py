"""reflect-json: convert between schema-described records and JSON value trees.

Records are manipulated only through a reflection interface, so any record type that
provides a :class:`~reflect_json.descriptors.Descriptor` and a
:class:`~reflect_json.reflection.Reflection` can be decoded from and encoded to JSON.
"""

__version__ = "0.1.0"

from reflect_json.codec import (
    decode,
    decode_field,
    decode_repeated_field,
    encode,
    encode_field,
    encode_repeated_field,
)
from reflect_json.descriptors import (
    Descriptor,
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldKind,
    Label,
)
from reflect_json.errors import (
    ArrayExpectedError,
    DecodeError,
    ObjectExpectedError,
    ReflectJsonError,
    SchemaError,
    TypeMismatchError,
    UnknownEnumValueError,
    UnknownFieldError,
)
from reflect_json.jsonio import decode_json, encode_json
from reflect_json.reflection import DynamicMessage, DynamicReflection, Message, Reflection
from reflect_json.schema import SchemaPool, load_schema, parse_schema
from reflect_json.text_format import to_text

__all__ = [
    "ArrayExpectedError",
    "DecodeError",
    "Descriptor",
    "DynamicMessage",
    "DynamicReflection",
    "EnumDescriptor",
    "EnumValueDescriptor",
    "FieldDescriptor",
    "FieldKind",
    "Label",
    "Message",
    "ObjectExpectedError",
    "ReflectJsonError",
    "Reflection",
    "SchemaError",
    "SchemaPool",
    "TypeMismatchError",
    "UnknownEnumValueError",
    "UnknownFieldError",
    "__version__",
    "decode",
    "decode_field",
    "decode_json",
    "decode_repeated_field",
    "encode",
    "encode_field",
    "encode_json",
    "encode_repeated_field",
    "load_schema",
    "parse_schema",
    "to_text",
]
