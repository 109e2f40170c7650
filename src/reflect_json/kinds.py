"""Field dispatch table: JSON representation of each scalar field kind.

MESSAGE and ENUM fields are dispatched by :mod:`reflect_json.codec` since they need
the record codec and the enum descriptor respectively. A kind without an entry here
and outside those two is skipped by the codec.
"""

import struct
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from reflect_json.descriptors import EnumDescriptor, EnumValueDescriptor, FieldKind
from reflect_json.errors import TypeMismatchError, UnknownEnumValueError

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
UINT32_MAX = 2**32 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1
UINT64_MAX = 2**64 - 1

ENUM_EXPECTED = "enum number or name"

_FLOAT32 = struct.Struct("<f")


@dataclass(frozen=True, slots=True)
class ScalarCodec:
    expected: str
    """Description used in "Expected ..." errors."""
    parse: Callable[[Any], Any]
    """Convert a JSON value to a field value, or return None if it is not accepted."""
    to_json: Callable[[Any], Any]
    """Convert a field value to a JSON value."""


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a JSON number
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number(value: Any) -> float | None:
    if not _is_number(value):
        return None
    try:
        return float(value)
    except OverflowError:
        return None


def _parse_float32(value: Any) -> float | None:
    parsed = _parse_number(value)
    if parsed is None:
        return None
    try:
        _FLOAT32.pack(parsed)
    except OverflowError:
        # Finite, but rounds to infinity at single precision
        return None
    return parsed


def _integer_parser(low: int, high: int) -> Callable[[Any], int | None]:
    def parse(value: Any) -> int | None:
        if not _is_number(value):
            return None
        if isinstance(value, float):
            if not value.is_integer():
                return None
            value = int(value)
        if low <= value <= high:
            return value
        return None

    return parse


def _parse_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _parse_string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


SCALAR_CODECS: dict[FieldKind, ScalarCodec] = {
    FieldKind.DOUBLE: ScalarCodec("number", _parse_number, float),
    FieldKind.FLOAT: ScalarCodec("number", _parse_float32, float),
    FieldKind.INT32: ScalarCodec("32-bit integer", _integer_parser(INT32_MIN, INT32_MAX), int),
    FieldKind.UINT32: ScalarCodec("unsigned 32-bit integer", _integer_parser(0, UINT32_MAX), int),
    FieldKind.INT64: ScalarCodec("64-bit integer", _integer_parser(INT64_MIN, INT64_MAX), int),
    FieldKind.UINT64: ScalarCodec("unsigned 64-bit integer", _integer_parser(0, UINT64_MAX), int),
    FieldKind.BOOL: ScalarCodec("boolean", _parse_bool, bool),
    FieldKind.STRING: ScalarCodec("string", _parse_string, str),
}


def decode_scalar(kind: FieldKind, value: Any) -> Any:
    """Convert a JSON value for a scalar field, raising TypeMismatchError if rejected."""
    codec = SCALAR_CODECS[kind]
    parsed = codec.parse(value)
    if parsed is None:
        raise TypeMismatchError(codec.expected)
    return parsed


def encode_scalar(kind: FieldKind, value: Any) -> Any:
    return SCALAR_CODECS[kind].to_json(value)


def decode_enum(enum_type: EnumDescriptor, value: Any) -> EnumValueDescriptor:
    """Resolve a JSON integer (by number) or string (by name) to an enum value."""
    if isinstance(value, str):
        resolved = enum_type.find_value_by_name(value)
    elif _is_number(value) and (isinstance(value, int) or value.is_integer()):
        resolved = enum_type.find_value_by_number(int(value))
    else:
        raise TypeMismatchError(ENUM_EXPECTED)
    if resolved is None:
        raise UnknownEnumValueError(enum_type.full_name, value)
    return resolved


def encode_enum(value: EnumValueDescriptor) -> int:
    return value.number
