"""Reflection interface and the native dynamic record implementation.

The codec never touches record storage directly; everything goes through a
:class:`Reflection` addressed by ``(message, field)``. :class:`DynamicMessage` is the
record type shipped with this package, built at runtime from a :class:`Descriptor`.
"""

import math
import struct
from typing import Any, Protocol

from reflect_json.descriptors import (
    Descriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldKind,
)

_FLOAT32 = struct.Struct("<f")

# Zero values for unset singular scalars without an explicit default
_ZERO_VALUES: dict[FieldKind, Any] = {
    FieldKind.DOUBLE: 0.0,
    FieldKind.FLOAT: 0.0,
    FieldKind.INT32: 0,
    FieldKind.UINT32: 0,
    FieldKind.INT64: 0,
    FieldKind.UINT64: 0,
    FieldKind.BOOL: False,
    FieldKind.STRING: "",
    FieldKind.BYTES: b"",
}


class Message(Protocol):
    @property
    def descriptor(self) -> Descriptor: ...

    @property
    def reflection(self) -> "Reflection": ...


class Reflection(Protocol):
    """Accessors and mutators for record fields.

    Enum values cross this interface as :class:`EnumValueDescriptor`, nested records
    as :class:`Message`.
    """

    def has_field(self, message: Any, field: FieldDescriptor) -> bool: ...

    def get(self, message: Any, field: FieldDescriptor) -> Any: ...

    def set(self, message: Any, field: FieldDescriptor, value: Any) -> None: ...

    def mutable_message(self, message: Any, field: FieldDescriptor) -> Message: ...

    def field_size(self, message: Any, field: FieldDescriptor) -> int: ...

    def get_repeated(self, message: Any, field: FieldDescriptor, index: int) -> Any: ...

    def add(self, message: Any, field: FieldDescriptor, value: Any) -> None: ...

    def add_message(self, message: Any, field: FieldDescriptor) -> Message: ...


def _to_float32(value: float) -> float:
    """Round a Python float to single precision, saturating to infinity."""
    try:
        return _FLOAT32.unpack(_FLOAT32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _check_field(message: "DynamicMessage", field: FieldDescriptor) -> None:
    if field.containing_type is not message.descriptor:
        raise KeyError(f"Field {field.full_name} does not belong to {message.descriptor.full_name}")


def _store(field: FieldDescriptor, value: Any) -> Any:
    if field.kind == FieldKind.FLOAT:
        return _to_float32(value)
    if field.kind == FieldKind.ENUM and not isinstance(value, EnumValueDescriptor):
        raise TypeError(f"Field {field.full_name} expects an EnumValueDescriptor, got {value!r}")
    if field.kind == FieldKind.MESSAGE and (
        not isinstance(value, DynamicMessage) or value.descriptor is not field.message_type
    ):
        raise TypeError(f"Field {field.full_name} expects a {field.message_type} instance")
    return value


class DynamicReflection:
    """:class:`Reflection` implementation backing :class:`DynamicMessage`."""

    def has_field(self, message: "DynamicMessage", field: FieldDescriptor) -> bool:
        _check_field(message, field)
        if field.is_repeated:
            return bool(message._values.get(field.name))
        return field.name in message._values

    def get(self, message: "DynamicMessage", field: FieldDescriptor) -> Any:
        _check_field(message, field)
        if field.is_repeated:
            return list(message._values.get(field.name, ()))
        if field.name in message._values:
            return message._values[field.name]
        return self._default(field)

    def set(self, message: "DynamicMessage", field: FieldDescriptor, value: Any) -> None:
        _check_field(message, field)
        if field.is_repeated:
            raise TypeError(f"Field {field.full_name} is repeated; use add")
        message._values[field.name] = _store(field, value)

    def mutable_message(self, message: "DynamicMessage", field: FieldDescriptor) -> "DynamicMessage":
        _check_field(message, field)
        if field.kind != FieldKind.MESSAGE or field.message_type is None or field.is_repeated:
            raise TypeError(f"Field {field.full_name} is not a singular message field")
        nested = message._values.get(field.name)
        if nested is None:
            nested = DynamicMessage(field.message_type)
            message._values[field.name] = nested
        return nested

    def field_size(self, message: "DynamicMessage", field: FieldDescriptor) -> int:
        _check_field(message, field)
        return len(message._values.get(field.name, ()))

    def get_repeated(self, message: "DynamicMessage", field: FieldDescriptor, index: int) -> Any:
        _check_field(message, field)
        return message._values[field.name][index]

    def add(self, message: "DynamicMessage", field: FieldDescriptor, value: Any) -> None:
        _check_field(message, field)
        if not field.is_repeated:
            raise TypeError(f"Field {field.full_name} is not repeated; use set")
        message._values.setdefault(field.name, []).append(_store(field, value))

    def add_message(self, message: "DynamicMessage", field: FieldDescriptor) -> "DynamicMessage":
        _check_field(message, field)
        if field.kind != FieldKind.MESSAGE or field.message_type is None or not field.is_repeated:
            raise TypeError(f"Field {field.full_name} is not a repeated message field")
        nested = DynamicMessage(field.message_type)
        message._values.setdefault(field.name, []).append(nested)
        return nested

    def _default(self, field: FieldDescriptor) -> Any:
        if field.kind == FieldKind.MESSAGE:
            assert field.message_type is not None
            return DynamicMessage(field.message_type)
        if field.kind == FieldKind.ENUM:
            assert field.enum_type is not None
            if field.default_value is not None:
                return field.enum_type.find_value_by_name(str(field.default_value))
            return field.enum_type.default_value
        if field.default_value is not None:
            return field.default_value
        return _ZERO_VALUES[field.kind]


_REFLECTION = DynamicReflection()


def _field_values_equal(field: FieldDescriptor, left: Any, right: Any) -> bool:
    if field.kind == FieldKind.ENUM:
        return left.number == right.number
    return left == right


class DynamicMessage:
    """A record whose shape is given by a :class:`Descriptor` at runtime.

    Singular fields track presence; unset fields read as their default. Fields can
    be accessed by name with ``msg["name"]`` for convenience.
    """

    __slots__ = ("_descriptor", "_values")

    def __init__(self, descriptor: Descriptor) -> None:
        self._descriptor = descriptor
        self._values: dict[str, Any] = {}

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    @property
    def reflection(self) -> DynamicReflection:
        return _REFLECTION

    def _field(self, name: str) -> FieldDescriptor:
        field = self._descriptor.find_field_by_name(name)
        if field is None:
            raise KeyError(f'No field "{name}" in message {self._descriptor.full_name}')
        return field

    def __getitem__(self, name: str) -> Any:
        return _REFLECTION.get(self, self._field(name))

    def __setitem__(self, name: str, value: Any) -> None:
        field = self._field(name)
        if field.is_repeated:
            self._values.pop(name, None)
            for item in value:
                _REFLECTION.add(self, field, item)
        else:
            _REFLECTION.set(self, field, value)

    def __contains__(self, name: str) -> bool:
        return _REFLECTION.has_field(self, self._field(name))

    def clear(self) -> None:
        self._values.clear()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicMessage):
            return NotImplemented
        if other._descriptor is not self._descriptor:
            return False
        for field in self._descriptor.fields:
            if field.is_repeated:
                left = self._values.get(field.name, [])
                right = other._values.get(field.name, [])
                if len(left) != len(right):
                    return False
                if not all(_field_values_equal(field, a, b) for a, b in zip(left, right)):
                    return False
                continue
            present = field.name in self._values
            if present != (field.name in other._values):
                return False
            if present and not _field_values_equal(
                field, self._values[field.name], other._values[field.name]
            ):
                return False
        return True

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        items = ", ".join(f"{name}={value!r}" for name, value in self._values.items())
        return f"{self._descriptor.full_name}({items})"
