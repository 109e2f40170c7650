"""Reflection adapter for ``google.protobuf`` messages.

Requires the ``protobuf`` extra. Wrap a generated (or ``message_factory``-built)
message in :class:`ProtobufMessage` to run the codec over it::

    person = addressbook_pb2.Person()
    decode(value, ProtobufMessage(person))
    encode(ProtobufMessage(person))

Descriptors are converted once per message type and cached. Map fields are not
supported.
"""

import logging
from typing import Any

from google.protobuf.descriptor import Descriptor as PbDescriptor
from google.protobuf.descriptor import EnumDescriptor as PbEnumDescriptor
from google.protobuf.descriptor import FieldDescriptor as PbFieldDescriptor
from google.protobuf.message import Message as PbMessage

from reflect_json.descriptors import (
    Descriptor,
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldKind,
    Label,
    PrimitiveValue,
)

logger = logging.getLogger(__name__)

_CPP_KINDS: dict[int, FieldKind] = {
    PbFieldDescriptor.CPPTYPE_DOUBLE: FieldKind.DOUBLE,
    PbFieldDescriptor.CPPTYPE_FLOAT: FieldKind.FLOAT,
    PbFieldDescriptor.CPPTYPE_INT32: FieldKind.INT32,
    PbFieldDescriptor.CPPTYPE_UINT32: FieldKind.UINT32,
    PbFieldDescriptor.CPPTYPE_INT64: FieldKind.INT64,
    PbFieldDescriptor.CPPTYPE_UINT64: FieldKind.UINT64,
    PbFieldDescriptor.CPPTYPE_BOOL: FieldKind.BOOL,
    PbFieldDescriptor.CPPTYPE_ENUM: FieldKind.ENUM,
    PbFieldDescriptor.CPPTYPE_MESSAGE: FieldKind.MESSAGE,
}

# Keyed by (file name, full name); protobuf may hand out fresh descriptor wrappers
_descriptors: dict[tuple[str, str], Descriptor] = {}
_enums: dict[tuple[str, str], EnumDescriptor] = {}


def _kind(pb_field: PbFieldDescriptor) -> FieldKind:
    if pb_field.cpp_type == PbFieldDescriptor.CPPTYPE_STRING:
        return FieldKind.BYTES if pb_field.type == PbFieldDescriptor.TYPE_BYTES else FieldKind.STRING
    return _CPP_KINDS[pb_field.cpp_type]


def _label(pb_field: PbFieldDescriptor) -> Label:
    if pb_field.is_repeated:
        return Label.REPEATED
    if pb_field.is_required:
        return Label.REQUIRED
    return Label.OPTIONAL


def _default(pb_field: PbFieldDescriptor) -> PrimitiveValue | None:
    if pb_field.is_repeated or not pb_field.has_default_value:
        return None
    if pb_field.cpp_type == PbFieldDescriptor.CPPTYPE_MESSAGE:
        return None
    if pb_field.cpp_type == PbFieldDescriptor.CPPTYPE_ENUM:
        return pb_field.enum_type.values_by_number[pb_field.default_value].name
    return pb_field.default_value


def enum_descriptor_for(pb_enum: PbEnumDescriptor) -> EnumDescriptor:
    key = (pb_enum.file.name, pb_enum.full_name)
    enum_type = _enums.get(key)
    if enum_type is None:
        values = [EnumValueDescriptor(value.name, value.number) for value in pb_enum.values]
        enum_type = _enums[key] = EnumDescriptor(pb_enum.full_name, values)
    return enum_type


def descriptor_for(pb_descriptor: PbDescriptor) -> Descriptor:
    """Convert a protobuf message descriptor to a :class:`Descriptor`.

    :raises ValueError: If the message type has a map field.
    """
    key = (pb_descriptor.file.name, pb_descriptor.full_name)
    cached = _descriptors.get(key)
    if cached is not None:
        return cached

    fields = []
    for pb_field in pb_descriptor.fields:
        if pb_field.message_type is not None and pb_field.message_type.GetOptions().map_entry:
            raise ValueError(f"Map field {pb_field.full_name} is not supported")
        fields.append(
            FieldDescriptor(
                pb_field.name,
                pb_field.number,
                _kind(pb_field),
                _label(pb_field),
                default_value=_default(pb_field),
            )
        )
    descriptor = Descriptor(pb_descriptor.full_name, fields)
    # Register before linking so recursive message types resolve to this instance
    _descriptors[key] = descriptor

    for field, pb_field in zip(fields, pb_descriptor.fields, strict=True):
        if field.kind == FieldKind.MESSAGE:
            field.message_type = descriptor_for(pb_field.message_type)
        elif field.kind == FieldKind.ENUM:
            field.enum_type = enum_descriptor_for(pb_field.enum_type)

    logger.debug(f"Converted protobuf descriptor {pb_descriptor.full_name} ({len(fields)} fields)")
    return descriptor


def _check_field(message: "ProtobufMessage", field: FieldDescriptor) -> None:
    if field.containing_type is not message.descriptor:
        raise KeyError(f"Field {field.full_name} does not belong to {message.descriptor.full_name}")


def _to_field_value(field: FieldDescriptor, value: Any) -> Any:
    if field.kind == FieldKind.ENUM:
        assert field.enum_type is not None
        resolved = field.enum_type.find_value_by_number(value)
        # Open (proto3) enums can hold numbers without a declared name
        return resolved if resolved is not None else EnumValueDescriptor(str(value), value)
    if field.kind == FieldKind.MESSAGE:
        return ProtobufMessage(value)
    return value


def _to_protobuf_value(field: FieldDescriptor, value: Any) -> Any:
    if field.kind == FieldKind.ENUM:
        if not isinstance(value, EnumValueDescriptor):
            raise TypeError(f"Field {field.full_name} expects an EnumValueDescriptor, got {value!r}")
        return value.number
    if field.kind == FieldKind.MESSAGE:
        if not isinstance(value, ProtobufMessage) or value.descriptor is not field.message_type:
            raise TypeError(f"Field {field.full_name} expects a {field.message_type} instance")
        return value.message
    return value


class ProtobufReflection:
    """:class:`Reflection` implementation over ``google.protobuf`` messages."""

    def has_field(self, message: "ProtobufMessage", field: FieldDescriptor) -> bool:
        _check_field(message, field)
        pb_message = message.message
        if field.is_repeated:
            return len(getattr(pb_message, field.name)) > 0
        pb_field = pb_message.DESCRIPTOR.fields_by_name[field.name]
        if pb_field.has_presence:
            return pb_message.HasField(field.name)
        # proto3 implicit presence: set means non-default
        return getattr(pb_message, field.name) != pb_field.default_value

    def get(self, message: "ProtobufMessage", field: FieldDescriptor) -> Any:
        _check_field(message, field)
        value = getattr(message.message, field.name)
        if field.is_repeated:
            return [_to_field_value(field, item) for item in value]
        return _to_field_value(field, value)

    def set(self, message: "ProtobufMessage", field: FieldDescriptor, value: Any) -> None:
        _check_field(message, field)
        if field.is_repeated:
            raise TypeError(f"Field {field.full_name} is repeated; use add")
        converted = _to_protobuf_value(field, value)
        if field.kind == FieldKind.MESSAGE:
            # Composite fields cannot be assigned
            getattr(message.message, field.name).CopyFrom(converted)
        else:
            setattr(message.message, field.name, converted)

    def mutable_message(self, message: "ProtobufMessage", field: FieldDescriptor) -> "ProtobufMessage":
        _check_field(message, field)
        if field.kind != FieldKind.MESSAGE or field.is_repeated:
            raise TypeError(f"Field {field.full_name} is not a singular message field")
        nested = getattr(message.message, field.name)
        nested.SetInParent()
        return ProtobufMessage(nested)

    def field_size(self, message: "ProtobufMessage", field: FieldDescriptor) -> int:
        _check_field(message, field)
        return len(getattr(message.message, field.name))

    def get_repeated(self, message: "ProtobufMessage", field: FieldDescriptor, index: int) -> Any:
        _check_field(message, field)
        return _to_field_value(field, getattr(message.message, field.name)[index])

    def add(self, message: "ProtobufMessage", field: FieldDescriptor, value: Any) -> None:
        _check_field(message, field)
        if not field.is_repeated:
            raise TypeError(f"Field {field.full_name} is not repeated; use set")
        container = getattr(message.message, field.name)
        converted = _to_protobuf_value(field, value)
        if field.kind == FieldKind.MESSAGE:
            container.add().CopyFrom(converted)
        else:
            container.append(converted)

    def add_message(self, message: "ProtobufMessage", field: FieldDescriptor) -> "ProtobufMessage":
        _check_field(message, field)
        if field.kind != FieldKind.MESSAGE or not field.is_repeated:
            raise TypeError(f"Field {field.full_name} is not a repeated message field")
        return ProtobufMessage(getattr(message.message, field.name).add())


_REFLECTION = ProtobufReflection()


class ProtobufMessage:
    """A protobuf message exposed as a :class:`Message`.

    The wrapper holds a reference; changes made through the codec land in the wrapped
    message.
    """

    __slots__ = ("_descriptor", "_message")

    def __init__(self, message: PbMessage) -> None:
        self._message = message
        self._descriptor = descriptor_for(message.DESCRIPTOR)

    @property
    def message(self) -> PbMessage:
        return self._message

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    @property
    def reflection(self) -> ProtobufReflection:
        return _REFLECTION

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProtobufMessage):
            return NotImplemented
        return self._message == other._message

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ProtobufMessage({self._descriptor.full_name})"
