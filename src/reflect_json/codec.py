"""Bidirectional codec between reflected records and JSON value trees.

``decode`` walks a JSON object's members and assigns them to the record's fields;
``encode`` walks the record's fields in declaration order and builds a JSON object.
Both share the same per-kind dispatch from :mod:`reflect_json.kinds`.
"""

import logging
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from typing import Any

from reflect_json.descriptors import FieldDescriptor, FieldKind
from reflect_json.errors import (
    ArrayExpectedError,
    DecodeError,
    ObjectExpectedError,
    UnknownFieldError,
)
from reflect_json.kinds import SCALAR_CODECS, decode_enum, decode_scalar, encode_enum, encode_scalar
from reflect_json.reflection import Message, Reflection

logger = logging.getLogger(__name__)

JsonObject = MutableMapping[str, Any]
ObjectFactory = Callable[[], JsonObject]


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _is_handled(field: FieldDescriptor) -> bool:
    return field.kind in SCALAR_CODECS or field.kind in (FieldKind.MESSAGE, FieldKind.ENUM)


def decode_field(
    value: Any, message: Message, reflection: Reflection, field: FieldDescriptor
) -> None:
    """Decode a JSON value into a singular field."""
    if field.kind == FieldKind.MESSAGE:
        if not isinstance(value, Mapping):
            raise ObjectExpectedError
        decode(value, reflection.mutable_message(message, field))
    elif field.kind == FieldKind.ENUM:
        assert field.enum_type is not None
        reflection.set(message, field, decode_enum(field.enum_type, value))
    elif field.kind in SCALAR_CODECS:
        reflection.set(message, field, decode_scalar(field.kind, value))
    else:
        logger.debug(f"Skipping field {field.full_name} of unsupported kind {field.kind.name}")


def decode_repeated_field(
    array_value: Any, message: Message, reflection: Reflection, field: FieldDescriptor
) -> None:
    """Decode a JSON array into a repeated field, appending element by element.

    Decoding stops at the first invalid element; elements appended before it are
    left in the record.
    """
    if not _is_array(array_value):
        raise ArrayExpectedError
    if not _is_handled(field):
        logger.debug(f"Skipping field {field.full_name} of unsupported kind {field.kind.name}")
        return

    for index, value in enumerate(array_value):
        try:
            if field.kind == FieldKind.MESSAGE:
                # Type check first so a non-object does not leave an empty element behind
                if not isinstance(value, Mapping):
                    raise ObjectExpectedError
                decode(value, reflection.add_message(message, field))
            elif field.kind == FieldKind.ENUM:
                assert field.enum_type is not None
                reflection.add(message, field, decode_enum(field.enum_type, value))
            else:
                reflection.add(message, field, decode_scalar(field.kind, value))
        except DecodeError as exc:
            exc.prepend(f"[{index}]")
            raise


def encode_field(
    message: Message,
    reflection: Reflection,
    field: FieldDescriptor,
    object_factory: ObjectFactory = dict,
) -> Any:
    """Encode a singular field to a JSON value."""
    value = reflection.get(message, field)
    if field.kind == FieldKind.MESSAGE:
        return encode(value, object_factory=object_factory)
    if field.kind == FieldKind.ENUM:
        return encode_enum(value)
    return encode_scalar(field.kind, value)


def encode_repeated_field(
    message: Message,
    reflection: Reflection,
    field: FieldDescriptor,
    object_factory: ObjectFactory = dict,
) -> list[Any]:
    """Encode a repeated field to a JSON array, empty if the field has no elements."""
    count = reflection.field_size(message, field)
    array: list[Any] = []
    for index in range(count):
        value = reflection.get_repeated(message, field, index)
        if field.kind == FieldKind.MESSAGE:
            array.append(encode(value, object_factory=object_factory))
        elif field.kind == FieldKind.ENUM:
            array.append(encode_enum(value))
        else:
            array.append(encode_scalar(field.kind, value))
    return array


def decode(value: Any, message: Message) -> None:
    """Populate ``message`` from a JSON object.

    Every member must name a field of the message. The first failure stops decoding
    and raises a :class:`DecodeError` whose ``path`` locates the offending value;
    fields assigned before the failure keep their new values.

    Integer and enum fields accept integral floats such as ``3.0``, which a strict
    JSON reader distinguishing ints from doubles would reject. Float fields reject
    finite numbers that overflow single precision.

    :param value: A JSON value tree (mappings, sequences and scalars).
    :param message: The record to populate.
    :raises DecodeError: If the value does not match the message's schema.
    """
    if not isinstance(value, Mapping):
        raise ObjectExpectedError

    descriptor = message.descriptor
    reflection = message.reflection

    for key, member in value.items():
        field = descriptor.find_field_by_name(key)
        if field is None:
            raise UnknownFieldError(descriptor.full_name, key)

        try:
            if field.is_repeated:
                decode_repeated_field(member, message, reflection, field)
            else:
                decode_field(member, message, reflection, field)
        except DecodeError as exc:
            exc.prepend(f"/{key}")
            raise


def encode(message: Message, *, object_factory: ObjectFactory = dict) -> JsonObject:
    """Build a JSON object from ``message``.

    Fields are emitted in declaration order. Repeated fields are always present (as
    possibly empty arrays); singular fields only when required or set.

    :param message: The record to encode.
    :param object_factory: Factory for JSON objects, ``dict`` by default.
    :return: The JSON object.
    """
    descriptor = message.descriptor
    reflection = message.reflection
    result = object_factory()

    for field in descriptor.fields:
        if not _is_handled(field):
            logger.debug(f"Skipping field {field.full_name} of unsupported kind {field.kind.name}")
            continue
        if field.is_repeated:
            result[field.name] = encode_repeated_field(message, reflection, field, object_factory)
        elif field.is_required or reflection.has_field(message, field):
            result[field.name] = encode_field(message, reflection, field, object_factory)

    return result
