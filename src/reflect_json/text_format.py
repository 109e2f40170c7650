"""Human-readable text rendering of records, in protobuf text format."""

from typing import Any

from reflect_json.descriptors import FieldDescriptor, FieldKind
from reflect_json.reflection import Message

_INDENT = "  "

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    '"': '\\"',
    "'": "\\'",
    "\\": "\\\\",
}


def _quote(value: str | bytes) -> str:
    if isinstance(value, bytes):
        value = "".join(chr(b) if 0x20 <= b < 0x7F else f"\\{b:03o}" for b in value)
        return '"' + value.replace('"', '\\"') + '"'
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


def _format_scalar(field: FieldDescriptor, value: Any) -> str:
    if field.kind == FieldKind.ENUM:
        return value.name
    if field.kind == FieldKind.BOOL:
        return "true" if value else "false"
    if field.kind in (FieldKind.STRING, FieldKind.BYTES):
        return _quote(value)
    if field.kind in (FieldKind.DOUBLE, FieldKind.FLOAT):
        return repr(float(value))
    return str(value)


def _write(message: Message, lines: list[str], depth: int) -> None:
    reflection = message.reflection
    prefix = _INDENT * depth

    for field in message.descriptor.fields:
        if field.is_repeated:
            values = [
                reflection.get_repeated(message, field, i)
                for i in range(reflection.field_size(message, field))
            ]
        elif reflection.has_field(message, field):
            values = [reflection.get(message, field)]
        else:
            continue

        for value in values:
            if field.kind == FieldKind.MESSAGE:
                lines.append(f"{prefix}{field.name} {{")
                _write(value, lines, depth + 1)
                lines.append(f"{prefix}}}")
            else:
                lines.append(f"{prefix}{field.name}: {_format_scalar(field, value)}")


def to_text(message: Message) -> str:
    """Render the set fields of ``message`` in declaration order.

    Example output::

        name: "Alice"
        id: 1
        phone {
          number: "555-0100"
          type: HOME
        }
    """
    lines: list[str] = []
    _write(message, lines, 0)
    return "\n".join(lines) + "\n" if lines else ""
