"""Load record descriptors from proto2-style schema text.

Supports the subset needed to describe plain records::

    syntax = "proto2";
    package addressbook;

    message Person {
      required string name = 1;
      optional string email = 3;
      enum PhoneType { MOBILE = 0; HOME = 1; WORK = 2; }
      message PhoneNumber {
        required string number = 1;
        optional PhoneType type = 2 [default = HOME];
      }
      repeated PhoneNumber phone = 4;
    }

``oneof``, ``map<>``, groups, extensions and services are rejected.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedToken

from reflect_json.descriptors import (
    Descriptor,
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldKind,
    Label,
    PrimitiveValue,
)
from reflect_json.errors import SchemaError
from reflect_json.reflection import DynamicMessage

logger = logging.getLogger(__name__)

SCALAR_TYPES: dict[str, FieldKind] = {
    "double": FieldKind.DOUBLE,
    "float": FieldKind.FLOAT,
    "int32": FieldKind.INT32,
    "sint32": FieldKind.INT32,
    "sfixed32": FieldKind.INT32,
    "uint32": FieldKind.UINT32,
    "fixed32": FieldKind.UINT32,
    "int64": FieldKind.INT64,
    "sint64": FieldKind.INT64,
    "sfixed64": FieldKind.INT64,
    "uint64": FieldKind.UINT64,
    "fixed64": FieldKind.UINT64,
    "bool": FieldKind.BOOL,
    "string": FieldKind.STRING,
    "bytes": FieldKind.BYTES,
}

_LABELS = {
    "optional": Label.OPTIONAL,
    "required": Label.REQUIRED,
    "repeated": Label.REPEATED,
}

_GRAMMAR = r"""
start: _item*

_item: syntax
     | package
     | import_stmt
     | option_stmt
     | message
     | enum
     | unsupported
     | ";"

syntax: "syntax" "=" STRING ";"
package: "package" type_name ";"
import_stmt: "import" ("public" | "weak")? STRING ";"
option_stmt: "option" option_name "=" constant ";"
unsupported: UNSUPPORTED

message: "message" IDENT "{" _member* "}"
_member: field
       | message
       | enum
       | option_stmt
       | reserved
       | extensions
       | ";"

field: label? _field_type IDENT "=" NUMBER field_options? ";"
!label: "optional" | "required" | "repeated"
_field_type: type_name | UNSUPPORTED
field_options: "[" field_option ("," field_option)* "]"
field_option: option_name "=" constant

reserved: "reserved" _ranges ";"
extensions: "extensions" _ranges ";"
_ranges: _range ("," _range)*
_range: NUMBER ("to" (NUMBER | "max"))? | STRING

enum: "enum" IDENT "{" _enum_member* "}"
_enum_member: enum_value | option_stmt | reserved | ";"
enum_value: IDENT "=" SIGN? NUMBER field_options? ";"

!type_name: "."? IDENT ("." IDENT)*
!option_name: type_name | "(" type_name ")" ("." IDENT)*
constant: SIGN? (NUMBER | IDENT) | STRING

UNSUPPORTED.2: /(?:oneof|map|group|extend|service)\b/
IDENT: /[A-Za-z_][A-Za-z0-9_]*/
NUMBER: /0[xX][0-9a-fA-F]+|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?/
STRING: /"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'/
SIGN: "+" | "-"

%import common.WS
%import common.CPP_COMMENT
%import common.C_COMMENT
%ignore WS
%ignore CPP_COMMENT
%ignore C_COMMENT
"""

_ESCAPE_MAP = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
}
_ESCAPE_PATTERN = re.compile(r"\\(x[0-9a-fA-F]{1,2}|[0-7]{1,3}|.)")
_OCTAL_PATTERN = re.compile(r"^[-+]?0[0-7]+$")


@dataclass
class _FieldDecl:
    name: str
    number: int
    label: Label
    type_name: str
    default: str | None
    line: int


@dataclass
class _EnumDecl:
    name: str
    values: list[EnumValueDescriptor]
    line: int


@dataclass
class _MessageDecl:
    name: str
    line: int
    fields: list[_FieldDecl] = field(default_factory=list)
    nested: list["_MessageDecl | _EnumDecl"] = field(default_factory=list)
    full_name: str = ""


@dataclass
class _ParsedSchema:
    package: str
    messages: list[_MessageDecl] = field(default_factory=list)
    enums: dict[str, EnumDescriptor] = field(default_factory=dict)


def _parse_int(text: str) -> int:
    """Parse a decimal, hex (0x) or octal (leading 0) integer literal."""
    if _OCTAL_PATTERN.match(text):
        return int(text, 8)
    return int(text, 0)


def _to_int(token: Token, sign: str = "") -> int:
    try:
        return _parse_int(sign + token)
    except ValueError:
        raise SchemaError(f"Expected integer, found '{sign}{token}'", line=token.line) from None


def _unescape(literal: str) -> str:
    """Strip quotes from a string literal and process escape sequences."""

    def replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if escape[0] == "x":
            return chr(int(escape[1:], 16))
        if escape[0] in "01234567":
            return chr(int(escape, 8))
        return _ESCAPE_MAP.get(escape, escape)

    return _ESCAPE_PATTERN.sub(replace, literal[1:-1])


def _collect(decl: _MessageDecl | _EnumDecl, scope: str, schema: _ParsedSchema) -> None:
    """Qualify a declaration and its nested ones, appending them to ``schema``."""
    full_name = f"{scope}.{decl.name}" if scope else decl.name
    if full_name in schema.enums or any(m.full_name == full_name for m in schema.messages):
        raise SchemaError(f"Type {full_name} is already defined", line=decl.line)
    if isinstance(decl, _EnumDecl):
        if not decl.values:
            raise SchemaError(f"Enum {full_name} has no values", line=decl.line)
        schema.enums[full_name] = EnumDescriptor(full_name, decl.values)
        return
    decl.full_name = full_name
    # Keep declaration order: outer message before its nested ones
    schema.messages.append(decl)
    for nested in decl.nested:
        _collect(nested, full_name, schema)


class SchemaTransformer(Transformer[Token, _ParsedSchema]):
    """Transforms the Lark parse tree into message and enum declarations."""

    def start(self, items: list[Any]) -> _ParsedSchema:
        package = next((item for item in reversed(items) if isinstance(item, str)), "")
        schema = _ParsedSchema(package)
        for item in items:
            if isinstance(item, (_MessageDecl, _EnumDecl)):
                _collect(item, package, schema)
        return schema

    def syntax(self, items: list[Token]) -> None:
        syntax = _unescape(items[0])
        if syntax not in ("proto2", "proto3"):
            raise SchemaError(f"Unsupported syntax '{syntax}'", line=items[0].line)

    def package(self, items: list[str]) -> str:
        return items[0]

    def import_stmt(self, items: list[Token]) -> None:  # noqa: ARG002
        return None

    def option_stmt(self, items: list[Any]) -> None:  # noqa: ARG002
        return None

    def reserved(self, items: list[Token]) -> None:  # noqa: ARG002
        return None

    def extensions(self, items: list[Token]) -> None:  # noqa: ARG002
        return None

    def message(self, items: list[Any]) -> _MessageDecl:
        name = items[0]
        decl = _MessageDecl(str(name), name.line)
        for item in items[1:]:
            if isinstance(item, _FieldDecl):
                decl.fields.append(item)
            elif isinstance(item, (_MessageDecl, _EnumDecl)):
                decl.nested.append(item)
        return decl

    def field(self, items: list[Any]) -> _FieldDecl:
        label = items.pop(0) if isinstance(items[0], Label) else Label.OPTIONAL
        type_name, name, number, *options = items
        default = options[0] if options else None
        return _FieldDecl(str(name), _to_int(number), label, type_name, default, name.line)

    def label(self, items: list[Token]) -> Label:
        return _LABELS[str(items[0])]

    def field_options(self, items: list[tuple[str, str]]) -> str | None:
        """Return the ``default`` option, ignoring the others."""
        return dict(items).get("default")

    def field_option(self, items: list[str]) -> tuple[str, str]:
        return items[0], items[1]

    def enum(self, items: list[Any]) -> _EnumDecl:
        name = items[0]
        values = [item for item in items[1:] if isinstance(item, EnumValueDescriptor)]
        return _EnumDecl(str(name), values, name.line)

    def enum_value(self, items: list[Any]) -> EnumValueDescriptor:
        name, *rest = items
        sign = rest.pop(0) if rest[0].type == "SIGN" else ""
        return EnumValueDescriptor(str(name), _to_int(rest[0], sign))

    def type_name(self, items: list[Token]) -> str:
        return "".join(items)

    def option_name(self, items: list[str]) -> str:
        return "".join(items)

    def constant(self, items: list[Token]) -> str:
        """Keep the literal text; a leading sign is folded into numbers and inf/nan."""
        return "".join(items)


def _reject_unsupported(token: Token) -> Token:
    raise SchemaError(f"'{token}' is not supported", line=token.line)


_PARSER = Lark(
    _GRAMMAR,
    parser="lalr",
    transformer=SchemaTransformer(),
    lexer_callbacks={"UNSUPPORTED": _reject_unsupported},
)


def _parse(text: str) -> _ParsedSchema:
    try:
        return cast("_ParsedSchema", _PARSER.parse(text))
    except UnexpectedCharacters as exc:
        raise SchemaError(f"Unexpected character {exc.char!r}", line=exc.line) from exc
    except UnexpectedToken as exc:
        if exc.token.type == "$END":
            raise SchemaError("Unexpected end of schema", line=exc.line) from exc
        raise SchemaError(f"Unexpected '{exc.token}'", line=exc.line) from exc
    except UnexpectedEOF as exc:
        raise SchemaError("Unexpected end of schema") from exc


def _parse_default(
    decl: _FieldDecl, kind: FieldKind, enum_type: EnumDescriptor | None
) -> PrimitiveValue | None:
    raw = decl.default
    if raw is None:
        return None
    try:
        if kind in (FieldKind.DOUBLE, FieldKind.FLOAT):
            return float(raw)
        if kind in (FieldKind.INT32, FieldKind.UINT32, FieldKind.INT64, FieldKind.UINT64):
            return _parse_int(raw)
    except ValueError as exc:
        raise SchemaError(f"Invalid default '{raw}' for {decl.name}", line=decl.line) from exc
    if kind == FieldKind.BOOL and raw in ("true", "false"):
        return raw == "true"
    if kind in (FieldKind.STRING, FieldKind.BYTES) and raw[0] in "\"'":
        return _unescape(raw)
    if kind == FieldKind.ENUM and enum_type is not None and enum_type.find_value_by_name(raw):
        return raw
    raise SchemaError(f"Invalid default '{raw}' for {decl.name}", line=decl.line)


class SchemaPool:
    """Message and enum types loaded from one or more schema texts."""

    def __init__(self) -> None:
        self._messages: dict[str, Descriptor] = {}
        self._enums: dict[str, EnumDescriptor] = {}

    def add_source(self, text: str) -> None:
        """Parse schema text and add its types to the pool.

        :raises SchemaError: If the text cannot be parsed or references unknown types.
        """
        schema = _parse(text)

        for name in [d.full_name for d in schema.messages] + list(schema.enums):
            if name in self._messages or name in self._enums:
                raise SchemaError(f"Type {name} is already defined")
        self._enums.update(schema.enums)

        # Types defined in this source are visible before linking
        pending: list[tuple[FieldDescriptor, _FieldDecl, str]] = []
        created: dict[str, Descriptor] = {}
        for decl in schema.messages:
            fields: list[FieldDescriptor] = []
            for fdecl in decl.fields:
                kind = SCALAR_TYPES.get(fdecl.type_name)
                fd = FieldDescriptor(
                    fdecl.name, fdecl.number, kind or FieldKind.MESSAGE, fdecl.label
                )
                if kind is None:
                    pending.append((fd, fdecl, decl.full_name))
                else:
                    fd.default_value = _parse_default(fdecl, kind, None)
                fields.append(fd)
            try:
                created[decl.full_name] = Descriptor(decl.full_name, fields)
            except ValueError as exc:
                raise SchemaError(str(exc)) from exc

        self._messages.update(created)
        for fd, fdecl, scope in pending:
            self._link(fd, fdecl, scope)

        logger.debug(
            f"Loaded {len(created)} message types and {len(schema.enums)} enum types "
            f"(package '{schema.package}')"
        )

    def _resolve(self, type_name: str, scope: str) -> str | None:
        if type_name.startswith("."):
            name = type_name[1:]
            return name if name in self._messages or name in self._enums else None
        parts = scope.split(".") if scope else []
        for i in range(len(parts), -1, -1):
            candidate = ".".join([*parts[:i], type_name])
            if candidate in self._messages or candidate in self._enums:
                return candidate
        return None

    def _link(self, fd: FieldDescriptor, fdecl: _FieldDecl, scope: str) -> None:
        full_name = self._resolve(fdecl.type_name, scope)
        if full_name is None:
            raise SchemaError(
                f"Unknown type '{fdecl.type_name}' for field {scope}.{fdecl.name}", line=fdecl.line
            )
        if full_name in self._enums:
            fd.kind = FieldKind.ENUM
            fd.enum_type = self._enums[full_name]
            fd.default_value = _parse_default(fdecl, FieldKind.ENUM, fd.enum_type)
        else:
            if fdecl.default is not None:
                raise SchemaError(f"Message field {fdecl.name} cannot have a default", line=fdecl.line)
            fd.message_type = self._messages[full_name]

    def find_message_type(self, full_name: str) -> Descriptor:
        try:
            return self._messages[full_name]
        except KeyError:
            raise KeyError(f"Message type {full_name} not found") from None

    def find_enum_type(self, full_name: str) -> EnumDescriptor:
        try:
            return self._enums[full_name]
        except KeyError:
            raise KeyError(f"Enum type {full_name} not found") from None

    def message_types(self) -> list[Descriptor]:
        return list(self._messages.values())

    def new_message(self, full_name: str) -> DynamicMessage:
        return DynamicMessage(self.find_message_type(full_name))


def parse_schema(text: str) -> SchemaPool:
    pool = SchemaPool()
    pool.add_source(text)
    return pool


def load_schema(path: str | Path) -> SchemaPool:
    """Load a schema file into a new :class:`SchemaPool`."""
    return parse_schema(Path(path).read_text(encoding="utf-8"))
