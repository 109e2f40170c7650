"""Schema descriptors for reflection-driven records.

Descriptors describe the shape of a record type: an ordered list of fields, each
with a kind, a label and, for enum fields, the enum's symbol table. They carry no
values; instances are manipulated through :mod:`reflect_json.reflection`.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from functools import cached_property

# Type aliases for field values stored in records
PrimitiveValue = bool | int | float | str


class FieldKind(IntEnum):
    """Kind identifiers for record fields."""

    DOUBLE = 1
    FLOAT = 2
    INT32 = 3
    UINT32 = 4
    INT64 = 5
    UINT64 = 6
    BOOL = 7
    STRING = 8
    MESSAGE = 9
    ENUM = 10
    BYTES = 11  # known to the schema loader, not handled by the JSON codec


class Label(IntEnum):
    """Repetition and presence of a field."""

    OPTIONAL = 1
    REQUIRED = 2
    REPEATED = 3


@dataclass(frozen=True, slots=True)
class EnumValueDescriptor:
    name: str
    number: int


@dataclass(eq=False)
class EnumDescriptor:
    """An enum type: ordered (name, number) pairs."""

    full_name: str
    values: list[EnumValueDescriptor] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    @property
    def default_value(self) -> EnumValueDescriptor | None:
        return self.values[0] if self.values else None

    @cached_property
    def _by_name(self) -> dict[str, EnumValueDescriptor]:
        return {value.name: value for value in self.values}

    @cached_property
    def _by_number(self) -> dict[int, EnumValueDescriptor]:
        by_number: dict[int, EnumValueDescriptor] = {}
        for value in self.values:
            # Aliases share a number; the first declared one wins
            by_number.setdefault(value.number, value)
        return by_number

    def find_value_by_name(self, name: str) -> EnumValueDescriptor | None:
        return self._by_name.get(name)

    def find_value_by_number(self, number: int) -> EnumValueDescriptor | None:
        return self._by_number.get(number)

    def __repr__(self) -> str:
        return f"EnumDescriptor({self.full_name!r})"


@dataclass(eq=False)
class FieldDescriptor:
    """A single field of a record type."""

    name: str
    number: int
    kind: FieldKind
    label: Label = Label.OPTIONAL

    # Only set for MESSAGE and ENUM kinds; may be linked after construction
    message_type: "Descriptor | None" = None
    enum_type: EnumDescriptor | None = None

    # Explicit schema default for singular scalar and enum fields
    default_value: PrimitiveValue | None = None

    containing_type: "Descriptor | None" = field(default=None, init=False, repr=False)

    @property
    def is_repeated(self) -> bool:
        return self.label == Label.REPEATED

    @property
    def is_required(self) -> bool:
        return self.label == Label.REQUIRED

    @property
    def full_name(self) -> str:
        if self.containing_type is None:
            return self.name
        return f"{self.containing_type.full_name}.{self.name}"

    def __repr__(self) -> str:
        return f"FieldDescriptor({self.full_name!r}, {self.kind.name}, {self.label.name})"


@dataclass(eq=False)
class Descriptor:
    """A record type: fields in schema-declaration order."""

    full_name: str
    fields: list[FieldDescriptor] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for fd in self.fields:
            if fd.name in seen:
                raise ValueError(f"Duplicate field '{fd.name}' in message {self.full_name}")
            seen.add(fd.name)
            if fd.containing_type is not None and fd.containing_type is not self:
                raise ValueError(
                    f"Field '{fd.name}' already belongs to message {fd.containing_type.full_name}"
                )
            fd.containing_type = self

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    @cached_property
    def fields_by_name(self) -> dict[str, FieldDescriptor]:
        return {fd.name: fd for fd in self.fields}

    def find_field_by_name(self, name: str) -> FieldDescriptor | None:
        return self.fields_by_name.get(name)

    def __str__(self) -> str:
        """Return a schema-like listing of the fields."""
        lines = [f"message {self.full_name}"]
        for fd in self.fields:
            if fd.kind == FieldKind.MESSAGE and fd.message_type is not None:
                type_name = fd.message_type.full_name
            elif fd.kind == FieldKind.ENUM and fd.enum_type is not None:
                type_name = fd.enum_type.full_name
            else:
                type_name = fd.kind.name.lower()
            lines.append(f"  {fd.label.name.lower()} {type_name} {fd.name} = {fd.number}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Descriptor({self.full_name!r})"
