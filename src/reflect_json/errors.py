from typing import Any


class ReflectJsonError(Exception):
    pass


class DecodeError(ReflectJsonError):
    """Raised if a JSON value cannot be decoded into a record.

    The error path is built while the failure unwinds through nested fields, so the
    outermost caller sees the full location, e.g. ``/addresses[1]/street``.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self._segments: list[str] = []

    @property
    def path(self) -> str:
        return "".join(self._segments)

    def prepend(self, segment: str) -> None:
        self._segments.insert(0, segment)

    def __str__(self) -> str:
        if not self._segments:
            return self.reason
        return f"{self.path}: {self.reason}"


class ObjectExpectedError(DecodeError):
    def __init__(self) -> None:
        super().__init__("Expected object")


class ArrayExpectedError(DecodeError):
    def __init__(self) -> None:
        super().__init__("Expected array")


class TypeMismatchError(DecodeError):
    def __init__(self, expected: str) -> None:
        super().__init__(f"Expected {expected}")
        self.expected = expected


class UnknownFieldError(DecodeError):
    def __init__(self, record_type: str, field_name: str) -> None:
        super().__init__(f'No field "{field_name}" in message {record_type}')
        self.record_type = record_type
        self.field_name = field_name


class UnknownEnumValueError(DecodeError):
    def __init__(self, enum_type: str, literal: Any) -> None:
        super().__init__(f'No value "{literal}" in enum {enum_type}')
        self.enum_type = enum_type
        self.literal = str(literal)


class SchemaError(ReflectJsonError):
    def __init__(self, message: str, *, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
