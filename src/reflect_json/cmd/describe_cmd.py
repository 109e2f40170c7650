"""Describe command - list message types and their fields."""

from typing import Annotated

from cyclopts import Parameter
from rich.table import Table
from rich.text import Text

from reflect_json.cmd._common import configure_logging, console_out, fail, open_schema
from reflect_json.descriptors import Descriptor, FieldDescriptor, FieldKind


def _type_name(field: FieldDescriptor) -> str:
    if field.kind == FieldKind.MESSAGE and field.message_type is not None:
        return field.message_type.full_name
    if field.kind == FieldKind.ENUM and field.enum_type is not None:
        return field.enum_type.full_name
    return field.kind.name.lower()


def _fields_table(descriptor: Descriptor) -> Table:
    table = Table(title=descriptor.full_name, title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Field", style="bold")
    table.add_column("Label")
    table.add_column("Type", style="cyan")
    table.add_column("Default")

    for field in descriptor.fields:
        default = "" if field.default_value is None else repr(field.default_value)
        table.add_row(
            str(field.number),
            field.name,
            field.label.name.lower(),
            _type_name(field),
            Text(default),
        )
    return table


def describe(
    schema: str,
    *,
    message_type: Annotated[
        str | None,
        Parameter(
            name=["-m", "--message-type"],
        ),
    ] = None,
    verbose: Annotated[
        bool,
        Parameter(
            name=["-v", "--verbose"],
        ),
    ] = False,
) -> None:
    """List the message types defined in a schema file.

    Parameters
    ----------
    schema
        Path to the schema file.
    message_type
        Only show this fully qualified message type.
    verbose
        Enable debug logging.
    """
    configure_logging(verbose=verbose)
    pool = open_schema(schema)

    if message_type is not None:
        try:
            descriptors = [pool.find_message_type(message_type)]
        except KeyError:
            fail(f"Message type {message_type} not found in schema")
    else:
        descriptors = pool.message_types()

    for descriptor in descriptors:
        console_out.print(_fields_table(descriptor))
