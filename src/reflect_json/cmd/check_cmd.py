"""Check command - validate a JSON file against a message type."""

from typing import Annotated

from cyclopts import Parameter
from rich.markup import escape

from reflect_json.cmd._common import configure_logging, console_out, open_schema, read_message


def check(
    schema: str,
    json_file: str,
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
    """Check that a JSON file decodes into a message type.

    Exits with status 1 and prints the location of the first offending value
    (e.g. ``/phone[1]/number: Expected string``) if decoding fails.

    Parameters
    ----------
    schema
        Path to the schema file.
    json_file
        Path to the JSON file to check.
    message_type
        Fully qualified message type (defaults to the first message in the schema).
    verbose
        Enable debug logging.
    """
    configure_logging(verbose=verbose)
    pool = open_schema(schema)
    message = read_message(pool, json_file, message_type)
    console_out.print(
        f"[green]OK[/green] {escape(json_file)} is a valid {message.descriptor.full_name}",
        soft_wrap=True,
    )
