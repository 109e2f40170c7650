"""Roundtrip command - decode a JSON file, print it as text and encode it again."""

import sys
from typing import Annotated

from cyclopts import Parameter
from rich.json import JSON
from rich.panel import Panel
from rich.text import Text

from reflect_json.cmd._common import (
    configure_logging,
    console_out,
    fail,
    open_schema,
    read_message,
)
from reflect_json.jsonio import encode_json
from reflect_json.text_format import to_text


def roundtrip(
    schema: str,
    json_file: str,
    *,
    message_type: Annotated[
        str | None,
        Parameter(
            name=["-m", "--message-type"],
        ),
    ] = None,
    json_only: Annotated[
        bool,
        Parameter(
            name=["-j", "--json-only"],
        ),
    ] = False,
    verbose: Annotated[
        bool,
        Parameter(
            name=["-v", "--verbose"],
        ),
    ] = False,
) -> None:
    """Decode a JSON file into a record, show it in text format and re-encode it.

    Examples:
      # Show text format and re-encoded JSON
      reflect-json roundtrip addressbook.proto person.json

      # Only print the re-encoded JSON, e.g. to pipe into another tool
      reflect-json roundtrip addressbook.proto person.json --json-only

    Parameters
    ----------
    schema
        Path to the schema file.
    json_file
        Path to the JSON file to decode.
    message_type
        Fully qualified message type (defaults to the first message in the schema).
    json_only
        Print only the re-encoded JSON, without formatting.
    verbose
        Enable debug logging.
    """
    configure_logging(verbose=verbose)
    pool = open_schema(schema)
    message = read_message(pool, json_file, message_type)

    try:
        encoded = encode_json(message, indent=2)
    except ValueError as e:
        fail(f"Cannot encode {json_file}: {e}")

    if json_only:
        sys.stdout.write(encoded + "\n")
        return

    # Field values are user data, never markup
    console_out.print(
        Panel(
            Text(to_text(message).rstrip("\n")),
            title=Text(message.descriptor.full_name, style="bold"),
            title_align="left",
        )
    )
    console_out.print(JSON(encoded))
