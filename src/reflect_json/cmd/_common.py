"""Shared helpers for reflect-json commands."""

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from reflect_json.errors import DecodeError, SchemaError
from reflect_json.jsonio import decode_json
from reflect_json.reflection import DynamicMessage
from reflect_json.schema import SchemaPool, load_schema

logger = logging.getLogger(__name__)

console_err = Console(stderr=True)  # Use stderr for errors
console_out = Console()  # Use stdout for data output


def configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console_err, rich_tracebacks=True)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    console_err.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    sys.exit(1)


def open_schema(schema: str) -> SchemaPool:
    """Load a schema file, exiting with an error message on failure."""
    try:
        pool = load_schema(schema)
    except OSError as e:
        fail(f"Cannot read schema {schema}: {e.strerror}")
    except SchemaError as e:
        fail(f"Invalid schema {schema}: {e}")
    logger.info(f"Loaded {len(pool.message_types())} message types from {schema}")
    return pool


def new_message(pool: SchemaPool, message_type: str | None) -> DynamicMessage:
    """Create an empty record; defaults to the first message type in the schema."""
    if message_type is None:
        types = pool.message_types()
        if not types:
            fail("Schema defines no message types")
        message_type = types[0].full_name
        logger.info(f"Using message type {message_type}")
    try:
        return pool.new_message(message_type)
    except KeyError:
        fail(f"Message type {message_type} not found in schema")


def read_message(pool: SchemaPool, json_file: str, message_type: str | None) -> DynamicMessage:
    """Decode a JSON file into a new record, exiting with the error path on failure."""
    message = new_message(pool, message_type)
    try:
        data = Path(json_file).read_bytes()
    except OSError as e:
        fail(f"Cannot read {json_file}: {e.strerror}")
    try:
        decode_json(data, message)
    except json.JSONDecodeError as e:
        fail(f"Parse error in {json_file}: {e}")
    except DecodeError as e:
        fail(f"Decoding error in {json_file}: {e}")
    return message
