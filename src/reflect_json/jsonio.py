"""JSON text helpers around the codec."""

import json
from typing import Any

from reflect_json.codec import decode, encode
from reflect_json.reflection import Message


def decode_json(data: str | bytes | memoryview, message: Message) -> None:
    """Parse JSON text and decode it into ``message``.

    :raises json.JSONDecodeError: If the text is not valid JSON.
    :raises DecodeError: If the JSON value does not match the message's schema.
    """
    # Convert memoryview to bytes for json.loads type compatibility
    value: Any = json.loads(data if isinstance(data, (str, bytes)) else bytes(data))
    decode(value, message)


def encode_json(message: Message, *, indent: int | None = None, sort_keys: bool = False) -> str:
    """Encode ``message`` to JSON text.

    :raises ValueError: If a float field holds inf or nan, which JSON cannot represent.
    """
    return json.dumps(
        encode(message), indent=indent, sort_keys=sort_keys, ensure_ascii=False, allow_nan=False
    )
