"""Text-format codecs for scalar column types.

The back office binds form and JSON values as they arrive: dates as
``"2024-01-15"``, amounts as ``"1500.50"``, ids as numbers. Sending those
types in text format lets the server cast each parameter to its column type
instead of asyncpg rejecting it client-side. Reads follow the same
convention: numeric, date and timestamp values come back as strings.
"""

from typing import Any, Callable, Tuple

# (type name in pg_catalog, decoder for the server's text output)
TEXT_CODEC_TYPES: Tuple[Tuple[str, Callable[[str], Any]], ...] = (
    ("text", str),
    ("varchar", str),
    ("bpchar", str),
    ("date", str),
    ("timestamp", str),
    ("timestamptz", str),
    ("numeric", str),
    ("float4", float),
    ("float8", float),
    ("int2", int),
    ("int4", int),
    ("int8", int),
    ("bool", lambda value: value == "t"),
)


def encode_text(value: Any) -> str:
    """Render a Python value in PostgreSQL's text input format."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)


async def register_text_codecs(conn) -> None:
    """Install text-format codecs on a freshly opened pool connection."""
    for type_name, decoder in TEXT_CODEC_TYPES:
        await conn.set_type_codec(
            type_name,
            schema="pg_catalog",
            encoder=encode_text,
            decoder=decoder,
            format="text",
        )
