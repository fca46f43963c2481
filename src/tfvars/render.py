"""Canonical rendering of one alert block.

Field order is fixed (see ``ALERT_FIELDS``), followed by additional fields in
insertion order, with ``=`` aligned the way ``terraform fmt`` aligns a run of
attributes.  The same record always renders to the same bytes.
"""

from __future__ import annotations

import re

from src.contracts.alert import ALERT_FIELDS, AlertRecord
from src.tfvars.lexer import encode_string

DEFAULT_INDENT = "  "

_IDENT_RX = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*\Z")


def format_number(value: int | float) -> str:
    """Render a number without redundant trailing zeros (``5.0`` → ``5``)."""
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers here")
    if isinstance(value, int):
        return str(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return encode_string(str(value))


def render_alert(record: AlertRecord, indent: str = DEFAULT_INDENT) -> str:
    """Render *record* as an HCL object literal.

    The first line carries no indentation (the caller positions the block);
    fields are indented one level deeper than *indent* and the closing brace
    sits at *indent*.
    """
    pairs: list[tuple[str, str]] = []
    for attr, _kind in ALERT_FIELDS:
        value = getattr(record, attr)
        if value is not None:
            pairs.append((attr, format_value(value)))
    for key, raw in record.additional_fields.items():
        pairs.append((key if _IDENT_RX.match(key) else encode_string(key), raw))

    if not pairs:
        return "{}"

    width = max(len(key) for key, _ in pairs)
    inner = indent + DEFAULT_INDENT
    lines = ["{"]
    lines.extend(f"{inner}{key.ljust(width)} = {text}" for key, text in pairs)
    lines.append(f"{indent}}}")
    return "\n".join(lines)
