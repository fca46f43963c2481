"""Lossless reader/writer for the ``nrql_alerts`` section of a tfvars file.

Document shape
──────────────
    # anything the codec does not interpret
    nrql_alerts = [
      {
        name       = "PrintParcel - DPD - Average Duration"
        nrql_query = "SELECT average(duration) FROM ... WHERE CarrierName = 'DPD'"
        tags       = { team = "carriers" }
      },
      { ... }
    ]

Only the list interior (between ``[`` and ``]``) is ever rewritten.  Each
record remembers the verbatim text of its block; a record that still holds
the parsed values is written back as that text, and the separators between
blocks are reused by position.  Hence ``replace_alerts(d, parse_alerts(d))``
returns ``d`` byte for byte.

Both passes are explicit state machines over the token stream from
:mod:`src.tfvars.lexer`; no recursive descent over general HCL expressions.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from src.contracts.alert import FIELD_KINDS, AlertRecord, BlockOrigin
from src.contracts.errors import MalformedBlockError, SectionNotFoundError
from src.tfvars.lexer import (
    CLOSERS,
    OPENERS,
    TRIVIA,
    Token,
    TokenKind,
    decode_heredoc,
    decode_string,
    tokenize,
)
from src.tfvars.render import DEFAULT_INDENT, render_alert

log = logging.getLogger(__name__)

DEFAULT_SECTION_KEY = "nrql_alerts"

_DEFAULT_SEPARATOR = ",\n"

_INT_RX = re.compile(r"-?\d+\Z")


# ── Section layout ───────────────────────────────────────────────────────────


@dataclass(slots=True)
class BlockSpan:
    first: int  # token index of "{"
    last: int  # token index of the matching "}"
    start: int  # document offsets
    end: int
    line: int


@dataclass(slots=True)
class SectionLayout:
    """Position of the alert list inside a document."""

    body_start: int  # offset just after "["
    body_end: int  # offset of the closing "]"
    line: int
    blocks: list[BlockSpan] = field(default_factory=list)


class _ListState(str, Enum):
    EXPECT_BLOCK = "expect_block"
    IN_BLOCK = "in_block"
    DONE = "done"


class _BodyState(str, Enum):
    KEY = "key"
    ASSIGN = "assign"
    VALUE = "value"


def _next_significant(tokens: list[Token], i: int, skip_newlines: bool = True) -> int:
    """Index of the first token at or after *i* that is not trivia (or len)."""
    while i < len(tokens):
        kind = tokens[i].kind
        if kind in TRIVIA or (skip_newlines and kind is TokenKind.NEWLINE):
            i += 1
            continue
        break
    return i


def _find_section_start(tokens: list[Token], section_key: str) -> int | None:
    """Token index of the "[" opening ``<section_key> = [`` at top level."""
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.kind in OPENERS:
            depth += 1
        elif tok.kind in CLOSERS:
            depth = max(depth - 1, 0)
        elif depth == 0 and tok.kind is TokenKind.IDENT and tok.text == section_key:
            j = _next_significant(tokens, i + 1, skip_newlines=False)
            if j >= len(tokens) or tokens[j].kind is not TokenKind.EQUALS:
                continue
            k = _next_significant(tokens, j + 1)
            if k < len(tokens) and tokens[k].kind is TokenKind.LBRACKET:
                return k
            log.debug("'%s' at line %d is not a list, ignored", section_key, tok.line)
    return None


def _match_closer(tokens: list[Token], first: int, what: str) -> int:
    """Index of the token closing the bracket at *first*, honouring nesting."""
    opener = tokens[first]
    stack: list[TokenKind] = [OPENERS[opener.kind]]
    i = first + 1
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind is TokenKind.UNTERMINATED:
            raise MalformedBlockError(f"unterminated string or comment in {what}", tok.line)
        if tok.kind in OPENERS:
            stack.append(OPENERS[tok.kind])
        elif tok.kind in CLOSERS:
            expected = stack.pop()
            if tok.kind is not expected:
                raise MalformedBlockError(
                    f"'{tok.text}' closes '{opener.text}' opened at line {opener.line}"
                    f" in {what}",
                    tok.line,
                )
            if not stack:
                return i
        i += 1
    raise MalformedBlockError(f"{what} opened but never closed", opener.line)


def locate_section(
    document: str,
    section_key: str = DEFAULT_SECTION_KEY,
    tokens: list[Token] | None = None,
) -> SectionLayout | None:
    """Find the alert list and the span of every block in it.

    Returns None when the document has no ``<section_key> = [`` assignment.
    """
    if tokens is None:
        tokens = tokenize(document)
    open_idx = _find_section_start(tokens, section_key)
    if open_idx is None:
        return None

    bracket = tokens[open_idx]
    layout = SectionLayout(body_start=bracket.end, body_end=-1, line=bracket.line)
    state = _ListState.EXPECT_BLOCK
    i = open_idx + 1

    while state is not _ListState.DONE:
        if i >= len(tokens):
            raise MalformedBlockError(f"'{section_key}' list opened but never closed", bracket.line)
        tok = tokens[i]

        if state is _ListState.EXPECT_BLOCK:
            if tok.kind in TRIVIA or tok.kind in (TokenKind.NEWLINE, TokenKind.COMMA):
                i += 1
            elif tok.kind is TokenKind.LBRACE:
                state = _ListState.IN_BLOCK
            elif tok.kind is TokenKind.RBRACKET:
                layout.body_end = tok.start
                state = _ListState.DONE
            elif tok.kind is TokenKind.UNTERMINATED:
                raise MalformedBlockError("unterminated string or comment in alert list", tok.line)
            else:
                raise MalformedBlockError(f"unexpected '{tok.text}' in alert list", tok.line)

        elif state is _ListState.IN_BLOCK:
            last = _match_closer(tokens, i, "alert block")
            layout.blocks.append(
                BlockSpan(first=i, last=last, start=tok.start, end=tokens[last].end, line=tok.line)
            )
            i = last + 1
            state = _ListState.EXPECT_BLOCK

    return layout


# ── Block body ───────────────────────────────────────────────────────────────


def _coerce(key: str, kind: str, tok: Token) -> object:
    """Convert the value token of a modeled field to its Python type."""
    if kind == "str" and tok.kind is TokenKind.STRING:
        return decode_string(tok.text)
    if kind == "str" and tok.kind is TokenKind.HEREDOC:
        return decode_heredoc(tok.text)
    if kind == "bool" and tok.kind is TokenKind.BOOL:
        return tok.text == "true"
    if kind == "float" and tok.kind is TokenKind.NUMBER:
        return float(tok.text)
    if kind == "int" and tok.kind is TokenKind.NUMBER:
        if _INT_RX.match(tok.text):
            return int(tok.text)
        number = float(tok.text)
        if number.is_integer():
            return int(number)
    raise MalformedBlockError(f"field '{key}' expects {kind}, got {tok.text!r}", tok.line)


def _parse_block(document: str, tokens: list[Token], span: BlockSpan) -> AlertRecord:
    record = AlertRecord()
    state = _BodyState.KEY
    key = ""
    i = span.first + 1

    while i < span.last:
        tok = tokens[i]

        if state is _BodyState.KEY:
            if tok.kind in TRIVIA or tok.kind in (TokenKind.NEWLINE, TokenKind.COMMA):
                i += 1
                continue
            if tok.kind in (TokenKind.IDENT, TokenKind.BOOL):
                key = tok.text
            elif tok.kind is TokenKind.STRING:
                key = decode_string(tok.text)
            else:
                raise MalformedBlockError(f"expected a field name, got {tok.text!r}", tok.line)
            state = _BodyState.ASSIGN
            i += 1

        elif state is _BodyState.ASSIGN:
            if tok.kind in TRIVIA:
                i += 1
                continue
            if tok.kind not in (TokenKind.EQUALS, TokenKind.COLON):
                raise MalformedBlockError(f"expected '=' after '{key}', got {tok.text!r}", tok.line)
            state = _BodyState.VALUE
            i += 1

        elif state is _BodyState.VALUE:
            if tok.kind in TRIVIA:
                i += 1
                continue
            if tok.kind in (TokenKind.STRING, TokenKind.HEREDOC, TokenKind.NUMBER, TokenKind.BOOL):
                end = i
            elif tok.kind in OPENERS:
                end = _match_closer(tokens, i, f"value of '{key}'")
            else:
                raise MalformedBlockError(f"cannot tokenize value of '{key}': {tok.text!r}", tok.line)

            if key in FIELD_KINDS:
                if end != i:
                    raise MalformedBlockError(
                        f"field '{key}' expects {FIELD_KINDS[key]}, got a {tok.kind.name.lower()}",
                        tok.line,
                    )
                setattr(record, key, _coerce(key, FIELD_KINDS[key], tok))
            else:
                record.additional_fields[key] = document[tok.start : tokens[end].end]
            state = _BodyState.KEY
            i = end + 1

    if state is not _BodyState.KEY:
        closing = tokens[span.last]
        raise MalformedBlockError(f"field '{key}' has no value", closing.line)

    record.origin = BlockOrigin(
        text=document[span.start : span.end],
        snapshot=record.snapshot(),
        line=span.line,
    )
    return record


# ── Public API ───────────────────────────────────────────────────────────────


def parse_alerts(document: str, section_key: str = DEFAULT_SECTION_KEY) -> list[AlertRecord]:
    """Parse every alert block of the ``nrql_alerts`` list, in document order.

    Returns an empty list when the document has no such list.

    Raises:
        MalformedBlockError: On an unclosed block/list or an unreadable value.
    """
    tokens = tokenize(document)
    layout = locate_section(document, section_key, tokens)
    if layout is None:
        log.debug("No '%s' section found", section_key)
        return []

    records = [_parse_block(document, tokens, span) for span in layout.blocks]
    log.debug("Parsed %d alert blocks from '%s' (line %d)", len(records), section_key, layout.line)
    return records


def _block_indent(leading: str) -> str:
    """Indentation preceding a block, taken from the text before it."""
    tail = leading.rsplit("\n", 1)[-1]
    return tail if tail and not tail.strip() else DEFAULT_INDENT


def _render_body(document: str, layout: SectionLayout, alerts: Sequence[AlertRecord]) -> str:
    original = document[layout.body_start : layout.body_end]
    blocks = layout.blocks

    if blocks:
        prefix = document[layout.body_start : blocks[0].start]
        separators = [document[a.end : b.start] for a, b in zip(blocks, blocks[1:])]
        suffix = document[blocks[-1].end : layout.body_end]
        indent = _block_indent(prefix)
    else:
        if not alerts:
            return original
        indent = DEFAULT_INDENT
        prefix = (original if original.endswith("\n") else original + "\n") + indent
        separators = []
        suffix = "\n"

    if not alerts:
        leftover = prefix + suffix
        return leftover if leftover.strip(", \t\r\n") else ""

    fallback = _DEFAULT_SEPARATOR + indent
    parts = [prefix]
    for n, record in enumerate(alerts):
        if n:
            parts.append(separators[n - 1] if n - 1 < len(separators) else fallback)
        if record.is_modified():
            parts.append(render_alert(record, indent))
        else:
            parts.append(record.origin.text)  # type: ignore[union-attr]
    parts.append(suffix)
    return "".join(parts)


def replace_alerts(
    document: str,
    alerts: Sequence[AlertRecord],
    section_key: str = DEFAULT_SECTION_KEY,
    create: bool = False,
) -> str:
    """Return *document* with its alert list rewritten to hold *alerts*.

    Every byte outside the list interior is preserved.

    Raises:
        SectionNotFoundError: No list in the document and *create* is False.
        MalformedBlockError: The existing list cannot be scanned.
    """
    layout = locate_section(document, section_key)
    if layout is None:
        if not create:
            raise SectionNotFoundError(f"document has no '{section_key}' section")
        log.info("Appending new '%s' section with %d alerts", section_key, len(alerts))
        return append_section(document, alerts, section_key)

    body = _render_body(document, layout, alerts)
    changed = sum(1 for a in alerts if a.is_modified())
    log.debug("Rewrote '%s': %d alerts, %d re-rendered", section_key, len(alerts), changed)
    return document[: layout.body_start] + body + document[layout.body_end :]


def append_section(
    document: str,
    alerts: Sequence[AlertRecord],
    section_key: str = DEFAULT_SECTION_KEY,
) -> str:
    """Add a new alert list at the end of *document*."""
    head = document if not document or document.endswith("\n") else document + "\n"
    if not alerts:
        return f"{head}{section_key} = []\n"
    blocks = (_DEFAULT_SEPARATOR + DEFAULT_INDENT).join(
        render_alert(a, DEFAULT_INDENT) for a in alerts
    )
    return f"{head}{section_key} = [\n{DEFAULT_INDENT}{blocks}\n]\n"
