"""Token scanner for Terraform variable files.

The scanner knows just enough of HCL to walk an ``nrql_alerts`` list:
strings, heredocs, numbers, booleans, identifiers, brackets, assignment,
separators, comments, and line breaks.  A heredoc (``<<EOT`` or ``<<-EOT``
up to its closing tag line) is a single token, so braces inside it never
affect nesting.  Anything else becomes an ``OTHER`` token so that
sections the codec does not interpret never fail to scan.  Concatenating
the text of all tokens reproduces the input exactly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    NEWLINE = "newline"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    STRING = "string"
    HEREDOC = "heredoc"
    NUMBER = "number"
    BOOL = "bool"
    IDENT = "ident"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    EQUALS = "="
    COLON = ":"
    COMMA = ","
    UNTERMINATED = "unterminated"
    OTHER = "other"


# Tokens that carry no meaning between two significant tokens.
TRIVIA = frozenset({TokenKind.WHITESPACE, TokenKind.COMMENT})

OPENERS = {TokenKind.LBRACE: TokenKind.RBRACE, TokenKind.LBRACKET: TokenKind.RBRACKET}
CLOSERS = frozenset(OPENERS.values())

_PUNCT = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "=": TokenKind.EQUALS,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

# Alternatives are tried left to right; order matters.
_TOKEN_RX = re.compile(
    r"""
    (?P<newline>\r?\n)
  | (?P<whitespace>[ \t\f\v\r]+)
  | (?P<comment>\#[^\n]*|//[^\n]*|/\*.*?\*/)
  | (?P<string>"(?:[^"\\\n]|\\.)*")
  | (?P<heredoc><<-?(?P<tag>[A-Za-z_][A-Za-z0-9_-]*)[ \t]*\r?\n(?:.*?\n)??[ \t]*(?P=tag)[ \t]*(?=\r?\n|\Z))
  | (?P<unterminated>"(?:[^"\\\n]|\\.)*\\?|/\*.*)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_-]*)
  | (?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
  | (?P<punct>[{}\[\]=:,])
  | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "r": "\r", "t": "\t"}


@dataclass(slots=True)
class Token:
    kind: TokenKind
    text: str
    start: int  # offset into the document
    end: int
    line: int  # 1-based line of the first character


def tokenize(document: str) -> list[Token]:
    """Split *document* into tokens covering every character."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    length = len(document)

    while pos < length:
        m = _TOKEN_RX.match(document, pos)
        # The ``other`` alternative matches any character, so m is never None.
        assert m is not None
        group = m.lastgroup or "other"
        text = m.group()

        if group == "punct":
            kind = _PUNCT[text]
        elif group == "ident" and text in ("true", "false"):
            kind = TokenKind.BOOL
        else:
            kind = TokenKind(group)

        tokens.append(Token(kind, text, pos, m.end(), line))
        line += text.count("\n")
        pos = m.end()

    return tokens


def decode_string(literal: str) -> str:
    """Decode a quoted HCL string literal (quotes included).

    Unknown escapes such as ``\\'`` are kept verbatim, backslash included.
    """
    body = literal[1:-1]
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            out.append(ch)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        elif nxt in "uU":
            width = 4 if nxt == "u" else 8
            digits = body[i + 2 : i + 2 + width]
            if len(digits) == width and all(c in "0123456789abcdefABCDEF" for c in digits):
                out.append(chr(int(digits, 16)))
                i += 2 + width
            else:
                out.append(body[i : i + 2])
                i += 2
        else:
            out.append(body[i : i + 2])
            i += 2
    return "".join(out)


def decode_heredoc(literal: str) -> str:
    """Body of a heredoc token; ``<<-`` also strips the common indentation."""
    header, _, rest = literal.partition("\n")
    lines = [line.rstrip("\r") for line in rest.split("\n")[:-1]]
    if header.startswith("<<-"):
        indent = min((len(ln) - len(ln.lstrip(" \t")) for ln in lines if ln.strip()), default=0)
        lines = [ln[indent:] for ln in lines]
    return "".join(line + "\n" for line in lines)


def encode_string(value: str) -> str:
    """Quote *value* so that :func:`decode_string` returns it unchanged."""
    out: list[str] = ['"']
    for i, ch in enumerate(value):
        if ch == '"':
            out.append('\\"')
        elif ch == "\\":
            nxt = value[i + 1] if i + 1 < len(value) else ""
            # A lone backslash survives decoding only before a non-escape char.
            if nxt == "" or nxt in _ESCAPES or nxt in "uU":
                out.append("\\\\")
            else:
                out.append("\\")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)
