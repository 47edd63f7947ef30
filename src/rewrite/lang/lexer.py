"""Tokenizer for the code-artifact language.

Produces a flat token list for the parser.  Newlines and ``;`` become
``NEWLINE`` tokens and ``#`` comments become ``COMMENT`` tokens, except
inside ``(...)`` and ``[...]`` where both are dropped.  Every token
records whether whitespace preceded it; the parser needs that to tell
``foo(x)`` from ``foo (x)``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from rewrite.errors import ParseError

_RESERVED = {
    "do": "DO",
    "end": "END",
    "true": "LITERAL",
    "false": "LITERAL",
    "nil": "LITERAL",
}

SIGIL_CLOSERS = {
    '"': '"',
    "'": "'",
    "(": ")",
    "[": "]",
    "{": "}",
    "<": ">",
    "/": "/",
    "|": "|",
}

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}

_TOKEN_RE = re.compile(
    r"""
    (?P<FLOAT>\d[\d_]*\.\d[\d_]*)
  | (?P<INT>\d[\d_]*)
  | (?P<ATOM>:[A-Za-z_]\w*[?!]?)
  | (?P<KEYWORD>[a-z_]\w*[?!]?:(?=\s|$))
  | (?P<IDENT>[a-z_]\w*[?!]?)
  | (?P<ALIAS>[A-Z]\w*(?:\.[A-Z]\w*)*)
  | (?P<OP>\|>|\+\+|==|!=|<=|>=|[=+\-*/<>])
  | (?P<LPAREN>\()
  | (?P<RPAREN>\))
  | (?P<LBRACKET>\[)
  | (?P<RBRACKET>\])
  | (?P<COMMA>,)
    """,
    re.VERBOSE,
)

_SIGIL_NAME_RE = re.compile(r"~([A-Z][A-Z0-9]*|[a-z])")
_MODIFIERS_RE = re.compile(r"[A-Za-z]*")


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    line: int
    column: int
    spaced: bool = False


class Lexer:
    """Turn source text into a list of ``Token`` objects."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._line = 1
        self._line_start = 0
        self._depth = 0
        self._spaced = False
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        text = self._text
        while self._pos < len(text):
            ch = text[self._pos]
            if ch == "\n":
                self._newline_token()
                self._advance_line(self._pos + 1)
            elif ch in " \t\r":
                self._pos += 1
                self._spaced = True
            elif ch == "#":
                self._comment()
            elif ch == ";":
                self._newline_token()
                self._pos += 1
            elif ch == '"':
                self._string()
            elif ch == "~":
                self._sigil()
            else:
                self._regular()
        self._emit("EOF", None, self._pos)
        return self._tokens

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _column(self, pos: int) -> int:
        return pos - self._line_start + 1

    def _emit(self, kind: str, value: Any, start: int) -> None:
        self._tokens.append(
            Token(kind, value, self._line, self._column(start), self._spaced)
        )
        self._spaced = False

    def _error(self, reason: str, pos: int) -> ParseError:
        return ParseError(reason, self._line, self._column(pos))

    def _advance_line(self, pos: int) -> None:
        self._line += 1
        self._line_start = pos
        self._pos = pos
        self._spaced = True

    def _newline_token(self) -> None:
        if self._depth == 0:
            self._emit("NEWLINE", None, self._pos)
        self._spaced = True

    # ------------------------------------------------------------------
    # Token scanners
    # ------------------------------------------------------------------

    def _comment(self) -> None:
        end = self._text.find("\n", self._pos)
        if end == -1:
            end = len(self._text)
        if self._depth == 0:
            self._emit("COMMENT", self._text[self._pos + 1 : end].strip(), self._pos)
        self._pos = end

    def _string(self) -> None:
        start, start_line = self._pos, self._line
        start_column = self._column(start)
        chars: list[str] = []
        pos = start + 1
        text = self._text
        while True:
            if pos >= len(text):
                raise ParseError("missing terminator: \"", start_line, start_column)
            ch = text[pos]
            if ch == '"':
                pos += 1
                break
            if ch == "\\":
                escaped = text[pos + 1 : pos + 2]
                if escaped not in _ESCAPES:
                    raise self._error(f"invalid escape sequence: \\{escaped}", pos)
                chars.append(_ESCAPES[escaped])
                pos += 2
                continue
            if ch == "\n":
                self._line += 1
                self._line_start = pos + 1
            chars.append(ch)
            pos += 1
        self._tokens.append(
            Token("STRING", "".join(chars), start_line, start_column, self._spaced)
        )
        self._spaced = False
        self._pos = pos

    def _sigil(self) -> None:
        start, start_line = self._pos, self._line
        start_column = self._column(start)
        text = self._text
        match = _SIGIL_NAME_RE.match(text, start)
        if match is None:
            raise self._error("invalid sigil", start)
        marker = match.group(1)
        pos = match.end()

        if text.startswith('"""', pos):
            delimiter = '"""'
            content, pos = self._heredoc(pos + 3, start_line, start_column)
        else:
            delimiter = text[pos : pos + 1]
            closer = SIGIL_CLOSERS.get(delimiter)
            if closer is None:
                raise self._error(f"invalid sigil delimiter: {delimiter!r}", pos)
            pos += 1
            chars: list[str] = []
            while True:
                if pos >= len(text):
                    raise ParseError(
                        f"missing terminator: {closer}", start_line, start_column
                    )
                ch = text[pos]
                if ch == closer:
                    pos += 1
                    break
                if ch == "\\" and pos + 1 < len(text):
                    chars.append(text[pos : pos + 2])
                    pos += 2
                    continue
                if ch == "\n":
                    self._line += 1
                    self._line_start = pos + 1
                chars.append(ch)
                pos += 1
            content = "".join(chars)

        modifiers = _MODIFIERS_RE.match(text, pos)
        assert modifiers is not None
        self._tokens.append(
            Token(
                "SIGIL",
                (marker, content, delimiter, modifiers.group(0)),
                start_line,
                start_column,
                self._spaced,
            )
        )
        self._spaced = False
        self._pos = modifiers.end()

    def _heredoc(self, pos: int, start_line: int, start_column: int) -> tuple[str, int]:
        text = self._text
        eol = text.find("\n", pos)
        if eol == -1 or text[pos:eol].strip():
            raise ParseError(
                'heredoc allows only whitespace after opening """',
                start_line,
                start_column,
            )
        lines: list[str] = []
        cursor = eol + 1
        self._line += 1
        self._line_start = cursor
        while True:
            if cursor >= len(text):
                raise ParseError('missing terminator: """', start_line, start_column)
            nl = text.find("\n", cursor)
            line_end = len(text) if nl == -1 else nl
            line = text[cursor:line_end]
            stripped = line.lstrip(" \t")
            if stripped.startswith('"""'):
                indent = line[: len(line) - len(stripped)]
                body = [
                    ln[len(indent) :] if ln.startswith(indent) else ln.lstrip(" \t")
                    for ln in lines
                ]
                content = "".join(ln + "\n" for ln in body)
                return content, cursor + len(indent) + 3
            lines.append(line)
            if nl == -1:
                raise ParseError('missing terminator: """', start_line, start_column)
            cursor = nl + 1
            self._line += 1
            self._line_start = cursor

    def _regular(self) -> None:
        match = _TOKEN_RE.match(self._text, self._pos)
        if match is None:
            raise self._error(
                f"unexpected character: {self._text[self._pos]!r}", self._pos
            )
        kind = match.lastgroup
        assert kind is not None
        value: Any = match.group(0)
        if kind == "IDENT" and value in _RESERVED:
            kind = _RESERVED[value]
        elif kind == "KEYWORD":
            value = value[:-1]
        elif kind in ("INT", "FLOAT", "ATOM"):
            kind = "LITERAL"
        elif kind in ("LPAREN", "LBRACKET"):
            self._depth += 1
        elif kind in ("RPAREN", "RBRACKET"):
            self._depth = max(0, self._depth - 1)
        self._emit(kind, value, self._pos)
        self._pos = match.end()


def tokenize(text: str) -> list[Token]:
    """Tokenize *text*.

    Raises:
        ParseError: On unterminated strings or sigils and stray characters.
    """
    return Lexer(text).tokenize()
