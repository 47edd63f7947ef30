"""Recursive-descent parser for the code-artifact language.

Grammar summary::

    program    := statement*
    statement  := comment | expr
    expr       := primary (binop expr)*          precedence climbing
    primary    := literal | string | sigil | alias | list | "(" expr ")"
                | ident [ "(" args ")" | bare_args ] [do_block]
    bare_args  := arg ("," arg)*                 no-paren call, same line
    do_block   := "do" statement* "end"

A call without parentheses takes everything up to the end of the line as
its arguments, so ``foo bar baz`` reads as ``foo(bar(baz))``.  A
``do`` block always attaches to the outermost call on the line.
"""

from __future__ import annotations

from rewrite.errors import ParseError
from rewrite.lang.lexer import Token, tokenize
from rewrite.lang.nodes import (
    Alias,
    BinaryOp,
    Call,
    Comment,
    Identifier,
    KeywordPair,
    ListNode,
    Literal,
    Node,
    Program,
    Sigil,
    String,
)

# op -> (precedence, right associative)
BINARY_OPERATORS: dict[str, tuple[int, bool]] = {
    "=": (1, True),
    "|>": (2, False),
    "==": (3, False),
    "!=": (3, False),
    "<": (4, False),
    ">": (4, False),
    "<=": (4, False),
    ">=": (4, False),
    "++": (5, True),
    "+": (6, False),
    "-": (6, False),
    "*": (7, False),
    "/": (7, False),
}

_ARGUMENT_STARTS = frozenset(
    {
        "LITERAL",
        "STRING",
        "SIGIL",
        "IDENT",
        "ALIAS",
        "KEYWORD",
        "LBRACKET",
        "LPAREN",
    }
)


def _describe(token: Token) -> str:
    if token.kind == "EOF":
        return "unexpected end of input"
    if token.kind in ("DO", "END"):
        return f"unexpected reserved word: {token.value}"
    if token.kind == "NEWLINE":
        return "unexpected end of line"
    if token.kind == "KEYWORD":
        return f"unexpected keyword: {token.value}:"
    return f"unexpected token: {token.value}"


class Parser:
    """Parse a token list into a ``Program``."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._index = 0

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _next(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != "EOF":
            self._index += 1
        return token

    def _expect(self, kind: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            raise self._error(token)
        return self._next()

    def _skip_newlines(self) -> None:
        while self._peek().kind in ("NEWLINE", "COMMENT"):
            self._next()

    @staticmethod
    def _error(token: Token, reason: str | None = None) -> ParseError:
        return ParseError(reason or _describe(token), token.line, token.column)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse_program(self) -> Program:
        statements = self._statements(terminator="EOF")
        return Program(tuple(statements))

    def _statements(self, terminator: str) -> list[Node]:
        statements: list[Node] = []
        while True:
            token = self._peek()
            if token.kind == "NEWLINE":
                self._next()
                continue
            if token.kind == terminator:
                return statements
            if token.kind == "COMMENT":
                statements.append(Comment(self._next().value))
                continue
            if token.kind == "EOF":
                raise self._error(token, "missing terminator: end")
            statements.append(self._expr(allow_do=True))
            after = self._peek()
            if after.kind not in ("NEWLINE", "COMMENT", "EOF", terminator):
                raise self._error(after)

    def _do_block(self) -> tuple[Node, ...]:
        opener = self._expect("DO")
        try:
            body = self._statements(terminator="END")
        except ParseError as exc:
            if exc.reason == "missing terminator: end":
                raise ParseError(
                    "missing terminator: end (for do started here)",
                    opener.line,
                    opener.column,
                ) from None
            raise
        self._expect("END")
        return tuple(body)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expr(self, allow_do: bool, min_precedence: int = 0) -> Node:
        left = self._primary(allow_do)
        while True:
            token = self._peek()
            if token.kind != "OP":
                return left
            precedence, right_assoc = BINARY_OPERATORS[token.value]
            if precedence < min_precedence:
                return left
            self._next()
            self._skip_newlines()
            next_min = precedence if right_assoc else precedence + 1
            right = self._expr(allow_do, next_min)
            left = BinaryOp(token.value, left, right)

    def _primary(self, allow_do: bool) -> Node:
        token = self._peek()
        kind = token.kind
        if kind == "LITERAL":
            return Literal(self._next().value)
        if kind == "STRING":
            return String(self._next().value)
        if kind == "SIGIL":
            marker, content, delimiter, modifiers = self._next().value
            return Sigil(marker, content, delimiter, modifiers)
        if kind == "ALIAS":
            return Alias(self._next().value)
        if kind == "LBRACKET":
            self._next()
            return ListNode(self._arguments(closer="RBRACKET"))
        if kind == "LPAREN":
            self._next()
            inner = self._expr(allow_do=True)
            self._expect("RPAREN")
            return inner
        if kind == "IDENT":
            return self._identifier(allow_do)
        raise self._error(token)

    def _identifier(self, allow_do: bool) -> Node:
        name = self._next().value
        following = self._peek()
        if following.kind == "LPAREN" and not following.spaced:
            self._next()
            call = Call(name, self._arguments(closer="RPAREN"))
        elif following.spaced and following.kind in _ARGUMENT_STARTS:
            call = Call(name, self._bare_arguments())
        elif allow_do and following.kind == "DO":
            call = Call(name)
        else:
            return Identifier(name)

        if allow_do and self._peek().kind == "DO":
            call = Call(call.name, call.args, self._do_block())
        return call

    def _argument(self, allow_do: bool) -> Node:
        token = self._peek()
        if token.kind == "KEYWORD":
            self._next()
            self._skip_newlines()
            return KeywordPair(token.value, self._expr(allow_do))
        return self._expr(allow_do)

    def _arguments(self, closer: str) -> tuple[Node, ...]:
        args: list[Node] = []
        while True:
            if self._peek().kind == closer:
                self._next()
                return tuple(args)
            args.append(self._argument(allow_do=True))
            token = self._peek()
            if token.kind == "COMMA":
                self._next()
                continue
            if token.kind != closer:
                raise self._error(token)

    def _bare_arguments(self) -> tuple[Node, ...]:
        args = [self._argument(allow_do=False)]
        while self._peek().kind == "COMMA":
            self._next()
            self._skip_newlines()
            args.append(self._argument(allow_do=False))
        return tuple(args)


def parse(text: str) -> Program:
    """Parse *text* into a ``Program`` tree.

    Raises:
        ParseError: With the line and column of the offending token.
    """
    return Parser(tokenize(text)).parse_program()
