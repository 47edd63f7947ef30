"""Canonical printer for the code-artifact language.

Layout rules:

* One statement per line, ``indent`` spaces per block level, trailing
  newline after the last statement.
* Calls take parentheses unless their name (``foo``) or name and arity
  (``foo/1``) is listed in ``locals_without_parens``.  Definition forms
  such as ``defmodule`` and ``def`` are always printed without them.
* A call without parentheses is only emitted where reading it back gives
  the same tree: as a statement, or as the last argument of another call
  without parentheses.
* Sigil contents are handed to an optional ``sigil_formatter`` first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from rewrite.lang.lexer import SIGIL_CLOSERS
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
from rewrite.lang.parser import BINARY_OPERATORS

DEFAULT_LOCALS_WITHOUT_PARENS = (
    "defmodule",
    "def",
    "defp",
    "defmacro",
    "defmacrop",
    "import",
    "alias",
    "require",
    "use",
)

SigilFormatter = Callable[[Sigil], str]


def _quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


class Printer:
    """Print trees back to canonical text.

    Args:
        locals_without_parens: Extra call names (``foo``) or name/arity
            pairs (``foo/2``) printed without parentheses.
        indent: Spaces per block level.
        sigil_formatter: Called with each ``Sigil`` node; returns the
            contents to print in its place.
    """

    def __init__(
        self,
        locals_without_parens: Iterable[str] = (),
        indent: int = 2,
        sigil_formatter: SigilFormatter | None = None,
    ) -> None:
        self._without_parens = frozenset(DEFAULT_LOCALS_WITHOUT_PARENS) | frozenset(
            locals_without_parens
        )
        self._indent = indent
        self._sigil_formatter = sigil_formatter

    def print(self, program: Program) -> str:
        if not program.statements:
            return ""
        return self._block(program.statements, 0) + "\n"

    # ------------------------------------------------------------------
    # Layout helpers
    # ------------------------------------------------------------------

    def _pad(self, level: int) -> str:
        return " " * (self._indent * level)

    def _block(self, statements: Iterable[Node], level: int) -> str:
        return "\n".join(
            self._pad(level) + self._format(node, level, bare_ok=True)
            for node in statements
        )

    def _skips_parens(self, call: Call) -> bool:
        arity = len(call.args) + (0 if call.do_block is None else 1)
        return (
            call.name in self._without_parens
            or f"{call.name}/{arity}" in self._without_parens
        )

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _format(self, node: Node, level: int, bare_ok: bool = False) -> str:
        if isinstance(node, Literal):
            return node.text
        if isinstance(node, String):
            return _quote(node.value)
        if isinstance(node, (Identifier, Alias)):
            return node.name
        if isinstance(node, ListNode):
            items = ", ".join(self._format(item, level) for item in node.items)
            return f"[{items}]"
        if isinstance(node, KeywordPair):
            return f"{node.key}: {self._format(node.value, level)}"
        if isinstance(node, BinaryOp):
            return self._binary(node, level)
        if isinstance(node, Call):
            return self._call(node, level, bare_ok)
        if isinstance(node, Sigil):
            return self._sigil(node, level)
        if isinstance(node, Comment):
            return f"# {node.text}" if node.text else "#"
        raise TypeError(f"Cannot print node of type {type(node).__name__}")

    def _call(self, call: Call, level: int, bare_ok: bool) -> str:
        if not call.args:
            head = call.name if call.do_block is not None else f"{call.name}()"
        elif bare_ok and self._skips_parens(call):
            *rest, last = call.args
            parts = [self._format(arg, level) for arg in rest]
            parts.append(self._format(last, level, bare_ok=True))
            head = f"{call.name} {', '.join(parts)}"
        else:
            args = ", ".join(self._format(arg, level) for arg in call.args)
            head = f"{call.name}({args})"

        if call.do_block is None:
            return head
        if not call.do_block:
            return f"{head} do\n{self._pad(level)}end"
        body = self._block(call.do_block, level + 1)
        return f"{head} do\n{body}\n{self._pad(level)}end"

    def _binary(self, node: BinaryOp, level: int) -> str:
        precedence, right_assoc = BINARY_OPERATORS[node.op]
        left = self._format(node.left, level)
        right = self._format(node.right, level)
        if isinstance(node.left, BinaryOp):
            inner = BINARY_OPERATORS[node.left.op][0]
            if inner < precedence or (inner == precedence and right_assoc):
                left = f"({left})"
        if isinstance(node.right, BinaryOp):
            inner = BINARY_OPERATORS[node.right.op][0]
            if inner < precedence or (inner == precedence and not right_assoc):
                right = f"({right})"
        return f"{left} {node.op} {right}"

    def _sigil(self, node: Sigil, level: int) -> str:
        content = node.content
        if self._sigil_formatter is not None:
            content = self._sigil_formatter(node)
        if node.delimiter == '"""':
            pad = self._pad(level)
            body = "".join(
                (pad + line if line else "") + "\n" for line in content.splitlines()
            )
            return f'~{node.marker}"""\n{body}{pad}"""{node.modifiers}'
        closer = SIGIL_CLOSERS[node.delimiter]
        return f"~{node.marker}{node.delimiter}{content}{closer}{node.modifiers}"


def print_tree(
    program: Program,
    locals_without_parens: Iterable[str] = (),
    indent: int = 2,
    sigil_formatter: SigilFormatter | None = None,
) -> str:
    """Print *program* with a one-off ``Printer``."""
    return Printer(locals_without_parens, indent, sigil_formatter).print(program)
