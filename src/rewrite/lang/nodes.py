"""Tree node types for the code-artifact language.

Nodes are frozen dataclasses so trees compare by value and can be shared
freely between source versions.  Layout (parentheses, whitespace) is not
part of the tree; the printer decides it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Literal:
    """Number, atom, ``true``, ``false`` or ``nil``, kept as source text."""

    text: str


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class Alias:
    """Capitalised, possibly dotted name such as ``Foo.Bar``."""

    name: str


@dataclass(frozen=True)
class ListNode:
    items: tuple[Node, ...] = ()


@dataclass(frozen=True)
class KeywordPair:
    key: str
    value: Node


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Call:
    """A local call, with an optional ``do ... end`` block."""

    name: str
    args: tuple[Node, ...] = ()
    do_block: tuple[Node, ...] | None = None


@dataclass(frozen=True)
class Sigil:
    """Embedded-syntax region such as ``~H\"<p>\"``.

    ``marker`` is the sigil name (``H``); ``delimiter`` is the opening
    delimiter, ``\"\"\"`` for the multi-line form.
    """

    marker: str
    content: str
    delimiter: str = '"'
    modifiers: str = ""


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Program:
    statements: tuple[Node, ...] = ()


Node = Union[
    Literal,
    String,
    Identifier,
    Alias,
    ListNode,
    KeywordPair,
    BinaryOp,
    Call,
    Sigil,
    Comment,
]
