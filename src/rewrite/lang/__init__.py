"""A small call-oriented expression language used for code artifacts.

Modules:

- ``lexer``   -- ``tokenize()``: text to tokens.
- ``parser``  -- ``parse()``: tokens to a ``Program`` tree.
- ``printer`` -- ``print_tree()``: canonical text from a tree.
- ``nodes``   -- frozen dataclass node types.

Usage example
-------------
::

    from rewrite.lang import parse, print_tree

    print_tree(parse("foo bar baz"))                      # "foo(bar(baz))\\n"
    print_tree(parse("foo bar baz"), ["foo"])             # "foo bar(baz)\\n"
"""

from __future__ import annotations

from rewrite.lang.nodes import Alias, Call, Program
from rewrite.lang.parser import parse
from rewrite.lang.printer import DEFAULT_LOCALS_WITHOUT_PARENS, Printer, print_tree


def module_names(program: Program | None) -> list[str]:
    """Return the names of all ``defmodule`` definitions, in source order.

    Nested modules are reported with their enclosing module's prefix.
    """
    names: list[str] = []
    if program is None:
        return names

    def visit(statements, prefix: str) -> None:
        for node in statements:
            if (
                isinstance(node, Call)
                and node.name == "defmodule"
                and node.args
                and isinstance(node.args[0], Alias)
            ):
                name = f"{prefix}.{node.args[0].name}" if prefix else node.args[0].name
                names.append(name)
                if node.do_block:
                    visit(node.do_block, name)

    visit(program.statements, "")
    return names


__all__ = [
    "DEFAULT_LOCALS_WITHOUT_PARENS",
    "Printer",
    "module_names",
    "parse",
    "print_tree",
]
