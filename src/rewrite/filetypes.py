"""Artifact kinds.

Each kind decides how a source's text becomes a tree and back:

- ``ex``        -- code artifacts (``.ex``/``.exs``) in the expression
  language from ``rewrite.lang``.  Parse failures are fatal.
- ``formatter`` -- ``.formatter.yml`` configuration, parsed as YAML.
  Parse failures are recorded as issues.
- ``text``      -- anything else.  No tree, never fails.

The set is closed: ``FILETYPES`` maps every kind name to its
implementation and ``filetype_for()`` picks one from a path.  Adding a
kind means adding a class here and an entry in ``FILETYPES``.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Mapping
from typing import Any, Protocol

import yaml

from rewrite.dot_formatter import FormatOptions, select_plugin
from rewrite.errors import ParseError
from rewrite.lang import Printer, module_names, parse
from rewrite.lang.nodes import Sigil

logger = logging.getLogger(__name__)

FORMATTER_FILENAME = ".formatter.yml"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class Filetype(Protocol):
    """Capabilities every artifact kind provides."""

    name: str
    strict: bool
    has_tree: bool
    formattable: bool

    def parse(self, content: str) -> Any:
        """Turn *content* into a tree; raise ``ParseError`` on failure."""
        ...  # pragma: no cover

    def print(self, tree: Any, options: FormatOptions, path: str | None) -> str:
        """Turn *tree* into text using *options*."""
        ...  # pragma: no cover

    def format(
        self, content: str, tree: Any, options: FormatOptions, path: str | None
    ) -> str:
        """Return the canonical form of *content*."""
        ...  # pragma: no cover

    def named_units(self, tree: Any) -> list[str]:
        """Derived read-only facts over *tree*."""
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


def _extension(path: str | None) -> str:
    return posixpath.splitext(path or "")[1]


class TextFiletype:
    """Plain text; formatting only runs plugins claiming the extension."""

    name = "text"
    strict = False
    has_tree = False
    formattable = True

    def parse(self, content: str) -> Any:
        return None

    def print(self, tree: Any, options: FormatOptions, path: str | None) -> str:
        raise ValueError("text sources have no tree to print")

    def format(
        self, content: str, tree: Any, options: FormatOptions, path: str | None
    ) -> str:
        if path is None:
            return content
        return options.run_plugins(
            content, path, path=path, extension=_extension(path)
        )

    def named_units(self, tree: Any) -> list[str]:
        return []


class CodeFiletype:
    """Code artifacts in the ``rewrite.lang`` expression language."""

    name = "ex"
    strict = True
    has_tree = True
    formattable = True
    extensions = (".ex", ".exs")

    def parse(self, content: str) -> Any:
        return parse(content)

    def print(self, tree: Any, options: FormatOptions, path: str | None) -> str:
        def format_sigil(node: Sigil) -> str:
            return options.run_plugins(
                node.content,
                f"~{node.marker}",
                path=path,
                sigil=node.marker,
                modifiers=node.modifiers,
            )

        printer = Printer(
            options.locals_without_parens,
            indent=options.indent,
            sigil_formatter=format_sigil,
        )
        return printer.print(tree)

    def format(
        self, content: str, tree: Any, options: FormatOptions, path: str | None
    ) -> str:
        if path is not None:
            context = options.plugin_context(path=path, extension=_extension(path))
            if select_plugin(options.plugins, path, context) is not None:
                return options.run_plugins(
                    content, path, path=path, extension=_extension(path)
                )
        if tree is None:
            # Loaded with a parse issue; nothing to print from.
            return content
        return self.print(self.parse(content), options, path)

    def named_units(self, tree: Any) -> list[str]:
        return module_names(tree)


class FormatterFiletype:
    """``.formatter.yml`` files; the tree is the loaded YAML document."""

    name = "formatter"
    strict = False
    has_tree = True
    formattable = False

    def parse(self, content: str) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            line = mark.line + 1 if mark is not None else None
            column = mark.column + 1 if mark is not None else None
            reason = getattr(exc, "problem", None) or str(exc)
            raise ParseError(f"invalid YAML: {reason}", line, column) from exc

    def print(self, tree: Any, options: FormatOptions, path: str | None) -> str:
        if tree is None:
            return ""
        return yaml.safe_dump(tree, sort_keys=False, default_flow_style=False)

    def format(
        self, content: str, tree: Any, options: FormatOptions, path: str | None
    ) -> str:
        return content

    def named_units(self, tree: Any) -> list[str]:
        return []


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

FILETYPES: dict[str, Filetype] = {
    "ex": CodeFiletype(),
    "text": TextFiletype(),
    "formatter": FormatterFiletype(),
}

DEFAULT_EXTENSIONS: dict[str, str] = {".ex": "ex", ".exs": "ex"}


def get_filetype(kind: str) -> Filetype:
    """Look up a kind by name.

    Raises:
        ValueError: If *kind* is not a known kind.
    """
    try:
        return FILETYPES[kind]
    except KeyError:
        valid = ", ".join(sorted(FILETYPES))
        raise ValueError(
            f"Unknown source kind '{kind}'. Valid options: {valid}"
        ) from None


def filetype_for(
    path: str | None,
    extensions: Mapping[str, str] | None = None,
    formatter_filename: str = FORMATTER_FILENAME,
) -> Filetype:
    """Pick the kind for *path*.

    Args:
        path: Source path, or ``None`` for in-memory text.
        extensions: Extension to kind name overrides, merged over
            ``DEFAULT_EXTENSIONS``.
        formatter_filename: File name of formatter configuration files.
    """
    if path is None:
        return FILETYPES["text"]
    if posixpath.basename(path) == formatter_filename:
        return FILETYPES["formatter"]
    mapping = {**DEFAULT_EXTENSIONS, **(extensions or {})}
    return get_filetype(mapping.get(_extension(path), "text"))


def load_tree(
    filetype: Filetype,
    content: str,
    path: str | None = None,
    strict: bool | None = None,
) -> tuple[Any, ParseError | None]:
    """Parse *content*, applying the kind's failure policy.

    Returns:
        ``(tree, None)`` on success, ``(None, error)`` when parsing failed
        and the failure is tolerated.

    Raises:
        ParseError: When parsing failed and *strict* (default: the kind's
            own policy) is true.
    """
    strict = filetype.strict if strict is None else strict
    try:
        return filetype.parse(content), None
    except ParseError as exc:
        error = exc.with_path(path)
        if strict:
            raise error from None
        logger.debug("Tolerating parse failure: %s", error)
        return None, error
