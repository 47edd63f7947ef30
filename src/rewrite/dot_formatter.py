"""Hierarchical formatter configuration and plugin dispatch.

Every ``.formatter.yml`` in a project defines one *scope*: the directory
that holds it, the input globs (relative to that directory) it applies
to, its plugins and its options.  Scopes nest by directory containment.

Resolution for a path:

1. **Select** -- the deepest scope whose globs match wins; ties go to the
   scope declared first.
2. **Merge** -- options are merged from the outermost ancestor down to
   the selected scope.  Scalars: child wins.  Lists: parent first, then
   child.  ``plugin_options``: shallow merge, child wins.
3. **Exclude** -- plugins named in any ``exclude_plugins`` along the
   chain are removed from the merged plugin list by identity.

Plugins are any objects with ``claims(options)`` and
``format(contents, options)``.  They are named in configuration either
by a registry key supplied by the caller or by an import path such as
``"my_pkg.plugins:Markdown"`` (classes are instantiated without
arguments).

Example ``.formatter.yml``::

    inputs: ["lib/**/*.{ex,exs}", "mix.exs"]
    locals_without_parens: ["foo", "bar/2"]
    plugins: ["markdown"]
    plugin_options:
      width: 80
"""

from __future__ import annotations

import importlib
import logging
import posixpath
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from rewrite.errors import ConfigError
from rewrite.globs import glob_match

logger = logging.getLogger(__name__)

DEFAULT_INDENT = 2
DEFAULT_LINE_LENGTH = 98


# ---------------------------------------------------------------------------
# Plugin protocol
# ---------------------------------------------------------------------------


class Claims(BaseModel):
    """What a plugin formats.

    Attributes:
        extensions: File extensions including the dot (``".md"``).
        markers: Embedded-syntax markers, i.e. sigil names (``"H"``).
    """

    extensions: frozenset[str] = frozenset()
    markers: frozenset[str] = frozenset()

    model_config = {"frozen": True}


class Plugin(Protocol):
    """Protocol that all formatter plugins must satisfy."""

    def claims(self, options: dict[str, Any]) -> Claims | Mapping[str, Any]:
        """Declare the extensions and markers this plugin formats."""
        ...  # pragma: no cover

    def format(self, contents: str, options: dict[str, Any]) -> str:
        """Return *contents* formatted."""
        ...  # pragma: no cover


def plugin_name(plugin: Any) -> str:
    return getattr(plugin, "name", None) or type(plugin).__name__


def _claims_of(plugin: Any, context: dict[str, Any]) -> Claims:
    claims = plugin.claims(context)
    if isinstance(claims, Claims):
        return claims
    return Claims.model_validate(claims)


def _matches(claims: Claims, target: str) -> bool:
    if target.startswith("~"):
        return target[1:] in claims.markers
    return posixpath.splitext(target)[1] in claims.extensions


def select_plugin(
    plugins: Iterable[Any],
    path_or_marker: str,
    options: dict[str, Any] | None = None,
) -> Any | None:
    """Return the first plugin claiming *path_or_marker*, or ``None``.

    Args:
        plugins: Plugins in merged order.
        path_or_marker: A file path (matched on its extension) or a sigil
            marker prefixed with ``~`` (``"~H"``).
        options: Options handed to each plugin's ``claims()``.
    """
    context = dict(options or {})
    for plugin in plugins:
        if _matches(_claims_of(plugin, context), path_or_marker):
            return plugin
    return None


# ---------------------------------------------------------------------------
# Configuration schema
# ---------------------------------------------------------------------------


class FormatterConfig(BaseModel):
    """Validated contents of one ``.formatter.yml``.

    Scalars left as ``None`` inherit from enclosing scopes.
    """

    inputs: list[str] = Field(
        default_factory=lambda: ["**/*"],
        description="Globs relative to the config's directory",
    )
    locals_without_parens: list[str] = Field(default_factory=list)
    plugins: list[str] = Field(default_factory=list)
    exclude_plugins: list[str] = Field(default_factory=list)
    indent: int | None = Field(default=None, ge=1, le=8)
    line_length: int | None = Field(default=None, ge=1)
    plugin_options: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator(
        "inputs", "locals_without_parens", "plugins", "exclude_plugins", mode="before"
    )
    @classmethod
    def _wrap_single(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


def parse_formatter_config(content: str, path: str | None = None) -> FormatterConfig:
    """Parse and validate ``.formatter.yml`` text.

    Raises:
        ConfigError: On YAML errors, a non-mapping root, unknown keys or
            invalid values.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}", path) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"expected a mapping at the top level, got {type(data).__name__}", path
        )
    try:
        return FormatterConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc), path) from exc


# ---------------------------------------------------------------------------
# Scopes and resolved options
# ---------------------------------------------------------------------------


class Scope(BaseModel):
    """One directory-rooted configuration unit.

    Attributes:
        config_path: Path of the ``.formatter.yml`` this scope came from.
        root: Directory the config lives in (``""`` for the project root).
        config: The validated configuration.
        plugins: Loaded plugin objects, in declared order.
        parent: Index of the enclosing scope, if any.
    """

    config_path: str
    root: str
    config: FormatterConfig
    plugins: tuple[Any, ...] = ()
    parent: int | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def depth(self) -> int:
        return 0 if not self.root else self.root.count("/") + 1

    def contains(self, path: str) -> bool:
        return not self.root or path.startswith(self.root + "/")

    def matches(self, path: str) -> bool:
        if not self.contains(path):
            return False
        rel = path[len(self.root) + 1 :] if self.root else path
        return any(glob_match(rel, pattern) for pattern in self.config.inputs)


class FormatOptions(BaseModel):
    """Merged options for one path.

    Attributes:
        plugins: Plugin objects after exclusions, in merged order.
        locals_without_parens: Call names printed without parentheses.
        indent: Spaces per block level.
        line_length: Preferred maximum line length, passed to plugins.
        plugin_options: Extra options handed to plugins.
        scope: Config path of the selected scope, ``None`` for defaults.
    """

    plugins: tuple[Any, ...] = ()
    locals_without_parens: tuple[str, ...] = ()
    indent: int = DEFAULT_INDENT
    line_length: int = DEFAULT_LINE_LENGTH
    plugin_options: dict[str, Any] = Field(default_factory=dict)
    scope: str | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def plugin_context(self, **extra: Any) -> dict[str, Any]:
        """Options dict handed to plugins' ``claims()`` and ``format()``."""
        context: dict[str, Any] = {
            "locals_without_parens": list(self.locals_without_parens),
            "indent": self.indent,
            "line_length": self.line_length,
        }
        context.update(self.plugin_options)
        context.update(extra)
        return context

    def plugins_for(self, path_or_marker: str, **extra: Any) -> list[Any]:
        """All plugins claiming *path_or_marker*, in merged order."""
        context = self.plugin_context(**extra)
        return [
            p for p in self.plugins if _matches(_claims_of(p, context), path_or_marker)
        ]

    def run_plugins(self, contents: str, path_or_marker: str, **extra: Any) -> str:
        """Pass *contents* through every claiming plugin in order."""
        context = self.plugin_context(**extra)
        for plugin in self.plugins_for(path_or_marker, **extra):
            logger.debug("Formatting %s with %s", path_or_marker, plugin_name(plugin))
            contents = plugin.format(contents, context)
        return contents


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def _normalize(path: str) -> str:
    normalized = posixpath.normpath(path.replace("\\", "/"))
    return "" if normalized == "." else normalized.lstrip("/")


def _load_plugin(
    name: str,
    registry: Mapping[str, Any],
    cache: dict[str, Any],
    config_path: str,
) -> Any:
    if name in cache:
        return cache[name]
    if name in registry:
        plugin = registry[name]
    else:
        module_name, sep, attr = name.partition(":")
        if not sep or not attr:
            raise ConfigError(f"unknown plugin {name!r}", config_path)
        try:
            obj = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as exc:
            raise ConfigError(f"cannot load plugin {name!r}: {exc}", config_path) from exc
        plugin = obj() if isinstance(obj, type) else obj
    if not (callable(getattr(plugin, "claims", None)) and callable(getattr(plugin, "format", None))):
        raise ConfigError(
            f"plugin {name!r} must define claims() and format()", config_path
        )
    cache[name] = plugin
    return plugin


class FormattingResolver:
    """Scope tree built from a project's ``.formatter.yml`` sources.

    Instances are never mutated; rebuild with ``build()`` when the
    configuration changes.
    """

    def __init__(self, scopes: Iterable[Scope] = (), plugins: Mapping[str, Any] | None = None) -> None:
        self._scopes: tuple[Scope, ...] = tuple(scopes)
        self._loaded: dict[str, Any] = dict(plugins or {})

    @property
    def scopes(self) -> tuple[Scope, ...]:
        return self._scopes

    @classmethod
    def build(
        cls,
        config_sources: Iterable[Any],
        plugins: Mapping[str, Any] | None = None,
    ) -> FormattingResolver:
        """Build a resolver from configuration-bearing sources.

        Args:
            config_sources: Objects with ``path`` and ``content``, in
                declaration order.
            plugins: Registry of plugin objects addressable by name.

        Raises:
            ConfigError: If any configuration is malformed or names a
                plugin that cannot be loaded.
        """
        registry = dict(plugins or {})
        cache: dict[str, Any] = {}
        pending: list[tuple[str, str, FormatterConfig, tuple[Any, ...]]] = []
        for source in config_sources:
            config_path = _normalize(source.path)
            config = parse_formatter_config(source.content, config_path)
            loaded = tuple(
                _load_plugin(name, registry, cache, config_path)
                for name in config.plugins
            )
            for name in config.exclude_plugins:
                _load_plugin(name, registry, cache, config_path)
            pending.append((config_path, posixpath.dirname(config_path), config, loaded))

        scopes: list[Scope] = []
        for config_path, root, config, loaded in pending:
            parent = None
            parent_depth = -1
            for index, (_, other_root, _, _) in enumerate(pending):
                if other_root == root:
                    continue
                if other_root and not root.startswith(other_root + "/"):
                    continue
                depth = 0 if not other_root else other_root.count("/") + 1
                if depth > parent_depth:
                    parent, parent_depth = index, depth
            scopes.append(
                Scope(
                    config_path=config_path,
                    root=root,
                    config=config,
                    plugins=loaded,
                    parent=parent,
                )
            )
        logger.debug("Built formatting resolver with %d scope(s)", len(scopes))
        return cls(scopes, cache)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def scope_for(self, path: str) -> Scope | None:
        """Return the most specific scope whose globs match *path*."""
        path = _normalize(path)
        best: Scope | None = None
        for scope in self._scopes:
            if scope.matches(path) and (best is None or scope.depth > best.depth):
                best = scope
        return best

    def _chain(self, scope: Scope) -> list[Scope]:
        chain = [scope]
        while chain[-1].parent is not None:
            chain.append(self._scopes[chain[-1].parent])
        chain.reverse()
        return chain

    def resolve(self, path: str | None) -> FormatOptions:
        """Merged options and plugins for *path*.

        ``None`` (an unsaved source) resolves against the project-root
        scope.  A path no scope matches gets default options.
        """
        if path is None:
            scope = next((s for s in self._scopes if not s.root), None)
        else:
            scope = self.scope_for(path)
        if scope is None:
            return FormatOptions()

        indent: int | None = None
        line_length: int | None = None
        locals_without_parens: list[str] = []
        plugin_options: dict[str, Any] = {}
        plugins: list[Any] = []
        excluded: list[Any] = []
        for link in self._chain(scope):
            config = link.config
            if config.indent is not None:
                indent = config.indent
            if config.line_length is not None:
                line_length = config.line_length
            locals_without_parens.extend(
                name for name in config.locals_without_parens
                if name not in locals_without_parens
            )
            plugin_options.update(config.plugin_options)
            plugins.extend(p for p in link.plugins if not any(p is q for q in plugins))
            excluded.extend(self._loaded[name] for name in config.exclude_plugins)

        return FormatOptions(
            plugins=tuple(p for p in plugins if not any(p is x for x in excluded)),
            locals_without_parens=tuple(locals_without_parens),
            indent=indent if indent is not None else DEFAULT_INDENT,
            line_length=line_length if line_length is not None else DEFAULT_LINE_LENGTH,
            plugin_options=plugin_options,
            scope=scope.config_path,
        )

    def select_plugin(self, path_or_marker: str, path: str | None = None) -> Any | None:
        """First plugin resolved for *path* that claims *path_or_marker*."""
        if path is None and not path_or_marker.startswith("~"):
            path = path_or_marker
        options = self.resolve(path)
        return select_plugin(options.plugins, path_or_marker, options.plugin_context())
