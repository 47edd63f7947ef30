"""Glob helpers shared by file discovery and formatter scopes.

Patterns use POSIX separators and support ``*`` (within one segment),
``**`` (any number of segments), ``?``, ``[abc]``/``[!abc]`` character
classes and ``{a,b}`` alternatives.
"""

from __future__ import annotations

import functools
import re

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives into plain glob patterns.

    >>> expand_braces("lib/*.{ex,exs}")
    ['lib/*.ex', 'lib/*.exs']
    """
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        for candidate in expand_braces(head + option + tail):
            if candidate not in expanded:
                expanded.append(candidate)
    return expanded


def has_magic(pattern: str) -> bool:
    """True if *pattern* contains any glob metacharacter."""
    return any(ch in pattern for ch in "*?[{")


def _class_end(pattern: str, start: int) -> int:
    """Index of the "]" closing the class opened at *start*, or -1."""
    i = start + 1
    if i < len(pattern) and pattern[i] in "!^":
        i += 1
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    return pattern.find("]", i)


def _translate_class(body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    body = body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
    if negate:
        return f"[^/{body}]"
    if body.startswith("^"):
        body = "\\" + body
    # Classes never match the separator.
    return f"(?!/)[{body}]"


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        elif pattern[i] == "[" and _class_end(pattern, i) != -1:
            end = _class_end(pattern, i)
            parts.append(_translate_class(pattern[i + 1 : end]))
            i = end + 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z")


def glob_match(path: str, pattern: str) -> bool:
    """Return True if the relative POSIX *path* matches *pattern*."""
    return any(
        _compile(expanded).match(path) is not None
        for expanded in expand_braces(pattern)
    )
