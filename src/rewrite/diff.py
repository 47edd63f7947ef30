"""Line-level diffs between two text snapshots.

``diff()`` computes a minimal edit script with Myers' algorithm and
returns it as a ``TextDiff``: an ordered run of ``DiffHunk`` values that
covers both texts completely, so ``apply()`` can rebuild the new text
from the old one.  ``render()`` turns a ``TextDiff`` into a unified view
with bounded context.

Key design choices:

* **Pure functions** -- nothing here keeps state between calls; the same
  inputs always produce the same hunks and the same rendering.
* **Line endings preserved** -- lines are split with ``keepends=True`` so
  a missing trailing newline is a real difference.
* **Minimal scripts** -- the lines kept as ``equal`` always form a
  longest common subsequence of the two texts.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import Literal

from pydantic import BaseModel

Colorizer = Callable[[str, str], str]

_MARKERS = {"equal": " ", "delete": "-", "insert": "+"}


class DiffHunk(BaseModel):
    """A contiguous run of equal or changed lines.

    Attributes:
        tag: ``equal``, ``delete``, ``insert`` or ``replace``.
        old_start: 0-based index of the first old line in the run.
        new_start: 0-based index of the first new line in the run.
        old_lines: Lines taken from the old text (with line endings).
        new_lines: Lines taken from the new text (with line endings).
    """

    tag: Literal["equal", "delete", "insert", "replace"]
    old_start: int
    new_start: int
    old_lines: tuple[str, ...] = ()
    new_lines: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @property
    def old_end(self) -> int:
        return self.old_start + len(self.old_lines)

    @property
    def new_end(self) -> int:
        return self.new_start + len(self.new_lines)


class TextDiff(BaseModel):
    """Ordered hunks plus the line counts of both texts."""

    hunks: tuple[DiffHunk, ...] = ()
    old_count: int = 0
    new_count: int = 0

    model_config = {"frozen": True}

    @property
    def changed(self) -> bool:
        """True if at least one hunk is not an ``equal`` run."""
        return any(h.tag != "equal" for h in self.hunks)


# ---------------------------------------------------------------------------
# Computing and applying
# ---------------------------------------------------------------------------


def _matching_blocks(a: Sequence[str], b: Sequence[str]) -> list[tuple[int, int, int]]:
    """Return ``(i, j, size)`` runs of a shortest edit path from *a* to *b*.

    Follows Myers' O(ND) greedy search, keeping one snapshot of the
    furthest-reaching frontier per edit distance and walking them back.
    The list ends with the ``(len(a), len(b), 0)`` sentinel, like
    ``difflib.SequenceMatcher.get_matching_blocks``.
    """
    n, m = len(a), len(b)
    offset = n + m
    frontier = [0] * (2 * offset + 2)
    trace: list[list[int]] = []
    for d in range(offset + 1):
        trace.append(frontier[:])
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and frontier[offset + k - 1] < frontier[offset + k + 1]):
                x = frontier[offset + k + 1]
            else:
                x = frontier[offset + k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            frontier[offset + k] = x
            if x >= n and y >= m:
                break
        else:
            continue
        break

    pairs: list[tuple[int, int]] = []
    x, y = n, m
    for d in range(len(trace) - 1, -1, -1):
        previous = trace[d]
        k = x - y
        if k == -d or (k != d and previous[offset + k - 1] < previous[offset + k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = previous[offset + prev_k]
        prev_y = prev_x - prev_k
        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            pairs.append((x, y))
        x, y = prev_x, prev_y
    pairs.reverse()

    blocks: list[tuple[int, int, int]] = []
    for i, j in pairs:
        if blocks:
            bi, bj, size = blocks[-1]
            if bi + size == i and bj + size == j:
                blocks[-1] = (bi, bj, size + 1)
                continue
        blocks.append((i, j, 1))
    blocks.append((n, m, 0))
    return blocks


def _edit_opcodes(
    a: Sequence[str], b: Sequence[str]
) -> list[tuple[str, int, int, int, int]]:
    codes: list[tuple[str, int, int, int, int]] = []
    i = j = 0
    for x, y, size in _matching_blocks(a, b):
        if i < x and j < y:
            codes.append(("replace", i, x, j, y))
        elif i < x:
            codes.append(("delete", i, x, j, y))
        elif j < y:
            codes.append(("insert", i, x, j, y))
        if size:
            codes.append(("equal", x, x + size, y, y + size))
        i, j = x + size, y + size
    return codes


def diff(old: str, new: str) -> TextDiff:
    """Compute the line-level edit script turning *old* into *new*.

    Args:
        old: The original text.
        new: The changed text.

    Returns:
        A ``TextDiff``.  Identical inputs yield no hunks at all.
    """
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    if old == new:
        return TextDiff(old_count=len(old_lines), new_count=len(new_lines))

    hunks = tuple(
        DiffHunk(
            tag=tag,
            old_start=i1,
            new_start=j1,
            old_lines=tuple(old_lines[i1:i2]),
            new_lines=tuple(new_lines[j1:j2]),
        )
        for tag, i1, i2, j1, j2 in _edit_opcodes(old_lines, new_lines)
    )
    return TextDiff(
        hunks=hunks, old_count=len(old_lines), new_count=len(new_lines)
    )


def apply(old: str, text_diff: TextDiff) -> str:
    """Rebuild the new text of *text_diff* from *old*.

    Raises:
        ValueError: If *old* is not the text the diff was computed from.
    """
    old_lines = old.splitlines(keepends=True)
    if len(old_lines) != text_diff.old_count:
        raise ValueError(
            f"Diff expects {text_diff.old_count} old lines, got {len(old_lines)}"
        )
    if not text_diff.hunks:
        return old

    result: list[str] = []
    position = 0
    for hunk in text_diff.hunks:
        if hunk.old_start != position:
            raise ValueError(
                f"Hunk starts at old line {hunk.old_start + 1}, expected {position + 1}"
            )
        if tuple(old_lines[hunk.old_start : hunk.old_end]) != hunk.old_lines:
            raise ValueError(
                f"Old text does not match hunk at line {hunk.old_start + 1}"
            )
        result.extend(hunk.new_lines)
        position = hunk.old_end
    if position != len(old_lines):
        raise ValueError("Diff does not cover the whole old text")
    return "".join(result)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _identity(kind: str, text: str) -> str:
    return text


def _opcodes(text_diff: TextDiff) -> list[tuple[str, int, int, int, int]]:
    return [
        (h.tag, h.old_start, h.old_end, h.new_start, h.new_end)
        for h in text_diff.hunks
    ]


def _grouped(
    codes: list[tuple[str, int, int, int, int]], n: int
) -> Iterator[list[tuple[str, int, int, int, int]]]:
    """Group opcodes so that changes within *n* lines share a header.

    Mirrors ``SequenceMatcher.get_grouped_opcodes`` but works on opcodes
    rebuilt from stored hunks.
    """
    codes = list(codes)
    if codes[0][0] == "equal":
        tag, i1, i2, j1, j2 = codes[0]
        codes[0] = tag, max(i1, i2 - n), i2, max(j1, j2 - n), j2
    if codes[-1][0] == "equal":
        tag, i1, i2, j1, j2 = codes[-1]
        codes[-1] = tag, i1, min(i2, i1 + n), j1, min(j2, j1 + n)

    group: list[tuple[str, int, int, int, int]] = []
    for tag, i1, i2, j1, j2 in codes:
        # Long unchanged runs end the current group.
        if tag == "equal" and i2 - i1 > 2 * n:
            group.append((tag, i1, min(i2, i1 + n), j1, min(j2, j1 + n)))
            yield group
            group = []
            i1, j1 = max(i1, i2 - n), max(j1, j2 - n)
        group.append((tag, i1, i2, j1, j2))
    if group and not (len(group) == 1 and group[0][0] == "equal"):
        yield group


def _format_range(start: int, stop: int) -> str:
    beginning = start + 1
    length = stop - start
    if length == 1:
        return f"{beginning}"
    if not length:
        beginning -= 1
    return f"{beginning},{length}"


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def render(
    text_diff: TextDiff,
    context_lines: int = 3,
    colorizer: Colorizer | None = None,
    labels: tuple[str, str] | None = None,
) -> str:
    """Render *text_diff* as a unified diff.

    Args:
        text_diff: Result of ``diff()``.
        context_lines: Unchanged lines shown around each change; changes
            closer than twice this distance share one ``@@`` header.
        colorizer: ``(kind, text) -> text`` applied to every emitted line,
            where kind is ``label``, ``header``, ``equal``, ``delete`` or
            ``insert``.  Defaults to identity.
        labels: Optional ``(old, new)`` names emitted as ``---``/``+++``.

    Returns:
        The rendered diff, or ``""`` when there are no hunks.
    """
    if context_lines < 0:
        raise ValueError("context_lines must be >= 0")
    if not text_diff.changed:
        return ""

    paint = colorizer or _identity
    old_lines: list[str] = []
    new_lines: list[str] = []
    for hunk in text_diff.hunks:
        old_lines.extend(hunk.old_lines)
        new_lines.extend(hunk.new_lines)

    out: list[str] = []
    if labels is not None:
        out.append(paint("label", f"--- {labels[0]}"))
        out.append(paint("label", f"+++ {labels[1]}"))

    for group in _grouped(_opcodes(text_diff), context_lines):
        first, last = group[0], group[-1]
        old_range = _format_range(first[1], last[2])
        new_range = _format_range(first[3], last[4])
        out.append(paint("header", f"@@ -{old_range} +{new_range} @@"))
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                for line in old_lines[i1:i2]:
                    out.append(paint("equal", _MARKERS["equal"] + _strip_eol(line)))
                continue
            if tag in ("replace", "delete"):
                for line in old_lines[i1:i2]:
                    out.append(paint("delete", _MARKERS["delete"] + _strip_eol(line)))
            if tag in ("replace", "insert"):
                for line in new_lines[j1:j2]:
                    out.append(paint("insert", _MARKERS["insert"] + _strip_eol(line)))
    return "\n".join(out) + "\n"
