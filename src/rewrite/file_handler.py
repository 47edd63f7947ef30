"""File-system collaborator: discovery, encoding-aware read/write, hashing.

``LocalFileSystem`` is the default collaborator used by sources and
projects.  Paths handed to it are relative to its root (POSIX style);
absolute paths are used as given.  Every ``OSError`` surfaces as
``SourceIOError`` carrying the failing path.  Nothing is retried.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path

from charset_normalizer import from_bytes

from rewrite.errors import SourceIOError
from rewrite.globs import expand_braces, has_magic

logger = logging.getLogger(__name__)

# =============================================================================
# Encoding-aware I/O
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Write content to a file, creating parent directories as needed.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


def content_hash(content: str) -> str:
    """SHA-256 hex digest of *content* encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


# =============================================================================
# Collaborator
# =============================================================================


class LocalFileSystem:
    """Read, write and discover files below *root*.

    Args:
        root: Base directory for relative paths (default: CWD at call time).
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root) if root is not None else None

    @property
    def root(self) -> Path:
        return self._root if self._root is not None else Path.cwd()

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.root / candidate

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def read(self, path: str) -> str:
        """Return the decoded contents of *path*."""
        try:
            content, encoding = read_file_with_encoding(self._resolve(path))
        except OSError as exc:
            raise SourceIOError(path, exc.strerror or str(exc)) from exc
        logger.debug("Read %s (%s)", path, encoding)
        return content

    def write(self, path: str, content: str) -> int:
        """Write *content* to *path* as UTF-8, creating directories."""
        try:
            count = write_file(self._resolve(path), content)
        except OSError as exc:
            raise SourceIOError(path, exc.strerror or str(exc)) from exc
        logger.debug("Wrote %d bytes to %s", count, path)
        return count

    def remove(self, path: str) -> None:
        try:
            self._resolve(path).unlink()
        except OSError as exc:
            raise SourceIOError(path, exc.strerror or str(exc)) from exc

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def mtime(self, path: str) -> int:
        """Modification time of *path* in nanoseconds."""
        try:
            return self._resolve(path).stat().st_mtime_ns
        except OSError as exc:
            raise SourceIOError(path, exc.strerror or str(exc)) from exc

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, patterns: str | Iterable[str]) -> list[str]:
        """Expand *patterns* into an ordered, de-duplicated list of files.

        Glob patterns are expanded (sorted within each pattern); plain
        paths are kept if they name an existing file.  Results are
        relative to the root when they lie below it.
        """
        patterns = [patterns] if isinstance(patterns, str) else list(patterns)
        root = self.root
        found: list[str] = []
        seen: set[str] = set()
        for pattern in patterns:
            for expanded in expand_braces(pattern):
                if has_magic(expanded):
                    if Path(expanded).is_absolute():
                        anchor = Path(Path(expanded).anchor)
                        matches = sorted(anchor.glob(str(Path(expanded).relative_to(anchor))))
                    else:
                        matches = sorted(root.glob(expanded))
                else:
                    candidate = self._resolve(expanded)
                    matches = [candidate] if candidate.is_file() else []
                for match in matches:
                    if not match.is_file():
                        continue
                    key = self._relative(match)
                    if key not in seen:
                        seen.add(key)
                        found.append(key)
        logger.debug("Discovered %d file(s) for %s", len(found), patterns)
        return found

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()
