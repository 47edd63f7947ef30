"""Shared pytest fixtures for rewrite tests."""

import pytest
from dotenv import load_dotenv

from rewrite.file_handler import LocalFileSystem

load_dotenv()

_ENV_VARS = (
    "REWRITE_CONFIG",
    "REWRITE_STRICT",
    "REWRITE_DEFAULT_OWNER",
    "REWRITE_LOG_LEVEL",
    "REWRITE_DIFF_CONTEXT",
    "LOG_LEVEL",
    "LOG_FILE",
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "disk: mark test as reading or writing files under tmp_path"
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fs(tmp_path):
    """A LocalFileSystem rooted at the test's tmp_path."""
    return LocalFileSystem(tmp_path)


@pytest.fixture
def make_files(tmp_path):
    """Factory fixture writing ``{relative_path: content}`` under tmp_path."""

    def _make(files):
        for rel, content in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return tmp_path

    return _make
