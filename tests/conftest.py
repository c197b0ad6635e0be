"""Shared pytest fixtures for the jltemplates test suite.

Provides reusable fixtures for:
- Isolated temporary directories for staging and backups
- Templates with a git identity that works in clean CI environments
- Helpers for inspecting generated repositories
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Callable

import pytest

from jltemplates.config import Template


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_tempdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Route ``tempfile.mkdtemp`` into the test's own tmp_path.

    Staging and fallback backup directories then live where tests can inspect
    them, and nothing leaks into the system temp directory.
    """
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


@pytest.fixture
def packages_dir(tmp_path: Path) -> Path:
    """Parent directory for generated packages (not created up front)."""
    return tmp_path / "packages"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

GIT_IDENTITY: dict[str, str] = {
    "user.name": "Alice Example",
    "user.email": "alice@example.com",
    "commit.gpgsign": "false",
}


@pytest.fixture
def make_template(packages_dir: Path) -> Callable[..., Template]:
    """Factory for templates with test-friendly defaults.

    Usage:
        def test_x(make_template):
            template = make_template(license="MIT", plugins=[TravisCI()])
    """
    def factory(**overrides: Any) -> Template:
        values: dict[str, Any] = {
            "user": "alice",
            "authors": "Alice Example",
            "years": "2024",
            "dir": packages_dir,
            "license": "",
            "julia_version": "1.0.0",
            "gitconfig": dict(GIT_IDENTITY),
        }
        values.update(overrides)
        return Template(**values)

    return factory


@pytest.fixture
def template(make_template) -> Template:
    """A template with no plugins and no license."""
    return make_template()


# ---------------------------------------------------------------------------
# Repository inspection
# ---------------------------------------------------------------------------

def git_output(repo: Path, *args: str) -> str:
    """Run a git command in *repo* and return its stripped stdout."""
    proc = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return proc.stdout.strip()


def package_files(pkg_dir: Path) -> set[str]:
    """Every file under *pkg_dir* outside ``.git``, as posix relative paths."""
    return {
        p.relative_to(pkg_dir).as_posix()
        for p in pkg_dir.rglob("*")
        if p.is_file() and ".git" not in p.relative_to(pkg_dir).parts
    }
