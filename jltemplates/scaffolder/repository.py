"""Git repository setup for generated packages.

Wraps the ``git`` command-line program: initialising the staged package
repository, applying local configuration, making commits, attaching the
``origin`` remote and creating the ``gh-pages`` branch for GitHub Pages docs.
"""

from __future__ import annotations

import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from jltemplates.errors import GitError
from jltemplates.utils import print_info

from .plugins import PluginKind

if TYPE_CHECKING:
    from jltemplates.config import Template


GH_PAGES_BRANCH = "gh-pages"
INITIAL_COMMIT_MESSAGE = "Empty initial commit"


def _run_git(
    *args: str,
    cwd: str | Path | None = None,
    timeout: float = 60.0,
) -> tuple[str, str]:
    """Run a git command and return (stdout, stderr).

    Raises GitError if the command cannot be started, times out, or exits
    with a non-zero code.
    """
    cmd = ["git"] + list(args)
    cmd_str = " ".join(cmd)

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            cwd=str(cwd) if cwd else None,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise GitError(
            f"Git command timed out after {timeout}s: {cmd_str}",
            command=cmd_str,
        ) from exc
    except OSError as exc:
        raise GitError(f"Could not run git: {exc}", command=cmd_str) from exc

    stdout = proc.stdout.decode("utf-8", errors="replace").strip()
    stderr = proc.stderr.decode("utf-8", errors="replace").strip()

    if proc.returncode != 0:
        raise GitError(
            f"Git command failed (exit {proc.returncode}): {cmd_str}\n{stderr}",
            command=cmd_str,
            stderr=stderr,
        )

    return stdout, stderr


def remote_url(host: str, user: str, pkg_name: str, ssh: bool = False) -> str:
    """Return the ``origin`` URL for a package.

    Examples::

        remote_url("github.com", "alice", "Foo")           -> "https://github.com/alice/Foo.jl"
        remote_url("github.com", "alice", "Foo", ssh=True) -> "git@github.com:alice/Foo.jl.git"
    """
    if ssh:
        return f"git@{host}:{user}/{pkg_name}.jl.git"
    return f"https://{host}/{user}/{pkg_name}.jl"


@dataclass
class GitRemote:
    """Handle to a remote added by :meth:`GitRepo.remote`."""

    name: str
    url: str
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class GitRepo:
    """A git repository rooted at ``path``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def git(self, *args: str) -> str:
        stdout, _ = _run_git(*args, cwd=self.path)
        return stdout

    # -- Creation and configuration ----------------------------------------

    @classmethod
    def init(cls, path: str | Path) -> "GitRepo":
        """Create *path* if needed and initialise an empty repository in it."""
        repo_path = Path(path)
        repo_path.mkdir(parents=True, exist_ok=True)
        _run_git("init", cwd=repo_path)
        return cls(repo_path)

    def set_config(self, key: str, value: str) -> None:
        self.git("config", "--local", key, value)

    # -- Commits -----------------------------------------------------------

    def add(self, paths: list[str]) -> None:
        if paths:
            self.git("add", "--", *paths)

    def commit(self, message: str, allow_empty: bool = False) -> None:
        args = ["commit", "--quiet", "-m", message]
        if allow_empty:
            args.insert(1, "--allow-empty")
        self.git(*args)

    def commit_count(self, ref: str = "HEAD") -> int:
        return int(self.git("rev-list", "--count", ref))

    # -- Branches ----------------------------------------------------------

    def current_branch(self) -> str:
        return self.git("rev-parse", "--abbrev-ref", "HEAD")

    def create_branch(self, name: str) -> None:
        """Create *name* at HEAD and switch to it."""
        self.git("checkout", "--quiet", "-b", name)

    def checkout(self, name: str) -> None:
        self.git("checkout", "--quiet", name)

    def branches(self) -> list[str]:
        out = self.git("branch", "--format=%(refname:short)")
        return [line.strip() for line in out.splitlines() if line.strip()]

    # -- Remotes -----------------------------------------------------------

    @contextmanager
    def remote(self, name: str, url: str) -> Iterator[GitRemote]:
        """Add remote *name* and yield a handle that is closed on exit."""
        self.git("remote", "add", name, url)
        handle = GitRemote(name=name, url=url)
        try:
            yield handle
        finally:
            handle.close()

    def remote_url(self, name: str = "origin") -> str:
        return self.git("remote", "get-url", name)


def setup_repository(
    pkg_dir: str | Path,
    pkg_name: str,
    template: Template,
    ssh: bool = False,
) -> GitRepo:
    """Initialise and configure the repository for a staged package.

    Steps, in order: init, apply ``template.gitconfig``, empty initial commit,
    ``origin`` remote, and (with a GitHub Pages plugin) an empty ``gh-pages``
    branch before switching back to the primary branch.

    Raises:
        GitError: If any git command fails.
    """
    repo = GitRepo.init(pkg_dir)
    print_info(f"Initialized git repo at {repo.path}")

    if template.gitconfig:
        print_info("Applying git configuration")
    for key, value in template.gitconfig.items():
        repo.set_config(key, value)

    repo.commit(INITIAL_COMMIT_MESSAGE, allow_empty=True)
    print_info("Made initial empty commit")

    url = remote_url(template.host, template.user, pkg_name, ssh=ssh)
    with repo.remote("origin", url):
        print_info(f"Set remote origin to {url}")

    if template.has_plugin(PluginKind.GITHUB_PAGES):
        primary = repo.current_branch()
        repo.create_branch(GH_PAGES_BRANCH)
        repo.commit(INITIAL_COMMIT_MESSAGE, allow_empty=True)
        print_info(f"Created empty {GH_PAGES_BRANCH} branch")
        repo.checkout(primary)

    return repo
