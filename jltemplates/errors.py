"""Exception hierarchy for package generation.

Everything that happens before the final relocation step is fatal and
surfaces as one of these errors.  ``RelocationError`` is the exception: the
pipeline catches it and reroutes the finished package to a backup location.
"""

from __future__ import annotations

from pathlib import Path


class JLTemplatesError(Exception):
    """Base class for all package generation errors."""


class PreconditionError(JLTemplatesError):
    """Raised before any work is done, e.g. when the destination already exists."""


class StagedError(JLTemplatesError):
    """An error raised after the staging directory was created.

    The staging directory is never removed on failure so its contents can be
    inspected; its location is kept on the exception and in the message.
    """

    def __init__(self, message: str, staging_dir: str | Path | None = None) -> None:
        self.staging_dir = Path(staging_dir) if staging_dir else None
        if self.staging_dir is not None:
            message = f"{message} (staging directory left at {self.staging_dir})"
        super().__init__(message)


class SetupError(StagedError):
    """A git operation failed while setting up or committing the repository."""


class GenerationError(StagedError):
    """A file generator or plugin failed to write its output."""


class RelocationError(JLTemplatesError):
    """Moving the finished package into its destination failed.

    ``source`` is where the complete package is now; ``cleanup`` is an
    intermediate directory to delete once the package has been moved out.
    """

    def __init__(
        self,
        message: str,
        source: Path,
        destination: Path,
        cleanup: Path | None = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.cleanup = cleanup
        super().__init__(message)


class GitError(Exception):
    """Raised when a git command fails."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class LicenseError(ValueError):
    """Raised when a license identifier does not name a bundled license."""
