"""Package generation pipeline.

Generates a package in four stages:

Stage 1: STAGE     -- Create a private temporary staging directory.
Stage 2: SETUP     -- Initialise the git repo, config, remote and branches.
Stage 3: GENERATE  -- Write every file and commit them in one commit.
Stage 4: PUBLISH   -- Move the package into ``<template.dir>/<name>``.

The destination is only touched in stage 4.  If that move fails, the package
is moved to a backup directory instead and a warning says where it went.
Failures in stages 1-3 are fatal and leave the staging directory in place.

Usage::

    jltemplates generate Foo --user alice --plugin travis_ci
    python -m jltemplates generate Foo --config template.yml --force
"""

from __future__ import annotations

import os
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape

from jltemplates.config import Template
from jltemplates.errors import (
    GenerationError,
    GitError,
    JLTemplatesError,
    PreconditionError,
    RelocationError,
    SetupError,
    StagedError,
)
from jltemplates.licenses import available_licenses, read_license
from jltemplates.scaffolder.generator import PackageGenerator
from jltemplates.scaffolder.repository import setup_repository
from jltemplates.utils import (
    console,
    ensure_dir,
    print_error,
    print_info,
    print_panel,
    print_success,
    print_summary_table,
    print_warning,
    unique,
)

COMMIT_MESSAGE = "Files generated by jltemplates"


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class GenerationResult:
    """Outcome of one :func:`generate` call."""

    pkg_name: str
    path: Path
    destination: Path
    files: list[str] = field(default_factory=list)
    branches: list[str] = field(default_factory=list)
    backed_up: bool = False

    @property
    def multiple_branches(self) -> bool:
        return len(self.branches) > 1


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def split_jl(pkg_name: str) -> str:
    """Strip a trailing ``.jl`` from a package name."""
    name = pkg_name.strip()
    if name.endswith(".jl"):
        name = name[: -len(".jl")]
    return name


def generate(
    pkg_name: str,
    template: Template,
    *,
    force: bool = False,
    ssh: bool = False,
    backup_dir: str | Path | None = None,
) -> GenerationResult:
    """Generate a package named *pkg_name* from *template*.

    The package is built and committed in a fresh temporary directory and
    only moved into ``template.dir / pkg_name`` at the very end.

    Args:
        pkg_name: Package name; a trailing ``.jl`` is dropped.
        template: The template describing the package.
        force: Overwrite an existing package at the destination.
        ssh: Use an SSH URL for the ``origin`` remote instead of HTTPS.
        backup_dir: Where to leave the package if it cannot be moved into
            ``template.dir``.  A temporary directory is created if unset.

    Returns:
        A :class:`GenerationResult` describing where the package ended up.

    Raises:
        PreconditionError: The name is empty, or the destination exists and
            *force* is not set.  Nothing has been created.
        SetupError: A git operation failed.
        GenerationError: A generator or plugin failed to write its files.
    """
    pkg_name = split_jl(pkg_name)
    if not pkg_name:
        raise PreconditionError("Package name must not be empty")

    destination = template.dir / pkg_name
    if not force and (destination.exists() or destination.is_symlink()):
        raise PreconditionError(
            f"Path '{destination}' already exists, use force=True to overwrite it."
        )

    staging_root = Path(tempfile.mkdtemp(prefix="jltemplates-"))
    staged_pkg = staging_root / pkg_name

    # Stage 2: repository setup
    try:
        repo = setup_repository(staged_pkg, pkg_name, template, ssh=ssh)
    except (GitError, OSError) as exc:
        raise SetupError(f"Repository setup failed: {exc}", staging_root) from exc

    # Stage 3: files
    try:
        files = PackageGenerator(template).generate(staging_root, pkg_name)
    except Exception as exc:
        raise GenerationError(f"Generating files failed: {exc}", staging_root) from exc

    staged_files = unique(files)
    try:
        repo.add(staged_files)
        print_info(f"Staged {len(staged_files)} files/directories: {', '.join(staged_files)}")
        repo.commit(COMMIT_MESSAGE)
        print_info("Committed files generated by jltemplates")
        branches = repo.branches()
    except GitError as exc:
        raise SetupError(f"Committing generated files failed: {exc}", staging_root) from exc

    result = GenerationResult(
        pkg_name=pkg_name,
        path=destination,
        destination=destination,
        files=staged_files,
        branches=branches,
    )

    # Stage 4: publish
    print_info(f"Moving temporary package directory into {template.dir}/")
    try:
        _relocate(staged_pkg, destination, force=force)
    except RelocationError as exc:
        result.path = _backup(exc.source, pkg_name, backup_dir, staging_root)
        result.backed_up = True
        if exc.cleanup is not None:
            shutil.rmtree(exc.cleanup, ignore_errors=True)
        print_warning(
            f"{pkg_name} couldn't be moved into {destination} ({exc}); "
            f"left package in {result.path.parent}. {destination} was not touched."
        )

    shutil.rmtree(staging_root, ignore_errors=True)

    if not result.backed_up:
        print_panel(
            f"[green]Package generated[/green]\n"
            f"  Path:  {escape(str(result.path))}\n"
            f"  Files: {escape(', '.join(result.files))}",
            title=pkg_name,
        )
    print_success("Finished")
    if result.multiple_branches:
        print_warning("Remember to push all created branches to your remote: git push --all")

    return result


def generate_many(
    pkg_names: list[str],
    template: Template,
    **kwargs,
) -> list[GenerationResult]:
    """Generate several packages from one template, one after another."""
    return [generate(name, template, **kwargs) for name in pkg_names]


# ---------------------------------------------------------------------------
# Relocation
# ---------------------------------------------------------------------------


def _relocate(staged: Path, destination: Path, force: bool = False) -> None:
    """Move *staged* to *destination* so that it appears in one rename.

    The package is first moved into a hidden directory beside the destination
    (this may copy across filesystems), then renamed into place.  With
    *force*, an existing destination is renamed aside first and restored if
    the final rename fails.

    Raises:
        RelocationError: With ``source`` set to wherever the package now is.
    """
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        landing_root = Path(
            tempfile.mkdtemp(prefix=f".{destination.name}-", dir=destination.parent)
        )
    except OSError as exc:
        raise RelocationError(
            f"Could not prepare {destination.parent}: {exc}", staged, destination
        ) from exc

    landed = landing_root / destination.name
    try:
        shutil.move(str(staged), str(landed))
    except OSError as exc:
        if staged.exists():
            shutil.rmtree(landing_root, ignore_errors=True)
            raise RelocationError(
                f"Could not move package next to {destination}: {exc}", staged, destination
            ) from exc
        raise RelocationError(
            f"Could not move package next to {destination}: {exc}",
            landed,
            destination,
            cleanup=landing_root,
        ) from exc

    previous: Path | None = None
    try:
        if force and (destination.exists() or destination.is_symlink()):
            previous = landing_root / f"{destination.name}.previous"
            os.replace(destination, previous)
        os.replace(landed, destination)
    except OSError as exc:
        if previous is not None and previous.exists() and not destination.exists():
            os.replace(previous, destination)
        raise RelocationError(
            f"Could not rename package into {destination}: {exc}",
            landed,
            destination,
            cleanup=landing_root,
        ) from exc

    shutil.rmtree(landing_root, ignore_errors=True)


def _backup(
    source: Path,
    pkg_name: str,
    backup_dir: str | Path | None,
    staging_root: Path,
) -> Path:
    """Move the package at *source* into the backup directory and return its path."""
    try:
        if backup_dir:
            root = ensure_dir(Path(backup_dir).expanduser())
        else:
            root = Path(tempfile.mkdtemp(prefix="jltemplates-backup-"))
        target = root / pkg_name
        if target.exists():
            target = Path(tempfile.mkdtemp(dir=root)) / pkg_name
        shutil.move(str(source), str(target))
    except OSError as exc:
        raise StagedError(
            f"Could not move {pkg_name} to backup directory: {exc}", staging_root
        ) from exc
    return target


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="jltemplates",
        description="Generate Julia package skeletons with git, CI and docs set up",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  jltemplates generate Foo --user alice\n"
            "  jltemplates generate Foo.jl --config template.yml --plugin travis_ci --ssh\n"
            "  jltemplates licenses MIT\n"
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a package")
    gen.add_argument("name", help="Package name (a trailing .jl is ignored)")
    gen.add_argument("--config", "-c", help="YAML or JSON template file")
    gen.add_argument("--user", help="Remote user (default: git config github.user)")
    gen.add_argument("--host", help="Remote host (default: github.com)")
    gen.add_argument("--license", help="License identifier, '' for none (default: MIT)")
    gen.add_argument("--authors", help="Copyright holder(s) (default: git config user.name)")
    gen.add_argument("--years", help="Copyright years (default: current year)")
    gen.add_argument("--dir", help="Parent directory for the package (default: ~/.julia/dev)")
    gen.add_argument("--julia-version", help="Target Julia version (default: 1.0.0)")
    gen.add_argument(
        "--no-precompile", dest="precompile", action="store_const", const=False,
        help="Do not emit __precompile__()",
    )
    gen.add_argument(
        "--require", dest="requirements", action="append", metavar="PKG",
        help="Add a REQUIRE entry (repeatable)",
    )
    gen.add_argument(
        "--gitconfig", action="append", metavar="KEY=VALUE",
        help="Set a git config value in the new repo (repeatable)",
    )
    gen.add_argument(
        "--plugin", dest="plugins", action="append", metavar="KIND",
        help="Enable a plugin by kind, replacing plugins from --config (repeatable)",
    )
    gen.add_argument("--force", action="store_true", help="Overwrite an existing package")
    gen.add_argument("--ssh", action="store_true", help="Use an SSH remote URL")
    gen.add_argument("--backup-dir", help="Where to leave the package if --dir is unusable")

    lic = sub.add_parser("licenses", help="List bundled licenses or show one")
    lic.add_argument("license_id", nargs="?", help="License to print")

    return parser


def _template_from_args(args) -> Template:
    overrides: dict = {}
    for key in ("user", "host", "license", "authors", "years", "dir", "julia_version",
                "precompile", "requirements"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value
    if args.gitconfig:
        gitconfig = {}
        for item in args.gitconfig:
            key, sep, value = item.partition("=")
            if not sep:
                raise ValueError(f"Invalid --gitconfig '{item}', expected KEY=VALUE")
            gitconfig[key] = value
        overrides["gitconfig"] = gitconfig
    if args.plugins:
        overrides["plugins"] = [{"kind": kind} for kind in args.plugins]

    if args.config:
        return Template.load(args.config, **overrides)
    return Template(**overrides)


def _licenses_command(license_id: str | None) -> int:
    if license_id is None:
        print_summary_table(available_licenses(), title="Available licenses")
        return 0
    try:
        console.print(read_license(license_id), markup=False, highlight=False)
    except ValueError as exc:
        print_error(str(exc))
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``jltemplates`` and ``python -m jltemplates``."""
    args = _build_parser().parse_args(argv)

    if args.command == "licenses":
        return _licenses_command(args.license_id)

    try:
        template = _template_from_args(args)
    except (ValidationError, ValueError, OSError) as exc:
        print_error(f"Invalid template: {exc}")
        return 1

    print_summary_table(template.summary(), title="Template")

    try:
        generate(
            args.name,
            template,
            force=args.force,
            ssh=args.ssh,
            backup_dir=args.backup_dir,
        )
    except JLTemplatesError as exc:
        print_error(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
