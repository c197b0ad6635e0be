"""Package file generators.

Each generator is a function of ``(dir, pkg_name, template)`` that writes
files under ``dir/pkg_name`` and returns the relative paths it created, ready
to be passed to ``git add``.  :class:`PackageGenerator` runs them all in a
fixed order:

1. module entrypoint (``src/<name>.jl``)
2. test runner (``test/runtests.jl``)
3. dependency manifest (``REQUIRE``)
4. ``README.md`` with plugin badges
5. ``.gitignore``
6. ``LICENSE`` (skipped when the template has no license)
7. plugin files, in the template's plugin order
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from packaging.version import InvalidVersion, Version

from jltemplates.licenses import read_license

from .plugins import BADGE_ORDER
from .templates import get_renderer, write_file

if TYPE_CHECKING:
    from jltemplates.config import Template


GITIGNORE_SEED = ".DS_Store"
MANIFEST_NAME = "REQUIRE"
TEST_RUNNER = "runtests.jl"

# ``using Test`` replaced ``using Base.Test`` in Julia 0.7.
_STDLIB_TEST_VERSION = Version("0.7.0.dev0")


# ---------------------------------------------------------------------------
# Version flooring
# ---------------------------------------------------------------------------

_PRERELEASE_RE = re.compile(r"[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*")


def parse_version(text: str | Version) -> tuple[Version, str]:
    """Split ``major.minor.patch[-prerelease][+build]`` into its parts.

    Returns the release as a :class:`~packaging.version.Version` and the
    prerelease tag (``""`` for none).  Everything after ``-`` is a prerelease
    tag, so ``2.0.0-1`` is a prerelease of 2.0.0, not a post-release.  Build
    metadata after ``+`` is dropped.

    Raises:
        InvalidVersion: If the release part or the tag is malformed.
    """
    if isinstance(text, Version):
        return text, ""
    core = str(text).strip().partition("+")[0]
    release, sep, prerelease = core.partition("-")
    if sep and not _PRERELEASE_RE.fullmatch(prerelease):
        raise InvalidVersion(f"Invalid prerelease tag in version '{text}'")
    return Version(release), prerelease


def is_prerelease(version: str | Version) -> bool:
    release, prerelease = parse_version(version)
    return bool(prerelease) or release.is_prerelease


def version_floor(version: str | Version) -> str:
    """Return ``"major.minor"`` for the most recent release at or below *version*.

    Prereleases of a ``.0`` patch have no such release with the same
    major.minor, so a trailing ``-`` marks them instead::

        version_floor("1.0.0")     -> "1.0"
        version_floor("0.6.2")     -> "0.6"
        version_floor("2.0.0-rc1") -> "2.0-"
        version_floor("2.0.0-1")   -> "2.0-"
    """
    release, _ = parse_version(version)
    if not is_prerelease(version) or release.micro > 0:
        return f"{release.major}.{release.minor}"
    return f"{release.major}.{release.minor}-"


# ---------------------------------------------------------------------------
# Individual generators
# ---------------------------------------------------------------------------


def gen_entrypoint(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Create the module entrypoint ``src/<pkg_name>.jl``."""
    text = get_renderer().render(
        "module.jl.j2", {"PKGNAME": pkg_name, "PRECOMPILE": template.precompile}
    )
    write_file(Path(dir) / pkg_name / "src" / f"{pkg_name}.jl", text)
    return ["src/"]


def gen_tests(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Create ``test/runtests.jl`` with a deliberately failing placeholder test."""
    text = get_renderer().render(
        "runtests.jl.j2",
        {
            "PKGNAME": pkg_name,
            "STDLIB_TEST": template.version >= _STDLIB_TEST_VERSION,
        },
    )
    write_file(Path(dir) / pkg_name / "test" / TEST_RUNNER, text)
    return ["test/"]


def gen_require(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Create the ``REQUIRE`` manifest: the Julia floor, then each requirement."""
    lines = [f"julia {version_floor(template.julia_version)}", *template.requirements]
    write_file(Path(dir) / pkg_name / MANIFEST_NAME, "\n".join(lines))
    return [MANIFEST_NAME]


def gen_readme(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Create ``README.md`` with one badge block per plugin.

    Plugins whose kind appears in ``BADGE_ORDER`` come first, in that order;
    the rest follow in the template's plugin order.
    """
    ordered = [kind for kind in BADGE_ORDER if kind in template.plugins]
    ordered += [kind for kind in template.plugins if kind not in ordered]

    blocks = []
    for kind in ordered:
        badges = template.plugins[kind].badges(template.user, pkg_name)
        if badges:
            blocks.append("\n".join(badges))

    text = f"# {pkg_name}\n"
    for block in blocks:
        text += "\n" + block + "\n"

    write_file(Path(dir) / pkg_name / "README.md", text)
    return ["README.md"]


def gen_gitignore(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Create ``.gitignore`` from the seed pattern plus every plugin's patterns."""
    seen = [GITIGNORE_SEED]
    for plugin in template.plugins.values():
        for pattern in plugin.ignore_patterns():
            if pattern not in seen:
                seen.append(pattern)

    write_file(Path(dir) / pkg_name / ".gitignore", "\n".join(seen))
    return [".gitignore"]


def gen_license(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Create ``LICENSE``, or nothing when the template has no license."""
    if not template.license:
        return []

    text = f"Copyright (c) {template.years} {template.authors}\n"
    text += read_license(template.license)

    write_file(Path(dir) / pkg_name / "LICENSE", text)
    return ["LICENSE"]


def gen_plugin_files(dir: str | Path, pkg_name: str, template: Template) -> list[str]:
    """Let every plugin write its files, in the template's plugin order."""
    files: list[str] = []
    for plugin in template.plugins.values():
        files.extend(plugin.gen_files(dir, pkg_name, template))
    return files


GENERATORS = (
    gen_entrypoint,
    gen_tests,
    gen_require,
    gen_readme,
    gen_gitignore,
    gen_license,
    gen_plugin_files,
)


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class PackageGenerator:
    """Runs every file generator for one template.

    Given a ``Template``, generates a package tree containing:
    - ``src/<name>.jl`` module entrypoint
    - ``test/runtests.jl`` test runner
    - ``REQUIRE`` dependency manifest
    - ``README.md`` with plugin badges
    - ``.gitignore`` and ``LICENSE``
    - CI configs and docs contributed by plugins
    """

    def __init__(self, template: Template) -> None:
        self.template = template

    def generate(self, dir: str | Path, pkg_name: str) -> list[str]:
        """Generate all files for *pkg_name* under ``dir/pkg_name``.

        Returns:
            Every relative path written, in generator order.  Paths may
            repeat when two generators touch the same directory.
        """
        files: list[str] = []
        for generator in GENERATORS:
            files.extend(generator(dir, pkg_name, self.template))
        return files
