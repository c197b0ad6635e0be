"""jltemplates scaffolder -- generates package files and git repositories.

This module takes a ``Template`` and writes a Julia package tree (module
entrypoint, tests, REQUIRE, README, .gitignore, LICENSE and plugin files)
into a directory, and sets up the git repository around it.

Quick usage::

    from jltemplates.config import Template
    from jltemplates.scaffolder import PackageGenerator, setup_repository

    template = Template(user="alice", plugins=[TravisCI()])
    repo = setup_repository("/tmp/stage/Foo", "Foo", template)
    files = PackageGenerator(template).generate("/tmp/stage", "Foo")
"""

from jltemplates.scaffolder.generator import PackageGenerator, version_floor
from jltemplates.scaffolder.plugins import (
    BADGE_ORDER,
    AppVeyor,
    Badge,
    CodeCov,
    Coveralls,
    CustomPlugin,
    Documenter,
    GenericPlugin,
    GitHubPages,
    GitLabCI,
    Plugin,
    PluginKind,
    TravisCI,
)
from jltemplates.scaffolder.repository import GitRepo, setup_repository
from jltemplates.scaffolder.templates import (
    TemplateRenderer,
    substitute,
    substitute_with_defaults,
    write_file,
)

__all__ = [
    "BADGE_ORDER",
    "AppVeyor",
    "Badge",
    "CodeCov",
    "Coveralls",
    "CustomPlugin",
    "Documenter",
    "GenericPlugin",
    "GitHubPages",
    "GitLabCI",
    "GitRepo",
    "PackageGenerator",
    "Plugin",
    "PluginKind",
    "TemplateRenderer",
    "TravisCI",
    "setup_repository",
    "substitute",
    "substitute_with_defaults",
    "version_floor",
    "write_file",
]
