"""Plugins contributing extra files, README badges and ignore patterns.

Every plugin has three capabilities, each with an empty default so concrete
plugins only override what they need:

* :meth:`Plugin.gen_files` writes files into the staged package and returns
  their relative paths.
* :meth:`Plugin.badges` returns formatted README badge lines.
* :meth:`Plugin.ignore_patterns` returns ``.gitignore`` contributions.

Plugins are keyed by :class:`PluginKind`; a template holds at most one plugin
of each kind.
"""

from __future__ import annotations

import shutil
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .templates import default_view, get_renderer, substitute, substitute_with_defaults, write_file

if TYPE_CHECKING:
    from jltemplates.config import Template


DEFAULT_CONFIG_DIR = Path(__file__).parent / "templates" / "plugins"

COVERAGE_PATTERNS: list[str] = ["*.jl.cov", "*.jl.*.cov", "*.jl.mem"]


# ---------------------------------------------------------------------------
# Plugin kinds
# ---------------------------------------------------------------------------


class PluginKind(str, Enum):
    """Known plugin integrations.  A template holds one plugin per kind."""
    GITHUB_PAGES = "github_pages"
    TRAVIS_CI = "travis_ci"
    APPVEYOR = "appveyor"
    GITLAB_CI = "gitlab_ci"
    CODECOV = "codecov"
    COVERALLS = "coveralls"
    CUSTOM = "custom"


# README badges for these kinds come first, in this order.
BADGE_ORDER: list[PluginKind] = [
    PluginKind.GITHUB_PAGES,
    PluginKind.TRAVIS_CI,
    PluginKind.APPVEYOR,
    PluginKind.GITLAB_CI,
    PluginKind.CODECOV,
    PluginKind.COVERALLS,
]


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class Badge(BaseModel):
    """A README badge: hover text, image URL and link URL.

    ``image`` and ``link`` may reference ``{{ USER }}`` and ``{{ PKGNAME }}``.
    """

    model_config = ConfigDict(frozen=True)

    hover: str
    image: str
    link: str

    def format(self, user: str, pkg_name: str) -> str:
        view = {"USER": user, "PKGNAME": pkg_name}
        image = substitute(self.image, view)
        link = substitute(self.link, view)
        return f"[![{self.hover}]({image})]({link})"


# ---------------------------------------------------------------------------
# Base plugin
# ---------------------------------------------------------------------------


class Plugin(BaseModel):
    """Base class for all plugins."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[PluginKind]

    gitignore: list[str] = Field(
        default_factory=list, description="Patterns appended to .gitignore"
    )

    def gen_files(self, dir: str | Path, pkg_name: str, template: Template) -> list[str]:
        """Write plugin files under ``dir/pkg_name``; return their relative paths."""
        return []

    def badges(self, user: str, pkg_name: str) -> list[str]:
        return []

    def ignore_patterns(self) -> list[str]:
        return list(self.gitignore)


# ---------------------------------------------------------------------------
# Generic (single config file) plugins
# ---------------------------------------------------------------------------


class GenericPlugin(Plugin):
    """A plugin that renders one config file and contributes fixed badges.

    ``src`` is a template file rendered with the template's default view plus
    ``PKGNAME`` and ``view``; the result is written to ``dest``.  Set ``src``
    to ``None`` to generate no file.
    """

    kind: ClassVar[PluginKind] = PluginKind.CUSTOM

    src: Path | None = Field(default=None, description="Config file template")
    dest: str = Field(default="", description="Output path relative to the package root")
    badge_specs: list[Badge] = Field(default_factory=list)
    view: dict[str, Any] = Field(default_factory=dict)

    @field_validator("src")
    @classmethod
    def _src_must_exist(cls, value: Path | None) -> Path | None:
        if value is not None and not Path(value).is_file():
            raise ValueError(f"File {value} does not exist")
        return value

    @model_validator(mode="after")
    def _dest_required_with_src(self) -> "GenericPlugin":
        if self.src is not None and not self.dest.strip():
            raise ValueError(f"dest is required when src is set (src={self.src})")
        return self

    def extra_view(self) -> dict[str, Any]:
        """Plugin-specific substitution entries; ``view`` overrides them."""
        return {}

    def gen_files(self, dir: str | Path, pkg_name: str, template: Template) -> list[str]:
        if self.src is None:
            return []
        text = substitute_with_defaults(
            self.src.read_text(encoding="utf-8"),
            template,
            view={"PKGNAME": pkg_name, **self.extra_view(), **self.view},
        )
        write_file(Path(dir) / pkg_name / self.dest, text)
        return [self.dest]

    def badges(self, user: str, pkg_name: str) -> list[str]:
        return [badge.format(user, pkg_name) for badge in self.badge_specs]


class CustomPlugin(GenericPlugin):
    """A user-defined plugin: any config file, badges and ignore patterns."""

    kind: ClassVar[PluginKind] = PluginKind.CUSTOM


class TravisCI(GenericPlugin):
    """Travis CI config (``.travis.yml``) and build badge."""

    kind: ClassVar[PluginKind] = PluginKind.TRAVIS_CI

    src: Path | None = DEFAULT_CONFIG_DIR / "travis.yml.j2"
    dest: str = ".travis.yml"
    badge_specs: list[Badge] = Field(
        default_factory=lambda: [
            Badge(
                hover="Build Status",
                image="https://travis-ci.org/{{ USER }}/{{ PKGNAME }}.jl.svg?branch=master",
                link="https://travis-ci.org/{{ USER }}/{{ PKGNAME }}.jl",
            )
        ]
    )


class AppVeyor(GenericPlugin):
    """AppVeyor config (``.appveyor.yml``) and build badge."""

    kind: ClassVar[PluginKind] = PluginKind.APPVEYOR

    src: Path | None = DEFAULT_CONFIG_DIR / "appveyor.yml.j2"
    dest: str = ".appveyor.yml"
    badge_specs: list[Badge] = Field(
        default_factory=lambda: [
            Badge(
                hover="Build Status",
                image="https://ci.appveyor.com/api/projects/status/github/{{ USER }}/{{ PKGNAME }}.jl?svg=true",
                link="https://ci.appveyor.com/project/{{ USER }}/{{ PKGNAME }}-jl",
            )
        ]
    )


class GitLabCI(GenericPlugin):
    """GitLab CI config (``.gitlab-ci.yml``), optionally with coverage reporting."""

    kind: ClassVar[PluginKind] = PluginKind.GITLAB_CI

    src: Path | None = DEFAULT_CONFIG_DIR / "gitlab-ci.yml.j2"
    dest: str = ".gitlab-ci.yml"
    coverage: bool = True
    badge_specs: list[Badge] = Field(
        default_factory=lambda: [
            Badge(
                hover="Build Status",
                image="https://gitlab.com/{{ USER }}/{{ PKGNAME }}.jl/badges/master/build.svg",
                link="https://gitlab.com/{{ USER }}/{{ PKGNAME }}.jl/pipelines",
            )
        ]
    )

    def extra_view(self) -> dict[str, Any]:
        return {"GITLABCOVERAGE": self.coverage}

    def badges(self, user: str, pkg_name: str) -> list[str]:
        lines = super().badges(user, pkg_name)
        if self.coverage:
            lines.append(
                Badge(
                    hover="Coverage",
                    image="https://gitlab.com/{{ USER }}/{{ PKGNAME }}.jl/badges/master/coverage.svg",
                    link="https://gitlab.com/{{ USER }}/{{ PKGNAME }}.jl/commits/master",
                ).format(user, pkg_name)
            )
        return lines

    def ignore_patterns(self) -> list[str]:
        patterns = super().ignore_patterns()
        if self.coverage:
            patterns.extend(COVERAGE_PATTERNS)
        return patterns


class CodeCov(GenericPlugin):
    """Codecov coverage badge; ``.codecov.yml`` only when ``src`` is given."""

    kind: ClassVar[PluginKind] = PluginKind.CODECOV

    dest: str = ".codecov.yml"
    gitignore: list[str] = Field(default_factory=lambda: list(COVERAGE_PATTERNS))
    badge_specs: list[Badge] = Field(
        default_factory=lambda: [
            Badge(
                hover="CodeCov",
                image="https://codecov.io/gh/{{ USER }}/{{ PKGNAME }}.jl/branch/master/graph/badge.svg",
                link="https://codecov.io/gh/{{ USER }}/{{ PKGNAME }}.jl",
            )
        ]
    )


class Coveralls(GenericPlugin):
    """Coveralls coverage badge; ``.coveralls.yml`` only when ``src`` is given."""

    kind: ClassVar[PluginKind] = PluginKind.COVERALLS

    dest: str = ".coveralls.yml"
    gitignore: list[str] = Field(default_factory=lambda: list(COVERAGE_PATTERNS))
    badge_specs: list[Badge] = Field(
        default_factory=lambda: [
            Badge(
                hover="Coveralls",
                image="https://coveralls.io/repos/github/{{ USER }}/{{ PKGNAME }}.jl/badge.svg?branch=master",
                link="https://coveralls.io/github/{{ USER }}/{{ PKGNAME }}.jl?branch=master",
            )
        ]
    )


# ---------------------------------------------------------------------------
# Documentation plugins
# ---------------------------------------------------------------------------


class Documenter(Plugin):
    """Base for plugins that set up a Documenter.jl ``docs/`` directory.

    Writes ``docs/make.jl`` and ``docs/src/index.md`` and copies ``assets``
    into ``docs/src/assets/``.
    """

    deploy: ClassVar[bool] = False

    assets: list[Path] = Field(default_factory=list)
    gitignore: list[str] = Field(default_factory=lambda: ["/docs/build/", "/docs/site/"])

    @field_validator("assets")
    @classmethod
    def _assets_must_exist(cls, value: list[Path]) -> list[Path]:
        for asset in value:
            if not Path(asset).is_file():
                raise ValueError(f"Asset file {asset} does not exist")
        return value

    def gen_files(self, dir: str | Path, pkg_name: str, template: Template) -> list[str]:
        docs_dir = Path(dir) / pkg_name / "docs"
        assets_dir = docs_dir / "src" / "assets"

        if self.assets:
            assets_dir.mkdir(parents=True, exist_ok=True)
        for asset in self.assets:
            shutil.copy(asset, assets_dir / Path(asset).name)

        context = {
            **default_view(template),
            "PKGNAME": pkg_name,
            "HOST": template.host,
            "AUTHORS": template.authors,
            "ASSETS": [f"assets/{Path(a).name}" for a in self.assets],
            "DEPLOY": self.deploy,
        }
        renderer = get_renderer()
        renderer.render_to_file("docs/make.jl.j2", docs_dir / "make.jl", context)
        renderer.render_to_file("docs/index.md.j2", docs_dir / "src" / "index.md", context)
        return ["docs/"]


class GitHubPages(Documenter):
    """Documenter docs deployed to GitHub Pages, with stable/latest badges.

    Its presence also makes the repository setup create a ``gh-pages`` branch.
    """

    kind: ClassVar[PluginKind] = PluginKind.GITHUB_PAGES
    deploy: ClassVar[bool] = True

    def badges(self, user: str, pkg_name: str) -> list[str]:
        return [
            Badge(
                hover="Stable",
                image="https://img.shields.io/badge/docs-stable-blue.svg",
                link="https://{{ USER }}.github.io/{{ PKGNAME }}.jl/stable",
            ).format(user, pkg_name),
            Badge(
                hover="Latest",
                image="https://img.shields.io/badge/docs-latest-blue.svg",
                link="https://{{ USER }}.github.io/{{ PKGNAME }}.jl/latest",
            ).format(user, pkg_name),
        ]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PLUGIN_TYPES: dict[PluginKind, type[Plugin]] = {
    PluginKind.GITHUB_PAGES: GitHubPages,
    PluginKind.TRAVIS_CI: TravisCI,
    PluginKind.APPVEYOR: AppVeyor,
    PluginKind.GITLAB_CI: GitLabCI,
    PluginKind.CODECOV: CodeCov,
    PluginKind.COVERALLS: Coveralls,
    PluginKind.CUSTOM: CustomPlugin,
}


def plugin_from_dict(data: dict[str, Any]) -> Plugin:
    """Build a plugin from ``{"kind": ..., **options}``.

    Raises:
        ValueError: If ``kind`` is missing or unknown.
    """
    options = dict(data)
    raw_kind = options.pop("kind", None)
    if raw_kind is None:
        raise ValueError(f"Plugin definition has no 'kind': {data!r}")
    try:
        kind = PluginKind(raw_kind)
    except ValueError:
        known = ", ".join(k.value for k in PluginKind)
        raise ValueError(f"Unknown plugin kind '{raw_kind}' (known: {known})") from None
    return PLUGIN_TYPES[kind].model_validate(options)
