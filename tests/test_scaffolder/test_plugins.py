"""Tests for plugins (jltemplates.scaffolder.plugins).

Covers:
- Badge formatting
- GenericPlugin config file rendering and validation
- CI plugins: Travis after_success steps, GitLab coverage
- Coverage plugins with and without a config file
- Documenter / GitHubPages docs generation and badges
- plugin_from_dict registry lookups
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from jltemplates.scaffolder.plugins import (
    COVERAGE_PATTERNS,
    AppVeyor,
    Badge,
    CodeCov,
    Coveralls,
    CustomPlugin,
    Documenter,
    GitHubPages,
    GitLabCI,
    PluginKind,
    TravisCI,
    plugin_from_dict,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Badge
# ---------------------------------------------------------------------------


class TestBadge:
    def test_format(self):
        badge = Badge(
            hover="Build",
            image="https://ci.example/{{ USER }}/{{ PKGNAME }}.svg",
            link="https://ci.example/{{ USER }}/{{ PKGNAME }}",
        )
        assert badge.format("alice", "Foo") == (
            "[![Build](https://ci.example/alice/Foo.svg)](https://ci.example/alice/Foo)"
        )

    def test_literal_urls_unchanged(self):
        badge = Badge(hover="A", image="img.svg", link="page.html")
        assert badge.format("alice", "Foo") == "[![A](img.svg)](page.html)"

    def test_special_characters_not_escaped(self):
        badge = Badge(hover="h", image="{{ USER }}", link="https://x.org/?a=1&b=<2>")
        assert badge.format("a&b", "Foo") == "[![h](a&b)](https://x.org/?a=1&b=<2>)"


# ---------------------------------------------------------------------------
# GenericPlugin / CustomPlugin
# ---------------------------------------------------------------------------


class TestCustomPlugin:
    def test_missing_src_rejected(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="does not exist"):
            CustomPlugin(src=tmp_path / "missing.yml", dest=".ci.yml")

    def test_no_src_generates_nothing(self, tmp_path: Path, make_template):
        plugin = CustomPlugin(gitignore=["*.tmp"])
        assert plugin.gen_files(tmp_path, "Foo", make_template()) == []
        assert not (tmp_path / "Foo").exists()
        assert plugin.ignore_patterns() == ["*.tmp"]

    def test_renders_config_file(self, tmp_path: Path, make_template):
        src = tmp_path / "ci.yml"
        src.write_text(
            "user: {{ USER }}\n"
            "pkg: {{ PKGNAME }}\n"
            "julia: {{ VERSION }}\n"
            "extra: {{ EXTRA }}\n"
        )
        plugin = CustomPlugin(src=src, dest="config/ci.yml", view={"EXTRA": "yes"})
        out_dir = tmp_path / "out"

        files = plugin.gen_files(out_dir, "Foo", make_template(julia_version="0.6.2"))

        assert files == ["config/ci.yml"]
        assert (out_dir / "Foo" / "config" / "ci.yml").read_text() == (
            "user: alice\npkg: Foo\njulia: 0.6\nextra: yes\n"
        )

    def test_src_without_dest_rejected(self, tmp_path: Path):
        src = tmp_path / "ci.yml"
        src.write_text("x")
        with pytest.raises(ValidationError, match="dest is required"):
            CustomPlugin(src=src)

    def test_view_values_written_verbatim(self, tmp_path: Path, make_template):
        src = tmp_path / "ci.yml"
        src.write_text("script: {{ CMD }}")
        cmd = 'julia -e "using Pkg" && x<y'
        plugin = CustomPlugin(src=src, dest="ci.yml", view={"CMD": cmd})
        plugin.gen_files(tmp_path / "out", "Foo", make_template())
        assert (tmp_path / "out" / "Foo" / "ci.yml").read_text() == f"script: {cmd}\n"

    def test_view_overrides_defaults(self, tmp_path: Path, make_template):
        src = tmp_path / "ci.yml"
        src.write_text("{{ USER }}")
        plugin = CustomPlugin(src=src, dest="ci.yml", view={"USER": "bob"})
        plugin.gen_files(tmp_path / "out", "Foo", make_template())
        assert (tmp_path / "out" / "Foo" / "ci.yml").read_text() == "bob\n"

    def test_is_frozen(self):
        plugin = CustomPlugin()
        with pytest.raises(ValidationError):
            plugin.dest = "x"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# CI plugins
# ---------------------------------------------------------------------------


class TestTravisCI:
    def test_plain_config(self, tmp_path: Path, make_template):
        template = make_template(plugins=[TravisCI()])
        assert TravisCI().gen_files(tmp_path, "Foo", template) == [".travis.yml"]
        text = (tmp_path / "Foo" / ".travis.yml").read_text()
        assert "language: julia" in text
        assert "  - 1.0\n" in text
        assert "after_success" not in text

    def test_after_success_with_codecov(self, tmp_path: Path, make_template):
        template = make_template(plugins=[TravisCI(), CodeCov()])
        template.plugins[PluginKind.TRAVIS_CI].gen_files(tmp_path, "Foo", template)
        text = (tmp_path / "Foo" / ".travis.yml").read_text()
        assert "after_success:" in text
        assert "Codecov.submit" in text
        assert "Coveralls.submit" not in text
        assert "make.jl" not in text

    def test_after_success_with_docs(self, tmp_path: Path, make_template):
        template = make_template(plugins=[TravisCI(), GitHubPages(), Coveralls()])
        template.plugins[PluginKind.TRAVIS_CI].gen_files(tmp_path, "Foo", template)
        text = (tmp_path / "Foo" / ".travis.yml").read_text()
        assert 'include(joinpath("docs", "make.jl"))' in text
        assert "Coveralls.submit" in text

    def test_badge(self):
        assert TravisCI().badges("alice", "Foo") == [
            "[![Build Status](https://travis-ci.org/alice/Foo.jl.svg?branch=master)]"
            "(https://travis-ci.org/alice/Foo.jl)"
        ]


class TestAppVeyor:
    def test_config_and_badge(self, tmp_path: Path, make_template):
        template = make_template(julia_version="0.6.2")
        assert AppVeyor().gen_files(tmp_path, "Foo", template) == [".appveyor.yml"]
        text = (tmp_path / "Foo" / ".appveyor.yml").read_text()
        assert "julia_version: 0.6" in text
        assert AppVeyor().badges("alice", "Foo")[0].endswith(
            "(https://ci.appveyor.com/project/alice/Foo-jl)"
        )


class TestGitLabCI:
    def test_coverage_enabled(self, tmp_path: Path, make_template):
        plugin = GitLabCI()
        plugin.gen_files(tmp_path, "Foo", make_template())
        text = (tmp_path / "Foo" / ".gitlab-ci.yml").read_text()
        assert 'Pkg.test("Foo"; coverage=true)' in text
        assert "coverage: /" in text
        assert len(plugin.badges("alice", "Foo")) == 2
        assert plugin.ignore_patterns() == COVERAGE_PATTERNS

    def test_coverage_disabled(self, tmp_path: Path, make_template):
        plugin = GitLabCI(coverage=False)
        plugin.gen_files(tmp_path, "Foo", make_template())
        text = (tmp_path / "Foo" / ".gitlab-ci.yml").read_text()
        assert 'Pkg.test("Foo")' in text
        assert "coverage" not in text
        assert len(plugin.badges("alice", "Foo")) == 1
        assert plugin.ignore_patterns() == []

    def test_image_uses_version(self, tmp_path: Path, make_template):
        GitLabCI().gen_files(tmp_path, "Foo", make_template(julia_version="1.1.0"))
        assert (tmp_path / "Foo" / ".gitlab-ci.yml").read_text().startswith("image: julia:1.1\n")


# ---------------------------------------------------------------------------
# Coverage plugins
# ---------------------------------------------------------------------------


class TestCoveragePlugins:
    @pytest.mark.parametrize("plugin_type", [CodeCov, Coveralls])
    def test_no_file_by_default(self, plugin_type, tmp_path: Path, make_template):
        plugin = plugin_type()
        assert plugin.gen_files(tmp_path, "Foo", make_template()) == []
        assert plugin.ignore_patterns() == COVERAGE_PATTERNS

    def test_codecov_with_config_file(self, tmp_path: Path, make_template):
        src = tmp_path / "codecov.yml"
        src.write_text("comment: false")
        assert CodeCov(src=src).gen_files(tmp_path / "out", "Foo", make_template()) == [
            ".codecov.yml"
        ]
        assert (tmp_path / "out" / "Foo" / ".codecov.yml").read_text() == "comment: false\n"

    def test_badges(self):
        assert "codecov.io/gh/alice/Foo.jl" in CodeCov().badges("alice", "Foo")[0]
        assert "coveralls.io/github/alice/Foo.jl" in Coveralls().badges("alice", "Foo")[0]


# ---------------------------------------------------------------------------
# Documentation plugins
# ---------------------------------------------------------------------------


class TestDocumenter:
    def test_missing_asset_rejected(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="does not exist"):
            GitHubPages(assets=[tmp_path / "missing.css"])

    def test_writes_docs(self, tmp_path: Path, make_template):
        template = make_template(authors="Alice Example")
        assert GitHubPages().gen_files(tmp_path, "Foo", template) == ["docs/"]

        make_jl = (tmp_path / "Foo" / "docs" / "make.jl").read_text()
        assert make_jl.startswith("using Documenter, Foo\n")
        assert 'authors="Alice Example"' in make_jl
        assert 'repo="github.com/alice/Foo.jl"' in make_jl
        assert "assets=" not in make_jl

        index = (tmp_path / "Foo" / "docs" / "src" / "index.md").read_text()
        assert index.startswith("# Foo.jl\n")

    def test_base_documenter_does_not_deploy(self, tmp_path: Path, make_template):
        Documenter().gen_files(tmp_path, "Foo", make_template())
        assert "deploydocs" not in (tmp_path / "Foo" / "docs" / "make.jl").read_text()

    def test_copies_assets(self, tmp_path: Path, make_template):
        asset = tmp_path / "style.css"
        asset.write_text("body {}")
        GitHubPages(assets=[asset]).gen_files(tmp_path / "out", "Foo", make_template())

        docs = tmp_path / "out" / "Foo" / "docs"
        assert (docs / "src" / "assets" / "style.css").read_text() == "body {}"
        assert '"assets/style.css",' in (docs / "make.jl").read_text()

    def test_ignore_patterns(self):
        assert GitHubPages().ignore_patterns() == ["/docs/build/", "/docs/site/"]

    def test_github_pages_badges(self):
        assert GitHubPages().badges("alice", "Foo") == [
            "[![Stable](https://img.shields.io/badge/docs-stable-blue.svg)]"
            "(https://alice.github.io/Foo.jl/stable)",
            "[![Latest](https://img.shields.io/badge/docs-latest-blue.svg)]"
            "(https://alice.github.io/Foo.jl/latest)",
        ]

    def test_base_documenter_has_no_badges(self):
        assert Documenter().badges("alice", "Foo") == []


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestPluginFromDict:
    def test_builds_each_kind(self):
        for kind in PluginKind:
            plugin = plugin_from_dict({"kind": kind.value})
            assert plugin.kind is kind

    def test_passes_options(self):
        plugin = plugin_from_dict({"kind": "gitlab_ci", "coverage": False})
        assert isinstance(plugin, GitLabCI)
        assert plugin.coverage is False

    def test_missing_kind(self):
        with pytest.raises(ValueError, match="no 'kind'"):
            plugin_from_dict({"coverage": False})

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown plugin kind 'jenkins'"):
            plugin_from_dict({"kind": "jenkins"})

    def test_data_not_modified(self):
        data = {"kind": "travis_ci"}
        plugin_from_dict(data)
        assert data == {"kind": "travis_ci"}
