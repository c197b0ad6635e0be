"""Unit tests for shared helpers (jltemplates.utils)."""

from __future__ import annotations

from pathlib import Path

import pytest

from jltemplates.utils import (
    ensure_dir,
    print_error,
    print_info,
    print_panel,
    print_summary_table,
    print_warning,
    unique,
)

pytestmark = pytest.mark.unit


class TestUnique:
    def test_keeps_first_seen_order(self):
        assert unique(["src/", "test/", "src/", "REQUIRE"]) == ["src/", "test/", "REQUIRE"]

    def test_empty(self):
        assert unique([]) == []

    def test_accepts_generators(self):
        assert unique(x % 3 for x in range(7)) == [0, 1, 2]


class TestEnsureDir:
    def test_creates_nested(self, tmp_path: Path):
        target = tmp_path / "a" / "b"
        assert ensure_dir(target) == target.resolve()
        assert target.is_dir()

    def test_existing_ok(self, tmp_path: Path):
        assert ensure_dir(tmp_path) == tmp_path.resolve()


class TestOutput:
    def test_markup_in_messages_is_escaped(self, capsys):
        print_info("[bold]literal[/bold]")
        print_error("[red]also literal[/red]")
        out = capsys.readouterr().out
        assert "[bold]literal[/bold]" in out
        assert "[red]also literal[/red]" in out

    def test_warning_prefix(self, capsys):
        print_warning("careful")
        assert "Warning: careful" in capsys.readouterr().out

    def test_summary_table(self, capsys):
        print_summary_table({"User": "alice"}, title="Template")
        out = capsys.readouterr().out
        assert "Template" in out
        assert "alice" in out

    def test_panel(self, capsys):
        print_panel("body text", title="Foo")
        out = capsys.readouterr().out
        assert "body text" in out
        assert "Foo" in out
