"""Package template configuration.

A :class:`Template` describes how packages should be scaffolded: where they
go, who owns them, which license and Julia version they target, and which
plugins are active.  It is a frozen Pydantic v2 model: created once by the
caller (directly, from a YAML/JSON file, or from CLI flags) and never mutated
during generation.
"""

from __future__ import annotations

import json
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jltemplates.licenses import license_exists
from jltemplates.scaffolder.generator import parse_version
from jltemplates.scaffolder.plugins import Plugin, PluginKind, plugin_from_dict
from jltemplates.utils import print_warning

DEFAULT_HOST = "github.com"
DEFAULT_LICENSE = "MIT"
DEFAULT_JULIA_VERSION = "1.0.0"
DEFAULT_DIR = Path("~/.julia/dev")


def git_global_config(key: str) -> str:
    """Return the global git config value for *key*, or ``""`` if unset."""
    try:
        proc = subprocess.run(
            ["git", "config", "--global", "--get", key],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return ""
    if proc.returncode != 0:
        return ""
    return proc.stdout.strip()


class Template(BaseModel):
    """Immutable description of how a package should be generated.

    Instances are typically created once by the CLI or by library callers and
    then passed to :func:`jltemplates.pipeline.generate` for any number of
    packages.
    """

    model_config = ConfigDict(frozen=True)

    user: str = Field(default="", description="Remote user or namespace")
    host: str = Field(default=DEFAULT_HOST, description="Remote host")
    license: str = Field(default=DEFAULT_LICENSE, description="License identifier, '' for none")
    authors: str = Field(default="", description="Copyright holder(s)")
    years: str = Field(default_factory=lambda: str(datetime.now().year))
    dir: Path = Field(default=DEFAULT_DIR, description="Parent directory of generated packages")
    julia_version: str = Field(default=DEFAULT_JULIA_VERSION)
    precompile: bool = Field(default=True)
    requirements: list[str] = Field(default_factory=list)
    gitconfig: dict[str, str] = Field(default_factory=dict)
    plugins: dict[PluginKind, Plugin] = Field(default_factory=dict)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def _fill_from_git(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("user"):
            data["user"] = git_global_config("github.user")
        if not data.get("user"):
            raise ValueError(
                "No username found, set one with user=<username> or "
                "git config --global github.user <username>"
            )
        if "authors" not in data or data["authors"] is None:
            data["authors"] = git_global_config("user.name")
        return data

    @field_validator("host")
    @classmethod
    def _strip_scheme(cls, value: str) -> str:
        for scheme in ("https://", "http://"):
            if value.startswith(scheme):
                value = value[len(scheme):]
        return value.rstrip("/")

    @field_validator("license")
    @classmethod
    def _license_known(cls, value: str) -> str:
        if value and not license_exists(value):
            raise ValueError(f"License '{value}' is not available")
        return value

    @field_validator("authors", mode="before")
    @classmethod
    def _join_authors(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value)
        return value

    @field_validator("years", mode="before")
    @classmethod
    def _years_as_str(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("dir", mode="after")
    @classmethod
    def _absolute_dir(cls, value: Path) -> Path:
        return value.expanduser().absolute()

    @field_validator("julia_version", mode="before")
    @classmethod
    def _valid_version(cls, value: Any) -> Any:
        if isinstance(value, Version):
            return str(value)
        try:
            parse_version(str(value))
        except InvalidVersion as exc:
            raise ValueError(f"Invalid Julia version '{value}'") from exc
        return str(value)

    @field_validator("requirements")
    @classmethod
    def _dedupe_requirements(cls, value: list[str]) -> list[str]:
        deduped = list(dict.fromkeys(value))
        removed = len(value) - len(deduped)
        if removed:
            print_warning(f"Removed {removed} duplicated requirement(s)")
        return deduped

    @field_validator("plugins", mode="before")
    @classmethod
    def _index_plugins(cls, value: Any) -> Any:
        if isinstance(value, dict):
            value = [
                plugin_from_dict({"kind": key, **item}) if isinstance(item, dict) else item
                for key, item in value.items()
            ]
        indexed: dict[PluginKind, Plugin] = {}
        for item in value or []:
            plugin = plugin_from_dict(item) if isinstance(item, dict) else item
            kind = getattr(plugin, "kind", None)
            if kind is None:
                raise ValueError(f"{type(plugin).__name__} has no plugin kind")
            if kind in indexed:
                print_warning(
                    f"Plugin list contains more than one {kind.value} plugin, "
                    "only the last one will be used"
                )
            indexed[kind] = plugin
        return indexed

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def version(self) -> Version:
        """The target Julia release, without any ``-prerelease`` tag."""
        return parse_version(self.julia_version)[0]

    @property
    def prerelease(self) -> str:
        """The ``-prerelease`` tag of the Julia version, ``""`` for none."""
        return parse_version(self.julia_version)[1]

    def has_plugin(self, kind: PluginKind) -> bool:
        return kind in self.plugins

    def summary(self) -> dict[str, str]:
        """Return a flat ``{label: value}`` mapping for display."""
        return {
            "User": self.user,
            "Host": self.host,
            "License": self.license or "None",
            "Authors": self.authors,
            "Years": self.years,
            "Package directory": str(self.dir),
            "Julia version": self.julia_version,
            "Precompile": str(self.precompile),
            "Requirements": ", ".join(self.requirements) or "None",
            "Git config": ", ".join(f"{k}={v}" for k, v in self.gitconfig.items()) or "None",
            "Plugins": ", ".join(k.value for k in self.plugins) or "None",
        }

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def to_data(self) -> dict[str, Any]:
        """Return a plain dict that :meth:`load` can read back."""
        data = self.model_dump(mode="json", exclude={"plugins"})
        data["plugins"] = [
            {"kind": kind.value, **plugin.model_dump(mode="json")}
            for kind, plugin in self.plugins.items()
        ]
        return data

    def save(self, path: str | Path) -> Path:
        """Persist the template to YAML (``.yml``/``.yaml``) or JSON.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_data()
        if target.suffix in (".yml", ".yaml"):
            target.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        else:
            target.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: str | Path, **overrides: Any) -> "Template":
        """Load a template from a YAML or JSON file.

        Keyword *overrides* replace values read from the file.
        """
        source = Path(path)
        raw = source.read_text(encoding="utf-8")
        if source.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(raw) or {}
        else:
            data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Template file {source} must contain a mapping")
        return cls.model_validate({**data, **overrides})
