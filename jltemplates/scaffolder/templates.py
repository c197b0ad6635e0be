"""Jinja2 template rendering and file writing for package scaffolding.

Provides the TemplateRenderer class which loads the bundled Jinja2 templates
from the ``jltemplates/scaffolder/templates/`` directory, plus the two
substitution entry points used by generators and plugins:

* :func:`substitute` renders template text against an explicit view.
* :func:`substitute_with_defaults` first derives a default view from a
  :class:`~jltemplates.config.Template` and lets the caller's view override it.

Names missing from the view never raise: ``{{ NAME }}`` and ``{{ NAME.key }}``
render empty and ``{% if FLAG %}`` evaluates as false.  Values are inserted
verbatim; the output is Julia, YAML and Markdown, never HTML.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import ChainableUndefined, Environment, FileSystemLoader

if TYPE_CHECKING:
    from jltemplates.config import Template


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for package scaffolding.

    The renderer loads ``.j2`` template files from a configurable template
    directory.  Templates are rendered with a context dictionary that
    typically contains package metadata (name, user, version flags, etc.).
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=ChainableUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single bundled template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"runtests.jl.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context.

        Used for user-supplied plugin config files and badge URLs, which are
        not stored in the template directory.
        """
        template = self.env.from_string(template_string)
        return template.render(**context)

    # -- File-based rendering ----------------------------------------------

    def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  Returns the output path.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        write_file(out, content)
        return out


@lru_cache(maxsize=None)
def get_renderer() -> TemplateRenderer:
    """Return the shared renderer for the bundled template directory."""
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------


def substitute(text: str, view: dict[str, Any]) -> str:
    """Replace placeholders in *text* with the values in *view*.

    *text* is not modified.  Conditionals on names absent from *view*
    evaluate as false instead of raising.
    """
    return get_renderer().render_string(text, view)


def default_view(template: Template) -> dict[str, Any]:
    """Build the substitution view derived from *template*.

    ``VERSION`` is ``major.minor`` without the prerelease marker that
    :func:`~jltemplates.scaffolder.generator.version_floor` would add.
    ``AFTER`` is true whenever a CI config needs a post-build step.
    """
    from .plugins import Documenter, PluginKind

    version = template.version
    view: dict[str, Any] = {
        "USER": template.user,
        "VERSION": f"{version.major}.{version.minor}",
        "DOCUMENTER": any(isinstance(p, Documenter) for p in template.plugins.values()),
        "CODECOV": PluginKind.CODECOV in template.plugins,
        "COVERALLS": PluginKind.COVERALLS in template.plugins,
    }
    view["AFTER"] = view["DOCUMENTER"] or view["CODECOV"] or view["COVERALLS"]
    return view


def substitute_with_defaults(
    text: str,
    template: Template,
    view: dict[str, Any] | None = None,
) -> str:
    """Like :func:`substitute`, starting from :func:`default_view`.

    Entries in *view* take precedence over the derived defaults.
    """
    return substitute(text, {**default_view(template), **(view or {})})


# ---------------------------------------------------------------------------
# File writing
# ---------------------------------------------------------------------------


def write_file(path: str | Path, text: str) -> int:
    """Write *text* to *path*, always ending the file with a newline.

    Parent directories are created and an existing file is overwritten.

    Returns:
        The number of bytes written.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    if not text.endswith("\n"):
        text += "\n"
    data = text.encode("utf-8")
    out.write_bytes(data)
    return len(data)
