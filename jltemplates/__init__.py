"""jltemplates -- generate Julia package skeletons.

Quick usage::

    from jltemplates import Template, TravisCI, generate

    template = Template(user="alice", plugins=[TravisCI()])
    generate("Foo", template)
"""

from jltemplates.config import Template
from jltemplates.errors import (
    GenerationError,
    JLTemplatesError,
    PreconditionError,
    RelocationError,
    SetupError,
)
from jltemplates.licenses import available_licenses, read_license
from jltemplates.pipeline import GenerationResult, generate, generate_many
from jltemplates.scaffolder import (
    AppVeyor,
    Badge,
    CodeCov,
    Coveralls,
    CustomPlugin,
    GitHubPages,
    GitLabCI,
    PluginKind,
    TravisCI,
    substitute,
    substitute_with_defaults,
    version_floor,
)

__all__ = [
    "AppVeyor",
    "Badge",
    "CodeCov",
    "Coveralls",
    "CustomPlugin",
    "GenerationError",
    "GenerationResult",
    "GitHubPages",
    "GitLabCI",
    "JLTemplatesError",
    "PluginKind",
    "PreconditionError",
    "RelocationError",
    "SetupError",
    "Template",
    "TravisCI",
    "available_licenses",
    "generate",
    "generate_many",
    "read_license",
    "substitute",
    "substitute_with_defaults",
    "version_floor",
]
