"""express-scaffold scaffolder -- the ordered steps that build a project.

Quick usage::

    from express_scaffold.config import Config
    from express_scaffold.scaffolder import build_default_steps

    steps = build_default_steps(Config())
"""

from express_scaffold.scaffolder.commands import CommandError
from express_scaffold.scaffolder.steps import (
    ScaffoldContext,
    Step,
    StepError,
    build_default_steps,
)
from express_scaffold.scaffolder.templates import TemplateRenderer
from express_scaffold.scaffolder.tools import MissingDependencyError, check_tools

__all__ = [
    "CommandError",
    "MissingDependencyError",
    "ScaffoldContext",
    "Step",
    "StepError",
    "TemplateRenderer",
    "build_default_steps",
    "check_tools",
]
