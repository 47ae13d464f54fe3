"""Ordered, idempotent scaffolding steps.

Each step receives an explicit :class:`ScaffoldContext` (project root,
configuration and template renderer) and returns a
:class:`~express_scaffold.results.StepResult`.  Steps never change the process
working directory; every command runs with ``cwd`` set to the project root.
Failures are raised (``CommandError`` or ``StepError``) and the driver stops
at the first one.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from express_scaffold.config import Config
from express_scaffold.results import StepResult, StepStatus
from express_scaffold.utils import print_warning

from . import git
from .commands import run_checked
from .templates import TemplateRenderer


class StepError(Exception):
    """Raised when a step finds the workspace in a state it cannot work with."""


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass
class ScaffoldContext:
    """Everything a step needs, passed explicitly instead of via ambient state."""

    project_root: Path
    config: Config
    renderer: TemplateRenderer
    project_name: str | None = None

    @property
    def template_context(self) -> dict[str, Any]:
        return self.config.template_context(self.project_name)

    async def run(self, *cmd: str, capture: bool | None = None) -> str:
        """Run a command inside the project root and return its stdout."""
        if capture is None:
            capture = not self.config.stream_output
        return await run_checked(
            list(cmd),
            cwd=self.project_root,
            timeout=self.config.command_timeout,
            capture=capture,
        )


# ---------------------------------------------------------------------------
# Step base class
# ---------------------------------------------------------------------------


class Step:
    """A single named unit of scaffolding work."""

    name: str = ""
    description: str = ""

    async def run(self, ctx: ScaffoldContext) -> StepResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# ---------------------------------------------------------------------------
# Package manager steps
# ---------------------------------------------------------------------------


class InitManifestStep(Step):
    """Create ``package.json`` with npm defaults (keeps an existing one)."""

    name = "manifest"
    description = "Initializing Node.js project"

    async def run(self, ctx: ScaffoldContext) -> StepResult:
        await ctx.run("npm", "init", "-y")
        return StepResult(name=self.name, artifacts=["package.json"])


class InstallPackagesStep(Step):
    """``npm install`` a fixed package list, optionally as dev dependencies."""

    def __init__(
        self, name: str, description: str, packages: list[str], dev: bool = False
    ) -> None:
        self.name = name
        self.description = description
        self.packages = list(packages)
        self.dev = dev

    async def run(self, ctx: ScaffoldContext) -> StepResult:
        if not self.packages:
            return StepResult(
                name=self.name, status=StepStatus.SKIPPED, detail="No packages configured"
            )
        cmd = ["npm", "install"]
        if self.dev:
            cmd.append("--save-dev")
        cmd.extend(self.packages)
        await ctx.run(*cmd)
        return StepResult(name=self.name, detail=" ".join(self.packages))


class PatchManifestStep(Step):
    """Set ``scripts.test`` in ``package.json`` using jq.

    jq's output goes to a temporary file next to the manifest, which then
    atomically replaces it, so an interrupted run never leaves a truncated
    ``package.json``.
    """

    name = "test-script"
    description = "Registering the test script in package.json"

    async def run(self, ctx: ScaffoldContext) -> StepResult:
        manifest = ctx.project_root / "package.json"
        if not manifest.is_file():
            raise StepError(f"package.json not found in {ctx.project_root}")

        test_command = ctx.config.test_command
        patched = await ctx.run(
            "jq",
            "--arg",
            "cmd",
            test_command,
            '.scripts += {"test": $cmd}',
            "package.json",
            capture=True,
        )
        await asyncio.to_thread(_replace_file, manifest, patched + "\n")
        return StepResult(
            name=self.name,
            detail=f"scripts.test = {test_command!r}",
            artifacts=["package.json"],
        )


# ---------------------------------------------------------------------------
# Template steps
# ---------------------------------------------------------------------------


class RenderArtifactStep(Step):
    """Render one template to a fixed path, overwriting what is there."""

    def __init__(
        self,
        name: str,
        description: str,
        template: str,
        output: str,
        warning: str | None = None,
    ) -> None:
        self.name = name
        self.description = description
        self.template = template
        self.output = output
        self.warning = warning

    async def run(self, ctx: ScaffoldContext) -> StepResult:
        await ctx.renderer.render_to_file(
            self.template, ctx.project_root / self.output, ctx.template_context
        )
        if self.warning:
            print_warning(f"  {self.warning}")
        return StepResult(
            name=self.name, detail=self.warning or "", artifacts=[self.output]
        )


# ---------------------------------------------------------------------------
# Version control
# ---------------------------------------------------------------------------


class CommitStep(Step):
    """Rename the default branch, stage everything and commit.

    On a re-run with nothing new staged, the commit is skipped when
    ``config.skip_empty_commit`` is set; otherwise git's own refusal fails
    the step.
    """

    name = "commit"
    description = "Setting up basic git branches"

    async def run(self, ctx: ScaffoldContext) -> StepResult:
        root = ctx.project_root
        cfg = ctx.config
        if not git.is_repository(root):
            raise StepError(
                f"{root} exists but is not a git repository; run 'git init' in it "
                "or choose another target directory"
            )

        await git.rename_branch(root, cfg.default_branch, timeout=cfg.command_timeout)
        await git.stage_all(root, timeout=cfg.command_timeout)

        if cfg.skip_empty_commit and not await git.has_staged_changes(
            root, timeout=cfg.command_timeout
        ):
            return StepResult(
                name=self.name,
                status=StepStatus.SKIPPED,
                detail="Nothing to commit, working tree unchanged",
            )

        summary = await git.commit(root, cfg.commit_message, timeout=cfg.command_timeout)
        first_line = summary.splitlines()[0] if summary else cfg.commit_message
        return StepResult(name=self.name, detail=first_line)


# ---------------------------------------------------------------------------
# Default plan
# ---------------------------------------------------------------------------

ENV_FILE_WARNING = (
    ".env holds plaintext secret placeholders and is committed with the "
    "initial commit; replace them and keep real secrets out of git."
)


def build_default_steps(config: Config) -> list[Step]:
    """Return the scaffolding steps in execution order."""
    return [
        InitManifestStep(),
        InstallPackagesStep(
            "dependencies", "Installing dependencies", config.dependencies
        ),
        RenderArtifactStep(
            "dockerfile", "Setting up Docker environment", "Dockerfile.j2", "Dockerfile"
        ),
        RenderArtifactStep(
            "server", "Creating server.js", "server.js.j2", "server.js"
        ),
        RenderArtifactStep(
            "env", "Creating .env file", "env.j2", ".env", warning=ENV_FILE_WARNING
        ),
        RenderArtifactStep(
            "ci",
            "Setting up CI/CD workflow",
            "github/workflows/main.yml.j2",
            ".github/workflows/main.yml",
        ),
        CommitStep(),
        RenderArtifactStep(
            "test-suite",
            "Setting up test environment",
            "test/server.test.js.j2",
            "test/server.test.js",
        ),
        InstallPackagesStep(
            "test-dependencies",
            "Installing test dependencies",
            config.dev_dependencies,
            dev=True,
        ),
        RenderArtifactStep(
            "test-config", "Setting up Jest configuration", "jest.config.js.j2", "jest.config.js"
        ),
        PatchManifestStep(),
    ]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _replace_file(path: Path, content: str) -> None:
    """Write *content* to a sibling temp file, then move it over *path*."""
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        # mkstemp creates 0600 files; keep the manifest's original mode.
        os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
