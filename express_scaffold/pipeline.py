"""express-scaffold driver.

Runs a scaffolding pass over one project directory:

1. Pre-flight -- every required tool must resolve on ``PATH`` before anything
   is touched; the npm registry is probed (warning only).
2. Directory  -- create the project directory and ``git init`` it, or reuse
   an existing directory as-is.
3. Steps      -- run the ordered steps, stopping at the first failure.

Usage::

    express-scaffold
    express-scaffold my-app --parent ~/work
    python -m express_scaffold.pipeline --list-steps
"""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from express_scaffold.config import Config
from express_scaffold.results import ScaffoldReport, StepResult, StepStatus
from express_scaffold.scaffolder import git
from express_scaffold.scaffolder.commands import CommandError
from express_scaffold.scaffolder.steps import (
    ScaffoldContext,
    Step,
    StepError,
    build_default_steps,
)
from express_scaffold.scaffolder.templates import TemplateRenderer
from express_scaffold.scaffolder.tools import MissingDependencyError, check_tools
from express_scaffold.utils import (
    check_registry,
    console,
    format_duration,
    print_error,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
)

_STATUS_STYLES: dict[StepStatus, str] = {
    StepStatus.OK: "[green]ok[/green]",
    StepStatus.SKIPPED: "[yellow]skipped[/yellow]",
    StepStatus.FAILED: "[red]failed[/red]",
}


# ---------------------------------------------------------------------------
# Scaffolder
# ---------------------------------------------------------------------------


class Scaffolder:
    """Drives one scaffolding run.

    Attributes:
        config: Run configuration.
        renderer: Template renderer shared by all steps.
        steps: The ordered steps to execute.
    """

    def __init__(
        self,
        config: Config,
        steps: list[Step] | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.steps = steps if steps is not None else build_default_steps(config)

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------

    async def _preflight(self) -> None:
        """Check required tools, then probe the registry.

        Raises:
            MissingDependencyError: Before any file-system side effect.
        """
        resolved = check_tools(self.config.required_tools)
        for name in self.config.required_tools:
            console.print(f"  [green]+[/green] {name} [dim]({resolved[name]})[/dim]")

        if self.config.check_registry:
            if await check_registry(self.config.registry_url):
                console.print(f"  [green]+[/green] Registry reachable: {self.config.registry_url}")
            else:
                print_warning(
                    f"  Registry {self.config.registry_url} is not reachable -- "
                    "package installation will probably fail."
                )

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    async def _prepare_directory(self, project_root: Path) -> bool:
        """Create and ``git init`` *project_root*, or adopt it if present.

        Returns:
            ``True`` if the directory was created by this call.
        """
        if project_root.is_dir():
            console.print(
                f"Directory '{project_root.name}' already exists. Moving into it."
            )
            if not git.is_repository(project_root):
                print_warning(
                    f"  '{project_root.name}' is not a git repository; "
                    "it will not be initialized."
                )
            return False

        await asyncio.to_thread(project_root.mkdir, parents=True)
        await git.init_repository(project_root, timeout=self.config.command_timeout)
        console.print("Initialized git repository.")
        return True

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, target_dir_name: str | None = None) -> ScaffoldReport:
        """Scaffold *target_dir_name* (default ``config.project_name``).

        Returns:
            The run report.  A failed step ends the run; its exit code is
            available as ``report.exit_code``.

        Raises:
            MissingDependencyError: If a required tool is absent.  Nothing has
                been created or modified when this is raised.
        """
        run_start = time.monotonic()
        name = target_dir_name or self.config.project_name
        project_root = (self.config.parent_dir / name).resolve()

        console.print(
            Panel(
                f"[bold bright_cyan]Setting up the {self.config.templates.app_title} project...[/bold bright_cyan]\n"
                f"Directory : {project_root}\n"
                f"Steps     : {len(self.steps)}",
                title="[bold]express-scaffold[/bold]",
                border_style="bright_cyan",
            )
        )

        await self._preflight()

        report = ScaffoldReport(project_root=str(project_root))
        try:
            report.created = await self._prepare_directory(project_root)
        except (CommandError, OSError) as exc:
            print_error(f"Could not initialize {project_root}: {escape(str(exc))}")
            report.steps.append(
                StepResult(
                    name="directory",
                    status=StepStatus.FAILED,
                    detail=str(exc),
                    returncode=getattr(exc, "returncode", None),
                )
            )
            self._print_final_summary(report, time.monotonic() - run_start)
            return report

        ctx = ScaffoldContext(
            project_root=project_root,
            config=self.config,
            renderer=self.renderer,
            project_name=name,
        )

        total = len(self.steps)
        for index, step in enumerate(self.steps, start=1):
            print_step_header(index, total, step.description or step.name)
            step_start = time.monotonic()
            try:
                result = await step.run(ctx)
            except CommandError as exc:
                result = StepResult(
                    name=step.name,
                    status=StepStatus.FAILED,
                    detail=str(exc),
                    returncode=exc.returncode,
                )
            except (StepError, OSError) as exc:
                result = StepResult(
                    name=step.name, status=StepStatus.FAILED, detail=str(exc)
                )

            result.duration_seconds = time.monotonic() - step_start
            report.steps.append(result)

            if result.status == StepStatus.FAILED:
                print_error(f"Step '{step.name}' FAILED: {escape(result.detail)}")
                break
            if result.status == StepStatus.SKIPPED:
                print_warning(f"  Skipped: {result.detail}")

        self._print_final_summary(report, time.monotonic() - run_start)
        return report

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _print_final_summary(self, report: ScaffoldReport, elapsed: float) -> None:
        console.print()
        rows = [
            (step.name, _STATUS_STYLES[step.status], escape(step.detail.splitlines()[0]) if step.detail else "")
            for step in report.steps
        ]
        print_summary_table(rows, title=f"Scaffold summary ({format_duration(elapsed)})")

        if report.success:
            print_success(
                "Automation script completed. Please review, customize, and expand "
                "based on your project's specific requirements."
            )
        else:
            failed = report.failed_step
            print_error(
                f"Scaffolding stopped at step '{failed.name if failed else '?'}'. "
                "Fix the problem and re-run; completed steps are safe to repeat."
            )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``express-scaffold`` / ``python -m express_scaffold.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="express-scaffold",
        description="Scaffold a Node.js + Express + MongoDB project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  express-scaffold\n"
            "  express-scaffold my-app --parent ~/work\n"
            "  express-scaffold --config scaffold.json --always-commit\n"
        ),
    )

    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Project directory name (default: aenzbi-cloud)",
    )
    parser.add_argument(
        "--parent", "-C",
        default=None,
        help="Directory the project directory is created in (default: cwd)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON configuration file (environment variables are used otherwise)",
    )
    parser.add_argument(
        "--always-commit",
        action="store_true",
        help="Attempt the initial commit even when nothing changed",
    )
    parser.add_argument(
        "--stream-output",
        action="store_true",
        help="Show npm and git output as it is produced",
    )
    parser.add_argument(
        "--no-registry-check",
        action="store_true",
        help="Skip the npm registry reachability probe",
    )
    parser.add_argument(
        "--list-steps",
        action="store_true",
        help="Print the steps that would run and exit",
    )

    args = parser.parse_args(argv)

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            console.print(f"[bold red]Error:[/bold red] Config file not found: {config_path}")
            sys.exit(1)
        config = Config.load(config_path)
    else:
        config = Config.from_env()

    if args.target:
        config.project_name = args.target
    if args.parent:
        config.parent_dir = Path(args.parent)
    if args.always_commit:
        config.skip_empty_commit = False
    if args.stream_output:
        config.stream_output = True
    if args.no_registry_check:
        config.check_registry = False

    scaffolder = Scaffolder(config)

    if args.list_steps:
        for index, step in enumerate(scaffolder.steps, start=1):
            console.print(f"{index:>2}. [bold]{step.name}[/bold] -- {step.description}")
        return

    try:
        report = asyncio.run(scaffolder.run())
    except MissingDependencyError as exc:
        print_error(escape(str(exc)))
        sys.exit(1)

    if not report.success:
        sys.exit(report.exit_code)


if __name__ == "__main__":
    main()
