"""Step outcomes and the per-run scaffold report.

Pydantic v2 models describing what each scaffolding step did and how the run
as a whole ended, including the process exit code the CLI should use.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class StepStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class StepResult(BaseModel):
    """Outcome of a single scaffolding step."""

    name: str = Field(..., description="Short step identifier, e.g. 'dockerfile'")
    status: StepStatus = Field(default=StepStatus.OK)
    detail: str = Field(default="", description="Human-readable note or error message")
    artifacts: list[str] = Field(
        default_factory=list,
        description="Paths written by the step, relative to the project root",
    )
    duration_seconds: float = Field(default=0.0, ge=0.0)
    returncode: int | None = Field(
        default=None, description="Exit code of the failing command, if any"
    )

    @computed_field  # type: ignore[misc]
    @property
    def succeeded(self) -> bool:
        """True unless the step failed."""
        return self.status != StepStatus.FAILED


class ScaffoldReport(BaseModel):
    """Everything one scaffolding run produced, in execution order."""

    project_root: str = Field(..., description="Absolute path of the project directory")
    created: bool = Field(default=False, description="Whether this run created the directory")
    steps: list[StepResult] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def success(self) -> bool:
        return all(step.succeeded for step in self.steps)

    @computed_field  # type: ignore[misc]
    @property
    def exit_code(self) -> int:
        """0 on success, else the failing command's exit code (1 if unknown)."""
        for step in self.steps:
            if step.status == StepStatus.FAILED:
                if step.returncode is not None and step.returncode > 0:
                    return step.returncode
                return 1
        return 0

    @property
    def failed_step(self) -> StepResult | None:
        return next(
            (step for step in self.steps if step.status == StepStatus.FAILED), None
        )

    def artifacts(self) -> list[str]:
        """All paths written during the run, in order."""
        return [path for step in self.steps for path in step.artifacts]
