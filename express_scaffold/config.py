"""express-scaffold configuration.

Centralised, typed configuration for a scaffolding run.  All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables.  The defaults reproduce the
Aenzbi Cloud project layout.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


DEFAULT_REQUIRED_TOOLS: list[str] = ["git", "node", "npm", "docker", "aws", "jq"]

DEFAULT_DEPENDENCIES: list[str] = [
    "react",
    "react-dom",
    "redux",
    "express",
    "mongoose",
    "mongodb",
    "bcryptjs",
    "jsonwebtoken",
    "dotenv",
    "cors",
]

DEFAULT_DEV_DEPENDENCIES: list[str] = ["supertest", "jest"]

PLACEHOLDER_MONGODB_URI = (
    "mongodb+srv://<username>:<password>@<cluster>.mongodb.net/<dbname>"
    "?retryWrites=true&w=majority"
)


class TemplateConfig(BaseModel):
    """Values substituted into the generated files.

    Secret-like values are placeholders for the operator to replace; they are
    written verbatim and never resolved.
    """

    app_title: str = Field(default="Aenzbi Cloud")
    port: int = Field(default=3000, ge=1, le=65535)
    node_image: str = Field(default="node:14", description="Base image of the generated Dockerfile")
    node_version: str = Field(default="14.x", description="Node.js version in the CI matrix")
    mongodb_uri: str = Field(default=PLACEHOLDER_MONGODB_URI)
    jwt_secret: str = Field(default="yourSecretKey")
    deploy_user: str = Field(default="ec2-user", description="SSH user of the deploy job")


class Config(BaseModel):
    """Global express-scaffold configuration.

    Instances are created once by the CLI entry point (or by tests) and then
    passed explicitly to the scaffolder and every step.
    """

    project_name: str = Field(default="aenzbi-cloud", min_length=1)
    parent_dir: Path = Field(default=Path("."))
    required_tools: list[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED_TOOLS))
    dependencies: list[str] = Field(default_factory=lambda: list(DEFAULT_DEPENDENCIES))
    dev_dependencies: list[str] = Field(default_factory=lambda: list(DEFAULT_DEV_DEPENDENCIES))
    default_branch: str = Field(default="main", min_length=1)
    commit_message: str = Field(default="Initial commit for Aenzbi Cloud Suite")
    test_command: str = Field(default="jest", description="Value of scripts.test in package.json")
    skip_empty_commit: bool = Field(
        default=True,
        description="Report the commit step as skipped when nothing is staged",
    )
    command_timeout: float | None = Field(
        default=None, gt=0, description="Per-command timeout in seconds (None waits forever)"
    )
    stream_output: bool = Field(
        default=False, description="Let npm/git write straight to the terminal"
    )
    check_registry: bool = Field(default=True)
    registry_url: str = Field(default="https://registry.npmjs.org/")
    templates: TemplateConfig = Field(default_factory=TemplateConfig)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def project_root(self) -> Path:
        """Directory the project is scaffolded into."""
        return self.parent_dir / self.project_name

    def template_context(self, project_name: str | None = None) -> dict[str, Any]:
        """Build the Jinja2 context shared by every template.

        *project_name* overrides ``self.project_name`` when a run targets a
        directory other than the configured one.
        """
        return {
            "project_name": project_name or self.project_name,
            "default_branch": self.default_branch,
            **self.templates.model_dump(),
        }

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            SCAFFOLD_PROJECT_NAME, SCAFFOLD_PARENT_DIR, SCAFFOLD_REQUIRED_TOOLS,
            SCAFFOLD_DEFAULT_BRANCH, SCAFFOLD_COMMIT_MESSAGE,
            SCAFFOLD_TEST_COMMAND, SCAFFOLD_COMMAND_TIMEOUT,
            SCAFFOLD_REGISTRY_URL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SCAFFOLD_PROJECT_NAME"):
            kwargs["project_name"] = os.environ["SCAFFOLD_PROJECT_NAME"]
        if os.environ.get("SCAFFOLD_PARENT_DIR"):
            kwargs["parent_dir"] = Path(os.environ["SCAFFOLD_PARENT_DIR"])
        if os.environ.get("SCAFFOLD_REQUIRED_TOOLS"):
            tools = os.environ["SCAFFOLD_REQUIRED_TOOLS"]
            kwargs["required_tools"] = [t.strip() for t in tools.split(",") if t.strip()]
        if os.environ.get("SCAFFOLD_DEFAULT_BRANCH"):
            kwargs["default_branch"] = os.environ["SCAFFOLD_DEFAULT_BRANCH"]
        if os.environ.get("SCAFFOLD_COMMIT_MESSAGE"):
            kwargs["commit_message"] = os.environ["SCAFFOLD_COMMIT_MESSAGE"]
        if os.environ.get("SCAFFOLD_TEST_COMMAND"):
            kwargs["test_command"] = os.environ["SCAFFOLD_TEST_COMMAND"]
        if os.environ.get("SCAFFOLD_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = float(os.environ["SCAFFOLD_COMMAND_TIMEOUT"])
        if os.environ.get("SCAFFOLD_REGISTRY_URL"):
            kwargs["registry_url"] = os.environ["SCAFFOLD_REGISTRY_URL"]
        return cls(**kwargs)
