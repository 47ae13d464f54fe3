"""Shared pytest fixtures for the express-scaffold test suite.

Provides reusable fixtures for:
- Run configurations rooted in a temporary directory
- A fake command layer standing in for npm, git and jq
- Tool-presence patches for the pre-flight check
- Mock subprocess helpers
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from express_scaffold.config import Config


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path: Path) -> Config:
    """A Config that scaffolds into *tmp_path* without touching the network."""
    return Config(parent_dir=tmp_path, check_registry=False)


@pytest.fixture
def project_root(config: Config) -> Path:
    """Resolved project directory for the ``config`` fixture."""
    return config.project_root.resolve()


# ---------------------------------------------------------------------------
# Tool presence
# ---------------------------------------------------------------------------

@pytest.fixture
def all_tools_present():
    """Make every tool resolve to ``/usr/bin/<name>``."""
    with patch(
        "express_scaffold.scaffolder.tools.shutil.which",
        side_effect=lambda name: f"/usr/bin/{name}",
    ) as which:
        yield which


@pytest.fixture
def missing_tools():
    """Factory: make the named tools unresolvable, everything else present."""
    patches: list[Any] = []

    def factory(*names: str) -> MagicMock:
        absent = set(names)
        p = patch(
            "express_scaffold.scaffolder.tools.shutil.which",
            side_effect=lambda name: None if name in absent else f"/usr/bin/{name}",
        )
        patches.append(p)
        return p.start()

    yield factory
    for p in patches:
        p.stop()


# ---------------------------------------------------------------------------
# Fake command layer
# ---------------------------------------------------------------------------

DEFAULT_NPM_SCRIPTS = {"test": 'echo "Error: no test specified" && exit 1'}


class FakeCommands:
    """Stand-in for ``run_command`` that simulates npm, git and jq.

    Every call is recorded in ``calls`` as ``(argv, cwd)``.  ``fail_on`` maps
    a command prefix (e.g. ``"npm install"``) to the exit code it should
    return.  ``staged_changes`` controls what ``git diff --cached --quiet``
    reports.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], Path | None]] = []
        self.fail_on: dict[str, int] = {}
        self.staged_changes = True

    @property
    def commands(self) -> list[str]:
        return [" ".join(argv) for argv, _ in self.calls]

    def count(self, prefix: str) -> int:
        return sum(1 for cmd in self.commands if cmd.startswith(prefix))

    async def __call__(
        self,
        cmd: list[str],
        cwd: str | Path | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> tuple[int, str, str]:
        cwd_path = Path(cwd) if cwd else None
        self.calls.append((list(cmd), cwd_path))
        joined = " ".join(cmd)

        for prefix, code in self.fail_on.items():
            if joined.startswith(prefix):
                return code, "", f"simulated failure: {joined}"

        program, args = cmd[0], cmd[1:]
        if program == "npm":
            return self._npm(args, cwd_path)
        if program == "git":
            return self._git(args, cwd_path)
        if program == "jq":
            return self._jq(args, cwd_path)
        return 0, "", ""

    def _npm(self, args: list[str], cwd: Path | None) -> tuple[int, str, str]:
        assert cwd is not None
        manifest = cwd / "package.json"
        if args[:1] == ["init"] and not manifest.exists():
            manifest.write_text(
                json.dumps(
                    {"name": cwd.name, "version": "1.0.0", "scripts": DEFAULT_NPM_SCRIPTS},
                    indent=2,
                )
                + "\n",
                encoding="utf-8",
            )
        return 0, "", ""

    def _git(self, args: list[str], cwd: Path | None) -> tuple[int, str, str]:
        assert cwd is not None
        if args[:1] == ["init"]:
            (cwd / ".git").mkdir(exist_ok=True)
            return 0, f"Initialized empty Git repository in {cwd}/.git/", ""
        if args[:3] == ["diff", "--cached", "--quiet"]:
            return (1 if self.staged_changes else 0), "", ""
        if args[:1] == ["commit"]:
            return 0, f"[main (root-commit) 1a2b3c4] {args[-1]}", ""
        return 0, "", ""

    def _jq(self, args: list[str], cwd: Path | None) -> tuple[int, str, str]:
        assert cwd is not None
        # jq --arg cmd <value> <filter> package.json
        value = args[args.index("--arg") + 2]
        data = json.loads((cwd / args[-1]).read_text(encoding="utf-8"))
        data["scripts"] = {**(data.get("scripts") or {}), "test": value}
        return 0, json.dumps(data, indent=2), ""


@pytest.fixture
def fake_commands():
    """Route every external command through a ``FakeCommands`` instance."""
    fake = FakeCommands()
    with patch("express_scaffold.scaffolder.commands.run_command", new=fake):
        yield fake


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
