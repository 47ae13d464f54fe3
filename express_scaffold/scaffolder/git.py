"""Thin async wrappers around the git commands used while scaffolding."""

from __future__ import annotations

from pathlib import Path

from .commands import CommandError, run_checked


def is_repository(path: Path) -> bool:
    """Return ``True`` if *path* is the top level of a git work tree."""
    return (path / ".git").exists()


async def init_repository(path: Path, timeout: float | None = None) -> None:
    await run_checked(["git", "init"], cwd=path, timeout=timeout)


async def rename_branch(path: Path, branch: str, timeout: float | None = None) -> None:
    """Rename the current (possibly unborn) branch to *branch*."""
    await run_checked(["git", "branch", "-m", branch], cwd=path, timeout=timeout)


async def stage_all(path: Path, timeout: float | None = None) -> None:
    await run_checked(["git", "add", "."], cwd=path, timeout=timeout)


async def has_staged_changes(path: Path, timeout: float | None = None) -> bool:
    """Return ``True`` if the index differs from ``HEAD``.

    In a repository without commits, any staged file counts as a change.
    """
    try:
        await run_checked(
            ["git", "diff", "--cached", "--quiet"], cwd=path, timeout=timeout
        )
    except CommandError as exc:
        # --quiet exits 1 when there are differences; anything else is a real error.
        if exc.returncode == 1:
            return True
        raise
    return False


async def commit(path: Path, message: str, timeout: float | None = None) -> str:
    """Create a commit from the index and return git's summary line."""
    return await run_checked(
        ["git", "commit", "-m", message], cwd=path, timeout=timeout
    )
