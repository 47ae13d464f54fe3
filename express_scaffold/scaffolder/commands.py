"""Checked execution of external commands.

Every npm, git and jq invocation made while scaffolding goes through
:func:`run_checked`, which turns a non-zero exit status into a
:class:`CommandError` carrying the exit code the CLI propagates.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from express_scaffold.utils import console, run_command

# Exit status used by shells for "command not found".
EXIT_COMMAND_NOT_FOUND = 127


class CommandError(Exception):
    """Raised when an external command fails or cannot be started."""

    def __init__(
        self,
        message: str,
        command: str = "",
        returncode: int = 1,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


async def run_checked(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    capture: bool = True,
) -> str:
    """Run *cmd* and return its stdout, raising ``CommandError`` on failure."""
    cmd_str = " ".join(cmd)
    console.print(f"  [dim]$ {escape(cmd_str)}[/dim]")

    try:
        returncode, stdout, stderr = await run_command(
            cmd, cwd=cwd, timeout=timeout, capture=capture
        )
    except FileNotFoundError as exc:
        raise CommandError(
            f"Command not found: {cmd[0]}",
            command=cmd_str,
            returncode=EXIT_COMMAND_NOT_FOUND,
        ) from exc

    if returncode != 0:
        detail = f"\n{stderr}" if stderr else ""
        raise CommandError(
            f"Command failed (exit {returncode}): {cmd_str}{detail}",
            command=cmd_str,
            returncode=returncode,
            stderr=stderr,
        )

    return stdout
