"""Pre-flight checks for the external tools a scaffolding run depends on."""

from __future__ import annotations

import shutil
from dataclasses import dataclass


class MissingDependencyError(Exception):
    """Raised when a required executable cannot be found on ``PATH``."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        self.tool = self.missing[0] if self.missing else ""
        super().__init__(
            f"{self.tool} could not be found. Please install it."
            + (f" (also missing: {', '.join(self.missing[1:])})" if len(self.missing) > 1 else "")
        )


@dataclass(frozen=True)
class ToolRequirement:
    """An executable that must be resolvable on the execution path."""

    name: str

    def resolve(self) -> str | None:
        """Return the executable's full path, or ``None`` when absent."""
        return shutil.which(self.name)


def check_tools(names: list[str]) -> dict[str, str]:
    """Resolve every tool in *names*, in order.

    Returns:
        Mapping of tool name to resolved path.

    Raises:
        MissingDependencyError: If any tool is missing.  The first missing
            tool is named in the message.
    """
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for name in names:
        path = ToolRequirement(name).resolve()
        if path is None:
            missing.append(name)
        else:
            resolved[name] = path

    if missing:
        raise MissingDependencyError(missing)
    return resolved
