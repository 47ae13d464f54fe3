"""Unit tests for utility functions (express_scaffold.utils).

Tests cover:
- run_command (success, failure, timeout, capture, missing program)
- format_duration
- check_registry (mock httpx)
- Rich output helpers
"""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from express_scaffold.utils import (
    check_registry,
    format_duration,
    print_error,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    async def test_successful_command(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "print('hello')"]
        )
        assert returncode == 0
        assert stdout == "hello"
        assert stderr == ""

    @pytest.mark.unit
    async def test_failing_command_returns_exit_code(self):
        returncode, _, stderr = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]
        )
        assert returncode == 3
        assert stderr == "boom"

    @pytest.mark.unit
    async def test_cwd_is_used(self, tmp_path: Path):
        _, stdout, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert Path(stdout).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    async def test_timeout_kills_process(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.2
        )
        assert returncode == -1
        assert stdout == ""
        assert "timed out" in stderr

    @pytest.mark.unit
    async def test_no_capture_returns_empty_strings(self, mock_subprocess):
        proc = mock_subprocess(returncode=0)
        proc.communicate = AsyncMock(return_value=(None, None))
        with patch("asyncio.create_subprocess_exec", return_value=proc) as create:
            returncode, stdout, stderr = await run_command(["npm", "install"], capture=False)
        assert (returncode, stdout, stderr) == (0, "", "")
        assert create.call_args.kwargs["stdout"] is None
        assert create.call_args.kwargs["stderr"] is None

    @pytest.mark.unit
    async def test_missing_program_raises(self):
        with pytest.raises(FileNotFoundError):
            await run_command(["definitely-not-a-real-program-xyz"])


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (3.7, "3.7s"),
            (0, "0.0s"),
            (-1, "0.0s"),
            (65.2, "1m 5s"),
            (3661.0, "1h 1m 1s"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


# ---------------------------------------------------------------------------
# check_registry
# ---------------------------------------------------------------------------


def _mock_client(response=None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        client.get = AsyncMock(side_effect=error)
    else:
        client.get = AsyncMock(return_value=response)
    return client


class TestCheckRegistry:
    @pytest.mark.unit
    async def test_reachable(self):
        client = _mock_client(response=MagicMock(status_code=200))
        with patch("express_scaffold.utils.httpx.AsyncClient", return_value=client):
            assert await check_registry("https://registry.npmjs.org/") is True
        client.get.assert_awaited_once_with("https://registry.npmjs.org/")

    @pytest.mark.unit
    async def test_server_error_is_unreachable(self):
        client = _mock_client(response=MagicMock(status_code=503))
        with patch("express_scaffold.utils.httpx.AsyncClient", return_value=client):
            assert await check_registry("https://registry.npmjs.org/") is False

    @pytest.mark.unit
    async def test_connection_error_is_unreachable(self):
        client = _mock_client(error=httpx.ConnectError("refused"))
        with patch("express_scaffold.utils.httpx.AsyncClient", return_value=client):
            assert await check_registry("https://registry.npmjs.org/") is False

    @pytest.mark.unit
    async def test_timeout_is_unreachable(self):
        client = _mock_client(error=httpx.ReadTimeout("slow"))
        with patch("express_scaffold.utils.httpx.AsyncClient", return_value=client):
            assert await check_registry("https://registry.npmjs.org/") is False


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestOutputHelpers:
    @pytest.mark.unit
    def test_helpers_print(self):
        with patch("express_scaffold.utils.console") as mock_console:
            print_step_header(1, 11, "Initializing Node.js project")
            print_success("done")
            print_warning("careful")
            print_error("broken")
            print_summary_table([("manifest", "ok", "")])
        assert mock_console.print.call_count >= 5

    @pytest.mark.unit
    def test_messages_are_styled(self):
        with patch("express_scaffold.utils.console") as mock_console:
            print_error("broken")
        assert mock_console.print.call_args.args[0] == "[bold red]broken[/bold red]"
