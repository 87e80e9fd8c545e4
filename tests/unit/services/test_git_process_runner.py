"""Unit tests for the git process runner and process registry.

Uses the Python interpreter as the executable so real subprocesses are
spawned, timed out and killed without needing git or a network.
"""

from __future__ import annotations

import asyncio
import sys
import time
from unittest.mock import MagicMock

import pytest

from app.services.git.constants import TOKEN_PLACEHOLDER
from app.services.git.exceptions import (
    GitCommandError,
    GitLaunchError,
    GitTimeoutError,
)
from app.services.git.process_runner import ProcessRegistry, ProcessRunner


def _runner(registry: ProcessRegistry, timeout: float = 10.0) -> ProcessRunner:
    return ProcessRunner(registry, executable=sys.executable, timeout=timeout)


async def _wait_for_registered(registry: ProcessRegistry, count: int = 1) -> None:
    for _ in range(500):
        if len(registry) >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("process was never registered")


# ═══════════════════════════════════════════════════════════════════════════
# ProcessRunner.execute
# ═══════════════════════════════════════════════════════════════════════════


class TestExecute:
    """Tests for running a single command."""

    def setup_method(self):
        self.registry = ProcessRegistry()

    @pytest.mark.asyncio
    async def test_returns_stdout_on_success(self, tmp_path):
        result = await _runner(self.registry).execute(["-c", "print('hello')"], tmp_path)

        assert result.stdout.strip() == "hello"
        assert result.exit_code == 0
        assert len(self.registry) == 0

    @pytest.mark.asyncio
    async def test_runs_in_working_directory(self, tmp_path):
        result = await _runner(self.registry).execute(
            ["-c", "import os; print(os.getcwd())"], tmp_path
        )

        assert result.stdout.strip() == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_disables_terminal_prompt(self, tmp_path):
        result = await _runner(self.registry).execute(
            ["-c", "import os; print(os.environ['GIT_TERMINAL_PROMPT'])"], tmp_path
        )

        assert result.stdout.strip() == "0"

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises_with_sanitized_stderr(self, tmp_path):
        token = "ghp_s3cr3t"
        script = f"import sys; sys.stderr.write('auth failed for {token}'); sys.exit(3)"

        with pytest.raises(GitCommandError) as exc_info:
            await _runner(self.registry).execute(["-c", script], tmp_path, token=token)

        err = exc_info.value
        assert err.exit_code == 3
        assert token not in err.message
        assert token not in err.stderr
        assert TOKEN_PLACEHOLDER in err.message
        assert len(self.registry) == 0

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path):
        start = time.monotonic()

        with pytest.raises(GitTimeoutError) as exc_info:
            await _runner(self.registry).execute(
                ["-c", "import time; time.sleep(30)"], tmp_path, timeout=0.5
            )

        elapsed = time.monotonic() - start
        assert elapsed < 5.0
        assert exc_info.value.timeout == 0.5
        assert isinstance(exc_info.value, TimeoutError)
        assert len(self.registry) == 0

    @pytest.mark.asyncio
    async def test_launch_failure(self, tmp_path):
        runner = ProcessRunner(self.registry, executable=str(tmp_path / "no-such-git"))

        with pytest.raises(GitLaunchError, match="Git command error"):
            await runner.execute(["status"], tmp_path)

        assert len(self.registry) == 0

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self, tmp_path):
        task = asyncio.create_task(
            _runner(self.registry).execute(["-c", "import time; time.sleep(30)"], tmp_path)
        )
        await _wait_for_registered(self.registry)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(self.registry) == 0


# ═══════════════════════════════════════════════════════════════════════════
# ProcessRegistry
# ═══════════════════════════════════════════════════════════════════════════


class TestProcessRegistry:
    """Tests for tracking and draining live processes."""

    def test_terminate_all_on_empty_registry(self):
        assert ProcessRegistry().terminate_all() == 0

    def test_terminate_all_ignores_exited_processes(self):
        registry = ProcessRegistry()
        alive = MagicMock()
        exited = MagicMock()
        exited.kill.side_effect = ProcessLookupError
        registry.add(alive)
        registry.add(exited)

        assert registry.terminate_all() == 2

        alive.kill.assert_called_once()
        assert len(registry) == 0

    def test_discard_unknown_process_is_noop(self):
        registry = ProcessRegistry()
        registry.discard(MagicMock())
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_terminate_all_kills_running_command(self, tmp_path):
        registry = ProcessRegistry()
        task = asyncio.create_task(
            _runner(registry).execute(["-c", "import time; time.sleep(30)"], tmp_path)
        )
        await _wait_for_registered(registry)

        assert registry.terminate_all() == 1

        # Killed by signal, so the command reports a non-zero exit
        with pytest.raises(GitCommandError):
            await asyncio.wait_for(task, timeout=5.0)
        assert len(registry) == 0
