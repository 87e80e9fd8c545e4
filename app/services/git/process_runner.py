"""
Git subprocess execution.

Runs one git command per call on the event loop via asyncio subprocesses,
enforces a wall-clock timeout, and tracks every live process in an injected
registry so application shutdown can kill whatever is still running.
"""

import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from app.config import settings
from app.services.git.exceptions import GitCommandError, GitLaunchError, GitTimeoutError
from app.services.git.helpers import sanitize_error
from app.services.git.types import GitCommandResult

logger = logging.getLogger(__name__)


class ProcessRegistry:
    """
    Set of live git subprocesses.

    One instance is created per application (see app.main lifespan) and
    shared by every ProcessRunner. `terminate_all` is the single drain
    operation run during shutdown.
    """

    def __init__(self) -> None:
        self._processes: set[asyncio.subprocess.Process] = set()

    def add(self, proc: asyncio.subprocess.Process) -> None:
        self._processes.add(proc)

    def discard(self, proc: asyncio.subprocess.Process) -> None:
        self._processes.discard(proc)

    def __len__(self) -> int:
        return len(self._processes)

    def terminate_all(self) -> int:
        """Force-kill every tracked process. Returns how many were signalled."""
        if not self._processes:
            return 0

        count = len(self._processes)
        logger.info(f"Terminating {count} active git processes")
        for proc in list(self._processes):
            try:
                proc.kill()
            except ProcessLookupError:
                pass  # Already exited
        self._processes.clear()
        return count


class ProcessRunner:
    """Executes git commands with a timeout and sanitized errors."""

    def __init__(
        self,
        registry: ProcessRegistry,
        executable: str = "git",
        timeout: float | None = None,
    ):
        self.registry = registry
        self.executable = executable
        self.timeout = timeout if timeout is not None else settings.git_command_timeout

    async def execute(
        self,
        args: Sequence[str],
        cwd: str | Path,
        timeout: float | None = None,
        token: str | None = None,
    ) -> GitCommandResult:
        """
        Run a single git command and wait for it to finish.

        Args:
            args: Arguments passed after the executable
            cwd: Working directory for the process
            timeout: Seconds before the process is killed (defaults to the runner's)
            token: Secret embedded in args; scrubbed from every error message

        Returns:
            GitCommandResult with decoded stdout/stderr and exit code 0

        Raises:
            GitLaunchError: If the process could not be spawned
            GitTimeoutError: If the timeout expired (the process is killed)
            GitCommandError: If git exited with a non-zero status
        """
        timeout = timeout if timeout is not None else self.timeout
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        command = args[0] if args else ""

        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                cwd=str(cwd),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            message = sanitize_error(str(e), token)
            logger.error(f"Failed to launch {self.executable} {command}: {message}")
            raise GitLaunchError(f"Git command error: {message}") from None

        self.registry.add(proc)
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=timeout
            )
        except TimeoutError:
            await self._kill(proc)
            logger.warning(f"{self.executable} {command} timed out after {timeout}s, killed")
            raise GitTimeoutError(
                f"Git command timed out after {timeout}s", timeout
            ) from None
        except asyncio.CancelledError:
            await self._kill(proc)
            raise
        finally:
            self.registry.discard(proc)

        stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""
        exit_code = proc.returncode if proc.returncode is not None else -1

        if exit_code != 0:
            sanitized = sanitize_error(stderr, token).strip()
            raise GitCommandError(
                f"Git command failed (exit {exit_code}): {sanitized}",
                exit_code=exit_code,
                stderr=sanitized,
            )

        return GitCommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code)

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
