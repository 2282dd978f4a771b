"""Async subprocess runner used for every external tool invocation."""

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Result of a command execution."""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def error_text(self) -> str:
        """Raw error text as reported by the tool."""
        text = self.stderr.strip() or self.stdout.strip()
        return text or f"Exit code: {self.returncode}"


class CommandRunner:
    """Runs external commands one at a time and reports stdout/stderr/exit code.

    A missing executable is reported as exit code 127 with the OS error as
    stderr; nothing here raises for a failing command.
    """

    def __init__(self, env: dict[str, str] | None = None):
        """Initialize CommandRunner.

        Args:
            env: Extra environment variables merged over os.environ
        """
        self.env = env

    def _environ(self) -> dict[str, str] | None:
        if not self.env:
            return None
        env = os.environ.copy()
        env.update(self.env)
        return env

    async def run(
        self,
        cmd: list[str],
        timeout: float | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        """Run a command to completion and capture its output.

        Args:
            cmd: Command and arguments
            timeout: Optional timeout in seconds
            cwd: Working directory

        Returns:
            CommandResult with decoded stdout/stderr
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=self._environ(),
            )
        except OSError as e:
            logger.debug(f"Failed to start {cmd[0]}: {e}")
            return CommandResult(returncode=127, stdout="", stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout} seconds",
                timed_out=True,
            )

        return CommandResult(
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def stream(
        self,
        cmd: list[str],
        on_line: Callable[[str], None],
        on_error_line: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Run a command, handing each non-empty output line to a callback.

        stderr is drained concurrently so neither pipe can block the child.

        Args:
            cmd: Command and arguments
            on_line: Called with each stdout line (stripped)
            on_error_line: Called with each stderr line (stripped)

        Returns:
            CommandResult; stdout/stderr hold the collected lines
        """
        logger.debug(f"Streaming: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._environ(),
            )
        except OSError as e:
            logger.debug(f"Failed to start {cmd[0]}: {e}")
            return CommandResult(returncode=127, stdout="", stderr=str(e))

        async def drain(stream: asyncio.StreamReader, callback, sink: list[str]) -> None:
            while True:
                raw = await stream.readline()
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").strip()
                if line:
                    sink.append(line)
                    if callback:
                        callback(line)

        out_lines: list[str] = []
        err_lines: list[str] = []
        await asyncio.gather(
            drain(process.stdout, on_line, out_lines),
            drain(process.stderr, on_error_line, err_lines),
        )
        returncode = await process.wait()

        return CommandResult(
            returncode=returncode,
            stdout="\n".join(out_lines),
            stderr="\n".join(err_lines),
        )

    async def run_pipeline(self, script: str, timeout: float | None = None) -> CommandResult:
        """Run a shell pipeline under bash with pipefail.

        Used where two tools are chained, e.g. `docker save ... | gzip > file`.
        Callers must quote their arguments (shlex.quote).
        """
        return await self.run(["bash", "-o", "pipefail", "-c", script], timeout=timeout)
