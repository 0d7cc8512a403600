"""Run package-manager and build commands in a working directory."""

import asyncio
import os
import signal
import time
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from deployer.utils.logging import get_logger

logger = get_logger(__name__)

# Cap on captured output kept for logs and error details
MAX_OUTPUT_CHARS = 4000


class ProcessResult(BaseModel):
    """Exit status and captured output of one command."""

    command: str
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.exit_code == 0

    @property
    def output_tail(self) -> str:
        """Most useful slice of output for error reporting."""
        text = self.stderr.strip() or self.stdout.strip()
        return text[-MAX_OUTPUT_CHARS:]

    def describe_failure(self) -> str:
        if self.timed_out:
            return f"'{self.command}' timed out after {self.duration_ms} ms"
        return f"'{self.command}' exited with code {self.exit_code}"


class ProcessRunner(ABC):
    """Executes shell commands and reports how they ended."""

    @abstractmethod
    async def run(
        self, command: str, cwd: Path, timeout: float | None = None
    ) -> ProcessResult:
        """Run ``command`` in ``cwd``, killing it after ``timeout`` seconds."""


class ShellProcessRunner(ProcessRunner):
    """Runs commands through the system shell with asyncio subprocesses."""

    async def run(
        self, command: str, cwd: Path, timeout: float | None = None
    ) -> ProcessResult:
        start_time = time.perf_counter()

        logger.info("process.started", command=command, cwd=str(cwd), timeout=timeout)

        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            # Own process group so a timeout can kill everything the command spawned
            start_new_session=True,
        )

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            logger.warning("process.timed_out", command=command, duration_ms=duration_ms)
            return ProcessResult(
                command=command,
                exit_code=process.returncode,
                timed_out=True,
                duration_ms=duration_ms,
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        result = ProcessResult(
            command=command,
            exit_code=process.returncode,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
            duration_ms=duration_ms,
        )

        logger.info(
            "process.completed",
            command=command,
            returncode=process.returncode,
            stdout_len=len(result.stdout),
            stderr_len=len(result.stderr),
            duration_ms=duration_ms,
        )
        return result

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            await process.wait()
