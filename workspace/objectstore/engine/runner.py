"""
Subprocess-backed command runner.

Runs each command through /bin/sh, one process per statement. The async
variant uses asyncio subprocesses so a slow statement never stalls other
requests sharing the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess

from ..errors import EngineExecutionError, EngineTimeoutError

logger = logging.getLogger(__name__)


class SubprocessRunner:
    """CommandRunner that spawns a shell per command.

    Attributes:
        max_output_bytes: Output above this size is treated as a failure
        shell: Shell executable used for every command
    """

    def __init__(self, max_output_bytes: int = 10 * 1024 * 1024, shell: str = "/bin/sh") -> None:
        self.max_output_bytes = max_output_bytes
        self.shell = shell

    def _check_output(self, stdout: bytes) -> str:
        if len(stdout) > self.max_output_bytes:
            raise EngineExecutionError(
                f"duckdb output exceeded {self.max_output_bytes} bytes"
            )
        return stdout.decode("utf-8")

    def run(self, command: str, timeout: float) -> str:
        try:
            result = subprocess.run(
                command,
                shell=True,
                executable=self.shell,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineTimeoutError(timeout) from e
        except OSError as e:
            raise EngineExecutionError(f"Failed to start duckdb: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise EngineExecutionError(
                f"duckdb exited with code {result.returncode}",
                returncode=result.returncode,
                stderr=stderr,
            )
        return self._check_output(result.stdout)

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()

    async def run_async(self, command: str, timeout: float) -> str:
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                executable=self.shell,
            )
        except OSError as e:
            raise EngineExecutionError(f"Failed to start duckdb: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            await self._kill(proc)
            raise EngineTimeoutError(timeout) from e
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        if proc.returncode != 0:
            raise EngineExecutionError(
                f"duckdb exited with code {proc.returncode}",
                returncode=proc.returncode,
                stderr=stderr.decode("utf-8", errors="replace").strip(),
            )
        return self._check_output(stdout)
