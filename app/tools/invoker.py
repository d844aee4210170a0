"""
Subprocess runner for the wrapped command-line tools.

One call spawns exactly one process, waits for it, and returns its exit code
together with stdout and stderr merged into a single stream. Nothing is retried.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import Optional, Sequence

from app.tools.errors import PathNotFound, ToolInvocationError, ToolTimeout
from app.tools.types import ProcessResult

logger = logging.getLogger(__name__)


def ensure_directory(path: str, label: str = "directory") -> None:
    """Raise PathNotFound unless path is an existing directory."""
    if not path or not os.path.isdir(path):
        raise PathNotFound(f"{label} does not exist: {path}")


def ensure_executable(executable: str) -> None:
    """Raise PathNotFound unless executable exists or resolves on PATH."""
    if not executable:
        raise PathNotFound("executable is not configured")
    if os.path.exists(executable) or shutil.which(executable):
        return
    raise PathNotFound(f"executable not found: {executable}")


class ProcessInvoker:
    """Run an external executable and capture its merged output."""

    def __init__(self, default_timeout: Optional[float] = None, kill_grace_seconds: float = 2.0):
        self.default_timeout = default_timeout
        self.kill_grace_seconds = kill_grace_seconds

    def run(
        self,
        executable: str,
        args: Sequence[str],
        working_dir: str,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """
        Run executable with args inside working_dir.

        Raises:
            PathNotFound: working_dir or executable does not exist (nothing is spawned)
            ToolTimeout: the process outlived the timeout and was killed
            ToolInvocationError: the process could not be started
        """
        ensure_directory(working_dir, "working directory")
        ensure_executable(executable)

        argv = [executable, *args]
        limit = timeout if timeout is not None else self.default_timeout
        logger.debug(
            f"Running command: {argv}",
            extra={"command": " ".join(argv), "cwd": working_dir},
        )

        start = time.monotonic()
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                cwd=working_dir,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise PathNotFound(f"executable not found: {executable}") from e
        except OSError as e:
            raise ToolInvocationError(f"failed to start {executable}: {e}") from e

        try:
            raw, _ = process.communicate(timeout=limit)
        except subprocess.TimeoutExpired as e:
            self._terminate(process)
            raise ToolTimeout(
                f"command timed out after {limit}s: {' '.join(argv)}"
            ) from e

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        output = (raw or b"").decode("utf-8", errors="replace")
        logger.debug(
            f"Command finished with exit code {process.returncode}",
            extra={"exit_code": process.returncode, "duration_ms": duration_ms},
        )
        return ProcessResult(
            exit_code=process.returncode,
            output=output,
            duration_ms=duration_ms,
        )

    def _terminate(self, process: subprocess.Popen) -> None:
        try:
            process.terminate()
        except OSError:
            return
        try:
            process.communicate(timeout=self.kill_grace_seconds)
        except subprocess.TimeoutExpired:
            try:
                process.kill()
            except OSError:
                return
            process.communicate()
